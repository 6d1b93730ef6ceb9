from __future__ import annotations
"""Selection transitions scoped to the currently displayed listing."""
from dataclasses import replace

from .models import BrowserView
from .paths import join_key


def toggle(view: BrowserView, name: str, is_selected: bool) -> BrowserView:
    """Add or remove an object name; unknown names and folders are ignored."""

    if is_selected:
        if name in view.selection or view.entry(name, folder=False) is None:
            return view
        return replace(view, selection=view.selection + (name,))
    if name not in view.selection:
        return view
    return replace(view, selection=tuple(item for item in view.selection if item != name))


def clear(view: BrowserView) -> BrowserView:
    if not view.selection:
        return view
    return replace(view, selection=())


def select_all(view: BrowserView) -> BrowserView:
    names = list(view.selection)
    names.extend(name for name in view.object_names if name not in names)
    return replace(view, selection=tuple(names))


def prune(view: BrowserView) -> BrowserView:
    """Drop selected names that are no longer objects of the listing."""

    present = set(view.object_names)
    kept = tuple(name for name in view.selection if name in present)
    if kept == view.selection:
        return view
    return replace(view, selection=kept)


def selected_keys(view: BrowserView) -> list[str]:
    return [join_key(view.path, name) for name in view.selection]
