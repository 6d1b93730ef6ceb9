from __future__ import annotations
"""Listing normalization and the explicit sorting transform."""
from datetime import datetime, timezone
from typing import Iterable

from .models import ChildListing, FolderEntry, ListingEntry, ObjectEntry
from .paths import FOLDER_MARKER_NAME

SORT_KEYS = ("name", "size", "last_modified")
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def merge_listing(children: ChildListing, *, hide_markers: bool = True) -> tuple[ListingEntry, ...]:
    """Merge folders and objects into one sequence, folders first.

    Each group keeps the order the gateway returned it in; duplicates within a
    group are dropped so names stay unique per kind.
    """

    entries: list[ListingEntry] = []
    seen_folders: set[str] = set()
    for name in children.folders:
        if not name or name in seen_folders:
            continue
        seen_folders.add(name)
        entries.append(FolderEntry(name=name))

    seen_objects: set[str] = set()
    for obj in children.objects:
        if not obj.name or obj.name in seen_objects:
            continue
        if hide_markers and obj.name == FOLDER_MARKER_NAME:
            continue
        seen_objects.add(obj.name)
        entries.append(obj)
    return tuple(entries)


def _sort_value(entry: ListingEntry, key: str):
    if key == "size":
        return entry.size if isinstance(entry, ObjectEntry) else -1
    if key == "last_modified":
        if isinstance(entry, ObjectEntry) and entry.last_modified is not None:
            value = entry.last_modified
            return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return _EPOCH
    return entry.name.casefold()


def sort_listing(
    entries: Iterable[ListingEntry],
    key: str = "name",
    *,
    reverse: bool = False,
    folders_first: bool = True,
) -> tuple[ListingEntry, ...]:
    if key not in SORT_KEYS:
        raise ValueError(f"Unsupported sort key: {key}")
    items = list(entries)
    if not folders_first:
        return tuple(sorted(items, key=lambda entry: _sort_value(entry, key), reverse=reverse))
    folders = [entry for entry in items if entry.is_folder]
    objects = [entry for entry in items if not entry.is_folder]
    folders.sort(key=lambda entry: _sort_value(entry, "name" if key == "size" else key), reverse=reverse)
    objects.sort(key=lambda entry: _sort_value(entry, key), reverse=reverse)
    return tuple(folders + objects)
