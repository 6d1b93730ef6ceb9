from __future__ import annotations
"""Virtual directory navigation over a flat bucket namespace."""
from dataclasses import replace
import logging
from typing import Callable, Iterable, Optional

from . import selection
from .errors import InvalidInputError, NotConnectedError
from .gateway import ListingGateway
from .listing import merge_listing
from .models import BrowserView, ChildListing
from .paths import ascend, descend, is_valid_prefix

LOGGER = logging.getLogger(__name__)

ViewCallback = Callable[[BrowserView], None]


def start_bucket(view: BrowserView, bucket: str) -> BrowserView:
    return replace(
        view,
        bucket=bucket,
        path="",
        selection=(),
        in_flight=True,
        error=None,
        generation=view.generation + 1,
    )


def start_folder(view: BrowserView, name: str) -> BrowserView:
    return start_path(view, descend(view.path, name))


def start_up(view: BrowserView) -> Optional[BrowserView]:
    """Return the in-flight view for the parent folder, or None at the root."""

    if view.at_root:
        return None
    return start_path(view, ascend(view.path))


def start_path(view: BrowserView, path: str) -> BrowserView:
    if not is_valid_prefix(path):
        raise InvalidInputError(f"Invalid folder path: {path!r}")
    return replace(
        view,
        path=path,
        selection=(),
        in_flight=True,
        error=None,
        generation=view.generation + 1,
    )


def start_refresh(view: BrowserView) -> BrowserView:
    return replace(view, in_flight=True, error=None, generation=view.generation + 1)


def complete(
    view: BrowserView,
    children: ChildListing,
    *,
    in_flight: bool = False,
    hide_markers: bool = True,
) -> BrowserView:
    updated = replace(
        view,
        listing=merge_listing(children, hide_markers=hide_markers),
        in_flight=in_flight,
        error=None,
    )
    return selection.prune(updated)


def fail(view: BrowserView, message: str, *, in_flight: bool = False) -> BrowserView:
    return replace(view, in_flight=in_flight, error=message)


def with_buckets(view: BrowserView, names: Iterable[str]) -> BrowserView:
    buckets = tuple(names)
    if view.bucket and view.bucket not in buckets:
        return BrowserView(buckets=buckets, generation=view.generation + 1)
    return replace(view, buckets=buckets)


class DirectoryNavigator:
    """Owns the current view and drives listing requests.

    Requests are never cancelled. By default the response that arrives last
    replaces the listing even if it belongs to an older navigation; with
    ``discard_stale`` responses from superseded requests are dropped. Responses
    to requests made before :meth:`reset`, or before the current bucket vanished
    from :meth:`set_buckets`, are always dropped.
    """

    def __init__(
        self,
        gateway: ListingGateway | None = None,
        *,
        discard_stale: bool = False,
        hide_markers: bool = True,
    ) -> None:
        self._gateway = gateway
        self._view = BrowserView()
        self._pending = 0
        self._epoch = 0
        self._subscribers: list[ViewCallback] = []
        self.discard_stale = discard_stale
        self.hide_markers = hide_markers

    @property
    def view(self) -> BrowserView:
        return self._view

    @property
    def gateway(self) -> ListingGateway | None:
        return self._gateway

    @gateway.setter
    def gateway(self, gateway: ListingGateway | None) -> None:
        self._gateway = gateway

    @property
    def selected_names(self) -> list[str]:
        return list(self._view.selection)

    @property
    def selected_keys(self) -> list[str]:
        return selection.selected_keys(self._view)

    def subscribe(self, callback: ViewCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def set_buckets(self, names: Iterable[str]) -> None:
        updated = with_buckets(self._view, names)
        if self._view.has_bucket and not updated.has_bucket:
            self._epoch += 1
        self._commit(updated)

    def reset(self) -> None:
        self._epoch += 1
        self._commit(BrowserView(generation=self._view.generation + 1))

    async def enter_bucket(self, bucket: str) -> None:
        LOGGER.debug("Entering bucket '%s'", bucket)
        await self._navigate(start_bucket(self._view, bucket))

    async def enter_folder(self, name: str) -> None:
        LOGGER.debug("Entering folder '%s' under '%s'", name, self._view.path)
        await self._navigate(start_folder(self._view, name))

    async def go_up(self) -> None:
        target = start_up(self._view)
        if target is None:
            return
        LOGGER.debug("Going up to '%s'", target.path)
        await self._navigate(target)

    async def go_to(self, path: str) -> None:
        LOGGER.debug("Jumping to '%s'", path)
        await self._navigate(start_path(self._view, path))

    async def refresh(self) -> None:
        if not self._view.has_bucket:
            return
        await self._navigate(start_refresh(self._view))

    def toggle(self, name: str, is_selected: bool) -> None:
        self._commit(selection.toggle(self._view, name, is_selected))

    def select_all(self) -> None:
        self._commit(selection.select_all(self._view))

    def clear_selection(self) -> None:
        self._commit(selection.clear(self._view))

    async def _navigate(self, target: BrowserView) -> None:
        if self._gateway is None:
            raise NotConnectedError("Not connected to S3")
        token, epoch = target.generation, self._epoch
        bucket, path = target.bucket, target.path
        self._pending += 1
        self._commit(target)
        try:
            children = await self._gateway.list_immediate_children(bucket, path)
        except Exception as exc:
            LOGGER.warning("Listing '%s/%s' failed: %s", bucket, path, exc)
            self._pending -= 1
            if self._is_stale(token, epoch):
                self._commit(replace(self._view, in_flight=self._pending > 0))
            else:
                self._commit(fail(self._view, str(exc), in_flight=self._pending > 0))
            raise
        except BaseException:
            self._pending -= 1
            self._commit(replace(self._view, in_flight=self._pending > 0))
            raise
        self._pending -= 1
        if self._is_stale(token, epoch):
            LOGGER.debug("Discarding stale listing for '%s/%s'", bucket, path)
            self._commit(replace(self._view, in_flight=self._pending > 0))
            return
        LOGGER.debug(
            "Listed %d folder(s) and %d object(s) in '%s/%s'",
            len(children.folders),
            len(children.objects),
            bucket,
            path,
        )
        self._commit(
            complete(
                self._view,
                children,
                in_flight=self._pending > 0,
                hide_markers=self.hide_markers,
            )
        )

    def _is_stale(self, token: int, epoch: int) -> bool:
        # Responses never outlive a reset of the view.
        if epoch != self._epoch:
            return True
        return self.discard_stale and token != self._view.generation

    def _commit(self, view: BrowserView) -> None:
        if view is self._view:
            return
        self._view = view
        for callback in list(self._subscribers):
            callback(view)
