from __future__ import annotations
"""View-agnostic presenter that runs controller operations off the UI thread."""
import asyncio
from concurrent.futures import Future
from dataclasses import replace
from functools import partial
import logging
import threading
from typing import Any, Awaitable, Callable, Mapping

from .controller import BrowserController, default_gateway_factory
from .errors import StorageError
from .models import BrowserView, ObjectDetails
from .navigator import DirectoryNavigator
from .profiles import ConnectionProfile
from .settings import AppSettings, SettingsStorage
from .ui_utils import PackageInfo, load_package_info


DispatchFn = Callable[[Callable[[], None]], None]
SuccessFn = Callable[[Any], None]
ErrorFn = Callable[[str], None]
DoneFn = Callable[[], None]
ViewFn = Callable[[BrowserView], None]

LOGGER = logging.getLogger(__name__)


def format_error(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class LoopThread:
    """Hosts an asyncio event loop on a daemon thread."""

    def __init__(self, name: str = "s3fm-loop") -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def submit(self, coro: Awaitable[Any]) -> Future:
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def stop(self, timeout: float | None = 2.0) -> None:
        if not self._loop.is_running():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout)


class BrowserPresenter:
    """Runs navigator and storage operations and reports results via callbacks.

    Every operation returns the :class:`concurrent.futures.Future` of the
    submitted task; callbacks are always invoked through ``dispatch``.
    """

    def __init__(
        self,
        *,
        controller: BrowserController | None = None,
        settings_storage: SettingsStorage | None = None,
        dispatch: DispatchFn | None = None,
        loop_thread: LoopThread | None = None,
    ) -> None:
        self._settings_storage = settings_storage or SettingsStorage()
        self._settings = self._settings_storage.load()
        self._controller = controller or BrowserController(
            navigator=DirectoryNavigator(
                discard_stale=self._settings.discard_stale_responses,
                hide_markers=self._settings.hide_folder_markers,
            ),
            gateway_factory=partial(default_gateway_factory, fetch_metadata=self._settings.fetch_metadata),
        )
        self._dispatch = dispatch or (lambda func: func())
        self._loop_thread = loop_thread or LoopThread()
        self._package_info = load_package_info()
        self._view_listener: ViewFn | None = None
        self._controller.navigator.subscribe(self._forward_view)

    @property
    def settings(self) -> AppSettings:
        return replace(self._settings)

    @property
    def package_info(self) -> PackageInfo:
        return self._package_info

    @property
    def is_connected(self) -> bool:
        return self._controller.is_connected

    @property
    def selected_profile(self) -> str | None:
        return self._controller.selected_profile

    @property
    def view(self) -> BrowserView:
        return self._controller.view

    def close(self) -> None:
        self._loop_thread.stop()

    def set_view_listener(self, listener: ViewFn | None) -> None:
        self._view_listener = listener

    def _forward_view(self, view: BrowserView) -> None:
        listener = self._view_listener
        if listener is not None:
            self._dispatch(lambda: listener(view))

    def save_settings(self, settings: AppSettings) -> None:
        self._settings = settings
        self._settings_storage.save(settings)
        navigator = self._controller.navigator
        navigator.discard_stale = settings.discard_stale_responses
        navigator.hide_markers = settings.hide_folder_markers

    def update_last_connection(self, connection: str) -> None:
        if not self._settings.remember_last_bucket:
            return
        self._settings = replace(self._settings, last_connection=connection or "")
        self._settings_storage.save(self._settings)

    def update_last_bucket(self, bucket: str) -> None:
        if not self._settings.remember_last_bucket:
            return
        self._settings = replace(self._settings, last_bucket=bucket or "")
        self._settings_storage.save(self._settings)

    def maybe_auto_connect_profile(self) -> str | None:
        if not self._settings.remember_last_bucket:
            return None
        return self._settings.last_connection or None

    def list_profiles(self) -> list[ConnectionProfile]:
        return self._controller.list_profiles()

    def save_profile(self, profile: ConnectionProfile, *, original_name: str | None = None) -> None:
        self._controller.save_profile(profile, original_name=original_name)

    def delete_profile(self, name: str) -> None:
        self._controller.delete_profile(name)

    def get_profile(self, name: str) -> ConnectionProfile:
        return self._controller.get_profile(name)

    def _submit(
        self,
        description: str,
        operation: Callable[[], Awaitable[Any]],
        *,
        on_success: SuccessFn | None = None,
        on_error: ErrorFn | None = None,
        on_done: DoneFn | None = None,
    ) -> Future:
        LOGGER.debug("Starting %s", description)

        async def task() -> Any:
            try:
                result = await operation()
            except StorageError as exc:
                LOGGER.exception("%s failed", description.capitalize())
                self._report_error(on_error, format_error(exc))
                return None
            except Exception as exc:
                LOGGER.exception("Unexpected error during %s", description)
                self._report_error(on_error, format_error(exc))
                return None
            else:
                LOGGER.debug("Finished %s", description)
                if on_success:
                    self._dispatch(lambda: on_success(result))
                return result
            finally:
                if on_done:
                    self._dispatch(on_done)

        return self._loop_thread.submit(task())

    def _report_error(self, on_error: ErrorFn | None, message: str) -> None:
        if on_error:
            self._dispatch(lambda: on_error(message))

    def connect(
        self,
        *,
        profile_name: str,
        on_success: Callable[[list[str]], None] | None = None,
        on_error: ErrorFn | None = None,
        on_done: DoneFn | None = None,
    ) -> Future:
        def succeeded(buckets: list[str]) -> None:
            self.update_last_connection(profile_name)
            if on_success:
                on_success(buckets)

        return self._submit(
            f"connecting with profile '{profile_name}'",
            lambda: self._controller.connect_with_profile(profile_name),
            on_success=succeeded,
            on_error=on_error,
            on_done=on_done,
        )

    def refresh_buckets(self, *, on_success=None, on_error: ErrorFn | None = None, on_done=None) -> Future:
        return self._submit(
            "bucket refresh",
            self._controller.refresh_buckets,
            on_success=on_success,
            on_error=on_error,
            on_done=on_done,
        )

    def create_bucket(self, name: str, *, on_success=None, on_error: ErrorFn | None = None) -> Future:
        return self._submit(
            f"creating bucket '{name}'",
            lambda: self._controller.create_bucket(name),
            on_success=on_success,
            on_error=on_error,
        )

    def delete_bucket(self, name: str, *, on_success=None, on_error: ErrorFn | None = None) -> Future:
        return self._submit(
            f"deleting bucket '{name}'",
            lambda: self._controller.delete_bucket(name),
            on_success=on_success,
            on_error=on_error,
        )

    def enter_bucket(self, bucket: str, *, on_error: ErrorFn | None = None, on_done=None) -> Future:
        self.update_last_bucket(bucket)
        return self._submit(
            f"listing bucket '{bucket}'",
            lambda: self._controller.enter_bucket(bucket),
            on_error=on_error,
            on_done=on_done,
        )

    def enter_folder(self, name: str, *, on_error: ErrorFn | None = None, on_done=None) -> Future:
        return self._submit(
            f"opening folder '{name}'",
            lambda: self._controller.enter_folder(name),
            on_error=on_error,
            on_done=on_done,
        )

    def go_up(self, *, on_error: ErrorFn | None = None, on_done=None) -> Future:
        return self._submit("opening parent folder", self._controller.go_up, on_error=on_error, on_done=on_done)

    def go_to(self, path: str, *, on_error: ErrorFn | None = None, on_done=None) -> Future:
        return self._submit(
            f"opening '{path or '/'}'",
            lambda: self._controller.go_to(path),
            on_error=on_error,
            on_done=on_done,
        )

    def refresh(self, *, on_error: ErrorFn | None = None, on_done=None) -> Future:
        return self._submit("folder refresh", self._controller.refresh, on_error=on_error, on_done=on_done)

    def toggle(self, name: str, is_selected: bool) -> Future:
        async def apply() -> None:
            self._controller.toggle(name, is_selected)

        return self._submit(f"selecting '{name}'", apply)

    def clear_selection(self) -> Future:
        async def apply() -> None:
            self._controller.clear_selection()

        return self._submit("clearing selection", apply)

    def create_folder(self, name: str, *, on_success=None, on_error: ErrorFn | None = None) -> Future:
        return self._submit(
            f"creating folder '{name}'",
            lambda: self._controller.create_folder(name),
            on_success=on_success,
            on_error=on_error,
        )

    def upload_file(
        self,
        source_path: str,
        metadata: Mapping[str, str] | None = None,
        *,
        on_success: SuccessFn | None = None,
        on_error: ErrorFn | None = None,
        on_done: DoneFn | None = None,
    ) -> Future:
        return self._submit(
            f"uploading '{source_path}'",
            lambda: self._controller.upload_file(source_path, metadata),
            on_success=on_success,
            on_error=on_error,
            on_done=on_done,
        )

    def delete_selected(self, *, on_success=None, on_error: ErrorFn | None = None) -> Future:
        return self._submit(
            "deleting selected files",
            self._controller.delete_selected,
            on_success=on_success,
            on_error=on_error,
        )

    def save_selected(
        self,
        directory: str,
        *,
        as_archive: bool = False,
        on_success: SuccessFn | None = None,
        on_error: ErrorFn | None = None,
        on_done: DoneFn | None = None,
    ) -> Future:
        return self._submit(
            "downloading selected files as ZIP" if as_archive else "downloading selected file",
            lambda: self._controller.save_selected(directory, as_archive=as_archive),
            on_success=on_success,
            on_error=on_error,
            on_done=on_done,
        )

    def object_details(
        self,
        name: str,
        *,
        on_success: Callable[[ObjectDetails], None],
        on_error: ErrorFn,
    ) -> Future:
        return self._submit(
            f"reading details of '{name}'",
            lambda: self._controller.object_details(name),
            on_success=on_success,
            on_error=on_error,
        )

    def update_metadata(
        self,
        name: str,
        metadata: Mapping[str, str],
        *,
        on_success=None,
        on_error: ErrorFn | None = None,
    ) -> Future:
        return self._submit(
            f"updating metadata of '{name}'",
            lambda: self._controller.update_metadata(name, metadata),
            on_success=on_success,
            on_error=on_error,
        )
