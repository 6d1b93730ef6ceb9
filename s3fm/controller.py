from __future__ import annotations
"""Controller layer: user-level bucket and object operations."""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Mapping

from .errors import InvalidInputError, NotConnectedError, StorageError
from .gateway import StorageGateway, ThreadedGateway
from .models import BrowserView, ObjectDetails
from .navigator import DirectoryNavigator
from .paths import archive_filename, descend, join_key, validate_name
from .profiles import ConnectionProfile, ProfileStorage
from .services import S3StorageService, validate_metadata

GatewayFactory = Callable[[ConnectionProfile], StorageGateway]

LOGGER = logging.getLogger(__name__)


def default_gateway_factory(profile: ConnectionProfile, *, fetch_metadata: bool = True) -> StorageGateway:
    return ThreadedGateway(S3StorageService(profile, fetch_metadata=fetch_metadata))


def _write_bytes(path: Path, data: bytes) -> Path:
    path.write_bytes(data)
    return path


class BrowserController:
    """Coordinates user actions with the navigator and the storage gateway.

    Every mutation is followed by a refresh of the current folder. Mutation
    failures propagate to the caller and are never retried.
    """

    def __init__(
        self,
        navigator: DirectoryNavigator | None = None,
        gateway_factory: GatewayFactory | None = None,
        storage: ProfileStorage | None = None,
    ):
        self.navigator = navigator or DirectoryNavigator()
        self._gateway_factory = gateway_factory or default_gateway_factory
        self._storage = storage or ProfileStorage()
        self._gateway: StorageGateway | None = None
        self._profiles: list[ConnectionProfile] = self._storage.load()
        self._selected_profile: str | None = None

    @property
    def is_connected(self) -> bool:
        return self._gateway is not None

    @property
    def selected_profile(self) -> str | None:
        return self._selected_profile

    @property
    def view(self) -> BrowserView:
        return self.navigator.view

    def list_profiles(self) -> list[ConnectionProfile]:
        return list(self._profiles)

    def save_profile(self, profile: ConnectionProfile, *, original_name: str | None = None) -> None:
        validate_name(profile.name.strip(), "Connection name")
        if original_name and original_name != profile.name:
            self._profiles = [p for p in self._profiles if p.name != original_name]
        for idx, existing in enumerate(self._profiles):
            if existing.name == profile.name:
                self._profiles[idx] = profile
                break
        else:
            self._profiles.append(profile)
        self._storage.save(self._profiles)

    def delete_profile(self, name: str) -> None:
        before = len(self._profiles)
        self._profiles = [p for p in self._profiles if p.name != name]
        if len(self._profiles) == before:
            raise ValueError(f"Profile '{name}' does not exist")
        if self._selected_profile == name:
            self._selected_profile = None
        self._storage.save(self._profiles)

    def get_profile(self, name: str) -> ConnectionProfile:
        for profile in self._profiles:
            if profile.name == name:
                return profile
        raise ValueError(f"Profile '{name}' does not exist")

    async def connect_with_profile(self, name: str) -> list[str]:
        profile = self.get_profile(name)
        buckets = await self.connect(profile)
        self._selected_profile = name
        return buckets

    async def connect(self, profile: ConnectionProfile) -> list[str]:
        gateway = self._gateway_factory(profile)
        buckets = await gateway.list_buckets()
        LOGGER.debug("Connected to %s (%d bucket(s))", profile.endpoint_url, len(buckets))
        self._gateway = gateway
        self.navigator.gateway = gateway
        self.navigator.reset()
        self.navigator.set_buckets(buckets)
        return buckets

    async def refresh_buckets(self) -> list[str]:
        buckets = await self._require_gateway().list_buckets()
        self.navigator.set_buckets(buckets)
        return buckets

    async def create_bucket(self, name: str) -> list[str]:
        bucket = validate_name(name.strip(), "Bucket name")
        await self._require_gateway().create_bucket(bucket)
        return await self.refresh_buckets()

    async def delete_bucket(self, name: str) -> list[str]:
        bucket = validate_name(name.strip(), "Bucket name")
        await self._require_gateway().delete_bucket(bucket)
        return await self.refresh_buckets()

    async def enter_bucket(self, bucket: str) -> None:
        self._require_gateway()
        await self.navigator.enter_bucket(bucket)

    async def enter_folder(self, name: str) -> None:
        await self.navigator.enter_folder(name)

    async def go_up(self) -> None:
        await self.navigator.go_up()

    async def go_to(self, path: str) -> None:
        await self.navigator.go_to(path)

    async def refresh(self) -> None:
        await self.navigator.refresh()

    def toggle(self, name: str, is_selected: bool) -> None:
        self.navigator.toggle(name, is_selected)

    def clear_selection(self) -> None:
        self.navigator.clear_selection()

    async def create_folder(self, name: str) -> str:
        gateway, view = self._require_gateway(), self._require_bucket()
        prefix = descend(view.path, name.strip())
        await gateway.create_folder_marker(view.bucket, prefix)
        await self._refresh_after_mutation()
        return prefix

    async def upload(self, name: str, data: bytes, metadata: Mapping[str, str] | None = None) -> str:
        gateway, view = self._require_gateway(), self._require_bucket()
        key = join_key(view.path, name)
        cleaned = validate_metadata(metadata)
        LOGGER.debug("Uploading %d byte(s) to '%s/%s'", len(data), view.bucket, key)
        await gateway.put_object(view.bucket, key, data, cleaned)
        await self._refresh_after_mutation()
        return key

    async def upload_file(
        self,
        source_path: str | Path | None,
        metadata: Mapping[str, str] | None = None,
        *,
        name: str | None = None,
    ) -> str:
        if not source_path:
            raise InvalidInputError("No file selected for upload.")
        path = Path(source_path)
        data = await asyncio.to_thread(path.read_bytes)
        return await self.upload(name or path.name, data, metadata)

    async def delete_selected(self) -> int:
        gateway, view = self._require_gateway(), self._require_bucket()
        names = list(view.selection)
        if not names:
            raise InvalidInputError("Select at least one file to delete.")
        try:
            for name in names:
                await gateway.delete_object(view.bucket, join_key(view.path, name))
        finally:
            await self._refresh_after_mutation()
        return len(names)

    async def delete_object(self, name: str) -> None:
        gateway, view = self._require_gateway(), self._require_bucket()
        await gateway.delete_object(view.bucket, join_key(view.path, name))
        await self._refresh_after_mutation()

    async def download_selected(self) -> tuple[str, bytes]:
        gateway, view = self._require_gateway(), self._require_bucket()
        if len(view.selection) != 1:
            raise InvalidInputError("Please select exactly one file to download.")
        name = view.selection[0]
        return name, await gateway.get_object(view.bucket, join_key(view.path, name))

    async def download_selected_as_archive(self) -> tuple[str, bytes]:
        gateway, view = self._require_gateway(), self._require_bucket()
        keys = self.navigator.selected_keys
        if not keys:
            raise InvalidInputError("Please select at least one file to download as a ZIP.")
        return archive_filename(keys), await gateway.get_objects_as_archive(view.bucket, keys)

    async def save_selected(self, directory: str | Path, *, as_archive: bool = False) -> Path:
        """Download the selection into ``directory`` and return the written file."""

        if as_archive:
            filename, data = await self.download_selected_as_archive()
        else:
            filename, data = await self.download_selected()
        return await asyncio.to_thread(_write_bytes, Path(directory) / filename, data)

    async def object_details(self, name: str) -> ObjectDetails:
        gateway, view = self._require_gateway(), self._require_bucket()
        return await gateway.get_object_details(view.bucket, join_key(view.path, name))

    async def update_metadata(self, name: str, metadata: Mapping[str, str]) -> None:
        gateway, view = self._require_gateway(), self._require_bucket()
        await gateway.update_metadata(view.bucket, join_key(view.path, name), validate_metadata(metadata))
        await self._refresh_after_mutation()

    async def copy_object(self, name: str, destination_bucket: str, destination_key: str) -> None:
        gateway, view = self._require_gateway(), self._require_bucket()
        if not destination_bucket or not destination_key:
            raise InvalidInputError("Copy destination cannot be empty")
        await gateway.copy_object(view.bucket, join_key(view.path, name), destination_bucket, destination_key)
        await self._refresh_after_mutation()

    async def _refresh_after_mutation(self) -> None:
        try:
            await self.navigator.refresh()
        except StorageError as exc:
            # The navigator records the failure on the view.
            LOGGER.warning("Refresh after mutation failed: %s", exc)

    def _require_gateway(self) -> StorageGateway:
        if self._gateway is None:
            raise NotConnectedError("Not connected to S3")
        return self._gateway

    def _require_bucket(self) -> BrowserView:
        view = self.navigator.view
        if not view.has_bucket:
            raise InvalidInputError("Select a bucket first.")
        return view
