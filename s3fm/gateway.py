from __future__ import annotations
"""Capability interfaces consumed by the navigator and controller."""
import asyncio
from typing import Mapping, Protocol

from .models import ChildListing, ObjectDetails
from .services import S3StorageService


class ListingGateway(Protocol):
    async def list_immediate_children(self, bucket: str, prefix: str) -> ChildListing: ...


class MutationGateway(Protocol):
    async def list_buckets(self) -> list[str]: ...

    async def create_bucket(self, name: str) -> None: ...

    async def delete_bucket(self, name: str) -> None: ...

    async def create_folder_marker(self, bucket: str, full_prefix: str) -> str: ...

    async def put_object(
        self, bucket: str, key: str, data: bytes, metadata: Mapping[str, str] | None = None
    ) -> str | None: ...

    async def delete_object(self, bucket: str, key: str) -> None: ...

    async def get_object(self, bucket: str, key: str) -> bytes: ...

    async def get_objects_as_archive(self, bucket: str, keys: list[str]) -> bytes: ...

    async def copy_object(self, source_bucket: str, source_key: str, bucket: str, key: str) -> None: ...

    async def update_metadata(self, bucket: str, key: str, metadata: Mapping[str, str]) -> None: ...

    async def get_object_details(self, bucket: str, key: str) -> ObjectDetails: ...


class StorageGateway(ListingGateway, MutationGateway, Protocol):
    """Both capabilities, as provided by one connection."""


class ThreadedGateway:
    """Runs the blocking :class:`S3StorageService` calls in worker threads."""

    def __init__(self, service: S3StorageService):
        self._service = service

    @property
    def service(self) -> S3StorageService:
        return self._service

    async def list_immediate_children(self, bucket: str, prefix: str) -> ChildListing:
        return await asyncio.to_thread(self._service.list_immediate_children, bucket, prefix)

    async def list_buckets(self) -> list[str]:
        return await asyncio.to_thread(self._service.list_buckets)

    async def create_bucket(self, name: str) -> None:
        await asyncio.to_thread(self._service.create_bucket, name)

    async def delete_bucket(self, name: str) -> None:
        await asyncio.to_thread(self._service.delete_bucket, name)

    async def create_folder_marker(self, bucket: str, full_prefix: str) -> str:
        return await asyncio.to_thread(self._service.create_folder_marker, bucket, full_prefix)

    async def put_object(
        self, bucket: str, key: str, data: bytes, metadata: Mapping[str, str] | None = None
    ) -> str | None:
        return await asyncio.to_thread(self._service.put_object, bucket, key, data, metadata)

    async def delete_object(self, bucket: str, key: str) -> None:
        await asyncio.to_thread(self._service.delete_object, bucket, key)

    async def get_object(self, bucket: str, key: str) -> bytes:
        return await asyncio.to_thread(self._service.get_object, bucket, key)

    async def get_objects_as_archive(self, bucket: str, keys: list[str]) -> bytes:
        return await asyncio.to_thread(self._service.get_objects_as_archive, bucket, list(keys))

    async def copy_object(self, source_bucket: str, source_key: str, bucket: str, key: str) -> None:
        await asyncio.to_thread(self._service.copy_object, source_bucket, source_key, bucket, key)

    async def update_metadata(self, bucket: str, key: str, metadata: Mapping[str, str]) -> None:
        await asyncio.to_thread(self._service.update_metadata, bucket, key, dict(metadata))

    async def get_object_details(self, bucket: str, key: str) -> ObjectDetails:
        return await asyncio.to_thread(self._service.get_object_details, bucket, key)
