from __future__ import annotations
"""Blocking S3 operations behind the browser's gateways."""
from contextlib import contextmanager
import io
import logging
from pathlib import PurePosixPath
from typing import Callable, Iterator, Mapping
import zipfile

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import (
    ConflictError,
    InvalidInputError,
    InvalidMetadataError,
    NotFoundError,
    StorageError,
    UnreachableError,
)
from .models import ChildListing, ObjectDetails, ObjectEntry
from .paths import FOLDER_MARKER_NAME, basename, is_valid_prefix, relative_name
from .profiles import ConnectionProfile

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = 1000
NOT_FOUND_CODES = {"NoSuchBucket", "NoSuchKey", "NotFound", "404"}
CONFLICT_CODES = {"BucketAlreadyExists", "BucketAlreadyOwnedByYou", "BucketNotEmpty", "409"}
METADATA_CODES = {"InvalidArgument", "MetadataTooLarge", "InvalidRequest"}


def validate_metadata(metadata: Mapping[str, str] | None) -> dict[str, str]:
    """Return a copy of ``metadata`` or raise for empty or clashing keys.

    S3 stores user metadata keys lower-cased, so keys that differ only by
    case would overwrite each other.
    """

    result: dict[str, str] = {}
    seen: set[str] = set()
    for key, value in (metadata or {}).items():
        name = (key or "").strip()
        text = (value or "").strip()
        if not name:
            raise InvalidMetadataError("Metadata keys cannot be empty")
        if not text:
            raise InvalidMetadataError(f"Metadata value for '{name}' cannot be empty")
        if name.lower() in seen:
            raise InvalidMetadataError(f"Duplicate metadata key '{name}'")
        seen.add(name.lower())
        result[name] = text
    return result


def _error_code(exc: ClientError) -> str:
    code = str(exc.response.get("Error", {}).get("Code") or "")
    if code:
        return code
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return str(status or "")


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Translate botocore failures into the browser's error taxonomy."""

    try:
        yield
    except StorageError:
        raise
    except ClientError as exc:
        code = _error_code(exc)
        message = f"{action}: {exc}"
        if code in NOT_FOUND_CODES:
            raise NotFoundError(message) from exc
        if code in CONFLICT_CODES:
            raise ConflictError(message) from exc
        if code in METADATA_CODES:
            raise InvalidMetadataError(message) from exc
        raise UnreachableError(message) from exc
    except BotoCoreError as exc:
        raise UnreachableError(f"{action}: {exc}") from exc


def _unique_entry_name(name: str, used: set[str]) -> str:
    candidate = name
    counter = 1
    path = PurePosixPath(name)
    while candidate in used:
        candidate = f"{path.stem}-{counter}{path.suffix}"
        counter += 1
    used.add(candidate)
    return candidate


class S3StorageService:
    """Performs bucket and object operations against one S3 endpoint."""

    def __init__(
        self,
        profile: ConnectionProfile,
        client_factory: Callable[..., object] | None = None,
        *,
        fetch_metadata: bool = True,
    ):
        self._profile = profile
        self._client_factory = client_factory or boto3.client
        self._client = None
        self.fetch_metadata = fetch_metadata

    @property
    def profile(self) -> ConnectionProfile:
        return self._profile

    @property
    def client(self):
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self):
        config = Config(signature_version="s3v4", s3={"addressing_style": "path"})
        return self._client_factory(
            "s3",
            endpoint_url=self._profile.endpoint_url or None,
            aws_access_key_id=self._profile.access_key,
            aws_secret_access_key=self._profile.secret_key,
            region_name=self._profile.region or None,
            config=config,
        )

    def list_buckets(self) -> list[str]:
        with storage_errors("Listing buckets failed"):
            response = self.client.list_buckets()
        return [bucket["Name"] for bucket in response.get("Buckets", [])]

    def create_bucket(self, name: str) -> None:
        if not name or not name.strip():
            raise InvalidInputError("Bucket name cannot be empty")
        if name in self.list_buckets():
            raise ConflictError(f"Bucket already exists: {name}")
        params: dict[str, object] = {"Bucket": name}
        region = self._profile.region
        if region and region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}
        LOGGER.debug("Creating bucket '%s'", name)
        with storage_errors(f"Creating bucket '{name}' failed"):
            self.client.create_bucket(**params)

    def delete_bucket(self, name: str) -> None:
        if not name:
            raise InvalidInputError("Bucket name cannot be empty")
        with storage_errors(f"Deleting bucket '{name}' failed"):
            response = self.client.list_objects_v2(Bucket=name, MaxKeys=1)
            if response.get("KeyCount") or response.get("Contents"):
                raise ConflictError(
                    "Bucket is not empty. Delete all files before deleting the bucket."
                )
            LOGGER.debug("Deleting bucket '%s'", name)
            self.client.delete_bucket(Bucket=name)

    def list_immediate_children(self, bucket: str, prefix: str = "") -> ChildListing:
        """Return the folders and objects directly below ``prefix``."""

        folders: list[str] = []
        objects: list[ObjectEntry] = []
        request_token: str | None = None
        with storage_errors(f"Listing '{bucket}/{prefix}' failed"):
            while True:
                params = {"Bucket": bucket, "Delimiter": "/", "MaxKeys": PAGE_SIZE}
                if prefix:
                    params["Prefix"] = prefix
                if request_token:
                    params["ContinuationToken"] = request_token
                response = self.client.list_objects_v2(**params)
                for common in response.get("CommonPrefixes", []):
                    name = relative_name(common["Prefix"], prefix)
                    if name:
                        folders.append(name)
                for item in response.get("Contents", []):
                    objects.append(self._object_entry(bucket, item, prefix))
                request_token = response.get("NextContinuationToken")
                if not response.get("IsTruncated") or not request_token:
                    break
        return ChildListing(folders=tuple(folders), objects=tuple(objects))

    def _object_entry(self, bucket: str, item: dict, prefix: str) -> ObjectEntry:
        name = relative_name(item["Key"], prefix) if not item["Key"].endswith("/") else ""
        metadata: dict[str, str] = {}
        if self.fetch_metadata and name and name != FOLDER_MARKER_NAME:
            head = self.client.head_object(Bucket=bucket, Key=item["Key"])
            metadata = dict(head.get("Metadata") or {})
        etag = item.get("ETag")
        return ObjectEntry(
            name=name,
            size=int(item.get("Size") or 0),
            last_modified=item.get("LastModified"),
            etag=etag.strip('"') if etag else None,
            metadata=metadata,
        )

    def create_folder_marker(self, bucket: str, full_prefix: str) -> str:
        if not full_prefix or not is_valid_prefix(full_prefix):
            raise InvalidInputError(f"Invalid folder path: {full_prefix!r}")
        key = full_prefix + FOLDER_MARKER_NAME
        with storage_errors(f"Creating folder '{full_prefix}' failed"):
            self.client.put_object(Bucket=bucket, Key=key, Body=b"")
        return key

    def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        metadata: Mapping[str, str] | None = None,
        content_type: str | None = None,
    ) -> str | None:
        """Store ``data`` under ``key`` and return the new ETag."""

        if not key:
            raise InvalidInputError("Object key cannot be empty")
        params: dict[str, object] = {
            "Bucket": bucket,
            "Key": key,
            "Body": data,
            "Metadata": validate_metadata(metadata),
        }
        if content_type:
            params["ContentType"] = content_type
        with storage_errors(f"Uploading '{key}' failed"):
            response = self.client.put_object(**params)
        etag = response.get("ETag") if isinstance(response, dict) else None
        return etag.strip('"') if etag else None

    def delete_object(self, bucket: str, key: str) -> None:
        with storage_errors(f"Deleting '{key}' failed"):
            self.client.delete_object(Bucket=bucket, Key=key)

    def get_object(self, bucket: str, key: str) -> bytes:
        with storage_errors(f"Downloading '{key}' failed"):
            response = self.client.get_object(Bucket=bucket, Key=key)
            body = response["Body"]
            try:
                return body.read()
            finally:
                close = getattr(body, "close", None)
                if close:
                    close()

    def get_objects_as_archive(self, bucket: str, keys: list[str]) -> bytes:
        """Return a ZIP archive holding each key under its base name."""

        if not keys:
            raise InvalidInputError("Select at least one file to download as a ZIP")
        buffer = io.BytesIO()
        used: set[str] = set()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for key in keys:
                archive.writestr(_unique_entry_name(basename(key), used), self.get_object(bucket, key))
        return buffer.getvalue()

    def copy_object(self, source_bucket: str, source_key: str, bucket: str, key: str) -> None:
        with storage_errors(f"Copying '{source_bucket}/{source_key}' failed"):
            self.client.copy_object(
                CopySource={"Bucket": source_bucket, "Key": source_key},
                Bucket=bucket,
                Key=key,
            )

    def update_metadata(self, bucket: str, key: str, metadata: Mapping[str, str]) -> None:
        """Replace the user metadata of an object by copying it onto itself."""

        cleaned = validate_metadata(metadata)
        with storage_errors(f"Updating metadata of '{key}' failed"):
            head = self.client.head_object(Bucket=bucket, Key=key)
            params: dict[str, object] = {
                "CopySource": {"Bucket": bucket, "Key": key},
                "Bucket": bucket,
                "Key": key,
                "Metadata": cleaned,
                "MetadataDirective": "REPLACE",
            }
            if head.get("ContentType"):
                params["ContentType"] = head["ContentType"]
            self.client.copy_object(**params)

    def get_object_details(self, bucket: str, key: str) -> ObjectDetails:
        with storage_errors(f"Reading details of '{key}' failed"):
            response = self.client.head_object(Bucket=bucket, Key=key)
        return ObjectDetails(
            bucket=bucket,
            key=key,
            size=response.get("ContentLength"),
            last_modified=response.get("LastModified"),
            storage_class=response.get("StorageClass"),
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
            metadata=dict(response.get("Metadata") or {}),
        )
