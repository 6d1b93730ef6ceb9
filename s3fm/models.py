from __future__ import annotations
"""Data models representing the browser view over a bucket."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union


@dataclass(frozen=True)
class FolderEntry:
    """A common key prefix shown as a folder."""

    name: str
    is_folder = True


@dataclass(frozen=True)
class ObjectEntry:
    """A stored object, named relative to the current prefix."""

    name: str
    size: int = 0
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict, compare=False, hash=False)
    is_folder = False


ListingEntry = Union[FolderEntry, ObjectEntry]


@dataclass(frozen=True)
class ChildListing:
    """Immediate children of one (bucket, prefix) as returned by the gateway."""

    folders: tuple[str, ...] = ()
    objects: tuple[ObjectEntry, ...] = ()


@dataclass(frozen=True)
class BrowserView:
    """Snapshot of what the browser shows."""

    buckets: tuple[str, ...] = ()
    bucket: str = ""
    path: str = ""
    listing: tuple[ListingEntry, ...] = ()
    selection: tuple[str, ...] = ()
    in_flight: bool = False
    error: Optional[str] = None
    generation: int = 0

    @property
    def has_bucket(self) -> bool:
        return bool(self.bucket)

    @property
    def at_root(self) -> bool:
        return self.path == ""

    @property
    def folder_names(self) -> list[str]:
        return [entry.name for entry in self.listing if entry.is_folder]

    @property
    def object_names(self) -> list[str]:
        return [entry.name for entry in self.listing if not entry.is_folder]

    @property
    def selected_objects(self) -> list[ObjectEntry]:
        objects = {entry.name: entry for entry in self.listing if not entry.is_folder}
        return [objects[name] for name in self.selection if name in objects]

    def entry(self, name: str, *, folder: bool | None = None) -> ListingEntry | None:
        for candidate in self.listing:
            if candidate.name != name:
                continue
            if folder is None or candidate.is_folder == folder:
                return candidate
        return None


@dataclass
class ObjectDetails:
    """Metadata about a single S3 object."""

    bucket: str
    key: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    storage_class: Optional[str] = None
    etag: Optional[str] = None
    content_type: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict)
