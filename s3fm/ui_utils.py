from __future__ import annotations
"""UI-agnostic helpers for formatting listings and editing metadata."""
from dataclasses import dataclass
from datetime import datetime
from importlib.metadata import PackageNotFoundError, metadata, version
from typing import Iterable

from .errors import InvalidMetadataError
from .models import BrowserView
from .services import validate_metadata

DIST_NAME = "s3fm"


@dataclass(frozen=True)
class PackageInfo:
    """Distribution metadata shown in the About dialog."""

    name: str = "S3 File Manager"
    version: str = ""
    summary: str = "Browse, upload and download files in S3 buckets."
    homepage: str | None = None
    repository: str | None = None
    author: str | None = None


def _project_urls(entries: Iterable[str]) -> dict[str, str]:
    urls = {}
    for entry in entries:
        label, _, link = entry.partition(",")
        urls.setdefault(label.strip().lower(), link.strip())
    return urls


def load_package_info(dist_name: str = DIST_NAME) -> PackageInfo:
    try:
        meta = metadata(dist_name)
        installed_version = version(dist_name)
    except PackageNotFoundError:
        return PackageInfo()
    urls = _project_urls(meta.get_all("Project-URL") or [])
    return PackageInfo(
        name=meta.get("Name") or PackageInfo.name,
        version=installed_version,
        summary=meta.get("Summary") or "",
        homepage=meta.get("Home-page") or urls.get("homepage"),
        repository=urls.get("repository"),
        author=meta.get("Author") or meta.get("Author-email"),
    )


def format_size(size: int | None) -> str:
    if size is None:
        return "-"
    suffixes = ["B", "KB", "MB", "GB", "TB"]
    value = float(max(size, 0))
    for suffix in suffixes:
        if value < 1024 or suffix == suffixes[-1]:
            return f"{value:.1f} {suffix}" if suffix != "B" else f"{int(value)} {suffix}"
        value /= 1024
    return f"{size} B"


def format_last_modified(last_modified: object) -> str:
    if not last_modified:
        return "-"
    if isinstance(last_modified, datetime):
        return last_modified.strftime("%Y-%m-%d %H:%M:%S %Z").strip() or last_modified.isoformat()
    return str(last_modified)


def describe_location(view: BrowserView) -> str:
    if not view.has_bucket:
        return "Select a Bucket"
    return f"Files in {view.bucket}/{view.path}"


def parse_metadata_rows(rows: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Turn editor rows into metadata; fully blank rows are skipped."""

    collected: dict[str, str] = {}
    for key, value in rows:
        key, value = (key or "").strip(), (value or "").strip()
        if not key and not value:
            continue
        if key in collected:
            raise InvalidMetadataError(f"Duplicate metadata key '{key}'")
        collected[key] = value
    return validate_metadata(collected)


def metadata_rows(values: dict[str, str]) -> list[tuple[str, str]]:
    return list(values.items())
