from __future__ import annotations
"""Path algebra for the virtual folder hierarchy over flat object keys."""
from datetime import datetime, timezone
from pathlib import PurePosixPath

from .errors import InvalidInputError

SEPARATOR = "/"
FOLDER_MARKER_NAME = ".keep"


def is_valid_prefix(prefix: str) -> bool:
    """Return True for ``""`` or a separator-terminated prefix without empty components."""

    if prefix == "":
        return True
    if not prefix.endswith(SEPARATOR) or prefix.startswith(SEPARATOR):
        return False
    return all(prefix[:-1].split(SEPARATOR))


def validate_name(name: str, what: str = "Folder name") -> str:
    if not name:
        raise InvalidInputError(f"{what} cannot be empty")
    if SEPARATOR in name:
        raise InvalidInputError(f"{what} cannot contain '{SEPARATOR}'")
    return name


def descend(prefix: str, name: str) -> str:
    """Return the prefix of folder ``name`` inside ``prefix``."""

    if not is_valid_prefix(prefix):
        raise InvalidInputError(f"Invalid prefix: {prefix!r}")
    validate_name(name)
    return f"{prefix}{name}{SEPARATOR}"


def ascend(prefix: str) -> str:
    """Return the parent prefix; the root is its own parent.

    The last separator strictly before the final character marks the end of
    the parent, so ``"a/b/"`` becomes ``"a/"`` and ``"a/"`` becomes ``""``.
    """

    if not prefix:
        return ""
    index = prefix.rfind(SEPARATOR, 0, len(prefix) - 1)
    if index < 0:
        return ""
    return prefix[: index + 1]


def join_key(prefix: str, name: str) -> str:
    return f"{prefix}{validate_name(name, 'Object name')}"


def relative_name(key: str, prefix: str) -> str:
    name = key[len(prefix):] if prefix and key.startswith(prefix) else key
    if name.endswith(SEPARATOR):
        name = name[:-1]
    return name


def folder_marker_key(prefix: str, name: str) -> str:
    return descend(prefix, name) + FOLDER_MARKER_NAME


def basename(key: str) -> str:
    return key.rstrip(SEPARATOR).rsplit(SEPARATOR, 1)[-1]


def archive_filename(keys: list[str], now: datetime | None = None) -> str:
    if len(keys) == 1:
        return f"{PurePosixPath(basename(keys[0])).stem}.zip"
    moment = now or datetime.now(timezone.utc)
    return f"files-{int(moment.timestamp() * 1000)}.zip"


def breadcrumbs(prefix: str) -> list[tuple[str, str]]:
    crumbs = [("/", "")]
    current = ""
    for part in prefix.split(SEPARATOR):
        if not part:
            continue
        current = f"{current}{part}{SEPARATOR}"
        crumbs.append((part, current))
    return crumbs
