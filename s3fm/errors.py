from __future__ import annotations
"""Error taxonomy shared by the navigator, controller and storage service."""


class StorageError(RuntimeError):
    """Base class for failures scoped to a single browser operation."""


class NotFoundError(StorageError):
    """Raised when a bucket or key does not exist."""


class ConflictError(StorageError):
    """Raised for duplicate bucket names or deleting a non-empty bucket."""


class UnreachableError(StorageError):
    """Raised when the storage endpoint cannot be reached."""


class NotConnectedError(UnreachableError):
    """Raised when an S3 operation is attempted before connecting."""


class InvalidInputError(StorageError, ValueError):
    """Raised for empty names, missing files or a wrong selection count."""


class InvalidMetadataError(InvalidInputError):
    """Raised when user metadata has empty keys or values."""
