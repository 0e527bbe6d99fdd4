"""bucketfs storage error types.

Provides typed exceptions for storage operations. Every store-call failure is
raised as one of these, carrying the bucket and object key so a failure can be
diagnosed without a stack trace. Nothing is retried here.
"""

from __future__ import annotations


class ObjectStorageError(Exception):
    """Base exception for object storage operations.

    Attributes:
        message: Human-readable error message.
        bucket: Bucket associated with the operation (if applicable).
        key: Full object key associated with the operation (if applicable).
    """

    def __init__(
        self,
        message: str,
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.bucket = bucket
        self.key = key

    def __str__(self) -> str:
        parts = [self.message]
        if self.bucket:
            parts.append(f"bucket={self.bucket}")
        if self.key:
            parts.append(f"key={self.key}")
        return " ".join(parts)


class ConfigInvalidError(ObjectStorageError):
    """Raised when store configuration fails validation.

    No credential lookup or network action happens before this is raised.
    """

    def __init__(
        self,
        message: str = "Invalid store configuration",
        *,
        bucket: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket)


class ConnectionFailedError(ObjectStorageError):
    """Raised when the storage client session cannot be established."""

    def __init__(
        self,
        message: str = "Could not connect to object storage",
        *,
        bucket: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket)
        self.cause = cause


class StoreClosedError(ObjectStorageError):
    """Raised when an operation is issued on a store that has been closed."""

    def __init__(self, message: str = "Store is closed", *, bucket: str | None = None) -> None:
        super().__init__(message, bucket=bucket)


class PathTraversalError(ObjectStorageError):
    """Raised when a relative path contains parent-escaping segments.

    Paths like "../x" or "a/../../b" would let a caller address objects
    outside the configured parent folder, so they are rejected before a key
    is built.
    """

    def __init__(
        self,
        message: str = "Invalid path: path traversal detected",
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)


class SamePathError(ObjectStorageError):
    """Raised when a copy or move names the same source and destination."""

    def __init__(
        self,
        message: str = "Source and destination are the same path",
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)


class EmptyInputError(ObjectStorageError):
    """Raised when a write is attempted with empty data or an empty path."""

    def __init__(
        self,
        message: str = "Empty input",
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)


class ObjectNotFoundError(ObjectStorageError):
    """Raised when an object does not exist in the bucket."""

    def __init__(
        self,
        message: str = "Object not found",
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)


class PreconditionFailedError(ObjectStorageError):
    """Raised when a conditional operation's guard token no longer matches.

    Indicates a concurrent writer changed the object (generation) or its
    metadata (metageneration) after it was observed.
    """

    def __init__(
        self,
        message: str = "Precondition failed: object was modified concurrently",
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)


class AlreadyExistsError(PreconditionFailedError):
    """Raised when a create-if-absent operation finds an existing object."""

    def __init__(
        self,
        message: str = "Destination object already exists",
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)


class StorageBackendError(ObjectStorageError):
    """Raised when the storage backend cannot complete an operation.

    This error indicates the store call itself failed (transport error,
    server error, permission denied) rather than a logical error like
    object not found.
    """

    def __init__(
        self,
        message: str = "Storage backend error",
        *,
        bucket: str | None = None,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)
        self.cause = cause


class StorageTimeoutError(StorageBackendError):
    """Raised when an operation exceeds its fixed time budget."""


class _StageError(StorageBackendError):
    """A failure in one stage of a multi-step operation.

    The ``cause`` attribute holds the translated error of the failed store
    call, so callers can still test for e.g. ``PreconditionFailedError``.
    """

    stage = "unknown"

    def __init__(
        self,
        message: str | None = None,
        *,
        bucket: str | None = None,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        if message is None:
            message = f"{self.stage} failed"
            if cause is not None:
                message = f"{message}: {getattr(cause, 'message', cause)}"
        super().__init__(message, bucket=bucket, key=key, cause=cause)


class UploadFailedError(_StageError):
    """Object body upload failed. Nothing was committed."""

    stage = "upload"


class MetadataWriteFailedError(_StageError):
    """Metadata patch failed after the body was uploaded.

    The uploaded body remains in the bucket without the user metadata.
    """

    stage = "metadata write"


class AttrsFetchFailedError(_StageError):
    """Fetching object attributes failed after the data operation succeeded."""

    stage = "attributes fetch"


class ReadFailedError(_StageError):
    """Opening a reader for the object failed."""

    stage = "read"


class DrainFailedError(_StageError):
    """Reading the object body to completion failed."""

    stage = "drain"


class CopyFailedError(_StageError):
    """The copy half of a move failed. Nothing was changed."""

    stage = "move/copy"


class DeleteFailedError(_StageError):
    """The delete half of a move failed after the copy succeeded.

    The data now exists at both the source and the destination. Retrying
    only the delete of the source completes the move.
    """

    stage = "move/delete"

    def __init__(
        self,
        message: str | None = None,
        *,
        bucket: str | None = None,
        key: str | None = None,
        cause: Exception | None = None,
        destination: str | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key, cause=cause)
        self.destination = destination
        self.partial = True
