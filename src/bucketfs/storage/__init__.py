"""bucketfs object storage adapter.

Provides a filesystem-like view of one bucket: every path is relative to a
configured parent folder, and write/read/list/copy/move/delete map onto the
store's conditional primitives.

Backends:
- GCSFileStore: Google Cloud Storage

Environment Variables:
    BUCKETFS_BUCKET_NAME: Target bucket
    BUCKETFS_PARENT_FOLDER: Key prefix applied to every path
    BUCKETFS_PROJECT: Google Cloud project (optional)
"""

from bucketfs.storage.config import StoreConfig
from bucketfs.storage.errors import (
    AlreadyExistsError,
    AttrsFetchFailedError,
    ConfigInvalidError,
    ConnectionFailedError,
    CopyFailedError,
    DeleteFailedError,
    DrainFailedError,
    EmptyInputError,
    MetadataWriteFailedError,
    ObjectNotFoundError,
    ObjectStorageError,
    PathTraversalError,
    PreconditionFailedError,
    ReadFailedError,
    SamePathError,
    StorageBackendError,
    StorageTimeoutError,
    StoreClosedError,
    UploadFailedError,
)
from bucketfs.storage.gcs_store import GCSFileStore
from bucketfs.storage.models import FileMetadata, StoredFile
from bucketfs.storage.object_store import FileStore
from bucketfs.storage.paths import resolve_key

__all__ = [
    "FileStore",
    "GCSFileStore",
    "StoreConfig",
    "FileMetadata",
    "StoredFile",
    "resolve_key",
    "ObjectStorageError",
    "ConfigInvalidError",
    "ConnectionFailedError",
    "StoreClosedError",
    "PathTraversalError",
    "SamePathError",
    "EmptyInputError",
    "ObjectNotFoundError",
    "PreconditionFailedError",
    "AlreadyExistsError",
    "StorageBackendError",
    "StorageTimeoutError",
    "UploadFailedError",
    "MetadataWriteFailedError",
    "AttrsFetchFailedError",
    "ReadFailedError",
    "DrainFailedError",
    "CopyFailedError",
    "DeleteFailedError",
]
