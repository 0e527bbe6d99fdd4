"""bucketfs file store interface definition.

Provides the FileStore abstract base class that storage backends implement.
Paths passed to every operation are relative to the store's parent folder.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping

from bucketfs.storage.models import FileMetadata, StoredFile


class FileStore(ABC):
    """Abstract base class for bucket-backed file stores.

    All implementations must provide:
    - Parent-folder scoped keys with path traversal protection
    - Optimistic concurrency on data (generation) and metadata
      (metageneration) changes
    - Create-if-absent copies
    - Typed errors carrying bucket and key context

    Compound operations (move, write with metadata) are not transactional.

    Implementations:
    - GCSFileStore: Google Cloud Storage
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability.

        Returns:
            Backend name string (e.g., "gcs").
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the backend's client session.

        Operations issued after close() raise StoreClosedError.
        """
        ...

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete an object if it is unchanged since it was looked up.

        Args:
            path: Path of the object relative to the parent folder.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            PreconditionFailedError: If the object changed between lookup
                and delete.
            StorageBackendError: If the backend cannot complete the deletion.
        """
        ...

    @abstractmethod
    def copy(self, src: str, dst: str) -> None:
        """Copy an object to a path where no object exists yet.

        Args:
            src: Source path relative to the parent folder.
            dst: Destination path relative to the parent folder.

        Raises:
            SamePathError: If src and dst resolve to the same key.
            AlreadyExistsError: If an object already exists at dst.
            ObjectNotFoundError: If src does not exist.
            StorageBackendError: If the backend cannot complete the copy.
        """
        ...

    @abstractmethod
    def move(self, src: str, dst: str) -> None:
        """Move an object: copy to dst, then delete src.

        Args:
            src: Source path relative to the parent folder.
            dst: Destination path relative to the parent folder.

        Raises:
            SamePathError: If src and dst resolve to the same key.
            CopyFailedError: If the copy failed; nothing was changed.
            DeleteFailedError: If the copy succeeded but deleting src
                failed; the data exists at both paths. Both halves are
                conditional on the source generation seen before the copy.
        """
        ...

    @abstractmethod
    def write(
        self,
        data: bytes,
        path: str,
        user_metadata: Mapping[str, str] | None = None,
    ) -> FileMetadata:
        """Store an object, then attach user metadata.

        Args:
            data: Object content. Must not be empty.
            path: Path relative to the parent folder. Must not be empty.
            user_metadata: Optional user-defined key/value pairs.

        Returns:
            Metadata reflecting the object after the write.

        Raises:
            EmptyInputError: If data or path is empty, or path names the
                parent folder itself.
            UploadFailedError: If the body upload failed.
            MetadataWriteFailedError: If the metadata patch failed; the body
                remains uploaded.
            AttrsFetchFailedError: If the final attribute fetch failed.
        """
        ...

    @abstractmethod
    def list(self, prefix: str = "") -> dict[str, FileMetadata]:
        """List every object whose key starts with the resolved prefix.

        Args:
            prefix: Prefix relative to the parent folder.

        Returns:
            Mapping of full object key to metadata.

        Raises:
            StorageTimeoutError: If the enumeration exceeds its time budget.
            StorageBackendError: If the backend cannot complete the listing.
        """
        ...

    @abstractmethod
    def read(self, path: str) -> StoredFile:
        """Retrieve an object's content and metadata.

        Args:
            path: Path of the object relative to the parent folder.

        Returns:
            StoredFile with body and metadata.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            ReadFailedError: If a reader could not be opened.
            DrainFailedError: If reading the body failed.
            AttrsFetchFailedError: If the attribute fetch after reading failed.
            PreconditionFailedError: If the object was replaced between reading
                its body and fetching its attributes.
        """
        ...
