"""bucketfs Google Cloud Storage backend.

Maps filesystem-style operations onto GCS primitives:
- Delete is conditional on the generation observed just before it
- Copy is create-if-absent (``if_generation_match=0``)
- Move is copy then delete, and reports which half failed
- Write uploads the body in one request, then patches user metadata
  conditional on the current metageneration

Credentials are injected through a credentials provider; the default is
``google.auth.default`` (GOOGLE_APPLICATION_CREDENTIALS, gcloud ADC, or the
metadata server).
"""

from __future__ import annotations

import hashlib
import logging
import mimetypes
from collections.abc import Callable, Mapping
from typing import Any

import google.auth
import requests
from google.api_core import exceptions as gcs_exceptions
from google.api_core.retry import Retry
from google.auth import exceptions as auth_exceptions
from google.auth.credentials import Credentials
from google.cloud import storage
from google.cloud.storage.retry import DEFAULT_RETRY

from bucketfs.storage.config import StoreConfig
from bucketfs.storage.deadline import (
    METADATA_TIMEOUT_SECONDS,
    TRANSFER_TIMEOUT_SECONDS,
    OperationDeadline,
)
from bucketfs.storage.errors import (
    AlreadyExistsError,
    AttrsFetchFailedError,
    ConnectionFailedError,
    CopyFailedError,
    DeleteFailedError,
    DrainFailedError,
    EmptyInputError,
    MetadataWriteFailedError,
    ObjectNotFoundError,
    ObjectStorageError,
    PreconditionFailedError,
    ReadFailedError,
    SamePathError,
    StorageBackendError,
    StorageTimeoutError,
    StoreClosedError,
    UploadFailedError,
)
from bucketfs.storage.models import FileMetadata, StoredFile
from bucketfs.storage.object_store import FileStore
from bucketfs.storage.paths import resolve_key
from bucketfs.storage.tracing import traced_storage_operation

logger = logging.getLogger(__name__)

GCS_READ_WRITE_SCOPE = "https://www.googleapis.com/auth/devstorage.read_write"

CredentialsProvider = Callable[[], tuple[Credentials | None, str | None]]
ClientFactory = Callable[..., Any]

_STORE_ERRORS = (
    gcs_exceptions.GoogleAPIError,
    auth_exceptions.GoogleAuthError,
    requests.RequestException,
)

_TIMEOUT_ERRORS = (
    gcs_exceptions.DeadlineExceeded,
    gcs_exceptions.RetryError,
    requests.Timeout,
)


def default_credentials() -> tuple[Credentials | None, str | None]:
    """Discover application default credentials and their project."""
    return google.auth.default(scopes=[GCS_READ_WRITE_SCOPE])


def _translate(error: Exception, deadline: OperationDeadline) -> ObjectStorageError:
    """Map a client exception onto the storage error taxonomy."""
    bucket, key = deadline.bucket, deadline.key
    if isinstance(error, gcs_exceptions.NotFound):
        return ObjectNotFoundError(f"{deadline.operation}: object not found", bucket=bucket, key=key)
    if isinstance(error, gcs_exceptions.PreconditionFailed):
        return PreconditionFailedError(
            f"{deadline.operation}: precondition failed, object was modified concurrently",
            bucket=bucket,
            key=key,
        )
    if isinstance(error, _TIMEOUT_ERRORS):
        return StorageTimeoutError(
            f"{deadline.operation} timed out: {error}", bucket=bucket, key=key, cause=error
        )
    return StorageBackendError(
        f"{deadline.operation} failed: {error}", bucket=bucket, key=key, cause=error
    )


def _call(
    deadline: OperationDeadline,
    func: Callable[..., Any],
    *args: Any,
    retry: Retry | None = DEFAULT_RETRY,
    **kwargs: Any,
) -> Any:
    """Issue one store call bounded by what is left of the operation's budget.

    The remaining budget is both the per-request timeout and the limit on
    the client's retry loop, so retries stop at the deadline too. Pass
    ``retry=None`` for calls that must not be retried.
    """
    budget = deadline.remaining()
    if retry is not None:
        retry = retry.with_timeout(budget)
    try:
        return func(*args, timeout=budget, retry=retry, **kwargs)
    except _STORE_ERRORS as e:
        raise _translate(e, deadline) from e


def _guess_content_type(key: str) -> str:
    return mimetypes.guess_type(key)[0] or "application/octet-stream"


def _describes(metadata: FileMetadata, body: bytes) -> bool:
    """Check that fetched attributes belong to the bytes that were read.

    Composite objects carry no MD5; only their size can be compared.
    """
    if metadata.size != len(body):
        return False
    return not metadata.md5_hash or metadata.md5_hash == hashlib.md5(body).hexdigest()


class GCSFileStore(FileStore):
    """Google Cloud Storage implementation of FileStore.

    One instance owns one ``storage.Client`` for its whole lifetime and may
    be shared across threads; nothing on the instance changes after
    construction except the closed flag. Release the client with close()
    or by using the store as a context manager.

    Usage:
        config = StoreConfig(bucket_name="my-bucket", parent_folder="data")
        with GCSFileStore(config) as store:
            store.write(b"hello", "greetings/en.txt", {"lang": "en"})
            body, metadata = store.read("greetings/en.txt")
    """

    def __init__(
        self,
        config: StoreConfig,
        *,
        credentials_provider: CredentialsProvider | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        """Validate the configuration and open the storage client.

        Args:
            config: Bucket and parent folder settings.
            credentials_provider: Callable returning ``(credentials, project)``.
                Defaults to application default credentials.
            client_factory: Callable accepting ``project`` and ``credentials``
                keywords and returning a storage client. Defaults to
                ``google.cloud.storage.Client``.

        Raises:
            ConfigInvalidError: If the configuration is invalid. Nothing else
                is attempted.
            ConnectionFailedError: If credentials or the client cannot be set up.
        """
        config.validate()
        self._config = config
        self._closed = False

        provider = credentials_provider or default_credentials
        factory = client_factory or storage.Client

        try:
            credentials, discovered_project = provider()
            project = config.project or discovered_project
            self._client = factory(project=project, credentials=credentials)
            self._bucket = self._client.bucket(config.bucket_name)
        except (
            gcs_exceptions.GoogleAPIError,
            auth_exceptions.GoogleAuthError,
            OSError,
            ValueError,
        ) as e:
            raise ConnectionFailedError(
                f"Could not open storage client: {e}",
                bucket=config.bucket_name,
                cause=e,
            ) from e

        logger.info(
            "GCSFileStore connected: bucket=%s parent_folder=%s project=%s",
            config.bucket_name,
            config.parent_folder,
            project,
        )

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "gcs"

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def bucket_name(self) -> str:
        return self._config.bucket_name

    @property
    def parent_folder(self) -> str:
        return self._config.parent_folder

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the storage client. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._client.close()
        logger.info("GCSFileStore closed: bucket=%s", self.bucket_name)

    def __enter__(self) -> GCSFileStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError(bucket=self.bucket_name)

    def _resolve(self, path: str) -> str:
        return resolve_key(self._config.parent_folder, path)

    def _deadline(self, seconds: float, operation: str, key: str) -> OperationDeadline:
        return OperationDeadline(seconds, operation=operation, bucket=self.bucket_name, key=key)

    @traced_storage_operation("delete")
    def delete(self, path: str) -> None:
        """Delete an object, guarded by the generation observed just before."""
        self._check_open()
        key = self._resolve(path)
        deadline = self._deadline(METADATA_TIMEOUT_SECONDS, "delete", key)
        blob = self._bucket.blob(key)

        # A failed lookup must stop here: its generation is meaningless.
        _call(deadline, blob.reload)
        generation = blob.generation

        _call(deadline, blob.delete, if_generation_match=generation)
        logger.debug("Deleted object: bucket=%s key=%s generation=%s", self.bucket_name, key, generation)

    @traced_storage_operation("copy")
    def copy(self, src: str, dst: str) -> None:
        """Copy an object to a destination that must not exist yet."""
        self._check_open()
        src_key = self._resolve(src)
        dst_key = self._resolve(dst)
        if src_key == dst_key:
            raise SamePathError(
                f"Source {src!r} cannot be the same as destination {dst!r}",
                bucket=self.bucket_name,
                key=src_key,
            )

        deadline = self._deadline(METADATA_TIMEOUT_SECONDS, "copy", src_key)
        self._copy_blob(deadline, self._bucket.blob(src_key), dst_key)

        logger.debug("Copied object: bucket=%s src=%s dst=%s", self.bucket_name, src_key, dst_key)

    def _copy_blob(
        self,
        deadline: OperationDeadline,
        src_blob: Any,
        dst_key: str,
        source_generation: int | None = None,
    ) -> None:
        """Create-if-absent copy of src_blob to dst_key."""
        try:
            _call(
                deadline,
                self._bucket.copy_blob,
                src_blob,
                self._bucket,
                dst_key,
                source_generation=source_generation,
                if_generation_match=0,
            )
        except PreconditionFailedError as e:
            raise AlreadyExistsError(
                f"Cannot copy {src_blob.name!r}: destination already exists",
                bucket=self.bucket_name,
                key=dst_key,
            ) from e

    @traced_storage_operation("move")
    def move(self, src: str, dst: str) -> None:
        """Move an object by copying it and then deleting the source.

        Both halves are pinned to the source generation observed before the
        copy: a concurrent overwrite of src makes the copy or the delete
        fail instead of deleting data that was never copied.

        Not atomic. If the delete fails the data is left at both paths and
        DeleteFailedError is raised; retrying delete(src) completes the move.
        When its cause is PreconditionFailedError, src was overwritten after
        the copy and now holds data that dst does not.
        """
        self._check_open()
        src_key = self._resolve(src)
        dst_key = self._resolve(dst)
        if src_key == dst_key:
            raise SamePathError(
                f"Cannot move {src!r} onto itself",
                bucket=self.bucket_name,
                key=src_key,
            )

        src_blob = self._bucket.blob(src_key)
        copy_deadline = self._deadline(METADATA_TIMEOUT_SECONDS, "move/copy", src_key)
        try:
            _call(copy_deadline, src_blob.reload)
            generation = src_blob.generation
            self._copy_blob(copy_deadline, src_blob, dst_key, source_generation=generation)
        except ObjectStorageError as e:
            raise CopyFailedError(
                f"Could not move {src!r} to {dst!r}: copy failed: {e.message}",
                bucket=self.bucket_name,
                key=src_key,
                cause=e,
            ) from e

        delete_deadline = self._deadline(METADATA_TIMEOUT_SECONDS, "move/delete", src_key)
        try:
            _call(delete_deadline, src_blob.delete, if_generation_match=generation)
        except ObjectStorageError as e:
            logger.warning(
                "Move left two copies: bucket=%s src=%s dst=%s reason=%s",
                self.bucket_name,
                src_key,
                dst_key,
                e,
            )
            raise DeleteFailedError(
                f"Could not move {src!r} to {dst!r}: delete of source failed after copy: {e.message}",
                bucket=self.bucket_name,
                key=src_key,
                cause=e,
                destination=dst_key,
            ) from e

        logger.debug("Moved object: bucket=%s src=%s dst=%s", self.bucket_name, src_key, dst_key)

    @traced_storage_operation("write")
    def write(
        self,
        data: bytes,
        path: str,
        user_metadata: Mapping[str, str] | None = None,
    ) -> FileMetadata:
        """Upload an object in one request, then attach user metadata."""
        if not data:
            raise EmptyInputError("Length of data is 0, nothing to write", bucket=self.bucket_name)
        if not path:
            raise EmptyInputError("Path cannot be empty", bucket=self.bucket_name)
        key = self._resolve(path)
        if key == self._resolve(""):
            raise EmptyInputError(
                f"Path {path!r} names no object below the parent folder",
                bucket=self.bucket_name,
                key=key,
            )
        self._check_open()

        deadline = self._deadline(TRANSFER_TIMEOUT_SECONDS, "write", key)
        blob = self._bucket.blob(key)
        # Single-request upload: the whole payload is sent in one piece.
        blob.chunk_size = None

        try:
            # No generation precondition, so the upload is not retried.
            _call(
                deadline,
                blob.upload_from_string,
                data,
                content_type=_guess_content_type(key),
                retry=None,
            )
        except ObjectStorageError as e:
            raise UploadFailedError(bucket=self.bucket_name, key=key, cause=e) from e

        if user_metadata:
            self._write_user_metadata(blob, key, user_metadata)

        try:
            _call(deadline, blob.reload)
        except ObjectStorageError as e:
            raise AttrsFetchFailedError(bucket=self.bucket_name, key=key, cause=e) from e

        metadata = FileMetadata.from_blob(blob)
        logger.debug(
            "Stored object: bucket=%s key=%s size=%d md5=%s",
            self.bucket_name,
            key,
            metadata.size,
            metadata.md5_hash,
        )
        return metadata

    def _write_user_metadata(self, blob: Any, key: str, user_metadata: Mapping[str, str]) -> None:
        """Patch user metadata, guarded by the current metageneration."""
        deadline = self._deadline(METADATA_TIMEOUT_SECONDS, "write/metadata", key)
        try:
            _call(deadline, blob.reload)
            metageneration = blob.metageneration
            blob.metadata = {str(k): str(v) for k, v in user_metadata.items()}
            _call(deadline, blob.patch, if_metageneration_match=metageneration)
        except ObjectStorageError as e:
            raise MetadataWriteFailedError(bucket=self.bucket_name, key=key, cause=e) from e

    @traced_storage_operation("list")
    def list(self, prefix: str = "") -> dict[str, FileMetadata]:
        """List objects under the resolved prefix with full metadata."""
        self._check_open()
        key = self._resolve(prefix)
        deadline = self._deadline(METADATA_TIMEOUT_SECONDS, "list", key)

        results: dict[str, FileMetadata] = {}
        blobs = _call(deadline, self._client.list_blobs, self._bucket, prefix=key)
        try:
            # Pages are fetched lazily; each fetch can fail or overrun.
            for page in blobs.pages:
                for blob in page:
                    results[blob.name] = FileMetadata.from_blob(blob)
                deadline.remaining()
        except _STORE_ERRORS as e:
            raise _translate(e, deadline) from e

        logger.debug("Listed objects: bucket=%s prefix=%s count=%d", self.bucket_name, key, len(results))
        return results

    @traced_storage_operation("read")
    def read(self, path: str) -> StoredFile:
        """Read an object fully into memory, then fetch its attributes.

        The attributes must describe the bytes that were read: if the object
        was replaced in between, PreconditionFailedError is raised rather
        than pairing old content with new metadata.
        """
        self._check_open()
        key = self._resolve(path)
        deadline = self._deadline(TRANSFER_TIMEOUT_SECONDS, "read", key)
        blob = self._bucket.blob(key)

        try:
            reader = _call(deadline, blob.open, "rb")
        except ObjectNotFoundError:
            raise
        except ObjectStorageError as e:
            raise ReadFailedError(bucket=self.bucket_name, key=key, cause=e) from e

        with reader:
            try:
                deadline.remaining()
                body = reader.read()
            except _STORE_ERRORS as e:
                translated = _translate(e, deadline)
                if isinstance(translated, ObjectNotFoundError):
                    raise translated from e
                raise DrainFailedError(bucket=self.bucket_name, key=key, cause=translated) from e
            except StorageTimeoutError as e:
                raise DrainFailedError(bucket=self.bucket_name, key=key, cause=e) from e

        try:
            _call(deadline, blob.reload)
        except ObjectStorageError as e:
            raise AttrsFetchFailedError(bucket=self.bucket_name, key=key, cause=e) from e

        metadata = FileMetadata.from_blob(blob)
        if not _describes(metadata, body):
            raise PreconditionFailedError(
                "read: object was replaced while it was being read",
                bucket=self.bucket_name,
                key=key,
            )

        logger.debug("Read object: bucket=%s key=%s size=%d", self.bucket_name, key, len(body))
        return StoredFile(body=body, metadata=metadata)
