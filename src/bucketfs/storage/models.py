"""bucketfs storage data models.

Provides typed dataclasses for object metadata and objects, and the
translation from Google Cloud Storage blob attributes.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, NamedTuple


def _md5_to_hex(md5_b64: str | None) -> str:
    """Convert the base64 MD5 reported by GCS to a hex string.

    Composite objects carry no MD5; they map to an empty string.
    """
    if not md5_b64:
        return ""
    try:
        return base64.b64decode(md5_b64, validate=True).hex()
    except (binascii.Error, ValueError):
        return ""


@dataclass(frozen=True)
class FileMetadata:
    """Metadata for a stored object.

    Attributes:
        bucket: Name of the bucket holding the object.
        name: Full object key (parent folder included).
        size: Size of the object content in bytes.
        md5_hash: MD5 checksum of the content (hex string, empty if the
            store reported none).
        time_created: Timestamp the store assigned at creation.
        updated: Timestamp of the last data or metadata change.
        user_metadata: User-defined key/value pairs.
    """

    bucket: str
    name: str
    size: int
    md5_hash: str
    time_created: datetime | None
    updated: datetime | None
    user_metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_blob(cls, blob: Any) -> FileMetadata:
        """Translate a loaded ``google.cloud.storage.Blob`` into FileMetadata.

        The blob must have had its properties fetched (``reload``, upload
        response or listing). The user metadata map is copied so the result
        does not alias client state.
        """
        bucket = getattr(blob, "bucket", None)
        return cls(
            bucket=getattr(bucket, "name", "") or "",
            name=blob.name,
            size=int(blob.size or 0),
            md5_hash=_md5_to_hex(blob.md5_hash),
            time_created=blob.time_created,
            updated=blob.updated,
            user_metadata=dict(blob.metadata or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert metadata to dictionary for JSON serialization."""
        return {
            "bucket": self.bucket,
            "name": self.name,
            "size": self.size,
            "md5_hash": self.md5_hash,
            "time_created": self.time_created.isoformat() if self.time_created else None,
            "updated": self.updated.isoformat() if self.updated else None,
            "user_metadata": dict(self.user_metadata),
        }


class StoredFile(NamedTuple):
    """A stored object's content together with its metadata.

    Unpacks as ``body, metadata``.
    """

    body: bytes
    metadata: FileMetadata
