"""Tests for FileMetadata translation from GCS blob attributes."""

from __future__ import annotations

import base64
import hashlib
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any

from bucketfs.storage.models import FileMetadata, StoredFile

CREATED = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
UPDATED = datetime(2024, 3, 2, 8, 30, tzinfo=UTC)


def _blob(**overrides: Any) -> SimpleNamespace:
    data = b"payload"
    attrs: dict[str, Any] = {
        "bucket": SimpleNamespace(name="test-bucket"),
        "name": "root/docs/a.txt",
        "size": len(data),
        "md5_hash": base64.b64encode(hashlib.md5(data).digest()).decode("ascii"),
        "time_created": CREATED,
        "updated": UPDATED,
        "metadata": {"owner": "ops"},
    }
    attrs.update(overrides)
    return SimpleNamespace(**attrs)


class TestFromBlob:
    """Tests for translating blob attributes."""

    def test_fields_are_translated(self) -> None:
        """All attributes map onto FileMetadata, with MD5 as hex."""
        meta = FileMetadata.from_blob(_blob())

        assert meta.bucket == "test-bucket"
        assert meta.name == "root/docs/a.txt"
        assert meta.size == 7
        assert meta.md5_hash == hashlib.md5(b"payload").hexdigest()
        assert meta.time_created == CREATED
        assert meta.updated == UPDATED
        assert meta.user_metadata == {"owner": "ops"}

    def test_missing_md5_is_empty_string(self) -> None:
        """Composite objects report no MD5."""
        assert FileMetadata.from_blob(_blob(md5_hash=None)).md5_hash == ""

    def test_malformed_md5_is_empty_string(self) -> None:
        """An MD5 that is not valid base64 does not raise."""
        assert FileMetadata.from_blob(_blob(md5_hash="not base64!")).md5_hash == ""

    def test_missing_metadata_is_empty_mapping(self) -> None:
        """Objects without user metadata translate to an empty dict."""
        assert FileMetadata.from_blob(_blob(metadata=None)).user_metadata == {}

    def test_user_metadata_is_copied(self) -> None:
        """The result does not alias the blob's metadata dict."""
        source = {"k": "v"}
        meta = FileMetadata.from_blob(_blob(metadata=source))

        source["k"] = "changed"

        assert meta.user_metadata == {"k": "v"}


class TestSerialization:
    """Tests for the JSON exchange format."""

    def test_to_dict_uses_iso_timestamps(self) -> None:
        """Timestamps serialize as ISO 8601 strings."""
        data = FileMetadata.from_blob(_blob()).to_dict()

        assert data["time_created"] == CREATED.isoformat()
        assert data["updated"] == UPDATED.isoformat()
        assert data["user_metadata"] == {"owner": "ops"}
        assert set(data) == {
            "bucket",
            "name",
            "size",
            "md5_hash",
            "time_created",
            "updated",
            "user_metadata",
        }

    def test_to_dict_missing_timestamps_are_null(self) -> None:
        """Absent timestamps serialize as None."""
        data = FileMetadata.from_blob(_blob(time_created=None, updated=None)).to_dict()

        assert data["time_created"] is None
        assert data["updated"] is None


class TestStoredFile:
    """Tests for the read result type."""

    def test_unpacks_as_body_and_metadata(self) -> None:
        """StoredFile unpacks into (body, metadata)."""
        meta = FileMetadata.from_blob(_blob())
        body, metadata = StoredFile(body=b"payload", metadata=meta)

        assert body == b"payload"
        assert metadata is meta
