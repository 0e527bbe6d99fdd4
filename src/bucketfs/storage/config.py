"""bucketfs store configuration.

Environment Variables:
    BUCKETFS_BUCKET_NAME: Target bucket (required)
    BUCKETFS_PARENT_FOLDER: Key prefix applied to every path (required)
    BUCKETFS_PROJECT: Google Cloud project (optional; defaults to the
        project discovered with the credentials)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from bucketfs.storage.errors import ConfigInvalidError

BUCKETFS_BUCKET_NAME_ENV = "BUCKETFS_BUCKET_NAME"
BUCKETFS_PARENT_FOLDER_ENV = "BUCKETFS_PARENT_FOLDER"
BUCKETFS_PROJECT_ENV = "BUCKETFS_PROJECT"


def _get_env_str(key: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default).strip()


@dataclass(frozen=True)
class StoreConfig:
    """Connection settings for a bucket-backed file store.

    Attributes:
        bucket_name: Name of the target bucket.
        parent_folder: Key prefix joined in front of every caller path.
        project: Google Cloud project ID, or None to use the one reported
            by the credentials provider.
    """

    bucket_name: str
    parent_folder: str
    project: str | None = None

    def validate(self) -> None:
        """Fail fast on unusable settings.

        Raises:
            ConfigInvalidError: If bucket_name or parent_folder is empty.
        """
        if not self.bucket_name or not self.bucket_name.strip():
            raise ConfigInvalidError("bucket_name must not be empty")
        if not self.parent_folder or not self.parent_folder.strip():
            raise ConfigInvalidError(
                "parent_folder must not be empty", bucket=self.bucket_name
            )

    def with_overrides(
        self,
        *,
        bucket_name: str | None = None,
        parent_folder: str | None = None,
        project: str | None = None,
    ) -> StoreConfig:
        """Return a copy with any non-None fields replaced."""
        changes: dict[str, str] = {}
        if bucket_name is not None:
            changes["bucket_name"] = bucket_name
        if parent_folder is not None:
            changes["parent_folder"] = parent_folder
        if project is not None:
            changes["project"] = project
        return replace(self, **changes)

    @classmethod
    def from_env(cls) -> StoreConfig:
        """Build a config from BUCKETFS_* environment variables.

        Does not validate; call validate() (or construct a store) to check.
        """
        return cls(
            bucket_name=_get_env_str(BUCKETFS_BUCKET_NAME_ENV),
            parent_folder=_get_env_str(BUCKETFS_PARENT_FOLDER_ENV),
            project=_get_env_str(BUCKETFS_PROJECT_ENV) or None,
        )
