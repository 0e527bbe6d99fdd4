"""Pytest configuration and fixtures for bucketfs tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from google.auth.credentials import AnonymousCredentials

from bucketfs.storage.config import StoreConfig
from bucketfs.storage.gcs_store import GCSFileStore
from tests.fixtures import TEST_BUCKET, TEST_PARENT_FOLDER, TEST_PROJECT
from tests.fixtures.fake_gcs import FakeClient, FakeGCSServer

_BUCKETFS_ENV = [
    "BUCKETFS_BUCKET_NAME",
    "BUCKETFS_PARENT_FOLDER",
    "BUCKETFS_PROJECT",
    "BUCKETFS_OTEL_ENABLED",
    "BUCKETFS_OTEL_TEST_CAPTURE",
    "BUCKETFS_REQUIRE_OTEL",
]


@pytest.fixture(autouse=True)
def clear_bucketfs_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep BUCKETFS_* variables from the developer's shell out of tests."""
    for name in _BUCKETFS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def gcs_server() -> FakeGCSServer:
    """Return a fresh in-memory GCS server."""
    return FakeGCSServer()


@pytest.fixture
def clients() -> list[FakeClient]:
    """Collects every client a test's stores open."""
    return []


@pytest.fixture
def make_store(
    gcs_server: FakeGCSServer, clients: list[FakeClient]
) -> Callable[..., GCSFileStore]:
    """Return a factory building GCSFileStore instances over the fake server."""

    def client_factory(project: str | None, credentials: Any) -> FakeClient:
        client = FakeClient(gcs_server, project=project, credentials=credentials)
        clients.append(client)
        return client

    def _make(config: StoreConfig | None = None) -> GCSFileStore:
        return GCSFileStore(
            config or StoreConfig(bucket_name=TEST_BUCKET, parent_folder=TEST_PARENT_FOLDER),
            credentials_provider=lambda: (AnonymousCredentials(), TEST_PROJECT),
            client_factory=client_factory,
        )

    return _make


@pytest.fixture
def store(make_store: Callable[..., GCSFileStore]) -> Any:
    """Create a GCSFileStore over the fake server, closed after the test."""
    s = make_store()
    yield s
    s.close()
