"""Tests for the bucketfs CLI.

Tests cover:
1. put/ls/cat/cp/mv/rm against the in-memory store
2. FAIL: missing configuration (exit code 2)
3. FAIL: storage errors (exit code 1, typed error in JSON output)
4. Partial move reported with partial=true and the destination
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from google.api_core import exceptions as gcs_exceptions

from bucketfs.cli import main
from bucketfs.storage.gcs_store import GCSFileStore
from tests.fixtures import TEST_BUCKET, TEST_PARENT_FOLDER
from tests.fixtures.fake_gcs import FakeClient, FakeGCSServer

GLOBAL_ARGS = ["--bucket", TEST_BUCKET, "--parent-folder", TEST_PARENT_FOLDER]


@pytest.fixture
def run(
    make_store: Callable[..., GCSFileStore], capsys: pytest.CaptureFixture[str]
) -> Callable[..., tuple[int, Any]]:
    """Run the CLI against the fake server and parse its JSON output."""

    def _run(*argv: str, global_args: list[str] | None = None) -> tuple[int, Any]:
        args = (GLOBAL_ARGS if global_args is None else global_args) + list(argv)
        exit_code = main(args, store_factory=lambda config: make_store(config))
        out = capsys.readouterr().out
        return exit_code, json.loads(out) if out.strip() else None

    return _run


@pytest.fixture
def payload(tmp_path: Path) -> Path:
    path = tmp_path / "payload.txt"
    path.write_bytes(b"hello from the cli")
    return path


class TestCliCommands:
    """Test cases for successful commands."""

    def test_put_then_ls(self, run: Callable[..., tuple[int, Any]], payload: Path) -> None:
        """put uploads with metadata and ls reports it."""
        exit_code, written = run(
            "put", "docs/a.txt", "--input", str(payload), "--meta", "owner=ops", "--meta", "k=v=w"
        )

        assert exit_code == 0
        assert written["name"] == "root/docs/a.txt"
        assert written["size"] == len(b"hello from the cli")
        assert written["user_metadata"] == {"owner": "ops", "k": "v=w"}

        exit_code, listing = run("ls", "docs")

        assert exit_code == 0
        assert list(listing) == ["root/docs/a.txt"]
        assert listing["root/docs/a.txt"]["user_metadata"] == {"owner": "ops", "k": "v=w"}

    def test_cat_to_file(
        self, run: Callable[..., tuple[int, Any]], payload: Path, tmp_path: Path
    ) -> None:
        """cat --out writes the body to a file and prints metadata."""
        run("put", "a.txt", "--input", str(payload))
        out_file = tmp_path / "out.txt"

        exit_code, metadata = run("cat", "a.txt", "--out", str(out_file))

        assert exit_code == 0
        assert out_file.read_bytes() == b"hello from the cli"
        assert metadata["name"] == "root/a.txt"

    def test_cp_and_mv_and_rm(
        self, run: Callable[..., tuple[int, Any]], payload: Path, gcs_server: FakeGCSServer
    ) -> None:
        """cp, mv and rm change the bucket as expected."""
        run("put", "a.txt", "--input", str(payload))

        assert run("cp", "a.txt", "b.txt")[0] == 0
        assert run("mv", "b.txt", "c.txt")[0] == 0
        assert run("rm", "a.txt")[0] == 0

        assert set(gcs_server.bucket_objects(TEST_BUCKET)) == {"root/c.txt"}

    def test_env_config(
        self,
        run: Callable[..., tuple[int, Any]],
        payload: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Configuration falls back to BUCKETFS_* environment variables."""
        monkeypatch.setenv("BUCKETFS_BUCKET_NAME", TEST_BUCKET)
        monkeypatch.setenv("BUCKETFS_PARENT_FOLDER", "env-root")

        exit_code, written = run("put", "a.txt", "--input", str(payload), global_args=[])

        assert exit_code == 0
        assert written["name"] == "env-root/a.txt"

    def test_store_closed_after_command(
        self, run: Callable[..., tuple[int, Any]], clients: list[FakeClient]
    ) -> None:
        """The store is closed when the command finishes."""
        run("ls")

        assert len(clients) == 1
        assert clients[0].closed is True

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        """With no subcommand, help is printed and the exit code is 0."""
        assert main([]) == 0
        assert "bucketfs" in capsys.readouterr().out


class TestCliErrors:
    """Test cases for failing commands."""

    def test_missing_config_exits_2(
        self, run: Callable[..., tuple[int, Any]], clients: list[FakeClient]
    ) -> None:
        """No bucket or parent folder is a configuration error."""
        exit_code, output = run("ls", global_args=[])

        assert exit_code == 2
        assert output["error"] == "ConfigInvalidError"
        assert clients == []

    def test_rm_missing_exits_1(self, run: Callable[..., tuple[int, Any]]) -> None:
        """Deleting a missing object reports ObjectNotFoundError."""
        exit_code, output = run("rm", "missing.txt")

        assert exit_code == 1
        assert output["error"] == "ObjectNotFoundError"
        assert "root/missing.txt" in output["message"]

    def test_cp_onto_existing_exits_1(
        self, run: Callable[..., tuple[int, Any]], payload: Path
    ) -> None:
        """Copying onto an existing object reports AlreadyExistsError."""
        run("put", "a.txt", "--input", str(payload))
        run("put", "b.txt", "--input", str(payload))

        exit_code, output = run("cp", "a.txt", "b.txt")

        assert exit_code == 1
        assert output["error"] == "AlreadyExistsError"

    def test_partial_move_reported(
        self,
        run: Callable[..., tuple[int, Any]],
        payload: Path,
        gcs_server: FakeGCSServer,
    ) -> None:
        """A move whose delete half fails is reported as partial."""
        run("put", "a.txt", "--input", str(payload))
        gcs_server.inject("delete", gcs_exceptions.ServiceUnavailable("down"))

        exit_code, output = run("mv", "a.txt", "b.txt")

        assert exit_code == 1
        assert output["error"] == "DeleteFailedError"
        assert output["partial"] is True
        assert output["destination"] == "root/b.txt"
        assert output["cause"] == "StorageBackendError"

    def test_bad_meta_exits_2(
        self, run: Callable[..., tuple[int, Any]], payload: Path, gcs_server: FakeGCSServer
    ) -> None:
        """Metadata without '=' is a usage error and nothing is uploaded."""
        exit_code, output = run("put", "a.txt", "--input", str(payload), "--meta", "novalue")

        assert exit_code == 2
        assert output["error"] == "ValueError"
        assert gcs_server.ops("upload") == []

    def test_missing_input_file_exits_2(
        self, run: Callable[..., tuple[int, Any]], tmp_path: Path
    ) -> None:
        """An unreadable --input file is a usage error."""
        exit_code, output = run("put", "a.txt", "--input", str(tmp_path / "nope"))

        assert exit_code == 2
        assert output["error"] == "FileNotFoundError"
