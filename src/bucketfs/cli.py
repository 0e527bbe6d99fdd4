"""bucketfs CLI - command-line access to a bucket-backed file store.

Usage:
    bucketfs ls [PREFIX]
    bucketfs cat PATH [--out FILE]
    bucketfs put PATH [--input FILE] [--meta KEY=VALUE ...]
    bucketfs cp SRC DST
    bucketfs mv SRC DST
    bucketfs rm PATH

Global options --bucket, --parent-folder and --project override the
BUCKETFS_BUCKET_NAME, BUCKETFS_PARENT_FOLDER and BUCKETFS_PROJECT
environment variables.

Exit codes:
    0: Success
    1: Storage operation failed
    2: Invalid usage or configuration
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable
from typing import Any

from bucketfs.observability.tracing import configure_tracing
from bucketfs.storage.config import StoreConfig
from bucketfs.storage.errors import (
    ConfigInvalidError,
    ConnectionFailedError,
    DeleteFailedError,
    ObjectStorageError,
)
from bucketfs.storage.gcs_store import GCSFileStore
from bucketfs.storage.object_store import FileStore

logger = logging.getLogger(__name__)

StoreFactory = Callable[[StoreConfig], FileStore]


def _output_json(data: Any) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def _error_result(error: ObjectStorageError) -> dict[str, Any]:
    result: dict[str, Any] = {
        "error": type(error).__name__,
        "message": str(error),
    }
    cause = getattr(error, "cause", None)
    if cause is not None:
        result["cause"] = type(cause).__name__
    if isinstance(error, DeleteFailedError):
        result["partial"] = True
        result["destination"] = error.destination
    return result


def _parse_meta(pairs: list[str] | None) -> dict[str, str]:
    """Parse KEY=VALUE pairs into a metadata mapping."""
    result: dict[str, str] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Invalid metadata {pair!r}: expected KEY=VALUE")
        k, v = pair.split("=", 1)
        result[k.strip()] = v
    return result


def _read_input(input_path: str | None) -> bytes:
    if input_path:
        with open(input_path, "rb") as f:
            return f.read()
    return sys.stdin.buffer.read()


def cmd_ls(store: FileStore, args: argparse.Namespace) -> int:
    listing = store.list(args.prefix)
    _output_json({name: meta.to_dict() for name, meta in listing.items()})
    return 0


def cmd_cat(store: FileStore, args: argparse.Namespace) -> int:
    body, metadata = store.read(args.path)
    if args.out:
        with open(args.out, "wb") as f:
            f.write(body)
        _output_json(metadata.to_dict())
    else:
        sys.stdout.buffer.write(body)
        sys.stdout.flush()
    return 0


def cmd_put(store: FileStore, args: argparse.Namespace) -> int:
    try:
        user_metadata = _parse_meta(args.meta)
        data = _read_input(args.input)
    except (ValueError, OSError) as e:
        _output_json({"error": type(e).__name__, "message": str(e)})
        return 2
    metadata = store.write(data, args.path, user_metadata)
    _output_json(metadata.to_dict())
    return 0


def cmd_cp(store: FileStore, args: argparse.Namespace) -> int:
    store.copy(args.src, args.dst)
    _output_json({"copied": {"src": args.src, "dst": args.dst}})
    return 0


def cmd_mv(store: FileStore, args: argparse.Namespace) -> int:
    store.move(args.src, args.dst)
    _output_json({"moved": {"src": args.src, "dst": args.dst}})
    return 0


def cmd_rm(store: FileStore, args: argparse.Namespace) -> int:
    store.delete(args.path)
    _output_json({"deleted": args.path})
    return 0


COMMAND_DISPATCH: dict[str, Callable[[FileStore, argparse.Namespace], int]] = {
    "ls": cmd_ls,
    "cat": cmd_cat,
    "put": cmd_put,
    "cp": cmd_cp,
    "mv": cmd_mv,
    "rm": cmd_rm,
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bucketfs",
        description="bucketfs - filesystem-style access to an object storage bucket",
    )
    parser.add_argument("--bucket", default=None, help="Bucket name (env: BUCKETFS_BUCKET_NAME)")
    parser.add_argument(
        "--parent-folder",
        default=None,
        help="Key prefix for all paths (env: BUCKETFS_PARENT_FOLDER)",
    )
    parser.add_argument("--project", default=None, help="Google Cloud project (env: BUCKETFS_PROJECT)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    ls_parser = subparsers.add_parser("ls", help="List objects under a prefix")
    ls_parser.add_argument("prefix", nargs="?", default="", help="Prefix relative to the parent folder")

    cat_parser = subparsers.add_parser("cat", help="Read an object")
    cat_parser.add_argument("path", help="Object path")
    cat_parser.add_argument(
        "--out",
        metavar="FILE",
        help="Write the body to FILE and print metadata instead of the body",
    )

    put_parser = subparsers.add_parser("put", help="Write an object")
    put_parser.add_argument("path", help="Object path")
    put_parser.add_argument(
        "--input",
        metavar="FILE",
        help="File to upload (reads from stdin if omitted)",
    )
    put_parser.add_argument(
        "--meta",
        action="append",
        metavar="KEY=VALUE",
        help="User metadata entry (repeatable)",
    )

    for name, help_text in [
        ("cp", "Copy an object to a new path"),
        ("mv", "Move an object to a new path"),
    ]:
        pair_parser = subparsers.add_parser(name, help=help_text)
        pair_parser.add_argument("src", help="Source path")
        pair_parser.add_argument("dst", help="Destination path")

    rm_parser = subparsers.add_parser("rm", help="Delete an object")
    rm_parser.add_argument("path", help="Object path")

    return parser


def main(argv: list[str] | None = None, *, store_factory: StoreFactory | None = None) -> int:
    """Main entry point.

    Exit codes:
        0: Success
        1: Storage operation failed
        2: Invalid usage or configuration
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    configure_tracing()

    config = StoreConfig.from_env().with_overrides(
        bucket_name=args.bucket,
        parent_folder=args.parent_folder,
        project=args.project,
    )
    factory: StoreFactory = store_factory or GCSFileStore

    try:
        store = factory(config)
    except ConfigInvalidError as e:
        _output_json(_error_result(e))
        return 2
    except ConnectionFailedError as e:
        _output_json(_error_result(e))
        return 1

    try:
        return COMMAND_DISPATCH[args.command](store, args)
    except ObjectStorageError as e:
        logger.debug("Command %s failed: %s", args.command, e)
        _output_json(_error_result(e))
        return 1
    finally:
        store.close()
