"""Full object key resolution.

Every caller-supplied path is relative to the configured parent folder. The
full key is the two joined with "/" and cleaned: repeated slashes collapse,
"." segments and trailing slashes drop.
"""

from __future__ import annotations

import posixpath

from bucketfs.storage.errors import PathTraversalError


def _is_path_traversal(relative_path: str) -> bool:
    """Check if a relative path could escape the parent folder.

    Detects:
    - ".." segments
    - Null bytes
    """
    if "\x00" in relative_path:
        return True
    return any(segment == ".." for segment in relative_path.split("/"))


def _clean(path: str) -> str:
    if not path:
        return ""
    cleaned = posixpath.normpath(path)
    # normpath keeps a leading "//" as-is on POSIX
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return "" if cleaned == "." else cleaned


def resolve_key(parent_folder: str, relative_path: str) -> str:
    """Join the parent folder and a caller-relative path into a full object key.

    Args:
        parent_folder: Configured key prefix applied to all operations.
        relative_path: Caller-supplied path. May be empty, in which case the
            parent folder itself is returned.

    Returns:
        The cleaned full object key.

    Raises:
        PathTraversalError: If relative_path contains ".." segments or NUL.
    """
    if _is_path_traversal(relative_path):
        raise PathTraversalError(key=relative_path)
    parts = [p for p in (parent_folder, relative_path) if p]
    return _clean("/".join(parts))
