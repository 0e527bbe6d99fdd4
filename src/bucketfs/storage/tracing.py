"""bucketfs storage OpenTelemetry tracing integration.

Provides the tracing decorator for file store operations.

Security:
    - Never export raw object paths in span attributes (they may carry
      user data); only their SHA256
    - No credentials in any span attribute
"""

from __future__ import annotations

import functools
import hashlib
import logging
from collections.abc import Callable
from typing import Any, TypeVar, cast

from opentelemetry import trace

from bucketfs.observability.tracing import is_tracing_enabled
from bucketfs.storage.models import FileMetadata, StoredFile

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _hash_path(path: str) -> str:
    return hashlib.sha256(path.encode("utf-8")).hexdigest()


def traced_storage_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace file store operations with OpenTelemetry.

    Emits spans with safe attributes (hashed paths, no secrets).

    Args:
        operation: Operation name (e.g., "write", "read", "delete").

    Returns:
        Decorated function that emits OTel spans when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return func(self, *args, **kwargs)

            tracer = trace.get_tracer("bucketfs.object_store")
            span_name = f"bucketfs.object_store.{operation}"

            with tracer.start_as_current_span(span_name) as span:
                span.set_attribute("storage.backend", getattr(self, "backend_name", "unknown"))
                span.set_attribute("bucketfs.bucket", getattr(self, "bucket_name", ""))
                path_args = [a for a in args if isinstance(a, str)]
                if path_args:
                    span.set_attribute("bucketfs.object_key_sha256", _hash_path(path_args[0]))
                if len(path_args) > 1:
                    span.set_attribute("bucketfs.dest_key_sha256", _hash_path(path_args[1]))

                try:
                    result = func(self, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

                if result is not None:
                    _add_result_attributes(span, result, operation)
                return result

        return cast(F, wrapper)

    return decorator


def _add_result_attributes(span: Any, result: Any, operation: str) -> None:
    """Add result-based attributes to span safely.

    Only adds safe attributes (md5, size, counts).
    """
    try:
        metadata: FileMetadata | None = None

        if isinstance(result, FileMetadata):
            metadata = result
        elif isinstance(result, StoredFile):
            metadata = result.metadata

        if metadata is not None:
            span.set_attribute("bucketfs.object_md5", metadata.md5_hash)
            span.set_attribute("bucketfs.object_size_bytes", metadata.size)
            span.set_attribute("bucketfs.user_metadata_count", len(metadata.user_metadata))

        if operation == "list" and isinstance(result, dict):
            span.set_attribute("bucketfs.object_count", len(result))

    except Exception as e:
        logger.debug("Failed to add result attributes to span: %s", e)
