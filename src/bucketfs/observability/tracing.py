"""OpenTelemetry tracing configuration for bucketfs.

Environment Variables:
    BUCKETFS_OTEL_ENABLED: Set to "1" to enable tracing (default: disabled)
    BUCKETFS_REQUIRE_OTEL: Set to "1" to fail if tracing cannot initialize
    BUCKETFS_OTEL_SERVICE_NAME: Service name for spans (default: "bucketfs")
    BUCKETFS_OTEL_EXPORTER: Exporter type - "otlp" or "console" (default: "otlp")
    BUCKETFS_OTEL_EXPORTER_OTLP_ENDPOINT: OTLP endpoint URL (optional)
    BUCKETFS_OTEL_RESOURCE_ATTRS: Comma-separated k=v pairs for resource attributes
    BUCKETFS_OTEL_TEST_CAPTURE: Set to "1" to use in-memory exporter for tests
"""

from __future__ import annotations

import logging
import os
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

logger = logging.getLogger(__name__)

_tracer_provider: TracerProvider | None = None
_is_configured: bool = False
_test_exporter: InMemorySpanExporter | None = None


class TracingConfigError(Exception):
    """Raised when tracing configuration fails and BUCKETFS_REQUIRE_OTEL=1."""

    pass


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no", ""):
        return default
    return default


def _get_env_str(key: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default).strip()


def _parse_resource_attrs(attrs_str: str) -> dict[str, str]:
    """Parse comma-separated k=v resource attributes."""
    result: dict[str, str] = {}
    if not attrs_str:
        return result
    for pair in attrs_str.split(","):
        pair = pair.strip()
        if "=" in pair:
            k, v = pair.split("=", 1)
            result[k.strip()] = v.strip()
    return result


def _create_otlp_exporter(endpoint: str | None) -> Any:
    """Create an OTLP/HTTP exporter."""
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

    kwargs: dict[str, Any] = {}
    if endpoint:
        kwargs["endpoint"] = endpoint
    return OTLPSpanExporter(**kwargs)


def is_tracing_enabled() -> bool:
    """Check if OpenTelemetry tracing is enabled."""
    return _get_env_bool("BUCKETFS_OTEL_ENABLED", False)


def configure_tracing() -> bool:
    """Configure OpenTelemetry tracing for bucketfs.

    Idempotent - safe to call multiple times.

    Returns:
        True if tracing is enabled and configured, False otherwise.

    Raises:
        TracingConfigError: If BUCKETFS_REQUIRE_OTEL=1 and configuration fails.
    """
    global _tracer_provider, _is_configured, _test_exporter

    enabled = is_tracing_enabled()
    require_otel = _get_env_bool("BUCKETFS_REQUIRE_OTEL", False)
    test_capture = _get_env_bool("BUCKETFS_OTEL_TEST_CAPTURE", False)

    if not enabled:
        _is_configured = True
        logger.debug("OpenTelemetry tracing disabled (BUCKETFS_OTEL_ENABLED not set)")
        return False

    # The global TracerProvider can only be set once per process
    if _test_exporter is not None and test_capture:
        return True

    if _is_configured and _tracer_provider is not None:
        return True

    _is_configured = True

    try:
        service_name = _get_env_str("BUCKETFS_OTEL_SERVICE_NAME", "bucketfs")
        exporter_type = _get_env_str("BUCKETFS_OTEL_EXPORTER", "otlp")
        endpoint = _get_env_str("BUCKETFS_OTEL_EXPORTER_OTLP_ENDPOINT", "")
        resource_attrs_str = _get_env_str("BUCKETFS_OTEL_RESOURCE_ATTRS", "")

        resource_attrs = {"service.name": service_name}
        resource_attrs.update(_parse_resource_attrs(resource_attrs_str))
        provider = TracerProvider(resource=Resource.create(resource_attrs))

        if test_capture:
            _test_exporter = InMemorySpanExporter()
            provider.add_span_processor(SimpleSpanProcessor(_test_exporter))
        elif exporter_type == "console":
            provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        else:
            provider.add_span_processor(BatchSpanProcessor(_create_otlp_exporter(endpoint or None)))

        trace.set_tracer_provider(provider)
        _tracer_provider = provider

        logger.info(
            "OpenTelemetry tracing configured: service=%s, exporter=%s",
            service_name,
            exporter_type if not test_capture else "in-memory",
        )
        return True

    except Exception as e:
        logger.error("Failed to configure OpenTelemetry tracing: %s", e)
        if require_otel:
            raise TracingConfigError(
                f"OpenTelemetry tracing required but configuration failed: {e}"
            ) from e
        return False


def get_test_spans() -> list[ReadableSpan]:
    """Get captured spans from in-memory exporter (for testing).

    Returns:
        List of captured spans if BUCKETFS_OTEL_TEST_CAPTURE=1, else empty list.
    """
    if _test_exporter is not None:
        return list(_test_exporter.get_finished_spans())
    return []


def clear_test_spans() -> None:
    """Clear captured spans from in-memory exporter (for testing)."""
    if _test_exporter is not None:
        _test_exporter.clear()


def reset_tracing() -> None:
    """Reset tracing configuration (for testing).

    Note: OpenTelemetry TracerProvider cannot be replaced once set.
    This clears the test exporter spans but keeps the exporter reference
    so subsequent configure_tracing() calls keep capturing.
    """
    global _is_configured

    if _test_exporter is not None:
        _test_exporter.clear()

    _is_configured = False
