"""bucketfs observability module.

Provides OpenTelemetry tracing configuration for storage operations.
"""

from bucketfs.observability.tracing import configure_tracing, is_tracing_enabled

__all__ = ["configure_tracing", "is_tracing_enabled"]
