"""Fixed per-operation time budgets.

Each operation gets its own deadline when it starts; every store call it
issues receives whatever is left of that budget as its HTTP timeout, so a
multi-call operation cannot exceed its budget in total.
"""

from __future__ import annotations

import time

from bucketfs.storage.errors import StorageTimeoutError

# Metadata-only operations: delete, copy, list, metadata patch.
METADATA_TIMEOUT_SECONDS = 10.0
# Data-transfer operations: write, read.
TRANSFER_TIMEOUT_SECONDS = 50.0


class OperationDeadline:
    """A monotonic-clock deadline for one store operation."""

    def __init__(self, seconds: float, *, operation: str, bucket: str, key: str) -> None:
        self._seconds = seconds
        self._expires_at = time.monotonic() + seconds
        self.operation = operation
        self.bucket = bucket
        self.key = key

    @property
    def budget(self) -> float:
        return self._seconds

    def remaining(self) -> float:
        """Seconds left in the budget.

        Raises:
            StorageTimeoutError: If the budget is exhausted.
        """
        left = self._expires_at - time.monotonic()
        if left <= 0:
            raise StorageTimeoutError(
                f"{self.operation} exceeded its {self._seconds:g}s time budget",
                bucket=self.bucket,
                key=self.key,
            )
        return left
