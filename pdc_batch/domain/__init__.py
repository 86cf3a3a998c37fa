"""
pdc_batch.domain -- Pure types for batch processing.

ZERO I/O.  All types are frozen dataclasses.
"""

from pdc_batch.domain.types import (
    BatchItemResult,
    BatchItemStatus,
    BatchRunResult,
    BatchRunStatus,
)

__all__ = [
    "BatchItemResult",
    "BatchItemStatus",
    "BatchRunResult",
    "BatchRunStatus",
]
