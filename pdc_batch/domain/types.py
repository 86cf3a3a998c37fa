"""
pdc_batch.domain.types -- Frozen dataclasses for batch runs.

ZERO I/O.  Enum status fields and tuples for immutable collections.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class BatchRunStatus(str, Enum):
    """Outcome of a whole run."""

    COMPLETED = "completed"  # Every item succeeded (or there were none)
    FAILED = "failed"  # prepare_items failed, or no item succeeded
    PARTIALLY_COMPLETED = "partially_completed"  # Some items failed or skipped


class BatchItemStatus(str, Enum):
    """Per-item outcome within a run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"  # Nothing to do, e.g. another writer got there first


@dataclass(frozen=True)
class BatchItemResult:
    """Immutable result of processing a single batch item.

    Each item runs in its own SAVEPOINT; a FAILED or SKIPPED item has had
    its SAVEPOINT rolled back.
    """

    item_index: int
    item_key: str  # Business identifier, e.g. the PDC id
    status: BatchItemStatus
    error_code: str | None = None
    error_message: str | None = None
    result_data: dict[str, Any] | None = None
    duration_ms: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None


@dataclass(frozen=True)
class BatchRunResult:
    """Summary of one executor run."""

    run_id: UUID
    task_type: str
    status: BatchRunStatus
    total_items: int
    succeeded: int
    failed: int
    skipped: int
    item_results: tuple[BatchItemResult, ...] = ()
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0
    error_summary: str | None = None
