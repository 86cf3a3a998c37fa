"""
BatchExecutor -- SAVEPOINT-per-item batch execution.

Contract:
    ``run()`` resolves a task, asks it for items, and executes each item in
    its own SAVEPOINT.  Returns a ``BatchRunResult`` summary.

Architecture: pdc_batch/services.  Imports from pdc_batch.domain,
    pdc_batch.tasks and pdc_kernel (clock, logging).

Invariants enforced:
    - SAVEPOINT isolation per item: one failure doesn't abort the run.
    - All timestamps from the injected Clock.
    - Unhandled item exceptions are logged with traceback and recorded as
      FAILED; they never propagate out of ``run()``.
"""

from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Session

from pdc_kernel.domain.clock import Clock, SystemClock
from pdc_kernel.logging_config import LogContext, get_logger

from pdc_batch.domain.types import (
    BatchItemResult,
    BatchItemStatus,
    BatchRunResult,
    BatchRunStatus,
)
from pdc_batch.tasks.base import BatchItemInput, BatchTask, TaskRegistry

logger = get_logger("batch.executor")


class BatchExecutor:
    """Batch execution engine with SAVEPOINT-per-item isolation.

    Non-goals:
        - Does NOT call ``session.commit()``; the caller controls the
          outer transaction.
        - Does NOT persist run history; results are returned and logged.
    """

    def __init__(
        self,
        session: Session,
        task_registry: TaskRegistry,
        clock: Clock | None = None,
    ):
        self._session = session
        self._task_registry = task_registry
        self._clock = clock or SystemClock()

    def run(
        self,
        task_type: str,
        parameters: dict[str, Any] | None = None,
    ) -> BatchRunResult:
        """Execute every item of ``task_type``.

        Raises:
            KeyError: If task_type is not registered.
        """
        task = self._task_registry.get(task_type)
        parameters = parameters or {}
        run_id = uuid4()
        start_time = time.monotonic()
        as_of = self._clock.now()

        with LogContext.bind(job_id=str(run_id)):
            logger.info(
                "batch_run_started",
                extra={"task_type": task_type, "as_of": as_of},
            )

            try:
                items = task.prepare_items(
                    parameters=parameters,
                    session=self._session,
                    as_of=as_of,
                )
            except Exception as exc:
                logger.exception(
                    "batch_prepare_items_failed", extra={"task_type": task_type},
                )
                return BatchRunResult(
                    run_id=run_id,
                    task_type=task_type,
                    status=BatchRunStatus.FAILED,
                    total_items=0,
                    succeeded=0,
                    failed=0,
                    skipped=0,
                    started_at=as_of,
                    completed_at=self._clock.now(),
                    duration_ms=int((time.monotonic() - start_time) * 1000),
                    error_summary=f"prepare_items failed: {exc}",
                )

            item_results = [
                self._execute_item(task, item, parameters, as_of) for item in items
            ]

            succeeded = sum(
                1 for r in item_results if r.status == BatchItemStatus.SUCCEEDED
            )
            failed = sum(1 for r in item_results if r.status == BatchItemStatus.FAILED)
            skipped = sum(1 for r in item_results if r.status == BatchItemStatus.SKIPPED)

            if failed == 0 and skipped == 0:
                status = BatchRunStatus.COMPLETED
            elif succeeded == 0 and skipped == 0:
                status = BatchRunStatus.FAILED
            else:
                status = BatchRunStatus.PARTIALLY_COMPLETED

            result = BatchRunResult(
                run_id=run_id,
                task_type=task_type,
                status=status,
                total_items=len(items),
                succeeded=succeeded,
                failed=failed,
                skipped=skipped,
                item_results=tuple(item_results),
                started_at=as_of,
                completed_at=self._clock.now(),
                duration_ms=int((time.monotonic() - start_time) * 1000),
                error_summary=f"{failed} item(s) failed" if failed else None,
            )

            logger.info(
                "batch_run_completed",
                extra={
                    "task_type": task_type,
                    "status": status.value,
                    "total_items": result.total_items,
                    "succeeded": succeeded,
                    "failed": failed,
                    "skipped": skipped,
                    "duration_ms": result.duration_ms,
                },
            )
            return result

    def _execute_item(
        self,
        task: BatchTask,
        item: BatchItemInput,
        parameters: dict[str, Any],
        as_of,
    ) -> BatchItemResult:
        item_start = time.monotonic()
        started_at = self._clock.now()

        savepoint = self._session.begin_nested()
        try:
            outcome = task.execute_item(
                item=item,
                parameters=parameters,
                session=self._session,
                as_of=as_of,
            )
        except Exception as exc:
            savepoint.rollback()
            logger.exception(
                "batch_item_failed",
                extra={"task_type": task.task_type, "item_key": item.item_key},
            )
            return BatchItemResult(
                item_index=item.item_index,
                item_key=item.item_key,
                status=BatchItemStatus.FAILED,
                error_code=getattr(exc, "code", "UNHANDLED_EXCEPTION"),
                error_message=str(exc),
                duration_ms=int((time.monotonic() - item_start) * 1000),
                started_at=started_at,
                completed_at=self._clock.now(),
            )

        if outcome.status == BatchItemStatus.SUCCEEDED:
            savepoint.commit()
        else:
            savepoint.rollback()
            if outcome.status == BatchItemStatus.FAILED:
                logger.warning(
                    "batch_item_failed",
                    extra={
                        "task_type": task.task_type,
                        "item_key": item.item_key,
                        "error_code": outcome.error_code,
                        "error_message": outcome.error_message,
                    },
                )

        return BatchItemResult(
            item_index=item.item_index,
            item_key=item.item_key,
            status=outcome.status,
            error_code=outcome.error_code,
            error_message=outcome.error_message,
            result_data=outcome.result_data,
            duration_ms=int((time.monotonic() - item_start) * 1000),
            started_at=started_at,
            completed_at=self._clock.now(),
        )
