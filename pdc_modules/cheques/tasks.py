"""
Batch tasks: PDC module (RECEIVED -> DUE day-boundary transition).
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable
from uuid import UUID

from sqlalchemy.orm import Session

from pdc_batch.domain.types import BatchItemStatus
from pdc_batch.tasks.base import BatchItemInput, BatchTaskResult
from pdc_kernel.logging_config import get_logger
from pdc_modules.cheques.config import DEFAULT_DUE_WINDOW_DAYS
from pdc_modules.cheques.models import PDCStatus
from pdc_modules.cheques.store import PDCStore

if TYPE_CHECKING:
    from pdc_modules.cheques.service import PDCService

logger = get_logger("modules.cheques.tasks")

# Recorded as updated_by_id on rows the scheduler touches.
SCHEDULER_ACTOR_ID = UUID("00000000-0000-0000-0000-000000000001")


class DueTransitionTask:
    """
    Promote RECEIVED cheques dated within the due window to DUE.

    Parameters:
        ``as_of_date`` (ISO date, optional) overrides ``as_of.date()``;
        ``due_window_days`` (int) defaults to the constructor value;
        ``actor_id`` (UUID string) defaults to ``SCHEDULER_ACTOR_ID``.

    Overdue RECEIVED cheques (dated before today) are left alone.
    """

    TASK_TYPE = "cheques.due_transition"

    def __init__(self, due_window_days: int = DEFAULT_DUE_WINDOW_DAYS):
        self._due_window_days = due_window_days

    @property
    def task_type(self) -> str:
        return self.TASK_TYPE

    @property
    def description(self) -> str:
        return "Mark RECEIVED post-dated cheques inside the due window as DUE"

    def _window(self, parameters: dict[str, Any], as_of: datetime) -> tuple[date, date]:
        raw = parameters.get("as_of_date")
        today = date.fromisoformat(raw) if raw else as_of.date()
        days = int(parameters.get("due_window_days", self._due_window_days))
        return today, today + timedelta(days=days)

    def prepare_items(
        self,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> tuple[BatchItemInput, ...]:
        from_date, to_date = self._window(parameters, as_of)
        pdc_ids = PDCStore(session).find_received_within_window(from_date, to_date)

        logger.info(
            "due_transition_candidates_found",
            extra={
                "from_date": from_date,
                "to_date": to_date,
                "candidate_count": len(pdc_ids),
            },
        )

        return tuple(
            BatchItemInput(
                item_index=i,
                item_key=str(pdc_id),
                payload={"pdc_id": str(pdc_id)},
            )
            for i, pdc_id in enumerate(pdc_ids)
        )

    def execute_item(
        self,
        item: BatchItemInput,
        parameters: dict[str, Any],
        session: Session,
        as_of: datetime,
    ) -> BatchTaskResult:
        pdc_id = UUID(item.payload["pdc_id"])
        actor_id = UUID(parameters.get("actor_id", str(SCHEDULER_ACTOR_ID)))

        applied = PDCStore(session).compare_and_set_status(
            pdc_id, PDCStatus.RECEIVED, PDCStatus.DUE, actor_id,
        )
        if not applied:
            # Withdrawn, cancelled or already promoted since prepare_items.
            return BatchTaskResult(
                status=BatchItemStatus.SKIPPED,
                error_code="STATUS_CHANGED",
                error_message=f"PDC {pdc_id} is no longer RECEIVED",
            )
        return BatchTaskResult(
            status=BatchItemStatus.SUCCEEDED,
            result_data={"pdc_id": str(pdc_id), "status": PDCStatus.DUE.value},
        )


def due_transition_job(
    service_factory: Callable[[Session], PDCService],
) -> Callable[[Session, date], int]:
    """
    Adapt ``PDCService.transition_received_to_due`` to ``DailyScheduler``.

    Usage::

        scheduler = DailyScheduler(
            session_factory=get_session,
            job=due_transition_job(lambda s: PDCService(s, tenants, invoices, config=config)),
            clock=SystemClock(config.business_tzinfo()),
            job_name=DueTransitionTask.TASK_TYPE,
        )
    """
    def run(session: Session, today: date) -> int:
        return service_factory(session).transition_received_to_due(as_of=today)

    return run
