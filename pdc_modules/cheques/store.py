"""
pdc_modules.cheques.store
=========================

Responsibility:
    Write-side persistence for PDC records: insert, load-for-update and the
    conditional status update every lifecycle transition goes through.

Architecture:
    Module layer.  Operates on a caller-owned ``Session``; never commits.
    ``PDCService`` owns the transaction boundary.

Invariants enforced:
    - A status change is applied with ``UPDATE ... WHERE id = :id AND
      status = :expected``.  When two writers race on the same record only
      one UPDATE matches; the loser sees ``rowcount == 0``.
    - ``updated_by_id`` is stamped on every conditional update.

Failure modes:
    - Unique-constraint violations surface as ``IntegrityError`` at flush
      time; the service translates them.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from pdc_kernel.logging_config import get_logger
from pdc_modules.cheques.models import PDCStatus
from pdc_modules.cheques.orm import PDCModel

logger = get_logger("modules.cheques.store")


class PDCStore:
    """Insert, load and conditionally update ``PDCModel`` rows."""

    def __init__(self, session: Session):
        self.session = session

    def save(self, model: PDCModel) -> PDCModel:
        self.session.add(model)
        self.session.flush()
        return model

    def save_all(self, models: list[PDCModel]) -> list[PDCModel]:
        self.session.add_all(models)
        self.session.flush()
        return models

    def get(self, pdc_id: UUID, refresh: bool = False) -> PDCModel | None:
        """
        Load one record by id.

        ``refresh=True`` bypasses the identity map so the caller sees the
        committed row, e.g. after a conditional update lost a race.
        """
        if refresh:
            stmt = (
                select(PDCModel)
                .where(PDCModel.id == pdc_id)
                .execution_options(populate_existing=True)
            )
            return self.session.execute(stmt).scalar_one_or_none()
        return self.session.get(PDCModel, pdc_id)

    def exists_for_tenant(self, tenant_id: UUID, cheque_number: str) -> bool:
        stmt = select(PDCModel.id).where(
            PDCModel.tenant_id == tenant_id,
            PDCModel.cheque_number == cheque_number,
        )
        return self.session.execute(stmt.limit(1)).first() is not None

    def existing_numbers_for_tenant(
        self,
        tenant_id: UUID,
        cheque_numbers: Iterable[str],
    ) -> set[str]:
        numbers = list(cheque_numbers)
        if not numbers:
            return set()
        stmt = select(PDCModel.cheque_number).where(
            PDCModel.tenant_id == tenant_id,
            PDCModel.cheque_number.in_(numbers),
        )
        return set(self.session.execute(stmt).scalars())

    def find_received_within_window(
        self,
        from_date: date,
        to_date: date,
    ) -> list[UUID]:
        """Ids of RECEIVED cheques dated in ``[from_date, to_date]``, oldest first."""
        stmt = (
            select(PDCModel.id)
            .where(
                PDCModel.status == PDCStatus.RECEIVED.value,
                PDCModel.cheque_date >= from_date,
                PDCModel.cheque_date <= to_date,
            )
            .order_by(PDCModel.cheque_date, PDCModel.cheque_number)
        )
        return list(self.session.execute(stmt).scalars())

    def find_replacement(self, original_pdc_id: UUID) -> PDCModel | None:
        stmt = select(PDCModel).where(PDCModel.original_pdc_id == original_pdc_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def compare_and_set_status(
        self,
        pdc_id: UUID,
        expected: PDCStatus,
        new: PDCStatus,
        actor_id: UUID,
        **fields: Any,
    ) -> bool:
        """
        Move ``pdc_id`` from ``expected`` to ``new`` and write ``fields``.

        Returns True when exactly one row matched.  False means the record
        was missing or had already left ``expected``.
        """
        stmt = (
            update(PDCModel)
            .where(PDCModel.id == pdc_id, PDCModel.status == expected.value)
            .values(status=new.value, updated_by_id=actor_id, **fields)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        applied = result.rowcount == 1
        logger.debug(
            "pdc_status_compare_and_set",
            extra={
                "pdc_id": str(pdc_id),
                "from_status": expected.value,
                "to_status": new.value,
                "applied": applied,
            },
        )
        return applied
