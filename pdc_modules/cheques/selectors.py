"""
Module: pdc_modules.cheques.selectors
Responsibility: Read-only queries over PDC records -- filtered and paginated
    search, per-tenant and per-invoice listings, and the count/sum
    aggregates behind the dashboard and tenant history.
Architecture position: Modules > Cheques.  Built on
    ``pdc_kernel.selectors.BaseSelector``.  MUST NOT mutate.

Invariants enforced:
    - Read-only: no add, flush, commit or delete.
    - DTO convention: list methods return frozen ``PDC`` DTOs inside a
      ``Page``; aggregates return ``int`` / ``Decimal``.
    - Sums over an empty set are ``Decimal("0")``, never ``None``.
    - Ordering is deterministic: every sort has ``id`` as final tie-break.

Failure modes:
    - Unknown sort field or direction -> ``FieldValidationError``.
    - Absence of data never raises.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, asc, desc, func, select
from sqlalchemy.orm import Session

from pdc_kernel.exceptions import FieldValidationError
from pdc_kernel.selectors.base import BaseSelector
from pdc_modules.cheques.models import (
    PDC,
    PENDING_STATUSES,
    Page,
    PDCFilter,
    PDCStatus,
)
from pdc_modules.cheques.orm import PDCModel

SORTABLE_FIELDS = {
    "cheque_date": PDCModel.cheque_date,
    "cheque_number": PDCModel.cheque_number,
    "amount": PDCModel.amount,
    "bank_name": PDCModel.bank_name,
    "status": PDCModel.status,
    "deposit_date": PDCModel.deposit_date,
    "created_at": PDCModel.created_at,
}

ACTIVE_STATUSES: tuple[PDCStatus, ...] = (PDCStatus.DUE, PDCStatus.DEPOSITED)

_CENTS = Decimal("0.01")


def _status_values(statuses) -> list[str]:
    return [s.value for s in statuses]


def _records() -> Select:
    # Status updates are issued as bulk UPDATEs, so rows already in the
    # identity map may be stale.
    return select(PDCModel).execution_options(populate_existing=True)


class PDCSelector(BaseSelector[PDCModel]):
    """
    Selector for PDC queries.

    Contract:
        Pages are zero-based.  ``size`` must be positive; a page past the
        end returns no items but the correct ``total``.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    # -------------------------------------------------------------------------
    # Paging helper
    # -------------------------------------------------------------------------

    def _page(self, query: Select, page: int, size: int) -> Page[PDC]:
        if page < 0:
            raise FieldValidationError("page", "cannot be negative")
        if size < 1:
            raise FieldValidationError("size", "must be positive")

        total = self.session.execute(
            select(func.count()).select_from(query.order_by(None).subquery())
        ).scalar_one()

        rows = self.session.execute(
            query.offset(page * size).limit(size)
        ).scalars().all()

        return Page(
            items=tuple(row.to_dto() for row in rows),
            page=page,
            size=size,
            total=total,
        )

    # -------------------------------------------------------------------------
    # Lookups and listings
    # -------------------------------------------------------------------------

    def get(self, pdc_id: UUID) -> PDC | None:
        row = self.session.execute(
            _records().where(PDCModel.id == pdc_id)
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    def search(
        self,
        criteria: PDCFilter | None = None,
        page: int = 0,
        size: int = 20,
    ) -> Page[PDC]:
        """
        Filtered, sorted, paginated search.

        ``search`` and ``bank_name`` match case-insensitive substrings;
        ``from_date`` / ``to_date`` bound ``cheque_date`` inclusively.
        """
        criteria = criteria or PDCFilter()

        column = SORTABLE_FIELDS.get(criteria.sort_by)
        if column is None:
            raise FieldValidationError(
                "sort_by", f"must be one of {sorted(SORTABLE_FIELDS)}",
            )
        direction = criteria.sort_direction.lower()
        if direction not in ("asc", "desc"):
            raise FieldValidationError("sort_direction", "must be 'asc' or 'desc'")
        order = asc if direction == "asc" else desc

        query = _records()
        if criteria.search:
            query = query.where(
                func.lower(PDCModel.cheque_number).contains(criteria.search.lower())
            )
        if criteria.status is not None:
            query = query.where(PDCModel.status == criteria.status.value)
        if criteria.tenant_id is not None:
            query = query.where(PDCModel.tenant_id == criteria.tenant_id)
        if criteria.bank_name:
            query = query.where(
                func.lower(PDCModel.bank_name).contains(criteria.bank_name.lower())
            )
        if criteria.from_date is not None:
            query = query.where(PDCModel.cheque_date >= criteria.from_date)
        if criteria.to_date is not None:
            query = query.where(PDCModel.cheque_date <= criteria.to_date)

        query = query.order_by(order(column), order(PDCModel.id))
        return self._page(query, page, size)

    def list_by_tenant(self, tenant_id: UUID, page: int = 0, size: int = 20) -> Page[PDC]:
        query = (
            _records()
            .where(PDCModel.tenant_id == tenant_id)
            .order_by(PDCModel.cheque_date, PDCModel.id)
        )
        return self._page(query, page, size)

    def list_by_invoice(self, invoice_id: UUID) -> list[PDC]:
        rows = self.session.execute(
            _records()
            .where(PDCModel.invoice_id == invoice_id)
            .order_by(PDCModel.cheque_date, PDCModel.id)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def list_withdrawals(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
        page: int = 0,
        size: int = 20,
    ) -> Page[PDC]:
        """WITHDRAWN records, newest withdrawal first, optionally date-bounded."""
        query = _records().where(
            PDCModel.status == PDCStatus.WITHDRAWN.value,
        )
        if from_date is not None:
            query = query.where(PDCModel.withdrawal_date >= from_date)
        if to_date is not None:
            query = query.where(PDCModel.withdrawal_date <= to_date)
        query = query.order_by(desc(PDCModel.withdrawal_date), desc(PDCModel.id))
        return self._page(query, page, size)

    def distinct_bank_names(self) -> list[str]:
        return list(
            self.session.execute(
                select(PDCModel.bank_name).distinct().order_by(PDCModel.bank_name)
            ).scalars()
        )

    def cheque_number_exists(self, tenant_id: UUID, cheque_number: str) -> bool:
        return self.session.execute(
            select(PDCModel.id).where(
                PDCModel.tenant_id == tenant_id,
                PDCModel.cheque_number == cheque_number,
            ).limit(1)
        ).first() is not None

    def list_due_for_reminder(self, reminder_date: date) -> list[PDC]:
        """DUE cheques dated exactly ``reminder_date``."""
        rows = self.session.execute(
            _records()
            .where(
                PDCModel.status == PDCStatus.DUE.value,
                PDCModel.cheque_date == reminder_date,
            )
            .order_by(PDCModel.cheque_number, PDCModel.id)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def get_replacement_chain(self, pdc_id: UUID) -> list[PDC]:
        """
        The full chain ``pdc_id`` belongs to, root first.

        Walks ``original_pdc_id`` up to the root, then follows replacements
        down.  Each record has at most one direct replacement, so the chain
        is linear.  Unknown id -> empty list.
        """
        current = self.session.get(PDCModel, pdc_id, populate_existing=True)
        if current is None:
            return []

        seen = {current.id}
        while current.original_pdc_id is not None:
            parent = self.session.get(
                PDCModel, current.original_pdc_id, populate_existing=True,
            )
            if parent is None or parent.id in seen:
                break
            seen.add(parent.id)
            current = parent

        chain = [current.to_dto()]
        while True:
            child = self.session.execute(
                _records().where(PDCModel.original_pdc_id == chain[-1].id)
            ).scalar_one_or_none()
            if child is None:
                break
            chain.append(child.to_dto())
        return chain

    def count_active_for_bank_account(self, bank_account_id: UUID) -> int:
        """DUE or DEPOSITED records routed through ``bank_account_id``."""
        return self.session.execute(
            select(func.count(PDCModel.id)).where(
                PDCModel.bank_account_id == bank_account_id,
                PDCModel.status.in_(_status_values(ACTIVE_STATUSES)),
            )
        ).scalar_one()

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    def count_by_status(self, status: PDCStatus) -> int:
        return self.session.execute(
            select(func.count(PDCModel.id)).where(PDCModel.status == status.value)
        ).scalar_one()

    def _count_and_sum(self, *conditions) -> tuple[int, Decimal]:
        count, total = self.session.execute(
            select(
                func.count(PDCModel.id),
                func.coalesce(func.sum(PDCModel.amount), 0),
            ).where(*conditions)
        ).one()
        return count, Decimal(str(total)).quantize(_CENTS)

    def due_in_window(self, from_date: date, to_date: date) -> tuple[int, Decimal]:
        return self._count_and_sum(
            PDCModel.status == PDCStatus.DUE.value,
            PDCModel.cheque_date >= from_date,
            PDCModel.cheque_date <= to_date,
        )

    def deposited_in_period(self, from_date: date, to_date: date) -> tuple[int, Decimal]:
        return self._count_and_sum(
            PDCModel.status == PDCStatus.DEPOSITED.value,
            PDCModel.deposit_date >= from_date,
            PDCModel.deposit_date <= to_date,
        )

    def outstanding_value(self) -> Decimal:
        _, total = self._count_and_sum(
            PDCModel.status.in_(_status_values(PENDING_STATUSES)),
        )
        return total

    def count_bounced_since(self, since: date) -> int:
        return self.session.execute(
            select(func.count(PDCModel.id)).where(
                PDCModel.status == PDCStatus.BOUNCED.value,
                PDCModel.bounce_date >= since,
            )
        ).scalar_one()

    def upcoming_due(
        self,
        from_date: date,
        to_date: date,
        page: int = 0,
        size: int = 10,
    ) -> Page[PDC]:
        query = (
            _records()
            .where(
                PDCModel.status == PDCStatus.DUE.value,
                PDCModel.cheque_date >= from_date,
                PDCModel.cheque_date <= to_date,
            )
            .order_by(PDCModel.cheque_date, PDCModel.id)
        )
        return self._page(query, page, size)

    def recently_deposited(self, since: date, page: int = 0, size: int = 10) -> Page[PDC]:
        query = (
            _records()
            .where(
                PDCModel.status == PDCStatus.DEPOSITED.value,
                PDCModel.deposit_date >= since,
            )
            .order_by(desc(PDCModel.deposit_date), desc(PDCModel.id))
        )
        return self._page(query, page, size)

    def tenant_status_counts(self, tenant_id: UUID) -> dict[PDCStatus, int]:
        """Record count per status for one tenant; absent statuses map to 0."""
        rows = self.session.execute(
            select(PDCModel.status, func.count(PDCModel.id))
            .where(PDCModel.tenant_id == tenant_id)
            .group_by(PDCModel.status)
        ).all()
        counts = {status: 0 for status in PDCStatus}
        for status, count in rows:
            counts[PDCStatus(status)] = count
        return counts
