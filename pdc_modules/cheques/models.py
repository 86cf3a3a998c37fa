"""
pdc_modules.cheques.models
==========================

Responsibility:
    Frozen dataclass value objects representing the vocabulary of post-dated
    cheque management -- the PDC record itself, request payloads for the
    create/bulk/replace operations, search filters, pages, and the derived
    dashboard and tenant-history aggregates.  No business logic; structure
    only.

Architecture:
    Module layer (pdc_modules).  These are in-memory DTOs, NOT SQLAlchemy
    ORM models (see ``orm.py``).  Services return them so callers can never
    mutate a record's status outside the lifecycle engine.

Invariants enforced:
    - All monetary fields use ``Decimal`` -- never ``float``.
    - All DTOs are frozen (immutable after construction).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Generic, TypeVar
from uuid import UUID

T = TypeVar("T")


class PDCStatus(Enum):
    """PDC lifecycle states.  See ``workflows.PDC_WORKFLOW``."""
    RECEIVED = "received"
    DUE = "due"
    DEPOSITED = "deposited"
    CLEARED = "cleared"
    BOUNCED = "bounced"
    CANCELLED = "cancelled"
    WITHDRAWN = "withdrawn"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


PENDING_STATUSES: tuple[PDCStatus, ...] = (
    PDCStatus.RECEIVED,
    PDCStatus.DUE,
    PDCStatus.DEPOSITED,
)


class PDCAction(Enum):
    """Operations that move a PDC between states."""
    MARK_DUE = "mark_due"
    DEPOSIT = "deposit"
    CLEAR = "clear"
    BOUNCE = "bounce"
    REPLACE = "replace"
    WITHDRAW = "withdraw"
    CANCEL = "cancel"


class SettlementMethod(Enum):
    """Alternate payment the tenant used when a PDC was withdrawn."""
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    NEW_CHEQUE = "new_cheque"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


@dataclass(frozen=True)
class PDC:
    """
    A post-dated cheque collected from a tenant.

    Contract:
        Immutable snapshot of one stored record.  ``status`` only changes
        through ``PDCService`` transitions, which return a fresh snapshot.

    Guarantees:
        - ``amount`` is ``Decimal`` and positive.
        - ``original_pdc_id`` is set only on replacement records.
    """
    id: UUID
    cheque_number: str
    bank_name: str
    tenant_id: UUID
    amount: Decimal
    cheque_date: date
    status: PDCStatus
    created_by_id: UUID
    invoice_id: UUID | None = None
    lease_id: UUID | None = None
    deposit_date: date | None = None
    bank_account_id: UUID | None = None
    cleared_date: date | None = None
    bounce_date: date | None = None
    bounce_reason: str | None = None
    withdrawal_date: date | None = None
    withdrawal_reason: str | None = None
    settlement_method: SettlementMethod | None = None
    transaction_id: str | None = None
    original_pdc_id: UUID | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_by_id: UUID | None = None

    @property
    def is_replacement(self) -> bool:
        return self.original_pdc_id is not None


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class PDCCreateRequest:
    """Payload for registering a single PDC."""
    tenant_id: UUID
    cheque_number: str
    bank_name: str
    amount: Decimal
    cheque_date: date
    invoice_id: UUID | None = None
    lease_id: UUID | None = None
    notes: str | None = None


@dataclass(frozen=True)
class PDCBulkEntry:
    """One cheque inside a bulk submission."""
    cheque_number: str
    bank_name: str
    amount: Decimal
    cheque_date: date
    invoice_id: UUID | None = None
    notes: str | None = None


@dataclass(frozen=True)
class PDCBulkCreateRequest:
    """A batch of cheques from one tenant, typically covering a lease term."""
    tenant_id: UUID
    entries: tuple[PDCBulkEntry, ...]
    lease_id: UUID | None = None


@dataclass(frozen=True)
class PDCReplaceRequest:
    """The new cheque handed over in place of a bounced one."""
    new_cheque_number: str
    bank_name: str
    amount: Decimal
    cheque_date: date
    notes: str | None = None


@dataclass(frozen=True)
class PDCFilter:
    """
    Search criteria.  Every field is optional; ``None`` means "any".

    ``search`` matches the cheque number as a case-insensitive substring;
    ``bank_name`` likewise.  The date range applies to ``cheque_date``.
    """
    search: str | None = None
    status: PDCStatus | None = None
    tenant_id: UUID | None = None
    bank_name: str | None = None
    from_date: date | None = None
    to_date: date | None = None
    sort_by: str = "cheque_date"
    sort_direction: str = "asc"


@dataclass(frozen=True)
class Page(Generic[T]):
    """A zero-based page of results plus the unpaged total."""
    items: tuple[T, ...]
    page: int
    size: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total + self.size - 1) // self.size


# -----------------------------------------------------------------------------
# Reporting
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class DashboardSummary:
    """KPI block of the PDC dashboard.  Zero-valued on a quiet period."""
    total_received: int = 0
    due_this_week_count: int = 0
    due_this_week_value: Decimal = Decimal("0")
    deposited_this_month_count: int = 0
    deposited_this_month_value: Decimal = Decimal("0")
    total_outstanding_value: Decimal = Decimal("0")
    bounced_recent_count: int = 0
    cleared_count: int = 0
    bounced_count: int = 0
    bounce_rate_percent: Decimal = Decimal("0.0")
    formatted_due_this_week_value: str = ""
    formatted_deposited_this_month_value: str = ""
    formatted_outstanding_value: str = ""


@dataclass(frozen=True)
class PDCDashboard:
    """Dashboard summary plus the two short lists and the holder name."""
    summary: DashboardSummary
    upcoming_this_week: Page[PDC]
    recently_deposited: Page[PDC]
    holder_name: str


@dataclass(frozen=True)
class TenantPDCHistory:
    """Derived statistics over one tenant's cheques."""
    tenant_id: UUID
    tenant_name: str
    total: int
    cleared: int
    bounced: int
    pending: int
    bounce_rate_percent: Decimal
    pdcs: Page[PDC] = field(
        default_factory=lambda: Page(items=(), page=0, size=0, total=0),
    )
