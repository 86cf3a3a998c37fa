"""
PDC ORM Models (``pdc_modules.cheques.orm``).

Responsibility
--------------
SQLAlchemy persistence model for post-dated cheques.  Maps the frozen
``PDC`` dataclass from ``models.py`` to the ``pdc_cheques`` table.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``pdc_kernel.db.base`` and
sibling ``models.py``.

Invariants enforced
-------------------
* ``(tenant_id, cheque_number)`` is unique -- cheque numbers are scoped to a
  tenant, not global.
* ``original_pdc_id`` is unique -- a bounced cheque has at most one direct
  replacement.  Replacements of replacements form the chain.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from pdc_kernel.db.base import TrackedBase
from pdc_modules.cheques.models import PDC, PDCStatus, SettlementMethod


class PDCModel(TrackedBase):
    """
    ORM model for ``PDC`` -- a post-dated cheque collected from a tenant.

    Table: ``pdc_cheques``
    """

    __tablename__ = "pdc_cheques"

    cheque_number: Mapped[str] = mapped_column(String(50))
    bank_name: Mapped[str] = mapped_column(String(100))
    tenant_id: Mapped[UUID]
    invoice_id: Mapped[UUID | None]
    lease_id: Mapped[UUID | None]
    amount: Mapped[Decimal]
    cheque_date: Mapped[date]
    status: Mapped[str] = mapped_column(String(20), default=PDCStatus.RECEIVED.value)

    deposit_date: Mapped[date | None]
    bank_account_id: Mapped[UUID | None]
    cleared_date: Mapped[date | None]
    bounce_date: Mapped[date | None]
    bounce_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    withdrawal_date: Mapped[date | None]
    withdrawal_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    settlement_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    original_pdc_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("pdc_cheques.id"), nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "cheque_number", name="uq_pdc_cheques_tenant_cheque"),
        UniqueConstraint("original_pdc_id", name="uq_pdc_cheques_original_pdc_id"),
        CheckConstraint("amount > 0", name="ck_pdc_cheques_amount_positive"),
        Index("idx_pdc_cheques_tenant_id", "tenant_id"),
        Index("idx_pdc_cheques_status", "status"),
        Index("idx_pdc_cheques_cheque_date", "cheque_date"),
        Index("idx_pdc_cheques_deposit_date", "deposit_date"),
        Index("idx_pdc_cheques_invoice_id", "invoice_id"),
        Index("idx_pdc_cheques_lease_id", "lease_id"),
        Index("idx_pdc_cheques_bank_name", "bank_name"),
        Index("idx_pdc_cheques_status_cheque_date", "status", "cheque_date"),
    )

    def to_dto(self) -> PDC:
        return PDC(
            id=self.id,
            cheque_number=self.cheque_number,
            bank_name=self.bank_name,
            tenant_id=self.tenant_id,
            amount=self.amount,
            cheque_date=self.cheque_date,
            status=PDCStatus(self.status),
            created_by_id=self.created_by_id,
            invoice_id=self.invoice_id,
            lease_id=self.lease_id,
            deposit_date=self.deposit_date,
            bank_account_id=self.bank_account_id,
            cleared_date=self.cleared_date,
            bounce_date=self.bounce_date,
            bounce_reason=self.bounce_reason,
            withdrawal_date=self.withdrawal_date,
            withdrawal_reason=self.withdrawal_reason,
            settlement_method=(
                SettlementMethod(self.settlement_method)
                if self.settlement_method else None
            ),
            transaction_id=self.transaction_id,
            original_pdc_id=self.original_pdc_id,
            notes=self.notes,
            created_at=self.created_at,
            updated_by_id=self.updated_by_id,
        )

    @classmethod
    def from_dto(cls, dto: PDC, created_by_id: UUID) -> "PDCModel":
        return cls(
            id=dto.id,
            cheque_number=dto.cheque_number,
            bank_name=dto.bank_name,
            tenant_id=dto.tenant_id,
            invoice_id=dto.invoice_id,
            lease_id=dto.lease_id,
            amount=dto.amount,
            cheque_date=dto.cheque_date,
            status=dto.status.value,
            original_pdc_id=dto.original_pdc_id,
            notes=dto.notes,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return (
            f"<PDCModel(id={self.id!r}, cheque_number={self.cheque_number!r}, "
            f"status={self.status!r}, amount={self.amount!r})>"
        )
