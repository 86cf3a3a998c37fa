"""
pdc_modules.cheques.collaborators
=================================

Responsibility:
    Narrow contracts for the master data and ledgers the PDC subsystem
    consumes but does not own: tenants, invoices, bank accounts and the
    company profile.  Implementations live outside this package (the
    property-management backend) and are injected into ``PDCService`` and
    ``PDCReportingService``.

Architecture:
    Module layer.  ``typing.Protocol`` definitions plus the small frozen
    DTOs exchanged across them.  No I/O here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Protocol, runtime_checkable
from uuid import UUID


class PaymentMethod(Enum):
    """Payment methods this subsystem reports to the invoice ledger."""
    CHEQUE_CLEARANCE = "cheque_clearance"


@dataclass(frozen=True)
class TenantRef:
    """The slice of a tenant record the PDC subsystem reads."""
    id: UUID
    first_name: str | None = None
    last_name: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


@dataclass(frozen=True)
class InvoiceRef:
    id: UUID
    invoice_number: str


@dataclass(frozen=True)
class BankAccountRef:
    id: UUID
    name: str


@dataclass(frozen=True)
class CompanyProfile:
    legal_company_name: str


@dataclass(frozen=True)
class InvoicePayment:
    """Payment recorded on an invoice when a linked PDC clears."""
    amount: Decimal
    method: PaymentMethod
    payment_date: date
    reference: str
    notes: str


@runtime_checkable
class TenantDirectory(Protocol):
    def find_by_id(self, tenant_id: UUID) -> TenantRef | None: ...


@runtime_checkable
class InvoiceLedger(Protocol):
    def find_by_id(self, invoice_id: UUID) -> InvoiceRef | None: ...

    def record_payment(
        self,
        invoice_id: UUID,
        payment: InvoicePayment,
        actor_id: UUID,
    ) -> None:
        """Record ``payment`` against the invoice.  Raises on failure."""
        ...


@runtime_checkable
class BankAccountDirectory(Protocol):
    def find_by_id(self, bank_account_id: UUID) -> BankAccountRef | None: ...


@runtime_checkable
class CompanyProfileProvider(Protocol):
    def get(self) -> CompanyProfile | None: ...
