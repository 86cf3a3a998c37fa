"""
Pytest fixtures for the PDC ledger test suite.

Provides:
- Structured-logging setup and the ``captured_logs`` fixture
- In-memory SQLite engine and session with every ORM table created
- A ``DeterministicClock`` pinned to a known business day
- In-memory fakes for the tenant, invoice, bank-account and company
  profile collaborators
- Builders for services and for records in a given status

SQLite stands in for PostgreSQL; the schema, constraints and compare-and-set
updates behave the same for what these tests exercise.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import UUID

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pdc_kernel.db.base import Base
from pdc_kernel.domain.clock import DeterministicClock
from pdc_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from pdc_modules._orm_registry import import_all_orm_models
from pdc_modules.cheques.collaborators import (
    BankAccountRef,
    CompanyProfile,
    InvoicePayment,
    InvoiceRef,
    TenantRef,
)
from pdc_modules.cheques.config import PDCConfig
from pdc_modules.cheques.models import PDC, PDCCreateRequest, PDCStatus, SettlementMethod
from pdc_modules.cheques.reporting import PDCReportingService
from pdc_modules.cheques.service import PDCService
from pdc_modules.cheques.store import PDCStore

import_all_orm_models()

# ---------------------------------------------------------------------------
# Deterministic IDs
# ---------------------------------------------------------------------------

TEST_ACTOR_ID = UUID("00000000-0000-4000-a000-000000000100")
TEST_TENANT_ID = UUID("00000000-0000-4000-a000-000000000001")
OTHER_TENANT_ID = UUID("00000000-0000-4000-a000-000000000002")
UNKNOWN_TENANT_ID = UUID("00000000-0000-4000-a000-0000000000ff")
TEST_INVOICE_ID = UUID("00000000-0000-4000-a000-000000000020")
TEST_LEASE_ID = UUID("00000000-0000-4000-a000-000000000030")
TEST_BANK_ACCOUNT_ID = UUID("00000000-0000-4000-a000-000000000010")

# A Monday in the middle of a month.
TODAY = date(2026, 3, 16)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture pdc_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.cancel_pdc(pdc_id, actor_id)
            logs = captured_logs()
            assert any(r["message"] == "pdc_transitioned" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("pdc_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Collaborator fakes
# =============================================================================


class FakeTenantDirectory:
    def __init__(self, tenants: list[TenantRef] | None = None):
        self._tenants = {t.id: t for t in tenants or []}

    def add(self, tenant: TenantRef) -> None:
        self._tenants[tenant.id] = tenant

    def find_by_id(self, tenant_id: UUID) -> TenantRef | None:
        return self._tenants.get(tenant_id)


@dataclass
class FakeInvoiceLedger:
    invoices: dict[UUID, InvoiceRef] = field(default_factory=dict)
    payments: list[tuple[UUID, InvoicePayment, UUID]] = field(default_factory=list)
    fail_with: Exception | None = None

    def find_by_id(self, invoice_id: UUID) -> InvoiceRef | None:
        return self.invoices.get(invoice_id)

    def record_payment(self, invoice_id: UUID, payment: InvoicePayment, actor_id: UUID) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.payments.append((invoice_id, payment, actor_id))


class FakeBankAccountDirectory:
    def __init__(self, accounts: list[BankAccountRef] | None = None):
        self._accounts = {a.id: a for a in accounts or []}

    def find_by_id(self, bank_account_id: UUID) -> BankAccountRef | None:
        return self._accounts.get(bank_account_id)


class FakeCompanyProfileProvider:
    def __init__(self, profile: CompanyProfile | None = None, error: Exception | None = None):
        self._profile = profile
        self._error = error

    def get(self) -> CompanyProfile | None:
        if self._error is not None:
            raise self._error
        return self._profile


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory) -> Session:
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock.on(TODAY)


@pytest.fixture
def config() -> PDCConfig:
    return PDCConfig.with_defaults()


@pytest.fixture
def tenant_directory() -> FakeTenantDirectory:
    return FakeTenantDirectory([
        TenantRef(id=TEST_TENANT_ID, first_name="Layla", last_name="Haddad"),
        TenantRef(id=OTHER_TENANT_ID, first_name="Omar", last_name="Saleh"),
    ])


@pytest.fixture
def invoice_ledger() -> FakeInvoiceLedger:
    return FakeInvoiceLedger(
        invoices={TEST_INVOICE_ID: InvoiceRef(id=TEST_INVOICE_ID, invoice_number="INV-2026-0042")},
    )


@pytest.fixture
def bank_accounts() -> FakeBankAccountDirectory:
    return FakeBankAccountDirectory([
        BankAccountRef(id=TEST_BANK_ACCOUNT_ID, name="Operating Account"),
    ])


@pytest.fixture
def service(session, tenant_directory, invoice_ledger, clock, config, bank_accounts) -> PDCService:
    return PDCService(
        session,
        tenant_directory,
        invoice_ledger,
        clock=clock,
        config=config,
        bank_account_directory=bank_accounts,
    )


@pytest.fixture
def reporting(session, tenant_directory, clock, config) -> PDCReportingService:
    return PDCReportingService(
        session,
        tenant_directory,
        company_profile_provider=FakeCompanyProfileProvider(
            CompanyProfile(legal_company_name="Palm Residences LLC"),
        ),
        clock=clock,
        config=config,
    )


# =============================================================================
# Record builders
# =============================================================================


def create_request(
    cheque_number: str = "CHQ-001",
    amount: str = "12500.00",
    cheque_date: date = TODAY,
    tenant_id: UUID = TEST_TENANT_ID,
    **kwargs,
) -> PDCCreateRequest:
    return PDCCreateRequest(
        tenant_id=tenant_id,
        cheque_number=cheque_number,
        bank_name=kwargs.pop("bank_name", "Emirates NBD"),
        amount=Decimal(amount),
        cheque_date=cheque_date,
        **kwargs,
    )


@pytest.fixture
def make_pdc(service, session):
    """
    Create a record and walk it to ``status``.

    Usage::

        pdc = make_pdc("deposited", cheque_number="CHQ-777")
    """
    def _make(status: str = "received", **kwargs) -> PDC:
        pdc = service.create_pdc(create_request(**kwargs), TEST_ACTOR_ID)
        if status == "received":
            return pdc
        if status == "cancelled":
            return service.cancel_pdc(pdc.id, TEST_ACTOR_ID)
        if status == "withdrawn":
            return service.withdraw_pdc(
                pdc.id, TODAY, "Paid by transfer", SettlementMethod.BANK_TRANSFER,
                TEST_ACTOR_ID,
            )
        PDCStore(session).compare_and_set_status(
            pdc.id, PDCStatus.RECEIVED, PDCStatus.DUE, TEST_ACTOR_ID,
        )
        session.commit()
        if status == "due":
            return service.get_pdc(pdc.id)
        pdc = service.deposit_pdc(pdc.id, pdc.cheque_date, TEST_BANK_ACCOUNT_ID, TEST_ACTOR_ID)
        if status == "deposited":
            return pdc
        if status == "cleared":
            return service.clear_pdc(pdc.id, pdc.deposit_date, TEST_ACTOR_ID)
        if status == "bounced":
            return service.bounce_pdc(
                pdc.id, pdc.deposit_date, "Insufficient funds", TEST_ACTOR_ID,
            )
        raise ValueError(f"unsupported status {status}")

    return _make
