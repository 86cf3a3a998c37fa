"""
Concurrency tests: compare-and-set status updates.

Two sessions on a shared file-backed SQLite database stand in for two
application workers.  Each reads the record, then the other commits a
transition first; the conditional UPDATE of the late writer must match no
row.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pdc_kernel.db.base import Base
from pdc_kernel.domain.clock import DeterministicClock
from pdc_kernel.exceptions import InvalidTransitionError
from pdc_modules.cheques.collaborators import TenantRef
from pdc_modules.cheques.models import PDCStatus
from pdc_modules.cheques.orm import PDCModel
from pdc_modules.cheques.service import PDCService
from pdc_modules.cheques.store import PDCStore
from tests.conftest import (
    TEST_ACTOR_ID,
    TEST_BANK_ACCOUNT_ID,
    TEST_TENANT_ID,
    TODAY,
    FakeInvoiceLedger,
    FakeTenantDirectory,
)


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'pdc.db'}")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def due_pdc_id(file_sessions):
    pdc_id = uuid4()
    with file_sessions() as s:
        s.add(PDCModel(
            id=pdc_id,
            cheque_number="CHQ-RACE",
            bank_name="RAKBANK",
            tenant_id=TEST_TENANT_ID,
            amount=Decimal("3000.00"),
            cheque_date=TODAY,
            status=PDCStatus.DUE.value,
            created_by_id=TEST_ACTOR_ID,
        ))
        s.commit()
    return pdc_id


def _service(session) -> PDCService:
    tenants = FakeTenantDirectory([TenantRef(id=TEST_TENANT_ID)])
    return PDCService(
        session, tenants, FakeInvoiceLedger(), clock=DeterministicClock.on(TODAY),
    )


class TestCompareAndSet:

    def test_exactly_one_writer_wins(self, file_sessions, due_pdc_id):
        first, second = file_sessions(), file_sessions()
        try:
            # Both workers observe DUE.
            assert first.get(PDCModel, due_pdc_id).status == "due"
            assert second.get(PDCModel, due_pdc_id).status == "due"
            first.commit()
            second.commit()

            won = PDCStore(first).compare_and_set_status(
                due_pdc_id, PDCStatus.DUE, PDCStatus.DEPOSITED, TEST_ACTOR_ID,
                deposit_date=TODAY,
            )
            first.commit()

            lost = PDCStore(second).compare_and_set_status(
                due_pdc_id, PDCStatus.DUE, PDCStatus.WITHDRAWN, TEST_ACTOR_ID,
                withdrawal_date=TODAY,
            )
            second.commit()

            assert (won, lost) == (True, False)
            final = PDCStore(second).get(due_pdc_id, refresh=True)
            assert final.status == "deposited"
            assert final.withdrawal_date is None
        finally:
            first.close()
            second.close()

    def test_service_loser_sees_current_status(self, file_sessions, due_pdc_id, monkeypatch):
        winner_session, loser_session = file_sessions(), file_sessions()
        try:
            loser = _service(loser_session)
            stale = PDCStore(loser_session).get(due_pdc_id)
            loser_session.commit()

            _service(winner_session).deposit_pdc(
                due_pdc_id, date(2026, 3, 16), TEST_BANK_ACCOUNT_ID, TEST_ACTOR_ID,
            )

            # The loser still holds the DUE snapshot it read before the winner committed.
            real_get = PDCStore.get
            calls = {"n": 0}

            def stale_first_read(self, pdc_id, refresh=False):
                calls["n"] += 1
                if calls["n"] == 1:
                    return stale
                return real_get(self, pdc_id, refresh=refresh)

            monkeypatch.setattr(PDCStore, "get", stale_first_read)

            with pytest.raises(InvalidTransitionError) as exc_info:
                loser.deposit_pdc(
                    due_pdc_id, date(2026, 3, 17), TEST_BANK_ACCOUNT_ID, TEST_ACTOR_ID,
                )
            assert str(exc_info.value) == "PDC cannot be deposited in current status: DEPOSITED"

            monkeypatch.undo()
            final = PDCStore(loser_session).get(due_pdc_id, refresh=True)
            assert final.deposit_date == date(2026, 3, 16)
        finally:
            winner_session.close()
            loser_session.close()
