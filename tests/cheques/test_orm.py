"""
Tests for PDCModel (pdc_modules/cheques/orm.py).

Checks the DTO round trip and the table constraints that back the service
checks: per-tenant cheque number uniqueness, one replacement per original,
positive amounts.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from pdc_modules.cheques.models import PDC, PDCStatus
from pdc_modules.cheques.orm import PDCModel
from tests.conftest import OTHER_TENANT_ID, TEST_ACTOR_ID, TEST_TENANT_ID


def _model(cheque_number="CHQ-001", tenant_id=TEST_TENANT_ID, amount="500.00", **kw):
    return PDCModel(
        id=uuid4(),
        cheque_number=cheque_number,
        bank_name="Mashreq",
        tenant_id=tenant_id,
        amount=Decimal(amount),
        cheque_date=date(2026, 4, 1),
        status=PDCStatus.RECEIVED.value,
        created_by_id=TEST_ACTOR_ID,
        **kw,
    )


class TestRoundTrip:

    def test_from_dto_to_dto(self, session):
        dto = PDC(
            id=uuid4(),
            cheque_number="CHQ-100",
            bank_name="ADCB",
            tenant_id=TEST_TENANT_ID,
            amount=Decimal("7250.50"),
            cheque_date=date(2026, 5, 1),
            status=PDCStatus.RECEIVED,
            created_by_id=TEST_ACTOR_ID,
            notes="May rent",
        )
        session.add(PDCModel.from_dto(dto, created_by_id=TEST_ACTOR_ID))
        session.commit()

        loaded = session.get(PDCModel, dto.id).to_dto()
        assert loaded.cheque_number == "CHQ-100"
        assert loaded.amount == Decimal("7250.50")
        assert loaded.status is PDCStatus.RECEIVED
        assert loaded.notes == "May rent"
        assert loaded.created_at is not None
        assert not loaded.is_replacement


class TestConstraints:

    def test_cheque_number_unique_per_tenant(self, session):
        session.add(_model())
        session.commit()
        session.add(_model())
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_same_number_for_other_tenant_allowed(self, session):
        session.add_all([_model(), _model(tenant_id=OTHER_TENANT_ID)])
        session.commit()
        assert session.query(PDCModel).count() == 2

    def test_one_replacement_per_original(self, session):
        original = _model()
        session.add(original)
        session.commit()
        session.add(_model("CHQ-002", original_pdc_id=original.id))
        session.commit()
        session.add(_model("CHQ-003", original_pdc_id=original.id))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_amount_must_be_positive(self, session):
        session.add(_model(amount="0.00"))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()
