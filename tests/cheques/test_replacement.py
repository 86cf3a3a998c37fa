"""
Tests for PDCService.replace_pdc and replacement chains.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from pdc_kernel.exceptions import (
    DuplicateChequeNumberError,
    EntityNotFoundError,
    InvalidTransitionError,
    ReplacementExistsError,
)
from pdc_modules.cheques.models import PDCReplaceRequest, PDCStatus
from tests.conftest import (
    TEST_ACTOR_ID,
    TEST_BANK_ACCOUNT_ID,
    TEST_INVOICE_ID,
    TEST_LEASE_ID,
    TODAY,
)


def _replacement(number: str = "CHQ-001R", amount: str = "12500.00") -> PDCReplaceRequest:
    return PDCReplaceRequest(
        new_cheque_number=number,
        bank_name="Dubai Islamic Bank",
        amount=Decimal(amount),
        cheque_date=TODAY + timedelta(days=14),
        notes="Replacement for bounced cheque",
    )


class TestReplace:

    def test_original_stays_bounced_and_new_links_back(self, service, make_pdc):
        original = make_pdc(
            "bounced", invoice_id=TEST_INVOICE_ID, lease_id=TEST_LEASE_ID,
        )
        new = service.replace_pdc(original.id, _replacement(), TEST_ACTOR_ID)

        assert service.get_pdc(original.id).status is PDCStatus.BOUNCED
        assert new.status is PDCStatus.RECEIVED
        assert new.original_pdc_id == original.id
        assert new.is_replacement
        assert new.tenant_id == original.tenant_id
        assert new.invoice_id == TEST_INVOICE_ID
        assert new.lease_id == TEST_LEASE_ID
        assert new.cheque_number == "CHQ-001R"
        assert new.bank_name == "Dubai Islamic Bank"
        assert new.cheque_date == TODAY + timedelta(days=14)

    @pytest.mark.parametrize("status", ["received", "due", "deposited", "cleared"])
    def test_only_bounced_can_be_replaced(self, service, make_pdc, status):
        pdc = make_pdc(status)
        with pytest.raises(InvalidTransitionError, match="cannot be replaced"):
            service.replace_pdc(pdc.id, _replacement(), TEST_ACTOR_ID)

    def test_reusing_original_number_rejected(self, service, make_pdc):
        original = make_pdc("bounced", cheque_number="CHQ-500")
        with pytest.raises(DuplicateChequeNumberError):
            service.replace_pdc(original.id, _replacement("CHQ-500"), TEST_ACTOR_ID)

    def test_number_used_by_another_record_rejected(self, service, make_pdc):
        make_pdc("received", cheque_number="CHQ-600")
        original = make_pdc("bounced", cheque_number="CHQ-601")
        with pytest.raises(DuplicateChequeNumberError):
            service.replace_pdc(original.id, _replacement("CHQ-600"), TEST_ACTOR_ID)

    def test_second_replacement_rejected(self, service, make_pdc):
        original = make_pdc("bounced")
        first = service.replace_pdc(original.id, _replacement("CHQ-R1"), TEST_ACTOR_ID)
        with pytest.raises(ReplacementExistsError) as exc_info:
            service.replace_pdc(original.id, _replacement("CHQ-R2"), TEST_ACTOR_ID)
        assert exc_info.value.replacement_id == str(first.id)

    def test_replacement_follows_normal_lifecycle(self, service, make_pdc):
        original = make_pdc("bounced")
        new = service.replace_pdc(original.id, _replacement(), TEST_ACTOR_ID)

        assert service.transition_received_to_due(as_of=new.cheque_date) == 1
        deposited = service.deposit_pdc(
            new.id, new.cheque_date, TEST_BANK_ACCOUNT_ID, TEST_ACTOR_ID,
        )
        cleared = service.clear_pdc(deposited.id, new.cheque_date, TEST_ACTOR_ID)
        assert cleared.status is PDCStatus.CLEARED


class TestReplacementChain:

    def test_chain_root_first(self, service, make_pdc):
        root = make_pdc("bounced", cheque_number="CHQ-A")
        second = service.replace_pdc(root.id, _replacement("CHQ-B"), TEST_ACTOR_ID)

        # Walk the replacement through to a bounce of its own.
        service.transition_received_to_due(as_of=second.cheque_date)
        service.deposit_pdc(second.id, second.cheque_date, TEST_BANK_ACCOUNT_ID, TEST_ACTOR_ID)
        service.bounce_pdc(second.id, second.cheque_date, "Stopped", TEST_ACTOR_ID)
        third = service.replace_pdc(second.id, _replacement("CHQ-C"), TEST_ACTOR_ID)

        for member in (root, second, third):
            chain = service.get_replacement_chain(member.id)
            assert [p.cheque_number for p in chain] == ["CHQ-A", "CHQ-B", "CHQ-C"]

    def test_single_record_chain(self, service, make_pdc):
        pdc = make_pdc("received")
        assert [p.id for p in service.get_replacement_chain(pdc.id)] == [pdc.id]

    def test_unknown_id(self, service):
        from uuid import uuid4

        with pytest.raises(EntityNotFoundError):
            service.get_replacement_chain(uuid4())
