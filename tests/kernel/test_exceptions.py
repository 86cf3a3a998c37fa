"""Tests for the typed exception hierarchy (pdc_kernel/exceptions.py)."""

import pytest

from pdc_kernel.exceptions import (
    BulkLimitExceededError,
    ConfigurationError,
    DuplicateChequeNumberError,
    DuplicateInBatchError,
    EntityNotFoundError,
    FieldValidationError,
    InvalidTransitionError,
    PDCKernelError,
    PDCValidationError,
    ReplacementExistsError,
)


@pytest.mark.parametrize("exc, code", [
    (EntityNotFoundError("Tenant", "t-1"), "ENTITY_NOT_FOUND"),
    (PDCValidationError("bad"), "VALIDATION_FAILED"),
    (FieldValidationError("amount", "must be greater than 0"), "INVALID_FIELD"),
    (DuplicateChequeNumberError("t-1", ["CHQ-001"]), "CHEQUE_NUMBER_EXISTS"),
    (DuplicateInBatchError(["CHQ-001"]), "DUPLICATE_IN_BATCH"),
    (BulkLimitExceededError(25, 24), "BULK_LIMIT_EXCEEDED"),
    (InvalidTransitionError("p-1", "deposit", "deposited", "received"), "INVALID_TRANSITION"),
    (ReplacementExistsError("p-1", "p-2"), "REPLACEMENT_EXISTS"),
    (ConfigurationError("pdc.yaml", "bad"), "CONFIGURATION_ERROR"),
])
def test_every_error_has_code(exc, code):
    assert isinstance(exc, PDCKernelError)
    assert exc.code == code


def test_validation_errors_share_base():
    for exc in (
        FieldValidationError("f", "r"),
        DuplicateChequeNumberError("t", ["a"]),
        DuplicateInBatchError(["a"]),
        BulkLimitExceededError(2, 1),
        InvalidTransitionError("p", "cancel", "cancelled", "due"),
        ReplacementExistsError("p", "q"),
    ):
        assert isinstance(exc, PDCValidationError)


def test_invalid_transition_message_names_operation_and_status():
    exc = InvalidTransitionError("p-1", "deposit", "deposited", "received")
    assert str(exc) == "PDC cannot be deposited in current status: RECEIVED"
    assert exc.current_status == "received"


def test_duplicate_cheque_message_singular_and_plural():
    assert str(DuplicateChequeNumberError("t", ["CHQ-001"])) == (
        "Cheque number already exists for this tenant: CHQ-001"
    )
    assert "CHQ-001, CHQ-002" in str(DuplicateChequeNumberError("t", ["CHQ-001", "CHQ-002"]))


def test_entity_not_found_message():
    exc = EntityNotFoundError("Tenant", "t-9")
    assert str(exc) == "Tenant not found with id: t-9"
    assert exc.entity_type == "Tenant"
