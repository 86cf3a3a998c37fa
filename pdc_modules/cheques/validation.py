"""
pdc_modules.cheques.validation
==============================

Responsibility:
    Per-field and cross-field rules for create, bulk-create, replace and
    the transition payloads.  Pure functions: anything that needs the store
    (existing cheque numbers) is passed in by ``PDCService``.

Invariants enforced:
    - Cheque numbers are 3-50 characters after trimming.
    - Bank names are non-blank, at most 100 characters.
    - Amounts are positive ``Decimal`` values with at most two decimals.
    - A bulk batch is checked completely (cap, internal duplicates,
      collisions with existing records) before anything is persisted.
    - Cleared and bounce dates never precede the deposit date.

Failure modes:
    - ``FieldValidationError`` for malformed fields.
    - ``BulkLimitExceededError``, ``DuplicateInBatchError``,
      ``DuplicateChequeNumberError`` for the batch rules.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from pdc_kernel.exceptions import (
    BulkLimitExceededError,
    DuplicateChequeNumberError,
    DuplicateInBatchError,
    FieldValidationError,
)
from pdc_modules.cheques.models import (
    PDCBulkCreateRequest,
    PDCBulkEntry,
    PDCCreateRequest,
    PDCReplaceRequest,
)

CHEQUE_NUMBER_MIN_LENGTH = 3
CHEQUE_NUMBER_MAX_LENGTH = 50
BANK_NAME_MAX_LENGTH = 100
REASON_MAX_LENGTH = 255
NOTES_MAX_LENGTH = 500
TRANSACTION_ID_MAX_LENGTH = 100


def normalize_cheque_number(cheque_number: str) -> str:
    if cheque_number is None:
        raise FieldValidationError("cheque_number", "is required")
    value = cheque_number.strip()
    if not CHEQUE_NUMBER_MIN_LENGTH <= len(value) <= CHEQUE_NUMBER_MAX_LENGTH:
        raise FieldValidationError(
            "cheque_number",
            f"must be between {CHEQUE_NUMBER_MIN_LENGTH} and "
            f"{CHEQUE_NUMBER_MAX_LENGTH} characters",
        )
    return value


def normalize_bank_name(bank_name: str) -> str:
    value = (bank_name or "").strip()
    if not value:
        raise FieldValidationError("bank_name", "cannot be blank")
    if len(value) > BANK_NAME_MAX_LENGTH:
        raise FieldValidationError(
            "bank_name", f"must be less than {BANK_NAME_MAX_LENGTH} characters",
        )
    return value


def validate_amount(amount: Decimal) -> Decimal:
    if not isinstance(amount, Decimal):
        raise FieldValidationError("amount", "must be a Decimal")
    if not amount.is_finite() or amount <= 0:
        raise FieldValidationError("amount", "must be greater than 0")
    if amount.as_tuple().exponent < -2:
        raise FieldValidationError("amount", "cannot have more than 2 decimal places")
    return amount


def validate_required_date(field_name: str, value: date | None) -> date:
    if value is None:
        raise FieldValidationError(field_name, "is required")
    return value


def validate_not_before(
    field_name: str,
    value: date,
    reference: date | None,
    reference_name: str,
) -> None:
    if reference is not None and value < reference:
        raise FieldValidationError(
            field_name, f"cannot be before {reference_name} ({reference.isoformat()})",
        )


def normalize_reason(field_name: str, reason: str | None) -> str:
    value = (reason or "").strip()
    if not value:
        raise FieldValidationError(field_name, "cannot be blank")
    if len(value) > REASON_MAX_LENGTH:
        raise FieldValidationError(
            field_name, f"must be less than {REASON_MAX_LENGTH} characters",
        )
    return value


def normalize_optional_text(
    field_name: str,
    value: str | None,
    max_length: int,
) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if len(value) > max_length:
        raise FieldValidationError(
            field_name, f"must be less than {max_length} characters",
        )
    return value or None


def validate_create_request(request: PDCCreateRequest) -> PDCCreateRequest:
    """Check and normalize the fields of a single-create payload."""
    return PDCCreateRequest(
        tenant_id=request.tenant_id,
        cheque_number=normalize_cheque_number(request.cheque_number),
        bank_name=normalize_bank_name(request.bank_name),
        amount=validate_amount(request.amount),
        cheque_date=validate_required_date("cheque_date", request.cheque_date),
        invoice_id=request.invoice_id,
        lease_id=request.lease_id,
        notes=normalize_optional_text("notes", request.notes, NOTES_MAX_LENGTH),
    )


def _validate_bulk_entry(entry: PDCBulkEntry) -> PDCBulkEntry:
    return PDCBulkEntry(
        cheque_number=normalize_cheque_number(entry.cheque_number),
        bank_name=normalize_bank_name(entry.bank_name),
        amount=validate_amount(entry.amount),
        cheque_date=validate_required_date("cheque_date", entry.cheque_date),
        invoice_id=entry.invoice_id,
        notes=normalize_optional_text("notes", entry.notes, NOTES_MAX_LENGTH),
    )


def check_bulk_size(request: PDCBulkCreateRequest, limit: int) -> None:
    count = len(request.entries)
    if count == 0:
        raise FieldValidationError("entries", "must contain at least one PDC")
    if count > limit:
        raise BulkLimitExceededError(submitted=count, limit=limit)


def validate_bulk_request(
    request: PDCBulkCreateRequest,
    limit: int,
) -> PDCBulkCreateRequest:
    """
    Check the cap, every entry's fields, and duplicates inside the batch.

    Collisions with stored records are checked separately by
    ``check_no_existing`` once the store has been queried.
    """
    check_bulk_size(request, limit)
    entries = tuple(_validate_bulk_entry(e) for e in request.entries)

    counts = Counter(e.cheque_number for e in entries)
    repeated = sorted(n for n, c in counts.items() if c > 1)
    if repeated:
        raise DuplicateInBatchError(repeated)

    return PDCBulkCreateRequest(
        tenant_id=request.tenant_id,
        entries=entries,
        lease_id=request.lease_id,
    )


def check_no_existing(
    tenant_id: UUID,
    submitted: Iterable[str],
    existing: Iterable[str],
) -> None:
    """Raise if any submitted cheque number is already stored for the tenant."""
    taken = set(existing)
    clashes = [n for n in submitted if n in taken]
    if clashes:
        raise DuplicateChequeNumberError(str(tenant_id), clashes)


def validate_replace_request(request: PDCReplaceRequest) -> PDCReplaceRequest:
    return PDCReplaceRequest(
        new_cheque_number=normalize_cheque_number(request.new_cheque_number),
        bank_name=normalize_bank_name(request.bank_name),
        amount=validate_amount(request.amount),
        cheque_date=validate_required_date("cheque_date", request.cheque_date),
        notes=normalize_optional_text("notes", request.notes, NOTES_MAX_LENGTH),
    )
