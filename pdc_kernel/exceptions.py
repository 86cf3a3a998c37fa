"""
Typed Exception Hierarchy for the PDC ledger.

Every error has a TYPED exception class, a class-level CODE attribute
(machine-readable, API-safe) and carries its context as structured
attributes rather than only in the message string.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PDCKernelError (base)
    |
    +-- EntityNotFoundError
    |
    +-- PDCValidationError
    |   +-- FieldValidationError
    |   +-- DuplicateChequeNumberError
    |   +-- DuplicateInBatchError
    |   +-- BulkLimitExceededError
    |   +-- InvalidTransitionError
    |   +-- ReplacementExistsError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                   | When Raised
----------------|------------------------|-----------------------------------------
Lookup          | ENTITY_NOT_FOUND       | Tenant, invoice, bank account or PDC missing
----------------|------------------------|-----------------------------------------
Validation      | VALIDATION_FAILED      | Generic rule violation
                | INVALID_FIELD          | Malformed field (length, sign, blank)
                | CHEQUE_NUMBER_EXISTS   | Number already used by this tenant
                | DUPLICATE_IN_BATCH     | Same number twice in a bulk submission
                | BULK_LIMIT_EXCEEDED    | Bulk submission above the cap
                | INVALID_TRANSITION     | Operation not allowed from current status
                | REPLACEMENT_EXISTS     | Bounced PDC already has a replacement
----------------|------------------------|-----------------------------------------
Config          | CONFIGURATION_ERROR    | Config file unreadable or malformed

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        service.deposit_pdc(pdc_id, deposit_date, bank_account_id, actor_id)
    except InvalidTransitionError as e:
        api_response(code=e.code, status=e.current_status)
    except EntityNotFoundError as e:
        api_response(code=e.code, entity=e.entity_type, id=e.entity_id)

Validation failures (including state conflicts) are expected,
recoverable-by-caller conditions.  Nothing in this package retries them.
"""


class PDCKernelError(Exception):
    """
    Base exception for all PDC ledger errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PDC_KERNEL_ERROR"


# Lookup


class EntityNotFoundError(PDCKernelError):
    """A referenced tenant, invoice, bank account or PDC does not exist."""

    code: str = "ENTITY_NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found with id: {entity_id}")


# Validation


class PDCValidationError(PDCKernelError):
    """Input violates a business rule.  Carries a human-readable reason."""

    code: str = "VALIDATION_FAILED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class FieldValidationError(PDCValidationError):
    """A single field is malformed."""

    code: str = "INVALID_FIELD"

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        super().__init__(f"{field_name}: {reason}")


class DuplicateChequeNumberError(PDCValidationError):
    """One or more cheque numbers already exist for the tenant."""

    code: str = "CHEQUE_NUMBER_EXISTS"

    def __init__(self, tenant_id: str, cheque_numbers: list[str]):
        self.tenant_id = tenant_id
        self.cheque_numbers = cheque_numbers
        if len(cheque_numbers) == 1:
            reason = (
                "Cheque number already exists for this tenant: "
                f"{cheque_numbers[0]}"
            )
        else:
            reason = (
                "Cheque numbers already exist for this tenant: "
                f"{', '.join(cheque_numbers)}"
            )
        super().__init__(reason)


class DuplicateInBatchError(PDCValidationError):
    """The same cheque number appears more than once in a bulk submission."""

    code: str = "DUPLICATE_IN_BATCH"

    def __init__(self, cheque_numbers: list[str]):
        self.cheque_numbers = cheque_numbers
        super().__init__(
            "Duplicate cheque numbers within submission: "
            f"{', '.join(cheque_numbers)}"
        )


class BulkLimitExceededError(PDCValidationError):
    """Bulk submission holds more entries than allowed."""

    code: str = "BULK_LIMIT_EXCEEDED"

    def __init__(self, submitted: int, limit: int):
        self.submitted = submitted
        self.limit = limit
        super().__init__(
            f"Cannot create more than {limit} PDCs at once (submitted {submitted})"
        )


class InvalidTransitionError(PDCValidationError):
    """
    Requested operation is not allowed from the record's current status.

    The message names the operation ("cannot be deposited") and the
    disallowed status.
    """

    code: str = "INVALID_TRANSITION"

    def __init__(self, pdc_id: str, action: str, verb: str, current_status: str):
        self.pdc_id = pdc_id
        self.action = action
        self.current_status = current_status
        super().__init__(
            f"PDC cannot be {verb} in current status: {current_status.upper()}"
        )


class ReplacementExistsError(PDCValidationError):
    """A bounced PDC already has a replacement linked to it."""

    code: str = "REPLACEMENT_EXISTS"

    def __init__(self, pdc_id: str, replacement_id: str):
        self.pdc_id = pdc_id
        self.replacement_id = replacement_id
        super().__init__(
            f"PDC {pdc_id} already has a replacement: {replacement_id}"
        )


# Configuration


class ConfigurationError(PDCKernelError):
    """Configuration source is unreadable or malformed."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")
