"""
pdc_modules.cheques.service
===========================

Responsibility:
    Lifecycle engine for post-dated cheques.  Registers cheques (singly and
    in bulk), applies the deposit / clear / bounce / replace / withdraw /
    cancel transitions, runs the day-boundary RECEIVED -> DUE job, and
    exposes the read operations callers need around them.

Architecture:
    Module layer (pdc_modules).  Composes ``PDCStore`` (writes),
    ``PDCSelector`` (reads), the transition table in ``workflows`` and the
    injected collaborators.  Owns the transaction boundary: every mutating
    method commits on success, rolls back and re-raises on failure.

Invariants enforced:
    - Status only changes through ``resolve_transition`` followed by a
      compare-and-set update.  Of two concurrent callers, one wins and the
      other gets ``InvalidTransitionError`` naming the current status.
    - Cheque numbers are unique per tenant.  Checked up front and backed by
      the ``uq_pdc_cheques_tenant_cheque`` constraint.
    - A bulk submission is persisted completely or not at all.
    - Clearing an invoice-linked cheque records exactly one payment for the
      full amount.  If the ledger call fails, the clear is rolled back.
    - A bounced cheque keeps its status when replaced; the replacement is a
      new RECEIVED record pointing back at it.

Failure modes:
    - ``EntityNotFoundError`` for an unknown PDC, tenant, invoice or bank
      account.
    - ``PDCValidationError`` subclasses for rule violations.
    - Anything raised by a collaborator propagates after rollback.

Usage::

    service = PDCService(session, tenant_directory, invoice_ledger, clock)
    pdc = service.create_pdc(
        PDCCreateRequest(tenant_id=t, cheque_number="CHQ-001",
                         bank_name="Emirates NBD", amount=Decimal("12500.00"),
                         cheque_date=date(2026, 3, 1)),
        actor_id=actor_id,
    )
"""

from __future__ import annotations

from datetime import date
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pdc_batch.services.executor import BatchExecutor
from pdc_batch.tasks.base import TaskRegistry
from pdc_kernel.domain.clock import Clock, SystemClock
from pdc_kernel.exceptions import (
    DuplicateChequeNumberError,
    EntityNotFoundError,
    FieldValidationError,
    InvalidTransitionError,
    ReplacementExistsError,
)
from pdc_kernel.logging_config import LogContext, get_logger
from pdc_modules.cheques import validation
from pdc_modules.cheques.collaborators import (
    BankAccountDirectory,
    InvoiceLedger,
    InvoicePayment,
    PaymentMethod,
    TenantDirectory,
    TenantRef,
)
from pdc_modules.cheques.config import PDCConfig
from pdc_modules.cheques.models import (
    PDC,
    Page,
    PDCAction,
    PDCBulkCreateRequest,
    PDCCreateRequest,
    PDCFilter,
    PDCReplaceRequest,
    PDCStatus,
    SettlementMethod,
)
from pdc_modules.cheques.orm import PDCModel
from pdc_modules.cheques.selectors import PDCSelector
from pdc_modules.cheques.store import PDCStore
from pdc_modules.cheques.tasks import SCHEDULER_ACTOR_ID, DueTransitionTask
from pdc_modules.cheques.workflows import ACTION_VERBS, Transition, resolve_transition

logger = get_logger("modules.cheques.service")


class PDCService:
    """
    Orchestrates the PDC lifecycle.

    Contract:
        Each mutating method either commits and returns a fresh ``PDC``
        snapshot (or a count), or rolls back and raises.  No method leaves
        the session with uncommitted work.

    Guarantees:
        - All monetary amounts are ``Decimal``.
        - Clock is injected; dates default to ``clock.today()`` only where
          the caller may omit them (the due-transition job).
        - Returned objects are frozen DTOs, never ORM rows.

    Non-goals:
        - Does NOT post journal entries; the invoice ledger does its own
          accounting when a payment is recorded.
        - Does NOT send notifications.
    """

    def __init__(
        self,
        session: Session,
        tenant_directory: TenantDirectory,
        invoice_ledger: InvoiceLedger,
        clock: Clock | None = None,
        config: PDCConfig | None = None,
        bank_account_directory: BankAccountDirectory | None = None,
    ):
        self._session = session
        self._tenants = tenant_directory
        self._invoices = invoice_ledger
        self._bank_accounts = bank_account_directory
        self._config = config or PDCConfig.with_defaults()
        self._clock = clock or SystemClock(self._config.business_tzinfo())
        self._store = PDCStore(session)
        self._selector = PDCSelector(session)

        self._tasks = TaskRegistry()
        self._tasks.register(
            DueTransitionTask(due_window_days=self._config.due_window_days),
        )

    # =========================================================================
    # Registration
    # =========================================================================

    def create_pdc(self, request: PDCCreateRequest, actor_id: UUID) -> PDC:
        """
        Register one cheque in RECEIVED.

        Raises:
            FieldValidationError: malformed field.
            EntityNotFoundError: unknown tenant or invoice.
            DuplicateChequeNumberError: number already used by the tenant.
        """
        try:
            with LogContext.bind(actor_id=actor_id, tenant_id=request.tenant_id):
                request = validation.validate_create_request(request)
                logger.info("pdc_create_started", extra={
                    "cheque_number": request.cheque_number,
                    "amount": str(request.amount),
                })

                self._require_tenant(request.tenant_id)
                if request.invoice_id is not None:
                    self._require_invoice(request.invoice_id)

                if self._store.exists_for_tenant(request.tenant_id, request.cheque_number):
                    raise DuplicateChequeNumberError(
                        str(request.tenant_id), [request.cheque_number],
                    )

                model = self._new_model(
                    tenant_id=request.tenant_id,
                    cheque_number=request.cheque_number,
                    bank_name=request.bank_name,
                    amount=request.amount,
                    cheque_date=request.cheque_date,
                    invoice_id=request.invoice_id,
                    lease_id=request.lease_id,
                    notes=request.notes,
                    actor_id=actor_id,
                )
                self._save([model], request.tenant_id)
                result = model.to_dto()
                self._session.commit()

                logger.info("pdc_created", extra={
                    "pdc_id": str(result.id),
                    "cheque_number": result.cheque_number,
                })
                return result

        except Exception:
            self._session.rollback()
            raise

    def create_bulk_pdcs(
        self,
        request: PDCBulkCreateRequest,
        actor_id: UUID,
    ) -> list[PDC]:
        """
        Register a batch of cheques for one tenant, all or nothing.

        Checks run in order: batch size, tenant, per-entry fields,
        duplicates inside the batch, linked invoices, then collisions with
        the tenant's stored cheques.  Nothing is written until all pass.

        Raises:
            BulkLimitExceededError: more than ``max_bulk_entries`` entries.
            DuplicateInBatchError: a number appears twice in the batch.
            DuplicateChequeNumberError: a number is already stored.
            EntityNotFoundError: unknown tenant or invoice.
        """
        try:
            with LogContext.bind(actor_id=actor_id, tenant_id=request.tenant_id):
                logger.info("pdc_bulk_create_started", extra={
                    "entry_count": len(request.entries),
                })

                validation.check_bulk_size(request, self._config.max_bulk_entries)
                self._require_tenant(request.tenant_id)
                request = validation.validate_bulk_request(
                    request, self._config.max_bulk_entries,
                )

                for invoice_id in {e.invoice_id for e in request.entries}:
                    if invoice_id is not None:
                        self._require_invoice(invoice_id)

                numbers = [e.cheque_number for e in request.entries]
                validation.check_no_existing(
                    request.tenant_id,
                    numbers,
                    self._store.existing_numbers_for_tenant(request.tenant_id, numbers),
                )

                models = [
                    self._new_model(
                        tenant_id=request.tenant_id,
                        cheque_number=entry.cheque_number,
                        bank_name=entry.bank_name,
                        amount=entry.amount,
                        cheque_date=entry.cheque_date,
                        invoice_id=entry.invoice_id,
                        lease_id=request.lease_id,
                        notes=entry.notes,
                        actor_id=actor_id,
                    )
                    for entry in request.entries
                ]
                self._save(models, request.tenant_id)
                results = [m.to_dto() for m in models]
                self._session.commit()

                logger.info("pdc_bulk_created", extra={
                    "created_count": len(results),
                    "total_amount": str(sum((r.amount for r in results), start=0)),
                })
                return results

        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Transitions
    # =========================================================================

    def deposit_pdc(
        self,
        pdc_id: UUID,
        deposit_date: date,
        bank_account_id: UUID,
        actor_id: UUID,
    ) -> PDC:
        """DUE -> DEPOSITED, recording the deposit date and bank account."""
        try:
            with LogContext.bind(actor_id=actor_id, pdc_id=pdc_id):
                model, transition = self._begin(pdc_id, PDCAction.DEPOSIT)

                validation.validate_required_date("deposit_date", deposit_date)
                if bank_account_id is None:
                    raise FieldValidationError("bank_account_id", "is required")
                if (
                    self._bank_accounts is not None
                    and self._bank_accounts.find_by_id(bank_account_id) is None
                ):
                    raise EntityNotFoundError("BankAccount", str(bank_account_id))

                result = self._apply(
                    model, transition, actor_id,
                    deposit_date=deposit_date,
                    bank_account_id=bank_account_id,
                )
                self._session.commit()
                self._log_transition(result, transition)
                return result

        except Exception:
            self._session.rollback()
            raise

    def clear_pdc(self, pdc_id: UUID, cleared_date: date, actor_id: UUID) -> PDC:
        """
        DEPOSITED -> CLEARED.

        When the cheque is linked to an invoice, one payment for the full
        amount is recorded on it in the same unit of work.
        """
        try:
            with LogContext.bind(actor_id=actor_id, pdc_id=pdc_id):
                model, transition = self._begin(pdc_id, PDCAction.CLEAR)

                validation.validate_required_date("cleared_date", cleared_date)
                validation.validate_not_before(
                    "cleared_date", cleared_date, model.deposit_date, "deposit date",
                )

                result = self._apply(model, transition, actor_id, cleared_date=cleared_date)

                if transition.records_payment and result.invoice_id is not None:
                    self._record_invoice_payment(result, cleared_date, actor_id)

                self._session.commit()
                self._log_transition(result, transition)
                return result

        except Exception:
            self._session.rollback()
            raise

    def bounce_pdc(
        self,
        pdc_id: UUID,
        bounce_date: date,
        bounce_reason: str,
        actor_id: UUID,
    ) -> PDC:
        """DEPOSITED -> BOUNCED with the bank's reason."""
        try:
            with LogContext.bind(actor_id=actor_id, pdc_id=pdc_id):
                model, transition = self._begin(pdc_id, PDCAction.BOUNCE)

                validation.validate_required_date("bounce_date", bounce_date)
                validation.validate_not_before(
                    "bounce_date", bounce_date, model.deposit_date, "deposit date",
                )
                reason = validation.normalize_reason("bounce_reason", bounce_reason)

                result = self._apply(
                    model, transition, actor_id,
                    bounce_date=bounce_date,
                    bounce_reason=reason,
                )
                self._session.commit()
                self._log_transition(result, transition, level="warning")
                return result

        except Exception:
            self._session.rollback()
            raise

    def replace_pdc(
        self,
        pdc_id: UUID,
        request: PDCReplaceRequest,
        actor_id: UUID,
    ) -> PDC:
        """
        Register a replacement for a BOUNCED cheque.

        The original stays BOUNCED.  The new record is RECEIVED, inherits
        tenant, invoice and lease, and points back via ``original_pdc_id``.
        Returns the new record.

        Raises:
            InvalidTransitionError: original is not BOUNCED.
            ReplacementExistsError: original already has a replacement.
            DuplicateChequeNumberError: new number already used by the tenant.
        """
        try:
            with LogContext.bind(actor_id=actor_id, pdc_id=pdc_id):
                original, transition = self._begin(pdc_id, PDCAction.REPLACE)
                request = validation.validate_replace_request(request)

                existing = self._store.find_replacement(original.id)
                if existing is not None:
                    raise ReplacementExistsError(str(original.id), str(existing.id))

                if self._store.exists_for_tenant(original.tenant_id, request.new_cheque_number):
                    raise DuplicateChequeNumberError(
                        str(original.tenant_id), [request.new_cheque_number],
                    )

                replacement = self._new_model(
                    tenant_id=original.tenant_id,
                    cheque_number=request.new_cheque_number,
                    bank_name=request.bank_name,
                    amount=request.amount,
                    cheque_date=request.cheque_date,
                    invoice_id=original.invoice_id,
                    lease_id=original.lease_id,
                    notes=request.notes,
                    actor_id=actor_id,
                    original_pdc_id=original.id,
                )
                try:
                    self._store.save(replacement)
                except IntegrityError as exc:
                    if "original_pdc_id" in str(exc.orig):
                        raise ReplacementExistsError(str(original.id), "unknown") from exc
                    raise DuplicateChequeNumberError(
                        str(original.tenant_id), [request.new_cheque_number],
                    ) from exc

                result = replacement.to_dto()
                self._session.commit()

                logger.info("pdc_replaced", extra={
                    "original_pdc_id": str(original.id),
                    "replacement_pdc_id": str(result.id),
                    "new_cheque_number": result.cheque_number,
                    "action": transition.action.value,
                })
                return result

        except Exception:
            self._session.rollback()
            raise

    def withdraw_pdc(
        self,
        pdc_id: UUID,
        withdrawal_date: date,
        withdrawal_reason: str,
        settlement_method: SettlementMethod,
        actor_id: UUID,
        transaction_id: str | None = None,
    ) -> PDC:
        """RECEIVED or DUE -> WITHDRAWN, recording how the tenant paid instead."""
        try:
            with LogContext.bind(actor_id=actor_id, pdc_id=pdc_id):
                model, transition = self._begin(pdc_id, PDCAction.WITHDRAW)

                validation.validate_required_date("withdrawal_date", withdrawal_date)
                reason = validation.normalize_reason("withdrawal_reason", withdrawal_reason)
                if not isinstance(settlement_method, SettlementMethod):
                    raise FieldValidationError("settlement_method", "is required")
                transaction_id = validation.normalize_optional_text(
                    "transaction_id", transaction_id,
                    validation.TRANSACTION_ID_MAX_LENGTH,
                )

                result = self._apply(
                    model, transition, actor_id,
                    withdrawal_date=withdrawal_date,
                    withdrawal_reason=reason,
                    settlement_method=settlement_method.value,
                    transaction_id=transaction_id,
                )
                self._session.commit()
                self._log_transition(result, transition)
                return result

        except Exception:
            self._session.rollback()
            raise

    def cancel_pdc(self, pdc_id: UUID, actor_id: UUID) -> PDC:
        """RECEIVED -> CANCELLED."""
        try:
            with LogContext.bind(actor_id=actor_id, pdc_id=pdc_id):
                model, transition = self._begin(pdc_id, PDCAction.CANCEL)
                result = self._apply(model, transition, actor_id)
                self._session.commit()
                self._log_transition(result, transition)
                return result

        except Exception:
            self._session.rollback()
            raise

    def transition_received_to_due(
        self,
        as_of: date | None = None,
        actor_id: UUID | None = None,
    ) -> int:
        """
        Promote RECEIVED cheques dated in ``[today, today + due window]``.

        Each record is updated in its own SAVEPOINT; a failing record is
        logged and skipped.  Returns how many records became DUE.  Safe to
        run repeatedly: records already DUE are not selected again.
        """
        today = as_of or self._clock.today()
        try:
            executor = BatchExecutor(self._session, self._tasks, self._clock)
            run = executor.run(
                DueTransitionTask.TASK_TYPE,
                {
                    "as_of_date": today.isoformat(),
                    "due_window_days": self._config.due_window_days,
                    "actor_id": str(actor_id or SCHEDULER_ACTOR_ID),
                },
            )
            self._session.commit()

            logger.info("pdc_due_transition_completed", extra={
                "as_of_date": today,
                "transitioned": run.succeeded,
                "failed": run.failed,
                "skipped": run.skipped,
            })
            return run.succeeded

        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Queries
    # =========================================================================

    def get_pdc(self, pdc_id: UUID) -> PDC:
        pdc = self._selector.get(pdc_id)
        if pdc is None:
            raise EntityNotFoundError("PDC", str(pdc_id))
        return pdc

    def search_pdcs(
        self,
        criteria: PDCFilter | None = None,
        page: int = 0,
        size: int = 20,
    ) -> Page[PDC]:
        return self._selector.search(criteria, page, size)

    def list_by_tenant(self, tenant_id: UUID, page: int = 0, size: int = 20) -> Page[PDC]:
        self._require_tenant(tenant_id)
        return self._selector.list_by_tenant(tenant_id, page, size)

    def list_by_invoice(self, invoice_id: UUID) -> list[PDC]:
        return self._selector.list_by_invoice(invoice_id)

    def list_withdrawals(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
        page: int = 0,
        size: int = 20,
    ) -> Page[PDC]:
        return self._selector.list_withdrawals(from_date, to_date, page, size)

    def distinct_bank_names(self) -> list[str]:
        return self._selector.distinct_bank_names()

    def cheque_number_exists(self, tenant_id: UUID, cheque_number: str) -> bool:
        number = (cheque_number or "").strip()
        if not number:
            raise FieldValidationError("cheque_number", "cannot be blank")
        return self._selector.cheque_number_exists(tenant_id, number)

    def list_due_for_reminder(self, reminder_date: date) -> list[PDC]:
        return self._selector.list_due_for_reminder(reminder_date)

    def get_replacement_chain(self, pdc_id: UUID) -> list[PDC]:
        """Root cheque first, then each replacement in order."""
        chain = self._selector.get_replacement_chain(pdc_id)
        if not chain:
            raise EntityNotFoundError("PDC", str(pdc_id))
        return chain

    def count_active_for_bank_account(self, bank_account_id: UUID) -> int:
        return self._selector.count_active_for_bank_account(bank_account_id)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _require_tenant(self, tenant_id: UUID) -> TenantRef:
        tenant = self._tenants.find_by_id(tenant_id)
        if tenant is None:
            raise EntityNotFoundError("Tenant", str(tenant_id))
        return tenant

    def _require_invoice(self, invoice_id: UUID) -> None:
        if self._invoices.find_by_id(invoice_id) is None:
            raise EntityNotFoundError("Invoice", str(invoice_id))

    def _new_model(self, *, actor_id: UUID, **values) -> PDCModel:
        return PDCModel(
            id=uuid4(),
            status=PDCStatus.RECEIVED.value,
            created_by_id=actor_id,
            **values,
        )

    def _save(self, models: list[PDCModel], tenant_id: UUID) -> None:
        """Flush new rows, mapping the per-tenant unique constraint."""
        try:
            self._store.save_all(models)
        except IntegrityError as exc:
            raise DuplicateChequeNumberError(
                str(tenant_id), [m.cheque_number for m in models],
            ) from exc

    def _begin(self, pdc_id: UUID, action: PDCAction) -> tuple[PDCModel, Transition]:
        """Load the current row and resolve ``action`` against its status."""
        model = self._store.get(pdc_id, refresh=True)
        if model is None:
            raise EntityNotFoundError("PDC", str(pdc_id))
        transition = resolve_transition(action, PDCStatus(model.status), pdc_id)
        return model, transition

    def _apply(
        self,
        model: PDCModel,
        transition: Transition,
        actor_id: UUID,
        **fields,
    ) -> PDC:
        applied = self._store.compare_and_set_status(
            model.id, transition.from_state, transition.to_state, actor_id, **fields,
        )
        if not applied:
            current = self._store.get(model.id, refresh=True)
            current_status = current.status if current is not None else "missing"
            logger.warning("pdc_transition_conflict", extra={
                "action": transition.action.value,
                "expected_status": transition.from_state.value,
                "current_status": current_status,
            })
            raise InvalidTransitionError(
                pdc_id=str(model.id),
                action=transition.action.value,
                verb=ACTION_VERBS[transition.action],
                current_status=current_status,
            )
        return self._store.get(model.id, refresh=True).to_dto()

    def _record_invoice_payment(self, pdc: PDC, cleared_date: date, actor_id: UUID) -> None:
        payment = InvoicePayment(
            amount=pdc.amount,
            method=PaymentMethod.CHEQUE_CLEARANCE,
            payment_date=cleared_date,
            reference=f"PDC-{pdc.cheque_number}",
            notes=f"Payment from PDC: {pdc.cheque_number}",
        )
        try:
            self._invoices.record_payment(pdc.invoice_id, payment, actor_id)
        except Exception:
            logger.exception("pdc_invoice_payment_failed", extra={
                "invoice_id": str(pdc.invoice_id),
                "amount": str(pdc.amount),
            })
            raise
        logger.info("pdc_invoice_payment_recorded", extra={
            "invoice_id": str(pdc.invoice_id),
            "amount": str(pdc.amount),
            "reference": payment.reference,
        })

    def _log_transition(self, pdc: PDC, transition: Transition, level: str = "info") -> None:
        getattr(logger, level)("pdc_transitioned", extra={
            "action": transition.action.value,
            "from_status": transition.from_state.value,
            "to_status": pdc.status.value,
            "cheque_number": pdc.cheque_number,
        })
