"""
pdc_modules.cheques.workflows
=============================

Responsibility:
    Declarative state machine for the PDC lifecycle.  The transition table
    lives here and nowhere else; ``PDCService`` asks ``resolve_transition``
    whether an action is legal from the current status and what it leads to.

Architecture:
    Module layer (pdc_modules).  Pure data declarations plus one lookup --
    no I/O, no imports from services or the store.

Invariants enforced:
    - Transitions are immutable (frozen dataclasses).
    - Every ``PDCAction`` has at least one transition and every state named
      by a transition is a declared state.  Checked at import time, so
      adding a state or an action without wiring it fails fast.
    - Terminal states have no outgoing transitions.

Failure modes:
    - Illegal (action, status) pair -> ``InvalidTransitionError`` from
      ``resolve_transition``.
    - Incomplete table -> ``ValueError`` at import.
"""

from dataclasses import dataclass

from pdc_kernel.exceptions import InvalidTransitionError
from pdc_kernel.logging_config import get_logger
from pdc_modules.cheques.models import PDCAction, PDCStatus

logger = get_logger("modules.cheques.workflows")


@dataclass(frozen=True)
class Guard:
    """
    A condition that must be true for a transition to be allowed.

    Contract:
        Immutable predicate declaration.  The service evaluates the named
        guard; this dataclass only stores metadata.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """
    A valid state transition in the PDC workflow.

    ``records_payment`` marks the transition that records a payment on the
    linked invoice; ``spawns_replacement`` marks the one that creates a new
    RECEIVED record instead of changing the source record.
    """
    from_state: PDCStatus
    to_state: PDCStatus
    action: PDCAction
    guard: Guard | None = None
    records_payment: bool = False
    spawns_replacement: bool = False


@dataclass(frozen=True)
class Workflow:
    """
    A state machine definition.

    Contract:
        ``initial_state`` and every ``from_state`` / ``to_state`` are
        elements of ``states``.  ``terminal_states`` have no outgoing
        transitions.
    """
    name: str
    description: str
    initial_state: PDCStatus
    states: tuple[PDCStatus, ...]
    terminal_states: tuple[PDCStatus, ...]
    transitions: tuple[Transition, ...]


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

WITHIN_DUE_WINDOW = Guard(
    name="within_due_window",
    description="Cheque date falls between today and today + due window",
)

NEW_CHEQUE_NUMBER_UNUSED = Guard(
    name="new_cheque_number_unused",
    description="Replacement cheque number is not used by the tenant",
)


# -----------------------------------------------------------------------------
# PDC Workflow
# -----------------------------------------------------------------------------

PDC_WORKFLOW = Workflow(
    name="pdc_lifecycle",
    description="Post-dated cheque from receipt to clearance, bounce or exit",
    initial_state=PDCStatus.RECEIVED,
    states=tuple(PDCStatus),
    terminal_states=(
        PDCStatus.CLEARED,
        PDCStatus.CANCELLED,
        PDCStatus.WITHDRAWN,
    ),
    transitions=(
        Transition(
            from_state=PDCStatus.RECEIVED,
            to_state=PDCStatus.DUE,
            action=PDCAction.MARK_DUE,
            guard=WITHIN_DUE_WINDOW,
        ),
        Transition(
            from_state=PDCStatus.DUE,
            to_state=PDCStatus.DEPOSITED,
            action=PDCAction.DEPOSIT,
        ),
        Transition(
            from_state=PDCStatus.DEPOSITED,
            to_state=PDCStatus.CLEARED,
            action=PDCAction.CLEAR,
            records_payment=True,
        ),
        Transition(
            from_state=PDCStatus.DEPOSITED,
            to_state=PDCStatus.BOUNCED,
            action=PDCAction.BOUNCE,
        ),
        Transition(
            from_state=PDCStatus.BOUNCED,
            to_state=PDCStatus.BOUNCED,
            action=PDCAction.REPLACE,
            guard=NEW_CHEQUE_NUMBER_UNUSED,
            spawns_replacement=True,
        ),
        Transition(
            from_state=PDCStatus.RECEIVED,
            to_state=PDCStatus.WITHDRAWN,
            action=PDCAction.WITHDRAW,
        ),
        Transition(
            from_state=PDCStatus.DUE,
            to_state=PDCStatus.WITHDRAWN,
            action=PDCAction.WITHDRAW,
        ),
        Transition(
            from_state=PDCStatus.RECEIVED,
            to_state=PDCStatus.CANCELLED,
            action=PDCAction.CANCEL,
        ),
    ),
)

# Past participle used in "PDC cannot be <verb> in current status: X".
ACTION_VERBS: dict[PDCAction, str] = {
    PDCAction.MARK_DUE: "marked due",
    PDCAction.DEPOSIT: "deposited",
    PDCAction.CLEAR: "cleared",
    PDCAction.BOUNCE: "bounced",
    PDCAction.REPLACE: "replaced",
    PDCAction.WITHDRAW: "withdrawn",
    PDCAction.CANCEL: "cancelled",
}


def _validate_workflow(workflow: Workflow) -> None:
    declared = set(workflow.states)
    if workflow.initial_state not in declared:
        raise ValueError(f"{workflow.name}: initial state not declared")
    for t in workflow.transitions:
        if t.from_state not in declared or t.to_state not in declared:
            raise ValueError(
                f"{workflow.name}: transition {t.action.value} references "
                f"undeclared state"
            )
        if t.from_state in workflow.terminal_states:
            raise ValueError(
                f"{workflow.name}: terminal state {t.from_state.value} "
                f"has outgoing transition {t.action.value}"
            )
    wired = {t.action for t in workflow.transitions}
    missing = [a.value for a in PDCAction if a not in wired]
    if missing:
        raise ValueError(f"{workflow.name}: actions without transitions: {missing}")
    unlabelled = [a.value for a in PDCAction if a not in ACTION_VERBS]
    if unlabelled:
        raise ValueError(f"{workflow.name}: actions without verbs: {unlabelled}")


_validate_workflow(PDC_WORKFLOW)

_TRANSITION_INDEX: dict[tuple[PDCAction, PDCStatus], Transition] = {
    (t.action, t.from_state): t for t in PDC_WORKFLOW.transitions
}

logger.info(
    "pdc_workflow_registered",
    extra={
        "workflow_name": PDC_WORKFLOW.name,
        "state_count": len(PDC_WORKFLOW.states),
        "transition_count": len(PDC_WORKFLOW.transitions),
        "initial_state": PDC_WORKFLOW.initial_state.value,
    },
)


def allowed_sources(action: PDCAction) -> tuple[PDCStatus, ...]:
    """States from which ``action`` may be taken."""
    return tuple(
        t.from_state for t in PDC_WORKFLOW.transitions if t.action is action
    )


def can_transition(action: PDCAction, current: PDCStatus) -> bool:
    return (action, current) in _TRANSITION_INDEX


def resolve_transition(action: PDCAction, current: PDCStatus, pdc_id: object = None) -> Transition:
    """
    Look up the transition for ``action`` taken from ``current``.

    Raises:
        InvalidTransitionError: the pair is not in the table.
    """
    transition = _TRANSITION_INDEX.get((action, current))
    if transition is None:
        raise InvalidTransitionError(
            pdc_id=str(pdc_id),
            action=action.value,
            verb=ACTION_VERBS[action],
            current_status=current.value,
        )
    return transition
