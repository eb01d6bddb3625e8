"""
Pending-action workflow types (``finex_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the capacity-one pending-action state machine
driven by the mutation dispatcher::

    IDLE --submit(ungated)--> IDLE
    IDLE --submit(gated)----> AWAITING_REASON
    AWAITING_REASON --confirm / cancel / reject--> IDLE

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Transitions not listed in ``PENDING_ACTION_TRANSITIONS`` are illegal;
  in particular ``submit`` from AWAITING_REASON is rejected rather than
  replacing the outstanding intent.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from finex_kernel.domain.intents import Intent


class PendingActionState(str, Enum):
    IDLE = "idle"
    AWAITING_REASON = "awaiting_reason"


class WorkflowCommand(str, Enum):
    COMMIT = "commit"
    SUBMIT = "submit"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    REJECT = "reject"


@dataclass(frozen=True)
class Transition:
    """A valid state transition of the pending-action slot."""

    from_state: PendingActionState
    to_state: PendingActionState
    command: WorkflowCommand


PENDING_ACTION_TRANSITIONS: tuple[Transition, ...] = (
    Transition(PendingActionState.IDLE, PendingActionState.IDLE, WorkflowCommand.COMMIT),
    Transition(PendingActionState.IDLE, PendingActionState.AWAITING_REASON, WorkflowCommand.SUBMIT),
    Transition(PendingActionState.AWAITING_REASON, PendingActionState.IDLE, WorkflowCommand.CONFIRM),
    Transition(PendingActionState.AWAITING_REASON, PendingActionState.IDLE, WorkflowCommand.CANCEL),
    Transition(PendingActionState.AWAITING_REASON, PendingActionState.IDLE, WorkflowCommand.REJECT),
)


def next_state(
    current: PendingActionState, command: WorkflowCommand
) -> PendingActionState | None:
    """Target state for ``command`` from ``current``; None if illegal."""
    for transition in PENDING_ACTION_TRANSITIONS:
        if transition.from_state is current and transition.command is command:
            return transition.to_state
    return None


@dataclass(frozen=True)
class PendingAction:
    """The intent held in the slot while its justification is awaited."""

    intent: Intent
    submitted_at: datetime
    submitted_by: str


@dataclass(frozen=True)
class CommitResult:
    """Outcome of a submit or confirm call.

    ``committed`` is False when the intent went to AWAITING_REASON, or
    when the target id no longer exists (a silent no-op).
    """

    intent_id: str
    state: PendingActionState
    committed: bool = False
    entity_id: str | None = None
    audit_entry_id: str | None = None
    inventory_log_id: str | None = None
