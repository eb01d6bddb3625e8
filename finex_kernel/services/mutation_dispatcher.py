"""
MutationDispatcher -- the single gate every entity mutation passes through.

Responsibility:
    Accepts intents, decides whether each commits immediately or must wait
    for an operator justification, holds at most one pending intent, and
    routes confirmed intents to the entity's commit handler.

Architecture position:
    Kernel > Services -- owned by the application controller, which is
    the only caller of ``submit``/``confirm``/``cancel``.

Invariants enforced:
    - Capacity one: ``submit`` while AWAITING_REASON raises
      ``PendingActionConflictError``; the outstanding intent is kept.
    - A reason shorter than the minimum is rejected without consuming the
      pending intent, so the operator can retry.
    - Any other failure during confirm (validator, unsupported operation)
      is terminal: the slot is cleared and the state returns to IDLE.
    - Validators run at submit for early rejection and again at confirm,
      which is authoritative.

Failure modes:
    - NoPendingActionError from ``confirm``/``cancel`` with an empty slot.
    - UnsupportedIntentError at submit for an (entity, operation) pair
      with no commit path, or at confirm for an accepted-but-unresolved one.
"""

from __future__ import annotations

from collections.abc import Mapping

from finex_kernel.domain.clock import Clock
from finex_kernel.domain.entities import EntityType, User
from finex_kernel.domain.intents import (
    UNRESOLVED_OPERATIONS,
    Intent,
    is_supported,
    requires_reason,
)
from finex_kernel.domain.validation import DEFAULT_REASON_MIN_LENGTH, validate_reason
from finex_kernel.domain.workflow import (
    CommitResult,
    PendingAction,
    PendingActionState,
    WorkflowCommand,
    next_state,
)
from finex_kernel.exceptions import (
    FinexKernelError,
    NoPendingActionError,
    PendingActionConflictError,
    UnsupportedIntentError,
)
from finex_kernel.logging_config import LogContext, get_logger
from finex_kernel.services.base import BaseService
from finex_kernel.services.commit_handlers import (
    CommitContext,
    EntityCommitHandler,
    HandlerOutcome,
)
from finex_kernel.services.domain_store import DomainStore

logger = get_logger("services.mutation_dispatcher")


class MutationDispatcher(BaseService):
    """Pending-action state machine in front of the commit handlers."""

    def __init__(
        self,
        store: DomainStore,
        handlers: Mapping[EntityType, EntityCommitHandler],
        clock: Clock | None = None,
        reason_min_length: int = DEFAULT_REASON_MIN_LENGTH,
    ):
        super().__init__(store, clock)
        self._handlers = dict(handlers)
        self._reason_min_length = reason_min_length
        self._state = PendingActionState.IDLE
        self._pending: PendingAction | None = None

    @property
    def state(self) -> PendingActionState:
        return self._state

    @property
    def pending(self) -> PendingAction | None:
        return self._pending

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def submit(self, intent: Intent, actor: User) -> CommitResult:
        """
        Accept an intent.

        Ungated intents commit now and the state stays IDLE.  Gated intents
        are validated, parked in the slot, and the state becomes
        AWAITING_REASON.

        Raises:
            PendingActionConflictError: another intent is awaiting a reason.
            UnsupportedIntentError: no commit path for the intent.
            ValidationError: the intent would fail its validators.
        """
        with LogContext.bind(
            actor_id=actor.id,
            intent_id=intent.intent_id,
            entity_type=intent.entity_type.value,
            entity_id=intent.entity_id,
        ):
            if self._pending is not None:
                logger.warning(
                    "intent_rejected",
                    extra={"operation": intent.operation.value, "cause": "conflict"},
                )
                raise PendingActionConflictError(
                    self._pending.intent.intent_id, intent.intent_id
                )
            if not is_supported(intent):
                raise UnsupportedIntentError(
                    intent.entity_type.value, intent.operation.value
                )

            handler = self._handlers[intent.entity_type]
            ctx = CommitContext(actor=actor)

            if not requires_reason(intent):
                outcome = self._commit(handler, intent, ctx)
                self._transition(WorkflowCommand.COMMIT)
                return self._result(intent, outcome)

            if intent.key not in UNRESOLVED_OPERATIONS:
                handler.precheck(intent, ctx)
            self._pending = PendingAction(
                intent=intent, submitted_at=self.clock.now(), submitted_by=actor.id
            )
            self._transition(WorkflowCommand.SUBMIT)
            logger.info("intent_submitted", extra={"operation": intent.operation.value})
            return CommitResult(intent_id=intent.intent_id, state=self._state)

    def confirm(self, reason: str, actor: User) -> CommitResult:
        """
        Commit the pending intent with ``reason`` as its justification.

        Raises:
            NoPendingActionError: nothing is pending.
            ReasonTooShortError: reason too short; the intent stays pending.
            UnsupportedIntentError: the pending intent has no commit path.
            ValidationError: the commit handler rejected the intent.
        """
        if self._pending is None:
            raise NoPendingActionError(WorkflowCommand.CONFIRM.value)
        intent = self._pending.intent

        with LogContext.bind(
            actor_id=actor.id,
            intent_id=intent.intent_id,
            entity_type=intent.entity_type.value,
            entity_id=intent.entity_id,
        ):
            validate_reason(reason, self._reason_min_length)
            ctx = CommitContext(actor=actor, reason=reason.strip())
            try:
                if intent.key in UNRESOLVED_OPERATIONS:
                    raise UnsupportedIntentError(
                        intent.entity_type.value, intent.operation.value
                    )
                outcome = self._commit(self._handlers[intent.entity_type], intent, ctx)
            except FinexKernelError:
                self._clear(WorkflowCommand.REJECT)
                raise
            self._clear(WorkflowCommand.CONFIRM)
            return self._result(intent, outcome)

    def cancel(self) -> Intent:
        """Discard the pending intent without any collection change."""
        if self._pending is None:
            raise NoPendingActionError(WorkflowCommand.CANCEL.value)
        intent = self._pending.intent
        self._clear(WorkflowCommand.CANCEL)
        logger.info(
            "intent_cancelled",
            extra={"cancelled_intent_id": intent.intent_id, "operation": intent.operation.value},
        )
        return intent

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _commit(
        self, handler: EntityCommitHandler, intent: Intent, ctx: CommitContext
    ) -> HandlerOutcome:
        try:
            outcome = handler.commit(intent, ctx)
        except FinexKernelError as exc:
            logger.warning(
                "intent_rejected",
                extra={"operation": intent.operation.value, "cause": exc.code},
            )
            raise
        logger.info(
            "intent_committed",
            extra={
                "operation": intent.operation.value,
                "committed": outcome.committed,
                "committed_entity_id": outcome.entity_id,
            },
        )
        return outcome

    def _clear(self, command: WorkflowCommand) -> None:
        self._pending = None
        self._transition(command)

    def _transition(self, command: WorkflowCommand) -> None:
        target = next_state(self._state, command)
        if target is None:
            raise RuntimeError(f"Illegal transition {command.value} from {self._state.value}")
        self._state = target

    def _result(self, intent: Intent, outcome: HandlerOutcome) -> CommitResult:
        return CommitResult(
            intent_id=intent.intent_id,
            state=self._state,
            committed=outcome.committed,
            entity_id=outcome.entity_id,
            audit_entry_id=outcome.audit_entry.id if outcome.audit_entry else None,
            inventory_log_id=outcome.inventory_log.id if outcome.inventory_log else None,
        )
