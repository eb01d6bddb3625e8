"""
AuditRecorder -- append-only audit trail of justified mutations.

Responsibility:
    Creates one immutable ``AuditLogEntry`` per committed UPDATE or DELETE,
    carrying the actor, the timestamp, the operator's justification and
    the entity snapshot(s).

Architecture position:
    Kernel > Services -- imperative shell, called only by the commit
    handlers after their validators have passed.

Invariants enforced:
    - Append-only: entries are prepended to the store's audit log, which
      exposes no removal or rewrite method.  ``AuditLogEntry`` is frozen.
    - ``original_data`` is the frozen entity instance read from the store
      before the mutation, so later changes cannot reach it.
    - The reason is re-validated here (stripped length >= minimum); an
      entry with a shorter reason can never be appended.
"""

from uuid import uuid4

from finex_kernel.domain.clock import Clock
from finex_kernel.domain.entities import (
    AuditAction,
    AuditLogEntry,
    Entity,
    EntityType,
    Performer,
)
from finex_kernel.domain.validation import DEFAULT_REASON_MIN_LENGTH, validate_reason
from finex_kernel.logging_config import get_logger
from finex_kernel.services.base import BaseService
from finex_kernel.services.domain_store import DomainStore

logger = get_logger("services.auditor")


class AuditRecorder(BaseService):
    """Appends audit log entries to the domain store."""

    def __init__(
        self,
        store: DomainStore,
        clock: Clock | None = None,
        reason_min_length: int = DEFAULT_REASON_MIN_LENGTH,
    ):
        super().__init__(store, clock)
        self._reason_min_length = reason_min_length

    def record(
        self,
        action: AuditAction,
        entity_type: EntityType,
        reason: str,
        original: Entity,
        performer: Performer,
        updated: Entity | None = None,
    ) -> AuditLogEntry:
        """
        Append one audit entry.

        Preconditions:
            - ``original`` is the record as it was before the mutation.
        Postconditions:
            - The entry is the newest item of ``store.audit_logs``.
        Raises:
            ReasonTooShortError: if the reason fails validation.
        """
        validate_reason(reason, self._reason_min_length)
        entry = AuditLogEntry(
            id=str(uuid4()),
            timestamp=self.clock.now(),
            type=action,
            entity_type=entity_type,
            reason=reason,
            original_data=original,
            updated_data=updated,
            performed_by=performer,
        )
        self.store.prepend_audit_entry(entry)

        logger.info(
            "audit_recorded",
            extra={
                "audit_id": entry.id,
                "action": action.value,
                "audited_entity_type": entity_type.value,
                "audited_entity_id": original.id,
                "performed_by": performer.name,
            },
        )
        return entry
