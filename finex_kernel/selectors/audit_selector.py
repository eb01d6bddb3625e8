"""
Module: finex_kernel.selectors.audit_selector
Responsibility: Read-only queries over the two append-only logs -- the audit
    trail of justified mutations and the inventory movement log.
Architecture position: Kernel > Selectors.

Both logs are stored newest first; these queries keep that order unless a
method says otherwise.
"""

from finex_kernel.domain.entities import (
    AuditAction,
    AuditLogEntry,
    EntityType,
    InventoryLogEntry,
    InventoryLogType,
)
from finex_kernel.selectors.base import BaseSelector


class AuditSelector(BaseSelector):
    """Filters over the audit trail and inventory log."""

    def audit_entries(
        self,
        entity_type: EntityType | None = None,
        action: AuditAction | None = None,
    ) -> tuple[AuditLogEntry, ...]:
        return tuple(
            entry
            for entry in self.store.audit_logs
            if (entity_type is None or entry.entity_type is entity_type)
            and (action is None or entry.type is action)
        )

    def history(self, entity_type: EntityType, entity_id: str) -> tuple[AuditLogEntry, ...]:
        """Audit entries for one record, oldest first."""
        return tuple(
            entry
            for entry in reversed(self.store.audit_logs)
            if entry.entity_type is entity_type and entry.entity_id == entity_id
        )

    def find_audit_entry(self, audit_id: str) -> AuditLogEntry | None:
        for entry in self.store.audit_logs:
            if entry.id == audit_id:
                return entry
        return None

    def inventory_movements(
        self,
        item_id: str | None = None,
        log_type: InventoryLogType | None = None,
    ) -> tuple[InventoryLogEntry, ...]:
        return tuple(
            entry
            for entry in self.store.inventory_logs
            if (item_id is None or entry.item_id == item_id)
            and (log_type is None or entry.type is log_type)
        )
