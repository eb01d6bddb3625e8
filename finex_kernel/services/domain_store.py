"""
DomainStore -- authoritative in-memory collections.

Responsibility:
    Holds the nine collections (users, journal entries, wells, partners,
    inventory, inventory logs, audit logs, chart of accounts, settings)
    for the lifetime of the application.  Readers get tuples of frozen
    records; writers are the commit handlers, through the narrow
    ``replace``/``insert``/``remove``/``prepend`` methods below.

Architecture position:
    Kernel > Services -- imperative shell state.  Owned exclusively by the
    application controller; the presentation layer only sees read-only
    projections.

Invariants enforced:
    - Audit logs and inventory logs are append-only: there is no method
      that removes or rewrites an entry in either log.
    - Newest log entries come first, matching the display order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from finex_kernel.domain.entities import (
    Account,
    AppSettings,
    AuditLogEntry,
    EntityType,
    InventoryItem,
    InventoryLogEntry,
    JournalEntry,
    Partner,
    User,
    Well,
    code_sort_key,
)

_COLLECTION_BY_ENTITY: dict[EntityType, str] = {
    EntityType.ENTRY: "entries",
    EntityType.ACCOUNT: "coa",
    EntityType.WELL: "wells",
    EntityType.PARTNER: "partners",
    EntityType.INVENTORY: "inventory",
    EntityType.USER: "users",
}


@dataclass(frozen=True)
class StoreSnapshot:
    """Point-in-time value of every collection."""

    users: tuple[User, ...] = ()
    entries: tuple[JournalEntry, ...] = ()
    wells: tuple[Well, ...] = ()
    partners: tuple[Partner, ...] = ()
    inventory: tuple[InventoryItem, ...] = ()
    inventory_logs: tuple[InventoryLogEntry, ...] = ()
    audit_logs: tuple[AuditLogEntry, ...] = ()
    coa: tuple[Account, ...] = ()
    settings: AppSettings = field(default_factory=AppSettings)


class DomainStore:
    """Mutable holder of the entity collections."""

    def __init__(self, snapshot: StoreSnapshot | None = None):
        self._collections: dict[str, tuple] = {}
        self._settings = AppSettings()
        self.restore(snapshot or StoreSnapshot())

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def users(self) -> tuple[User, ...]:
        return self._collections["users"]

    @property
    def entries(self) -> tuple[JournalEntry, ...]:
        return self._collections["entries"]

    @property
    def wells(self) -> tuple[Well, ...]:
        return self._collections["wells"]

    @property
    def partners(self) -> tuple[Partner, ...]:
        return self._collections["partners"]

    @property
    def inventory(self) -> tuple[InventoryItem, ...]:
        return self._collections["inventory"]

    @property
    def inventory_logs(self) -> tuple[InventoryLogEntry, ...]:
        return self._collections["inventory_logs"]

    @property
    def audit_logs(self) -> tuple[AuditLogEntry, ...]:
        return self._collections["audit_logs"]

    @property
    def coa(self) -> tuple[Account, ...]:
        return self._collections["coa"]

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def collection(self, entity_type: EntityType) -> tuple[Any, ...]:
        return self._collections[_COLLECTION_BY_ENTITY[entity_type]]

    def find(self, entity_type: EntityType, entity_id: str | None) -> Any | None:
        if entity_id is None:
            return None
        for record in self.collection(entity_type):
            if record.id == entity_id:
                return record
        return None

    # ------------------------------------------------------------------
    # Writes (commit handlers only)
    # ------------------------------------------------------------------

    def insert(self, entity_type: EntityType, record: Any) -> None:
        name = _COLLECTION_BY_ENTITY[entity_type]
        if entity_type is EntityType.ENTRY:
            # Journal shows newest entries first
            records = (record, *self._collections[name])
        else:
            records = (*self._collections[name], record)
        self._assign(entity_type, records)

    def replace(self, entity_type: EntityType, record: Any) -> None:
        name = _COLLECTION_BY_ENTITY[entity_type]
        self._assign(
            entity_type,
            tuple(
                record if existing.id == record.id else existing
                for existing in self._collections[name]
            ),
        )

    def remove(self, entity_type: EntityType, entity_id: str) -> None:
        name = _COLLECTION_BY_ENTITY[entity_type]
        self._collections[name] = tuple(
            existing for existing in self._collections[name] if existing.id != entity_id
        )

    def prepend_audit_entry(self, entry: AuditLogEntry) -> None:
        self._collections["audit_logs"] = (entry, *self._collections["audit_logs"])

    def prepend_inventory_log(self, entry: InventoryLogEntry) -> None:
        self._collections["inventory_logs"] = (entry, *self._collections["inventory_logs"])

    def update_settings(self, settings: AppSettings) -> None:
        self._settings = settings

    def _assign(self, entity_type: EntityType, records: tuple) -> None:
        # Chart is sorted before assignment; a failing sort leaves it untouched.
        if entity_type is EntityType.ACCOUNT:
            records = tuple(sorted(records, key=lambda a: code_sort_key(a.code)))
        self._collections[_COLLECTION_BY_ENTITY[entity_type]] = records

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(settings=self._settings, **self._collections)

    def restore(self, snapshot: StoreSnapshot) -> None:
        """Overwrite every collection with the snapshot's contents."""
        self._collections = {
            "users": tuple(snapshot.users),
            "entries": tuple(snapshot.entries),
            "wells": tuple(snapshot.wells),
            "partners": tuple(snapshot.partners),
            "inventory": tuple(snapshot.inventory),
            "inventory_logs": tuple(snapshot.inventory_logs),
            "audit_logs": tuple(snapshot.audit_logs),
            "coa": tuple(snapshot.coa),
        }
        self._settings = snapshot.settings
