"""
Wire codec for domain entities.

Converts frozen entities to and from the JSON-compatible dicts used by
both the persistence adapter and the backup export format.  Field names
on the wire are camelCase (``debitLines``, ``unitPrice``); the user role
signature travels as ``_sig``.  ``Decimal`` values are written as
strings and read back from strings or plain JSON numbers, so backups
written by older tooling (numbers) still decode.

Decoding failures surface as ``ValueError``, ``TypeError`` or
``KeyError``; callers translate them into their own error types.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from finex_kernel.domain.entities import (
    ENTITY_CLASSES,
    Account,
    AppSettings,
    AuditAction,
    AuditLogEntry,
    EntityType,
    InventoryItem,
    InventoryLogEntry,
    JournalEntry,
    JournalLine,
    Partner,
    Performer,
    User,
    Well,
    WellShare,
)

_WIRE_OVERRIDES: dict[type, dict[str, str]] = {
    User: {"signature": "_sig"},
}

# Fields holding tuples of nested records
_NESTED: dict[tuple[type, str], type] = {
    (JournalEntry, "debit_lines"): JournalLine,
    (JournalEntry, "credit_lines"): JournalLine,
    (Well, "shares"): WellShare,
}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def wire_name(cls: type, attr: str) -> str:
    return _WIRE_OVERRIDES.get(cls, {}).get(attr) or _camel(attr)


def _encode_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, tuple):
        return [_encode_value(v) for v in value]
    if is_dataclass(value):
        return to_wire(value)
    raise TypeError(f"Cannot encode {type(value).__name__}")


def to_wire(record: Any) -> dict[str, Any]:
    """Encode any entity, log record, performer or settings object."""
    if isinstance(record, AuditLogEntry):
        return audit_entry_to_wire(record)
    cls = type(record)
    return {
        wire_name(cls, f.name): _encode_value(getattr(record, f.name))
        for f in fields(record)
    }


def from_wire(cls: type, data: Mapping[str, Any]) -> Any:
    """Decode ``data`` into ``cls``; absent optional fields take defaults."""
    if not isinstance(data, Mapping):
        raise TypeError(f"{cls.__name__} record must be an object, got {type(data).__name__}")
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        key = wire_name(cls, f.name)
        if key not in data:
            continue
        value = data[key]
        nested = _NESTED.get((cls, f.name))
        if nested is not None and value is not None:
            value = tuple(from_wire(nested, item) for item in value)
        kwargs[f.name] = value
    return cls(**kwargs)


# =========================================================================
# Audit entries (polymorphic snapshots)
# =========================================================================


def audit_entry_to_wire(entry: AuditLogEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "timestamp": entry.timestamp.isoformat(),
        "type": entry.type.value,
        "entityType": entry.entity_type.value,
        "reason": entry.reason,
        "originalData": to_wire(entry.original_data),
        "updatedData": to_wire(entry.updated_data) if entry.updated_data is not None else None,
        "performedBy": to_wire(entry.performed_by),
    }


def audit_entry_from_wire(data: Mapping[str, Any]) -> AuditLogEntry:
    entity_type = EntityType(data["entityType"])
    entity_cls = ENTITY_CLASSES[entity_type]
    updated = data.get("updatedData")
    return AuditLogEntry(
        id=data["id"],
        timestamp=datetime.fromisoformat(data["timestamp"]),
        type=AuditAction(data["type"]),
        entity_type=entity_type,
        reason=data["reason"],
        original_data=from_wire(entity_cls, data["originalData"]),
        updated_data=from_wire(entity_cls, updated) if updated is not None else None,
        performed_by=from_wire(Performer, data["performedBy"]),
    )


# =========================================================================
# Collections
# =========================================================================

COLLECTION_TYPES: dict[str, type] = {
    "users": User,
    "entries": JournalEntry,
    "wells": Well,
    "partners": Partner,
    "inventory": InventoryItem,
    "inventoryLogs": InventoryLogEntry,
    "coa": Account,
    "auditLogs": AuditLogEntry,
}


def encode_collection(records: tuple) -> list[dict[str, Any]]:
    return [to_wire(r) for r in records]


def decode_collection(name: str, items: Any) -> tuple:
    """Decode the wire list stored under collection ``name``."""
    if items is None:
        return ()
    if not isinstance(items, list):
        raise TypeError(f"Collection {name} must be a list, got {type(items).__name__}")
    cls = COLLECTION_TYPES[name]
    if cls is AuditLogEntry:
        return tuple(audit_entry_from_wire(item) for item in items)
    return tuple(from_wire(cls, item) for item in items)


def decode_settings(data: Any) -> AppSettings:
    if data is None:
        return AppSettings()
    return from_wire(AppSettings, data)


__all__ = [
    "COLLECTION_TYPES",
    "audit_entry_from_wire",
    "audit_entry_to_wire",
    "decode_collection",
    "decode_settings",
    "encode_collection",
    "from_wire",
    "to_wire",
    "wire_name",
]
