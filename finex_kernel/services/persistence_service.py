"""
PersistenceAdapter -- durable key-value snapshots of the domain store.

Responsibility:
    Writes every collection of the ``DomainStore`` to its own durable key
    after each committed mutation, reads them back at startup, and keeps
    the session-scoped key naming the authenticated user.

Architecture position:
    Kernel > Services -- the only component that talks to the database.
    Uses ``session_scope()`` from ``finex_kernel.db.engine``.

Failure modes:
    - Load: any unreadable or undecodable key is logged as
      ``persistence_load_failed`` and the whole load falls back to empty
      collections, the default chart and default settings.  Data that
      failed to decode is NOT recovered.
    - Save: database errors are logged and raised as ``PersistenceError``.
      The in-memory commit has already happened by then; there is no
      transaction spanning memory, audit log and disk.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from finex_kernel.db.engine import session_scope
from finex_kernel.domain.clock import Clock, SystemClock
from finex_kernel.domain.entities import Account, AppSettings
from finex_kernel.exceptions import PersistenceError
from finex_kernel.logging_config import get_logger
from finex_kernel.models.stored_collection import StorageScope, StoredCollection
from finex_kernel.services.domain_store import StoreSnapshot
from finex_kernel.utils.hashing import canonicalize_json, hash_payload
from finex_kernel.utils.serialization import (
    decode_collection,
    decode_settings,
    encode_collection,
    to_wire,
)

logger = get_logger("services.persistence")

# Wire collection name -> durable key
STORAGE_KEYS: dict[str, str] = {
    "users": "finex_users",
    "entries": "finex_entries",
    "wells": "finex_wells",
    "inventory": "finex_inventory",
    "inventoryLogs": "finex_inventory_logs",
    "partners": "finex_partners",
    "auditLogs": "finex_audit_logs",
    "coa": "finex_coa",
    "settings": "finex_settings",
}
SESSION_KEY = "finex_session"

# Wire collection name -> StoreSnapshot attribute
SNAPSHOT_FIELDS: dict[str, str] = {
    "users": "users",
    "entries": "entries",
    "wells": "wells",
    "inventory": "inventory",
    "inventoryLogs": "inventory_logs",
    "partners": "partners",
    "auditLogs": "audit_logs",
    "coa": "coa",
}


def snapshot_to_wire(snapshot: StoreSnapshot) -> dict[str, Any]:
    """Encode every collection under its wire name."""
    data: dict[str, Any] = {
        name: encode_collection(getattr(snapshot, attr))
        for name, attr in SNAPSHOT_FIELDS.items()
    }
    data["settings"] = to_wire(snapshot.settings)
    return data


def snapshot_from_wire(
    data: dict[str, Any],
    default_chart: Sequence[Account] = (),
    default_settings: AppSettings | None = None,
) -> StoreSnapshot:
    """Decode wire collections; a missing chart or settings take the defaults."""
    kwargs: dict[str, Any] = {
        attr: decode_collection(name, data.get(name))
        for name, attr in SNAPSHOT_FIELDS.items()
    }
    if data.get("coa") is None:
        kwargs["coa"] = tuple(default_chart)
    if data.get("settings") is None:
        kwargs["settings"] = default_settings or AppSettings()
    else:
        kwargs["settings"] = decode_settings(data["settings"])
    return StoreSnapshot(**kwargs)


class PersistenceAdapter:
    """Durable write-through for the domain store."""

    def __init__(
        self,
        default_chart: Sequence[Account] = (),
        default_settings: AppSettings | None = None,
        clock: Clock | None = None,
    ):
        self._default_chart = tuple(default_chart)
        self._default_settings = default_settings or AppSettings()
        self._clock = clock or SystemClock()

    def empty_snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(coa=self._default_chart, settings=self._default_settings)

    # ------------------------------------------------------------------
    # Durable collections
    # ------------------------------------------------------------------

    def load(self) -> StoreSnapshot:
        """Read every durable key.  Never raises; see module docstring."""
        try:
            raw = self._read_scope(StorageScope.DURABLE)
            data = {
                name: raw[key] for name, key in STORAGE_KEYS.items() if key in raw
            }
            snapshot = snapshot_from_wire(data, self._default_chart, self._default_settings)
        except (SQLAlchemyError, ValueError, TypeError, KeyError):
            logger.error("persistence_load_failed", exc_info=True)
            return self.empty_snapshot()

        logger.info(
            "persistence_loaded",
            extra={"keys": sorted(raw), "users": len(snapshot.users), "entries": len(snapshot.entries)},
        )
        return snapshot

    def save(self, snapshot: StoreSnapshot) -> None:
        """Overwrite every durable key with the snapshot."""
        data = snapshot_to_wire(snapshot)
        try:
            with session_scope() as session:
                for name, key in STORAGE_KEYS.items():
                    self._upsert(session, key, data[name], StorageScope.DURABLE)
        except SQLAlchemyError as exc:
            logger.error("persistence_save_failed", exc_info=True)
            raise PersistenceError("save", str(exc)) from exc
        logger.debug("persistence_saved", extra={"keys": len(STORAGE_KEYS)})

    def clear_all(self) -> None:
        """Remove every durable and session key."""
        try:
            with session_scope() as session:
                session.execute(delete(StoredCollection))
        except SQLAlchemyError as exc:
            logger.error("persistence_clear_failed", exc_info=True)
            raise PersistenceError("clear", str(exc)) from exc
        logger.info("persistence_cleared")

    # ------------------------------------------------------------------
    # Session key
    # ------------------------------------------------------------------

    def load_session(self) -> str | None:
        """User id of the authenticated session, if any."""
        try:
            raw = self._read_scope(StorageScope.SESSION)
        except (SQLAlchemyError, ValueError):
            logger.error("persistence_load_failed", exc_info=True)
            return None
        value = raw.get(SESSION_KEY)
        return value.get("userId") if isinstance(value, dict) else None

    def save_session(self, user_id: str) -> None:
        try:
            with session_scope() as session:
                self._upsert(session, SESSION_KEY, {"userId": user_id}, StorageScope.SESSION)
        except SQLAlchemyError as exc:
            logger.error("persistence_save_failed", exc_info=True)
            raise PersistenceError("save_session", str(exc)) from exc

    def clear_session(self) -> None:
        try:
            with session_scope() as session:
                session.execute(
                    delete(StoredCollection).where(StoredCollection.key == SESSION_KEY)
                )
        except SQLAlchemyError as exc:
            logger.error("persistence_clear_failed", exc_info=True)
            raise PersistenceError("clear_session", str(exc)) from exc

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _read_scope(self, scope: StorageScope) -> dict[str, Any]:
        with session_scope() as session:
            rows = session.execute(
                select(StoredCollection).where(StoredCollection.scope == scope.value)
            ).scalars().all()
            result: dict[str, Any] = {}
            for row in rows:
                value = json.loads(row.payload)
                if hash_payload(value) != row.payload_hash:
                    logger.warning("persistence_hash_mismatch", extra={"key": row.key})
                result[row.key] = value
            return result

    def _upsert(self, session, key: str, value: Any, scope: StorageScope) -> None:
        payload = canonicalize_json(value)
        row = session.execute(
            select(StoredCollection).where(StoredCollection.key == key)
        ).scalar_one_or_none()
        if row is None:
            row = StoredCollection(key=key, scope=scope.value)
            session.add(row)
        row.payload = payload
        row.payload_hash = hash_payload(value)
        row.updated_at = self._clock.now()
