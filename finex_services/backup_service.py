"""
finex_services.backup_service -- full-store backup export and import.

Responsibility:
    Serializes every collection of the domain store into the backup JSON
    document (camelCase wire names) stamped with a ``_metadata``
    watermark, and decodes such a document back into a ``StoreSnapshot``.

Architecture position:
    Services -- called by ``FinexApplication``.  Import never touches the
    live store; the application saves the decoded snapshot and reloads.

Failure modes:
    - ``ImportRejectedError`` when the document is not an object, lacks
      ``users`` or ``coa``, or any record fails to decode.

The ``integrityHash`` watermark is base64 of ``phone-deviceId-day``.  It
identifies who exported the file; it does not protect its content.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from finex_kernel.domain.clock import Clock
from finex_kernel.domain.credentials import CredentialProvider
from finex_kernel.domain.entities import AppSettings, User
from finex_kernel.exceptions import ImportRejectedError
from finex_kernel.logging_config import get_logger
from finex_kernel.services.domain_store import StoreSnapshot
from finex_kernel.services.persistence_service import snapshot_from_wire, snapshot_to_wire
from finex_kernel.utils.hashing import watermark_checksum

logger = get_logger("services.backup")

METADATA_KEY = "_metadata"
REQUIRED_COLLECTIONS = ("users", "coa")


def export_backup(
    snapshot: StoreSnapshot,
    user: User,
    credentials: CredentialProvider,
    clock: Clock,
) -> dict[str, Any]:
    """Backup document for ``snapshot``, watermarked by ``user``."""
    now = clock.now()
    device_id = credentials.device_fingerprint()
    document: dict[str, Any] = {
        METADATA_KEY: {
            "exportedBy": user.full_name,
            "exportJobTitle": user.job_title,
            "exportPhone": user.phone,
            "deviceId": device_id,
            "timestamp": now.isoformat(),
            "integrityHash": watermark_checksum(user.phone, device_id, now.day),
        },
    }
    document.update(snapshot_to_wire(snapshot))

    logger.info(
        "backup_exported",
        extra={
            "exported_by": user.id,
            "entries": len(snapshot.entries),
            "audit_entries": len(snapshot.audit_logs),
        },
    )
    return document


def import_backup(
    document: Any,
    default_settings: AppSettings | None = None,
) -> StoreSnapshot:
    """
    Decode a backup document into a snapshot.

    ``users`` and ``coa`` must be present as lists.  Other collections
    absent from the document decode as empty; absent settings
    take ``default_settings``.  ``_metadata`` is ignored.

    Raises:
        ImportRejectedError: malformed document or undecodable record.
    """
    if not isinstance(document, Mapping):
        raise ImportRejectedError("backup must be a JSON object")
    missing = [name for name in REQUIRED_COLLECTIONS if not isinstance(document.get(name), list)]
    if missing:
        raise ImportRejectedError(f"missing or invalid required collections {missing}")

    data = {k: v for k, v in document.items() if k != METADATA_KEY}
    try:
        snapshot = snapshot_from_wire(data, (), default_settings)
    except (ValueError, TypeError, KeyError) as exc:
        logger.warning("backup_import_rejected", extra={"detail": str(exc)})
        raise ImportRejectedError(str(exc)) from exc

    logger.info(
        "backup_decoded",
        extra={"users": len(snapshot.users), "accounts": len(snapshot.coa)},
    )
    return snapshot


def read_watermark(document: Mapping[str, Any]) -> Mapping[str, Any] | None:
    """The ``_metadata`` block of a backup document, if present."""
    metadata = document.get(METADATA_KEY)
    return metadata if isinstance(metadata, Mapping) else None

