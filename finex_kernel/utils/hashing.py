"""
Deterministic hashing utilities.

Canonical JSON and SHA-256 used by the persistence adapter to fingerprint
each stored collection.  Also hosts the backup watermark checksum, which
is deliberately NOT cryptographic.
"""

import base64
import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID


def _json_serializer(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        # Normalize Decimal to string representation
        return str(obj.normalize())
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonicalize_json(data: Any) -> str:
    """Sorted keys, no whitespace, consistent special types."""
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_json_serializer,
    )


def hash_payload(payload: Any) -> str:
    """Hex-encoded SHA-256 of the canonical JSON of ``payload``."""
    canonical = canonicalize_json(payload)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def watermark_checksum(phone: str, device_id: str, day_of_month: int) -> str:
    """Backup watermark: base64 of ``phone-deviceId-day``.

    A watermark, not a security boundary.
    """
    raw = f"{phone}-{device_id}-{day_of_month}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")
