"""
Module: finex_kernel.models.stored_collection
Responsibility: ORM persistence for the durable key-value store.  One row
    per collection key (``finex_users``, ``finex_coa``, ...) plus one
    session-scoped row for the authenticated user.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - ``key`` is unique: a collection is always overwritten in full, never
      merged field by field.
    - ``payload_hash`` is the SHA-256 of the canonical JSON payload, so a
      row edited outside the application is detectable on load.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from finex_kernel.db.base import Base


class StorageScope(str, Enum):
    DURABLE = "durable"
    SESSION = "session"


class StoredCollection(Base):
    """A single persisted key with its JSON payload."""

    __tablename__ = "stored_collections"

    __table_args__ = (
        Index("idx_stored_collection_scope", "scope"),
    )

    key: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )

    scope: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=StorageScope.DURABLE.value,
    )

    # Canonical JSON text
    payload: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    payload_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StoredCollection {self.key} ({self.scope})>"
