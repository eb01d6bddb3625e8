"""
Module: finex_kernel.db.base
Responsibility: Declarative base for the ORM models behind the durable
    key-value store.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  MUST NOT import from models/, services/, selectors/, domain/,
    or outer layers.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - ``datetime`` annotations map to ``DateTime(timezone=True)``.
        - Models declare their own primary key; stored collections are
          keyed by name, not by a surrogate id.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
    }
