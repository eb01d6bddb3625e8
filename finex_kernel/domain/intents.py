"""
Mutation intents (``finex_kernel.domain.intents``).

Responsibility
--------------
The tagged-variant type a caller hands to the mutation dispatcher:
operation x entity kind x target id x payload.  The table of supported
(entity, operation) pairs lives here so that an intent with no commit
handler is rejected at ``submit`` instead of silently doing nothing.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``SUPPORTED_OPERATIONS`` is exhaustive over ``EntityType``.
* ``requires_reason`` decides gating from the intent alone.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import uuid4

from finex_kernel.domain.entities import EntityType, to_decimal


class IntentOperation(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ISSUE = "ISSUE"
    ADD_STOCK = "ADD_STOCK"


SUPPORTED_OPERATIONS: dict[EntityType, frozenset[IntentOperation]] = {
    EntityType.ENTRY: frozenset({
        IntentOperation.CREATE,
        IntentOperation.UPDATE,
        IntentOperation.DELETE,
    }),
    EntityType.ACCOUNT: frozenset({
        IntentOperation.CREATE,
        IntentOperation.UPDATE,
        IntentOperation.DELETE,
    }),
    EntityType.WELL: frozenset({
        IntentOperation.CREATE,
        IntentOperation.UPDATE,
        IntentOperation.DELETE,
    }),
    EntityType.PARTNER: frozenset({
        IntentOperation.CREATE,
        IntentOperation.UPDATE,
        IntentOperation.DELETE,
    }),
    EntityType.INVENTORY: frozenset({
        IntentOperation.CREATE,
        IntentOperation.UPDATE,
        IntentOperation.DELETE,
        IntentOperation.ISSUE,
        IntentOperation.ADD_STOCK,
    }),
    EntityType.USER: frozenset({
        IntentOperation.CREATE,
        IntentOperation.UPDATE,
        IntentOperation.DELETE,
    }),
}

# Accepted at submit so callers can construct them, but no commit handler
# increases stock.  Confirming one raises UnsupportedIntentError.
UNRESOLVED_OPERATIONS: frozenset[tuple[EntityType, IntentOperation]] = frozenset({
    (EntityType.INVENTORY, IntentOperation.ADD_STOCK),
})

_GATED_CREATE: frozenset[EntityType] = frozenset({
    EntityType.ACCOUNT,
    EntityType.INVENTORY,
})

_MOVEMENT_OPERATIONS: frozenset[IntentOperation] = frozenset({
    IntentOperation.ISSUE,
    IntentOperation.ADD_STOCK,
})


@dataclass(frozen=True)
class IssueRequest:
    """Stock movement parameters carried by ISSUE and ADD_STOCK intents."""

    quantity: Decimal
    date: date | None = None
    memo: str = ""
    well_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_decimal(self.quantity, "quantity"))


@dataclass(frozen=True)
class Intent:
    """One requested mutation.

    ``payload`` holds entity field values (CREATE: the full record,
    UPDATE: the fields to change).  ``movement`` is set for ISSUE and
    ADD_STOCK only.
    """

    operation: IntentOperation
    entity_type: EntityType
    entity_id: str | None = None
    payload: Mapping[str, Any] = field(default_factory=dict)
    movement: IssueRequest | None = None
    intent_id: str = field(default_factory=lambda: str(uuid4()))

    def __post_init__(self) -> None:
        object.__setattr__(self, "operation", IntentOperation(self.operation))
        object.__setattr__(self, "entity_type", EntityType(self.entity_type))
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))
        if self.operation in _MOVEMENT_OPERATIONS:
            if not isinstance(self.movement, IssueRequest):
                raise ValueError(f"{self.operation.value} intent requires a movement")
        elif self.movement is not None:
            raise ValueError(f"{self.operation.value} intent takes no movement")

    @classmethod
    def create(cls, entity_type: EntityType, payload: Mapping[str, Any]) -> Intent:
        return cls(IntentOperation.CREATE, entity_type, payload.get("id"), payload)

    @classmethod
    def update(
        cls, entity_type: EntityType, entity_id: str, payload: Mapping[str, Any]
    ) -> Intent:
        return cls(IntentOperation.UPDATE, entity_type, entity_id, payload)

    @classmethod
    def delete(cls, entity_type: EntityType, entity_id: str) -> Intent:
        return cls(IntentOperation.DELETE, entity_type, entity_id)

    @classmethod
    def issue(
        cls,
        item_id: str,
        *,
        well_id: str,
        quantity: Decimal | int | str,
        date: date | None = None,
        memo: str = "",
    ) -> Intent:
        return cls(
            IntentOperation.ISSUE,
            EntityType.INVENTORY,
            item_id,
            movement=IssueRequest(quantity=quantity, date=date, memo=memo, well_id=well_id),
        )

    @classmethod
    def add_stock(
        cls,
        item_id: str,
        *,
        quantity: Decimal | int | str,
        date: date | None = None,
        memo: str = "",
    ) -> Intent:
        return cls(
            IntentOperation.ADD_STOCK,
            EntityType.INVENTORY,
            item_id,
            movement=IssueRequest(quantity=quantity, date=date, memo=memo),
        )

    @property
    def key(self) -> tuple[EntityType, IntentOperation]:
        return (self.entity_type, self.operation)


def is_supported(intent: Intent) -> bool:
    return intent.operation in SUPPORTED_OPERATIONS[intent.entity_type]


def requires_reason(intent: Intent) -> bool:
    """True if the intent must wait for an operator justification.

    UPDATE, DELETE, ISSUE and ADD_STOCK are always gated.  CREATE is
    gated only for chart-of-accounts and inventory; creating an entry,
    well, partner or user commits immediately.
    """
    if intent.operation is IntentOperation.CREATE:
        return intent.entity_type in _GATED_CREATE
    return True
