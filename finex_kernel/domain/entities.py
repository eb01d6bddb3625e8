"""
Domain entities (``finex_kernel.domain.entities``).

Responsibility
--------------
Frozen value objects for the six mutable entity kinds plus the two
append-only log records.  Collection-valued fields are tuples, so an
entity instance is a deep immutable snapshot: the audit recorder can
hold the pre-mutation instance directly as ``original_data``.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Amounts, quantities, percentages and yields are ``Decimal`` -- never
  ``float``.  ``__post_init__`` coerces numeric input at construction.
* Balances are NOT stored on ``Account``; they are derived from journal
  lines by ``finex_kernel.domain.balances``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Union


# =========================================================================
# Enumerations
# =========================================================================


class EntityType(str, Enum):
    """Entity kinds routed through the mutation dispatcher."""

    ENTRY = "ENTRY"
    ACCOUNT = "ACCOUNT"
    WELL = "WELL"
    PARTNER = "PARTNER"
    INVENTORY = "INVENTORY"
    USER = "USER"


class AccountCategory(str, Enum):
    ASSETS = "ASSETS"
    LIABILITIES = "LIABILITIES"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSES = "EXPENSES"
    COSTS = "COSTS"
    CONTROL = "CONTROL"
    OTHERS = "OTHERS"


class WellStatus(str, Enum):
    PRODUCTION = "PRODUCTION"
    DRILLING = "DRILLING"
    SUSPENDED = "SUSPENDED"
    ABANDONED = "ABANDONED"


class PartnerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class UserStatus(str, Enum):
    ACTIVE = "active"
    BLOCKED = "blocked"


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class InventoryLogType(str, Enum):
    CREATE = "CREATE"
    ISSUE = "ISSUE"
    UPDATE = "UPDATE"
    ADD_STOCK = "ADD_STOCK"


class AuditAction(str, Enum):
    """Audit record types.  CREATE exists for completeness of the log
    format; the commit handlers only emit UPDATE and DELETE."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ISSUE = "ISSUE"


# =========================================================================
# Coercion helpers
# =========================================================================

ZERO = Decimal("0")


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Coerce ``value`` to Decimal; floats go through ``str`` first."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Invalid {field_name}: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid {field_name}: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid {field_name}: {value!r}")
    return result


def _to_date(value: Any, field_name: str) -> date | None:
    if value is None or (isinstance(value, date) and not isinstance(value, datetime)):
        return value
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError as e:
            raise ValueError(f"Invalid {field_name}: {value!r}") from e
    raise ValueError(f"Invalid {field_name}: {value!r}")


def _coerce_items(values: Any, item_cls: type, field_name: str) -> tuple:
    if values is None:
        return ()
    if isinstance(values, (str, bytes, Mapping)):
        raise ValueError(f"{field_name} must be a sequence")
    items = []
    for value in values:
        if isinstance(value, item_cls):
            items.append(value)
        elif isinstance(value, Mapping):
            items.append(item_cls(**value))
        else:
            raise ValueError(f"Invalid {field_name} item: {value!r}")
    return tuple(items)


def _set(obj: object, name: str, value: Any) -> None:
    # Frozen dataclass: normalize once at construction.
    object.__setattr__(obj, name, value)


def code_sort_key(code: str) -> tuple[int, int | str]:
    """Numeric codes sort numerically, before any non-numeric code."""
    # isdecimal, not isdigit: superscripts like "²" are digits int() rejects
    return (0, int(code)) if code.isdecimal() else (1, code)


# =========================================================================
# Ledger
# =========================================================================


@dataclass(frozen=True)
class JournalLine:
    account_id: str
    account_name: str = ""
    amount: Decimal = ZERO

    def __post_init__(self) -> None:
        _set(self, "amount", to_decimal(self.amount, "amount"))


@dataclass(frozen=True)
class JournalEntry:
    """A dated double-entry transaction.

    ``performed_by`` is stamped by the commit handler from the session
    user; callers never set it.
    """

    id: str
    date: date
    description: str
    debit_lines: tuple[JournalLine, ...] = ()
    credit_lines: tuple[JournalLine, ...] = ()
    performed_by: str = ""
    currency: str = "USD"

    def __post_init__(self) -> None:
        _set(self, "date", _to_date(self.date, "date"))
        _set(self, "debit_lines", _coerce_items(self.debit_lines, JournalLine, "debit_lines"))
        _set(self, "credit_lines", _coerce_items(self.credit_lines, JournalLine, "credit_lines"))

    @property
    def total_debits(self) -> Decimal:
        return sum((line.amount for line in self.debit_lines), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.amount for line in self.credit_lines), ZERO)


@dataclass(frozen=True)
class Account:
    """Chart-of-accounts row.  ``code`` is unique across the chart."""

    id: str
    code: str
    name_ar: str
    name_en: str
    category: AccountCategory
    display_name: str = ""

    def __post_init__(self) -> None:
        _set(self, "code", str(self.code).strip())
        _set(self, "category", AccountCategory(self.category))
        if not self.display_name:
            _set(self, "display_name", f"{self.code} - {self.name_en or self.name_ar}")


# =========================================================================
# Registries
# =========================================================================


@dataclass(frozen=True)
class WellShare:
    partner_id: str
    partner_name: str = ""
    percent: Decimal = ZERO

    def __post_init__(self) -> None:
        _set(self, "percent", to_decimal(self.percent, "percent"))


@dataclass(frozen=True)
class Well:
    id: str
    name: str
    daily_yield: Decimal = ZERO
    status: WellStatus = WellStatus.PRODUCTION
    shares: tuple[WellShare, ...] = ()

    def __post_init__(self) -> None:
        _set(self, "daily_yield", to_decimal(self.daily_yield, "daily_yield"))
        _set(self, "status", WellStatus(self.status))
        _set(self, "shares", _coerce_items(self.shares, WellShare, "shares"))

    @property
    def total_share_percent(self) -> Decimal:
        return sum((share.percent for share in self.shares), ZERO)


@dataclass(frozen=True)
class Partner:
    id: str
    name: str
    phone: str = ""
    email: str = ""
    share_percent: Decimal = ZERO
    credit_limit: Decimal = ZERO
    status: PartnerStatus = PartnerStatus.ACTIVE

    def __post_init__(self) -> None:
        _set(self, "share_percent", to_decimal(self.share_percent, "share_percent"))
        _set(self, "credit_limit", to_decimal(self.credit_limit, "credit_limit"))
        _set(self, "status", PartnerStatus(self.status))


@dataclass(frozen=True)
class InventoryItem:
    """Stock item.  ``total_price`` is recomputed by every commit handler
    that touches quantity or unit price."""

    id: str
    name: str
    quantity: Decimal = ZERO
    unit_price: Decimal = ZERO
    total_price: Decimal = ZERO
    entry_date: date | None = None

    def __post_init__(self) -> None:
        _set(self, "quantity", to_decimal(self.quantity, "quantity"))
        _set(self, "unit_price", to_decimal(self.unit_price, "unit_price"))
        _set(self, "total_price", to_decimal(self.total_price, "total_price"))
        _set(self, "entry_date", _to_date(self.entry_date, "entry_date"))

    @property
    def computed_total(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class InventoryLogEntry:
    id: str
    item_id: str
    item_name: str
    type: InventoryLogType
    quantity_change: Decimal
    quantity_before: Decimal
    quantity_after: Decimal
    date: date | None
    memo: str
    performed_by: str
    well_name: str | None = None

    def __post_init__(self) -> None:
        _set(self, "type", InventoryLogType(self.type))
        for name in ("quantity_change", "quantity_before", "quantity_after"):
            _set(self, name, to_decimal(getattr(self, name), name))
        _set(self, "date", _to_date(self.date, "date"))


# =========================================================================
# Users and settings
# =========================================================================


@dataclass(frozen=True)
class User:
    """Application user.

    ``password`` is opaque ciphertext produced by the credential
    collaborator; ``signature`` is its role signature over the phone.
    """

    id: str
    full_name: str
    job_title: str
    phone: str
    password: str
    permissions: tuple[str, ...] = ()
    status: UserStatus = UserStatus.ACTIVE
    role: UserRole = UserRole.USER
    signature: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.permissions, str):
            raise ValueError("permissions must be a sequence")
        _set(self, "permissions", tuple(self.permissions or ()))
        _set(self, "status", UserStatus(self.status))
        _set(self, "role", UserRole(self.role))

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


@dataclass(frozen=True)
class AppSettings:
    theme: str = "dark"
    currency: str = "USD"
    locale: str = "ar"


# =========================================================================
# Audit
# =========================================================================

Entity = Union[JournalEntry, Account, Well, Partner, InventoryItem, User]

ENTITY_CLASSES: dict[EntityType, type] = {
    EntityType.ENTRY: JournalEntry,
    EntityType.ACCOUNT: Account,
    EntityType.WELL: Well,
    EntityType.PARTNER: Partner,
    EntityType.INVENTORY: InventoryItem,
    EntityType.USER: User,
}


@dataclass(frozen=True)
class Performer:
    name: str
    title: str


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable record of one justified mutation.

    ``original_data`` is the entity instance as it was before the
    mutation; ``updated_data`` is the merged result (UPDATE only).
    """

    id: str
    timestamp: datetime
    type: AuditAction
    entity_type: EntityType
    reason: str
    original_data: Entity
    performed_by: Performer
    updated_data: Entity | None = None

    @property
    def entity_id(self) -> str:
        return self.original_data.id


def entity_field_names(entity_cls: type) -> frozenset[str]:
    """Names a payload may carry for ``entity_cls``."""
    return frozenset(f.name for f in fields(entity_cls))
