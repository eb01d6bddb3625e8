"""
Invariant validators (``finex_kernel.domain.validation``).

Pure predicate checks run before a commit handler is allowed to mutate
a collection.  Each raises a typed ``ValidationError`` subclass and has
no side effects: no mutation, no audit entry, no logging.
"""

from collections.abc import Iterable
from decimal import Decimal

from finex_kernel.domain.entities import (
    ZERO,
    Account,
    InventoryItem,
    JournalEntry,
    User,
    Well,
)
from finex_kernel.exceptions import (
    DuplicateCodeError,
    DuplicatePhoneError,
    InsufficientQuantityError,
    InvalidPayloadError,
    ReasonTooShortError,
    ShareExceededError,
    UnbalancedEntryError,
)

DEFAULT_BALANCE_TOLERANCE = Decimal("0.01")
DEFAULT_REASON_MIN_LENGTH = 3
MAX_SHARE_PERCENT = Decimal("100")


def validate_entry_balance(
    entry: JournalEntry, tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE
) -> None:
    debits = entry.total_debits
    credits = entry.total_credits
    if abs(debits - credits) > tolerance or debits <= ZERO:
        raise UnbalancedEntryError(str(debits), str(credits), entry.id)


def validate_well_shares(well: Well) -> None:
    for share in well.shares:
        if share.percent < ZERO:
            raise InvalidPayloadError(
                "WELL", f"share for {share.partner_id} is negative: {share.percent}"
            )
    total = well.total_share_percent
    if total > MAX_SHARE_PERCENT:
        raise ShareExceededError(well.id, str(total))


def validate_issue_quantity(item: InventoryItem, requested: Decimal) -> None:
    if requested <= ZERO:
        raise InvalidPayloadError("INVENTORY", f"issue quantity must be positive, got {requested}")
    if requested > item.quantity:
        raise InsufficientQuantityError(item.id, str(requested), str(item.quantity))


def validate_unique_account_code(account: Account, chart: Iterable[Account]) -> None:
    for existing in chart:
        if existing.code == account.code and existing.id != account.id:
            raise DuplicateCodeError(account.code, existing.id)


def validate_unique_phone(user: User, users: Iterable[User]) -> None:
    for existing in users:
        if existing.phone == user.phone and existing.id != user.id:
            raise DuplicatePhoneError(user.phone)


def validate_new_inventory_item(item: InventoryItem) -> None:
    if not item.name or not item.name.strip():
        raise InvalidPayloadError("INVENTORY", "name is required")
    if item.quantity <= ZERO:
        raise InvalidPayloadError("INVENTORY", f"quantity must be positive, got {item.quantity}")


def validate_inventory_quantity(item: InventoryItem) -> None:
    if item.quantity < ZERO:
        raise InvalidPayloadError("INVENTORY", f"quantity cannot be negative, got {item.quantity}")


def validate_reason(reason: str | None, minimum: int = DEFAULT_REASON_MIN_LENGTH) -> str:
    """Return the reason unchanged if its stripped length is >= minimum."""
    length = len(reason.strip()) if reason else 0
    if length < minimum:
        raise ReasonTooShortError(length, minimum)
    return reason
