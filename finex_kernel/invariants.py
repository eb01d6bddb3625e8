"""
Kernel Invariants Contract.

These invariants are structural law. They are enforced inside the commit
boundary (commit handlers and the audit recorder), not only by whatever
form collected the input, so a programmatically constructed payload
cannot bypass them. No configuration value may switch them off.

This module exists solely to declare these invariants explicitly. The
enforcement lives in ``finex_kernel.domain.validation`` and
``finex_kernel.services.commit_handlers``.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    DOUBLE_ENTRY_BALANCE = "double_entry_balance"
    """Sum of debit amounts equals sum of credit amounts (within the
    configured tolerance) and is strictly positive, for every accepted
    journal entry."""

    UNIQUE_ACCOUNT_CODE = "unique_account_code"
    """Account codes are unique across the chart of accounts."""

    INVENTORY_CONSERVATION = "inventory_conservation"
    """Stock quantity is never negative and total_price always equals
    quantity x unit_price."""

    SHARE_BOUND = "share_bound"
    """Partner shares on a single well sum to at most 100 percent."""

    AUDIT_IMMUTABILITY = "audit_immutability"
    """Audit log entries are append-only and frozen; original_data is a
    snapshot taken strictly before the mutation."""

    AUDITED_CORRECTIONS = "audited_corrections"
    """Every committed UPDATE or DELETE produces exactly one audit log
    entry carrying a justification of at least three characters."""


ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "finex_services",
    "finex_config",
)
