"""
Kernel domain layer: pure value objects and functions, ZERO I/O.

- entities: frozen entity and log records
- intents: the tagged mutation-intent type and gating rules
- workflow: pending-action state machine
- validation: invariant validators
- balances: derived balance aggregator
- credentials: collaborator protocol for the credential layer
- clock: injectable time
"""

from finex_kernel.domain.balances import (
    AccountBalances,
    DashboardStats,
    compute_account_balances,
    compute_dashboard_stats,
)
from finex_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from finex_kernel.domain.credentials import CredentialProvider
from finex_kernel.domain.entities import (
    Account,
    AccountCategory,
    AppSettings,
    AuditAction,
    AuditLogEntry,
    EntityType,
    InventoryItem,
    InventoryLogEntry,
    InventoryLogType,
    JournalEntry,
    JournalLine,
    Partner,
    PartnerStatus,
    Performer,
    User,
    UserRole,
    UserStatus,
    Well,
    WellShare,
    WellStatus,
)
from finex_kernel.domain.intents import Intent, IntentOperation, IssueRequest
from finex_kernel.domain.workflow import CommitResult, PendingAction, PendingActionState

__all__ = [
    "Account",
    "AccountBalances",
    "AccountCategory",
    "AppSettings",
    "AuditAction",
    "AuditLogEntry",
    "Clock",
    "CommitResult",
    "CredentialProvider",
    "DashboardStats",
    "DeterministicClock",
    "EntityType",
    "Intent",
    "IntentOperation",
    "InventoryItem",
    "InventoryLogEntry",
    "InventoryLogType",
    "IssueRequest",
    "JournalEntry",
    "JournalLine",
    "Partner",
    "PartnerStatus",
    "PendingAction",
    "PendingActionState",
    "Performer",
    "SystemClock",
    "User",
    "UserRole",
    "UserStatus",
    "Well",
    "WellShare",
    "WellStatus",
    "compute_account_balances",
    "compute_dashboard_stats",
]
