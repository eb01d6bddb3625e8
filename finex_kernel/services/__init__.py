"""Services for the finex kernel (write side)."""

from finex_kernel.services.auditor_service import AuditRecorder
from finex_kernel.services.commit_handlers import (
    AccountHandler,
    CommitContext,
    EntityCommitHandler,
    HandlerOutcome,
    InventoryHandler,
    JournalEntryHandler,
    PartnerHandler,
    UserHandler,
    WellHandler,
)
from finex_kernel.services.domain_store import DomainStore, StoreSnapshot
from finex_kernel.services.mutation_dispatcher import MutationDispatcher
from finex_kernel.services.persistence_service import PersistenceAdapter

__all__ = [
    "AccountHandler",
    "AuditRecorder",
    "CommitContext",
    "DomainStore",
    "EntityCommitHandler",
    "HandlerOutcome",
    "InventoryHandler",
    "JournalEntryHandler",
    "MutationDispatcher",
    "PartnerHandler",
    "PersistenceAdapter",
    "StoreSnapshot",
    "UserHandler",
    "WellHandler",
]
