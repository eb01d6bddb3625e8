"""
BaseService -- abstract base for kernel services that act on the store.

Responsibility:
    Provides the common constructor contract for every service that reads
    or writes the ``DomainStore``: the store itself plus an injected
    ``Clock``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Services never persist on their own.  Durable write-through is the
    application controller's job, after a command has fully committed.
"""

from abc import ABC

from finex_kernel.domain.clock import Clock, SystemClock
from finex_kernel.services.domain_store import DomainStore


class BaseService(ABC):
    """
    Abstract base class for store-bound kernel services.

    Non-goals:
        - Does NOT write to durable storage.
        - Does NOT provide read projections -- those belong in
          ``finex_kernel/selectors/``.
    """

    def __init__(self, store: DomainStore, clock: Clock | None = None):
        self.store = store
        self.clock = clock or SystemClock()
