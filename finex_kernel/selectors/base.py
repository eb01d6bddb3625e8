"""
Module: finex_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.  Selectors
    form the read side of the kernel: projections over the DomainStore with no
    mutation capability.
Architecture position: Kernel > Selectors.  May import from domain/ and the
    DomainStore type.  MUST NOT import the dispatcher, commit handlers, or outer
    layers.

Invariants enforced:
    - Read-only access: selectors MUST NOT call insert/replace/remove/prepend_*
      on the store.
    - DTO return convention: selectors return frozen dataclasses, tuples of
      frozen entities, or computed Decimal values.
    - No caching: every call recomputes from the current collections.
"""

from abc import ABC

from finex_kernel.services.domain_store import DomainStore


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept the store from the caller, read its collections and
        return DTOs or computed results.  They MUST NOT mutate any data.

    Non-goals:
        - BaseSelector does NOT define any query methods; subclasses implement
          domain-specific queries (ledger, audit).
    """

    def __init__(self, store: DomainStore):
        self.store = store
