"""ORM models for the FineX kernel."""

from finex_kernel.models.stored_collection import StorageScope, StoredCollection

__all__ = ["StorageScope", "StoredCollection"]
