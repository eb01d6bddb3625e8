"""Tests for DomainStore collection writes and snapshots."""

from decimal import Decimal

from finex_kernel.domain.entities import (
    Account,
    AccountCategory,
    AppSettings,
    EntityType,
    Partner,
)
from finex_kernel.services.domain_store import DomainStore, StoreSnapshot


class TestWrites:
    def test_account_insert_sorts_by_numeric_code(self, store):
        store.insert(EntityType.ACCOUNT, Account(id="a-9", code="9", name_ar="", name_en="Nine", category=AccountCategory.OTHERS))
        store.insert(EntityType.ACCOUNT, Account(id="a-1000", code="1000", name_ar="", name_en="K", category=AccountCategory.OTHERS))
        assert [a.code for a in store.coa] == ["9", "101", "201", "301", "1000"]

    def test_replace_and_remove(self, store):
        store.insert(EntityType.PARTNER, Partner(id="p-1", name="Acme"))
        store.replace(EntityType.PARTNER, Partner(id="p-1", name="Acme", credit_limit=Decimal("5")))
        assert store.find(EntityType.PARTNER, "p-1").credit_limit == Decimal("5")
        store.remove(EntityType.PARTNER, "p-1")
        assert store.partners == ()

    def test_find_none_id(self, store):
        assert store.find(EntityType.PARTNER, None) is None

    def test_no_log_removal_api(self, store):
        assert not any(name.startswith(("remove_audit", "clear")) for name in dir(store))


class TestSnapshots:
    def test_snapshot_restore_round_trip(self, store):
        store.insert(EntityType.PARTNER, Partner(id="p-1", name="Acme"))
        store.update_settings(AppSettings(theme="light"))
        snapshot = store.snapshot()

        other = DomainStore()
        other.restore(snapshot)
        assert other.snapshot() == snapshot
        assert other.settings.theme == "light"

    def test_empty_store(self):
        store = DomainStore()
        assert store.snapshot() == StoreSnapshot()
