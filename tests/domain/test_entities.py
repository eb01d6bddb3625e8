"""Tests for entity construction and normalization."""

from dataclasses import FrozenInstanceError, replace
from datetime import date
from decimal import Decimal

import pytest

from finex_kernel.domain.entities import (
    Account,
    AccountCategory,
    InventoryItem,
    JournalEntry,
    JournalLine,
    User,
    UserRole,
    Well,
    WellShare,
    WellStatus,
    code_sort_key,
    entity_field_names,
    to_decimal,
)


class TestCoercion:
    def test_amounts_become_decimal(self):
        line = JournalLine("acc-101", "Cash", 12.5)
        assert line.amount == Decimal("12.5")
        assert isinstance(line.amount, Decimal)

    def test_nested_lines_from_mappings(self):
        entry = JournalEntry(
            id="e1",
            date="2024-03-05",
            description="x",
            debit_lines=[{"account_id": "a", "amount": "10"}],
            credit_lines=[{"account_id": "b", "amount": "10"}],
        )
        assert entry.date == date(2024, 3, 5)
        assert entry.debit_lines == (JournalLine("a", "", Decimal("10")),)
        assert entry.total_debits == entry.total_credits == Decimal("10")

    def test_well_shares_and_status(self):
        well = Well(id="w", name="W", status="DRILLING", shares=[{"partner_id": "p", "percent": "25"}])
        assert well.status is WellStatus.DRILLING
        assert well.shares == (WellShare("p", "", Decimal("25")),)
        assert well.total_share_percent == Decimal("25")

    def test_bool_amount_rejected(self):
        with pytest.raises(ValueError):
            JournalLine("a", "", True)

    @pytest.mark.parametrize("value", ["NaN", "sNaN", "Infinity", "-inf", float("nan"), Decimal("Infinity")])
    def test_non_finite_amount_rejected(self, value):
        with pytest.raises(ValueError):
            to_decimal(value, "amount")

    def test_bad_enum_rejected(self):
        with pytest.raises(ValueError):
            Account(id="a", code="1", name_ar="", name_en="", category="NOT_A_CATEGORY")

    def test_permissions_string_rejected(self):
        with pytest.raises(ValueError):
            User(id="u", full_name="", job_title="", phone="", password="", permissions="users")


class TestAccount:
    def test_code_is_stripped_string(self):
        account = Account(id="a", code=" 101 ", name_ar="", name_en="Cash", category="ASSETS")
        assert account.code == "101"
        assert account.category is AccountCategory.ASSETS

    def test_display_name_defaults(self):
        account = Account(id="a", code="101", name_ar="صندوق", name_en="Cash", category="ASSETS")
        assert account.display_name == "101 - Cash"

    def test_code_sort_key_numeric_first(self):
        codes = ["20", "101", "A1", "3"]
        assert sorted(codes, key=code_sort_key) == ["3", "20", "101", "A1"]

    def test_code_sort_key_digit_like_codes(self):
        assert sorted(["²", "10", "١٥"], key=code_sort_key) == ["10", "١٥", "²"]


class TestImmutability:
    def test_entities_are_frozen(self):
        item = InventoryItem(id="i", name="Pipe", quantity=1, unit_price=2)
        with pytest.raises(FrozenInstanceError):
            item.quantity = Decimal("5")

    def test_replace_renormalizes(self):
        item = InventoryItem(id="i", name="Pipe", quantity=1, unit_price=2)
        updated = replace(item, quantity="7")
        assert updated.quantity == Decimal("7")
        assert updated.computed_total == Decimal("14")
        assert item.quantity == Decimal("1")

    def test_user_role(self):
        user = User(id="u", full_name="", job_title="", phone="", password="", role="admin")
        assert user.role is UserRole.ADMIN
        assert user.is_admin


def test_entity_field_names():
    assert entity_field_names(InventoryItem) == frozenset(
        {"id", "name", "quantity", "unit_price", "total_price", "entry_date"}
    )
