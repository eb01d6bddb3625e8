"""
Tests for the wire codec (finex_kernel.utils.serialization).

Field names are camelCase on the wire; the role signature travels as
``_sig``; Decimals are strings and decode from strings or numbers.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from finex_kernel.domain.entities import (
    AuditAction,
    AuditLogEntry,
    EntityType,
    InventoryItem,
    JournalEntry,
    JournalLine,
    Performer,
    User,
    Well,
    WellShare,
)
from finex_kernel.utils.hashing import canonicalize_json, hash_payload, watermark_checksum
from finex_kernel.utils.serialization import (
    decode_collection,
    decode_settings,
    from_wire,
    to_wire,
)


class TestEncoding:
    def test_journal_entry_wire_names(self):
        entry = JournalEntry(
            id="e1",
            date=date(2024, 1, 15),
            description="Sale",
            debit_lines=(JournalLine("acc-101", "Cash", Decimal("1000")),),
            credit_lines=(JournalLine("acc-201", "Payables", Decimal("1000")),),
            performed_by="Admin",
        )
        wire = to_wire(entry)
        assert wire["date"] == "2024-01-15"
        assert wire["performedBy"] == "Admin"
        assert wire["debitLines"] == [{"accountId": "acc-101", "accountName": "Cash", "amount": "1000"}]

    def test_user_signature_travels_as_sig(self, admin_user):
        wire = to_wire(admin_user)
        assert wire["_sig"] == admin_user.signature
        assert "signature" not in wire
        assert wire["role"] == "admin"
        assert from_wire(User, wire) == admin_user

    def test_audit_entry_snapshots(self):
        original = Well(id="w1", name="W1", shares=(WellShare("p1", "P", Decimal("50")),))
        entry = AuditLogEntry(
            id="a1",
            timestamp=datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
            type=AuditAction.UPDATE,
            entity_type=EntityType.WELL,
            reason="correction",
            original_data=original,
            performed_by=Performer("Admin", "Boss"),
            updated_data=original,
        )
        wire = to_wire(entry)
        assert wire["originalData"]["shares"][0]["partnerId"] == "p1"
        assert decode_collection("auditLogs", [wire]) == (entry,)


class TestDecoding:
    def test_numbers_decode_to_decimal(self):
        item = from_wire(InventoryItem, {"id": "i", "name": "Pipe", "quantity": 50, "unitPrice": 10.5})
        assert item.quantity == Decimal("50")
        assert item.unit_price == Decimal("10.5")

    def test_unknown_wire_keys_ignored(self):
        item = from_wire(InventoryItem, {"id": "i", "name": "Pipe", "legacy": True})
        assert item.name == "Pipe"

    def test_missing_collection_is_empty(self):
        assert decode_collection("wells", None) == ()

    def test_non_list_collection_rejected(self):
        with pytest.raises(TypeError):
            decode_collection("wells", {"id": "w"})

    def test_missing_required_field_rejected(self):
        with pytest.raises(TypeError):
            from_wire(Well, {"id": "w"})

    def test_settings_default(self):
        assert decode_settings(None).theme == "dark"
        assert decode_settings({"theme": "light"}).theme == "light"


class TestHashing:
    def test_canonical_json_is_order_independent(self):
        assert canonicalize_json({"b": 1, "a": 2}) == canonicalize_json({"a": 2, "b": 1})
        assert hash_payload({"b": 1, "a": 2}) == hash_payload({"a": 2, "b": 1})

    def test_watermark_is_base64_of_phone_device_day(self):
        # base64("0500-dev-7")
        assert watermark_checksum("0500", "dev", 7) == "MDUwMC1kZXYtNw=="
