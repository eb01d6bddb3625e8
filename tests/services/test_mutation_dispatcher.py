"""
Tests for MutationDispatcher -- the pending-action state machine.

Covers:
- submit(): ungated CREATE commits immediately; gated intents wait for a
  reason; early validator rejection leaves the slot empty; a second
  submit while awaiting is rejected and the first intent is kept
- confirm(): short reason keeps the intent pending; validator failure
  clears the slot; ADD_STOCK is rejected with no mutation
- cancel(): discards without side effect; nothing-pending errors
- structured log events for each transition
"""

from decimal import Decimal

import pytest

from finex_kernel.domain.entities import EntityType, InventoryItem, Well, WellShare
from finex_kernel.domain.intents import Intent, IntentOperation, IssueRequest
from finex_kernel.domain.workflow import PendingActionState
from finex_kernel.exceptions import (
    InsufficientQuantityError,
    NoPendingActionError,
    PendingActionConflictError,
    ReasonTooShortError,
    ShareExceededError,
    UnbalancedEntryError,
    UnsupportedIntentError,
)


@pytest.fixture
def stocked_store(store):
    store.insert(
        EntityType.INVENTORY,
        InventoryItem(id="inv-1", name="Pipe", quantity=Decimal("50"), unit_price=Decimal("10"), total_price=Decimal("500")),
    )
    store.insert(
        EntityType.WELL,
        Well(id="w-1", name="W1", shares=(WellShare("p-1", "P1", Decimal("60")),)),
    )
    return store


# ---------------------------------------------------------------------------
# submit
# ---------------------------------------------------------------------------


class TestSubmit:
    def test_ungated_create_commits_immediately(self, dispatcher, store, admin_user, entry_payload):
        result = dispatcher.submit(Intent.create(EntityType.ENTRY, entry_payload()), admin_user)

        assert result.committed
        assert result.state is PendingActionState.IDLE
        assert dispatcher.pending is None
        assert len(store.entries) == 1
        assert store.entries[0].performed_by == admin_user.full_name
        # CREATE on ledger entries is not audited
        assert store.audit_logs == ()

    def test_gated_intent_waits_for_reason(self, dispatcher, store, admin_user):
        intent = Intent.delete(EntityType.ACCOUNT, "acc-101")
        result = dispatcher.submit(intent, admin_user)

        assert not result.committed
        assert result.state is PendingActionState.AWAITING_REASON
        assert dispatcher.state is PendingActionState.AWAITING_REASON
        assert dispatcher.pending.intent is intent
        assert dispatcher.pending.submitted_by == admin_user.id
        assert len(store.coa) == 3

    def test_invalid_ungated_create_rejected(self, dispatcher, store, admin_user, entry_payload):
        with pytest.raises(UnbalancedEntryError):
            dispatcher.submit(Intent.create(EntityType.ENTRY, entry_payload(credit="999")), admin_user)
        assert store.entries == ()
        assert dispatcher.state is PendingActionState.IDLE

    def test_gated_intent_prechecked_at_submit(self, dispatcher, stocked_store, admin_user):
        with pytest.raises(InsufficientQuantityError):
            dispatcher.submit(Intent.issue("inv-1", well_id="w-1", quantity="51"), admin_user)
        assert dispatcher.pending is None
        assert dispatcher.state is PendingActionState.IDLE

    def test_second_submit_rejected_and_first_kept(self, dispatcher, admin_user):
        first = Intent.delete(EntityType.ACCOUNT, "acc-101")
        second = Intent.delete(EntityType.ACCOUNT, "acc-201")
        dispatcher.submit(first, admin_user)

        with pytest.raises(PendingActionConflictError) as exc_info:
            dispatcher.submit(second, admin_user)

        assert exc_info.value.pending_intent_id == first.intent_id
        assert exc_info.value.rejected_intent_id == second.intent_id
        assert dispatcher.pending.intent is first

    def test_ungated_submit_also_blocked_while_awaiting(self, dispatcher, store, admin_user, entry_payload):
        dispatcher.submit(Intent.delete(EntityType.ACCOUNT, "acc-101"), admin_user)
        with pytest.raises(PendingActionConflictError):
            dispatcher.submit(Intent.create(EntityType.ENTRY, entry_payload()), admin_user)
        assert store.entries == ()

    def test_unsupported_pair_rejected(self, dispatcher, admin_user):
        intent = Intent(IntentOperation.ISSUE, EntityType.PARTNER, "p-1", movement=IssueRequest(quantity=1))
        with pytest.raises(UnsupportedIntentError) as exc_info:
            dispatcher.submit(intent, admin_user)
        assert exc_info.value.operation == "ISSUE"
        assert dispatcher.pending is None


# ---------------------------------------------------------------------------
# confirm
# ---------------------------------------------------------------------------


class TestConfirm:
    def test_confirm_commits_and_audits(self, dispatcher, store, admin_user):
        dispatcher.submit(Intent.delete(EntityType.ACCOUNT, "acc-301"), admin_user)
        result = dispatcher.confirm("  not used  ", admin_user)

        assert result.committed
        assert result.state is PendingActionState.IDLE
        assert result.entity_id == "acc-301"
        assert result.audit_entry_id == store.audit_logs[0].id
        assert store.audit_logs[0].reason == "not used"
        assert dispatcher.pending is None

    def test_short_reason_keeps_intent_pending(self, dispatcher, store, admin_user):
        intent = Intent.delete(EntityType.ACCOUNT, "acc-301")
        dispatcher.submit(intent, admin_user)

        with pytest.raises(ReasonTooShortError):
            dispatcher.confirm(" ab ", admin_user)

        assert dispatcher.state is PendingActionState.AWAITING_REASON
        assert dispatcher.pending.intent is intent
        assert len(store.coa) == 3
        assert store.audit_logs == ()

        dispatcher.confirm("obsolete", admin_user)
        assert len(store.coa) == 2

    def test_validator_failure_at_confirm_clears_slot(self, dispatcher, stocked_store, admin_user):
        dispatcher.submit(Intent.issue("inv-1", well_id="w-1", quantity="30"), admin_user)
        # Stock drops between submit and confirm
        stocked_store.replace(
            EntityType.INVENTORY,
            InventoryItem(id="inv-1", name="Pipe", quantity=Decimal("10"), unit_price=Decimal("10")),
        )

        with pytest.raises(InsufficientQuantityError):
            dispatcher.confirm("drilling", admin_user)

        assert dispatcher.pending is None
        assert dispatcher.state is PendingActionState.IDLE
        assert stocked_store.inventory_logs == ()

    def test_share_overflow_rejected_and_well_unchanged(self, dispatcher, stocked_store, admin_user):
        before = stocked_store.wells
        shares = [{"partner_id": "p-1", "percent": "60"}, {"partner_id": "p-2", "percent": "40.01"}]
        with pytest.raises(ShareExceededError):
            dispatcher.submit(Intent.update(EntityType.WELL, "w-1", {"shares": shares}), admin_user)
        assert stocked_store.wells == before
        assert stocked_store.audit_logs == ()

    def test_add_stock_rejected_at_confirm_without_mutation(self, dispatcher, stocked_store, admin_user):
        before_inventory = stocked_store.inventory
        dispatcher.submit(Intent.add_stock("inv-1", quantity="10"), admin_user)
        assert dispatcher.state is PendingActionState.AWAITING_REASON

        with pytest.raises(UnsupportedIntentError):
            dispatcher.confirm("restock", admin_user)

        assert stocked_store.inventory == before_inventory
        assert stocked_store.inventory_logs == ()
        assert stocked_store.audit_logs == ()
        assert dispatcher.state is PendingActionState.IDLE

    def test_missing_target_is_silent_noop(self, dispatcher, store, admin_user):
        dispatcher.submit(Intent.delete(EntityType.PARTNER, "nope"), admin_user)
        result = dispatcher.confirm("cleanup", admin_user)
        assert not result.committed
        assert result.state is PendingActionState.IDLE
        assert store.audit_logs == ()

    def test_confirm_with_nothing_pending(self, dispatcher, admin_user):
        with pytest.raises(NoPendingActionError) as exc_info:
            dispatcher.confirm("reason", admin_user)
        assert exc_info.value.command == "confirm"


# ---------------------------------------------------------------------------
# cancel
# ---------------------------------------------------------------------------


class TestCancel:
    def test_cancel_discards_without_side_effect(self, dispatcher, store, admin_user):
        before = store.snapshot()
        intent = Intent.delete(EntityType.ACCOUNT, "acc-101")
        dispatcher.submit(intent, admin_user)

        assert dispatcher.cancel() is intent
        assert dispatcher.state is PendingActionState.IDLE
        assert store.snapshot() == before

    def test_cancel_with_nothing_pending(self, dispatcher):
        with pytest.raises(NoPendingActionError):
            dispatcher.cancel()


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestDispatcherLogging:
    def test_submit_and_commit_events(self, dispatcher, admin_user, captured_logs):
        intent = Intent.delete(EntityType.ACCOUNT, "acc-301")
        dispatcher.submit(intent, admin_user)
        dispatcher.confirm("obsolete", admin_user)

        logs = captured_logs()
        submitted = [r for r in logs if r["message"] == "intent_submitted"]
        committed = [r for r in logs if r["message"] == "intent_committed"]
        assert len(submitted) == 1
        assert submitted[0]["intent_id"] == intent.intent_id
        assert submitted[0]["actor_id"] == admin_user.id
        assert len(committed) == 1
        assert committed[0]["entity_type"] == "ACCOUNT"
        assert any(r["message"] == "audit_recorded" for r in logs)

    def test_rejection_event(self, dispatcher, admin_user, captured_logs, entry_payload):
        with pytest.raises(UnbalancedEntryError):
            dispatcher.submit(Intent.create(EntityType.ENTRY, entry_payload(credit="1")), admin_user)
        rejected = [r for r in captured_logs() if r["message"] == "intent_rejected"]
        assert rejected and rejected[0]["cause"] == "UNBALANCED_ENTRY"

    def test_cancel_event(self, dispatcher, admin_user, captured_logs):
        dispatcher.submit(Intent.delete(EntityType.ACCOUNT, "acc-101"), admin_user)
        dispatcher.cancel()
        assert any(r["message"] == "intent_cancelled" for r in captured_logs())
