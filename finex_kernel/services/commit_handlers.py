"""
Entity commit handlers -- the only code that mutates entity collections.

Responsibility:
    One handler per entity kind.  Each turns an accepted intent into a
    collection change: builds or merges the candidate record, runs the
    entity's invariant validators, writes the store, and emits the audit
    entry (UPDATE/DELETE) or inventory log entry (inventory CREATE/ISSUE).

Architecture position:
    Kernel > Services -- called by ``MutationDispatcher`` only.  Validators
    run here, inside the commit boundary, so a programmatically built
    payload cannot skip them.

Invariants enforced:
    - Validation happens strictly before any store write; a rejected
      intent leaves every collection and both logs untouched.
    - UPDATE is a shallow merge: fields absent from the payload keep the
      original values; ``id`` is never overwritten.
    - Every committed UPDATE/DELETE appends exactly one audit entry whose
      ``original_data`` is the pre-mutation record.
    - A missing target id on UPDATE/DELETE/ISSUE is a silent no-op.

Failure modes:
    - ValidationError subclasses from ``finex_kernel.domain.validation``.
    - InvalidPayloadError for unknown fields or values that fail entity
      construction.
    - UnsupportedIntentError for an operation the entity has no branch for.
    - SelfDeletionError when a user deletes their own account.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, ClassVar
from uuid import uuid4

from finex_kernel.domain.clock import Clock
from finex_kernel.domain.credentials import CredentialProvider
from finex_kernel.domain.entities import (
    ZERO,
    Account,
    AuditAction,
    AuditLogEntry,
    Entity,
    EntityType,
    InventoryItem,
    InventoryLogEntry,
    InventoryLogType,
    JournalEntry,
    Partner,
    Performer,
    User,
    Well,
    entity_field_names,
)
from finex_kernel.domain.intents import Intent, IntentOperation
from finex_kernel.domain.validation import (
    DEFAULT_BALANCE_TOLERANCE,
    validate_entry_balance,
    validate_inventory_quantity,
    validate_issue_quantity,
    validate_new_inventory_item,
    validate_unique_account_code,
    validate_unique_phone,
    validate_well_shares,
)
from finex_kernel.exceptions import (
    InvalidPayloadError,
    SelfDeletionError,
    UnsupportedIntentError,
)
from finex_kernel.logging_config import get_logger
from finex_kernel.services.auditor_service import AuditRecorder
from finex_kernel.services.base import BaseService
from finex_kernel.services.domain_store import DomainStore

logger = get_logger("services.commit_handlers")


@dataclass(frozen=True)
class CommitContext:
    """Who is committing, and the justification if the intent was gated."""

    actor: User
    reason: str | None = None

    @property
    def performer(self) -> Performer:
        return Performer(name=self.actor.full_name, title=self.actor.job_title)


@dataclass(frozen=True)
class HandlerOutcome:
    committed: bool
    entity_id: str | None = None
    audit_entry: AuditLogEntry | None = None
    inventory_log: InventoryLogEntry | None = None


NO_OP = HandlerOutcome(committed=False)


class EntityCommitHandler(BaseService):
    """Shared CREATE/UPDATE/DELETE behaviour for one entity kind.

    Subclasses set ``entity_type``/``entity_cls`` and override the
    ``prepare_*``/``validate``/``after_create`` hooks.
    """

    entity_type: ClassVar[EntityType]
    entity_cls: ClassVar[type]

    def __init__(self, store: DomainStore, auditor: AuditRecorder, clock: Clock | None = None):
        super().__init__(store, clock)
        self.auditor = auditor
        self._operations = {
            IntentOperation.CREATE: self.create,
            IntentOperation.UPDATE: self.update,
            IntentOperation.DELETE: self.delete,
        }

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def commit(self, intent: Intent, ctx: CommitContext) -> HandlerOutcome:
        operation = self._operations.get(intent.operation)
        if operation is None:
            raise UnsupportedIntentError(intent.entity_type.value, intent.operation.value)
        return operation(intent, ctx)

    def precheck(self, intent: Intent, ctx: CommitContext) -> None:
        """Run the validators an intent would face at commit, without writing."""
        if intent.operation is IntentOperation.CREATE:
            self.validate(self.prepare_new(intent, ctx), None)
        elif intent.operation is IntentOperation.UPDATE:
            original = self.store.find(self.entity_type, intent.entity_id)
            if original is not None:
                self.validate(self.prepare_update(original, intent.payload, ctx), original)
        elif intent.operation is IntentOperation.DELETE:
            original = self.store.find(self.entity_type, intent.entity_id)
            if original is not None:
                self.check_delete(original, ctx)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create(self, intent: Intent, ctx: CommitContext) -> HandlerOutcome:
        candidate = self.prepare_new(intent, ctx)
        self.validate(candidate, None)
        self.store.insert(self.entity_type, candidate)
        log_entry = self.after_create(candidate, ctx)
        return HandlerOutcome(committed=True, entity_id=candidate.id, inventory_log=log_entry)

    def update(self, intent: Intent, ctx: CommitContext) -> HandlerOutcome:
        original = self.store.find(self.entity_type, intent.entity_id)
        if original is None:
            self._log_missing(intent)
            return NO_OP
        updated = self.prepare_update(original, intent.payload, ctx)
        self.validate(updated, original)
        self.store.replace(self.entity_type, updated)
        audit = self.auditor.record(
            AuditAction.UPDATE, self.entity_type, ctx.reason or "", original, ctx.performer, updated
        )
        return HandlerOutcome(committed=True, entity_id=original.id, audit_entry=audit)

    def delete(self, intent: Intent, ctx: CommitContext) -> HandlerOutcome:
        original = self.store.find(self.entity_type, intent.entity_id)
        if original is None:
            self._log_missing(intent)
            return NO_OP
        self.check_delete(original, ctx)
        self.store.remove(self.entity_type, original.id)
        audit = self.auditor.record(
            AuditAction.DELETE, self.entity_type, ctx.reason or "", original, ctx.performer
        )
        return HandlerOutcome(committed=True, entity_id=original.id, audit_entry=audit)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def prepare_new(self, intent: Intent, ctx: CommitContext) -> Entity:
        data = dict(intent.payload)
        data["id"] = data.get("id") or str(uuid4())
        return self.build(data)

    def prepare_update(
        self, original: Entity, payload: Mapping[str, Any], ctx: CommitContext
    ) -> Entity:
        return self.merge(original, payload)

    def validate(self, candidate: Entity, original: Entity | None) -> None:
        """Raise a ValidationError if ``candidate`` may not be committed."""

    def check_delete(self, original: Entity, ctx: CommitContext) -> None:
        """Raise if ``original`` may not be deleted by ``ctx.actor``."""

    def after_create(self, created: Entity, ctx: CommitContext) -> InventoryLogEntry | None:
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def build(self, data: Mapping[str, Any]) -> Entity:
        self._reject_unknown(data)
        try:
            return self.entity_cls(**data)
        except (TypeError, ValueError) as e:
            raise InvalidPayloadError(self.entity_type.value, str(e)) from e

    def merge(self, original: Entity, payload: Mapping[str, Any]) -> Entity:
        self._reject_unknown(payload)
        changes = {k: v for k, v in payload.items() if k != "id"}
        try:
            return replace(original, **changes)
        except (TypeError, ValueError) as e:
            raise InvalidPayloadError(self.entity_type.value, str(e)) from e

    def _reject_unknown(self, payload: Mapping[str, Any]) -> None:
        unknown = set(payload) - entity_field_names(self.entity_cls)
        if unknown:
            raise InvalidPayloadError(
                self.entity_type.value, f"unknown fields {sorted(unknown)}"
            )

    def _log_missing(self, intent: Intent) -> None:
        logger.info(
            "commit_target_missing",
            extra={"operation": intent.operation.value, "target_id": intent.entity_id},
        )


# =========================================================================
# Ledger
# =========================================================================


class JournalEntryHandler(EntityCommitHandler):
    entity_type = EntityType.ENTRY
    entity_cls = JournalEntry

    def __init__(
        self,
        store: DomainStore,
        auditor: AuditRecorder,
        clock: Clock | None = None,
        balance_tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE,
    ):
        super().__init__(store, auditor, clock)
        self._tolerance = balance_tolerance

    def prepare_new(self, intent: Intent, ctx: CommitContext) -> JournalEntry:
        entry = super().prepare_new(intent, ctx)
        return replace(entry, currency="USD", performed_by=ctx.actor.full_name)

    def prepare_update(self, original, payload, ctx) -> JournalEntry:
        merged = self.merge(original, payload)
        return replace(merged, currency="USD", performed_by=ctx.actor.full_name)

    def validate(self, candidate: JournalEntry, original) -> None:
        validate_entry_balance(candidate, self._tolerance)


class AccountHandler(EntityCommitHandler):
    """Chart of accounts.  The store re-sorts the chart by code on write."""

    entity_type = EntityType.ACCOUNT
    entity_cls = Account

    def validate(self, candidate: Account, original) -> None:
        if not candidate.code:
            raise InvalidPayloadError(self.entity_type.value, "code is required")
        validate_unique_account_code(candidate, self.store.coa)


# =========================================================================
# Registries
# =========================================================================


class WellHandler(EntityCommitHandler):
    entity_type = EntityType.WELL
    entity_cls = Well

    def validate(self, candidate: Well, original) -> None:
        validate_well_shares(candidate)


class PartnerHandler(EntityCommitHandler):
    entity_type = EntityType.PARTNER
    entity_cls = Partner


class InventoryHandler(EntityCommitHandler):
    """Stock items: CREATE, UPDATE, DELETE and ISSUE.

    ``total_price`` is recomputed from quantity x unit price on every write.
    """

    entity_type = EntityType.INVENTORY
    entity_cls = InventoryItem

    def __init__(self, store: DomainStore, auditor: AuditRecorder, clock: Clock | None = None):
        super().__init__(store, auditor, clock)
        self._operations[IntentOperation.ISSUE] = self.issue

    def precheck(self, intent: Intent, ctx: CommitContext) -> None:
        if intent.operation is IntentOperation.ISSUE:
            item = self.store.find(self.entity_type, intent.entity_id)
            if item is not None:
                validate_issue_quantity(item, intent.movement.quantity)
            return
        super().precheck(intent, ctx)

    def prepare_new(self, intent: Intent, ctx: CommitContext) -> InventoryItem:
        item = super().prepare_new(intent, ctx)
        return replace(item, total_price=item.computed_total)

    def prepare_update(self, original, payload, ctx) -> InventoryItem:
        merged = self.merge(original, payload)
        return replace(merged, total_price=merged.computed_total)

    def validate(self, candidate: InventoryItem, original) -> None:
        if original is None:
            validate_new_inventory_item(candidate)
        else:
            validate_inventory_quantity(candidate)

    def after_create(self, created: InventoryItem, ctx: CommitContext) -> InventoryLogEntry:
        log_entry = InventoryLogEntry(
            id=str(uuid4()),
            item_id=created.id,
            item_name=created.name,
            type=InventoryLogType.CREATE,
            quantity_change=created.quantity,
            quantity_before=ZERO,
            quantity_after=created.quantity,
            date=created.entry_date or self.clock.today(),
            memo=ctx.reason or "",
            performed_by=ctx.actor.full_name,
        )
        self.store.prepend_inventory_log(log_entry)
        return log_entry

    def issue(self, intent: Intent, ctx: CommitContext) -> HandlerOutcome:
        """Issue stock to a well.

        Removes the item when the remaining quantity reaches zero, and
        records an ISSUE inventory log entry (not an audit entry).
        """
        item = self.store.find(self.entity_type, intent.entity_id)
        if item is None:
            self._log_missing(intent)
            return NO_OP
        movement = intent.movement
        validate_issue_quantity(item, movement.quantity)

        new_quantity = item.quantity - movement.quantity
        if new_quantity <= ZERO:
            self.store.remove(self.entity_type, item.id)
        else:
            self.store.replace(
                self.entity_type,
                replace(item, quantity=new_quantity, total_price=new_quantity * item.unit_price),
            )

        well = self.store.find(EntityType.WELL, movement.well_id)
        log_entry = InventoryLogEntry(
            id=str(uuid4()),
            item_id=item.id,
            item_name=item.name,
            type=InventoryLogType.ISSUE,
            quantity_change=-movement.quantity,
            quantity_before=item.quantity,
            quantity_after=new_quantity,
            date=movement.date or self.clock.today(),
            memo=movement.memo or ctx.reason or "",
            well_name=well.name if well is not None else None,
            performed_by=ctx.actor.full_name,
        )
        self.store.prepend_inventory_log(log_entry)
        return HandlerOutcome(committed=True, entity_id=item.id, inventory_log=log_entry)


class UserHandler(EntityCommitHandler):
    """Users.  Passwords arrive in plaintext and are stored encoded; the
    role signature is recomputed whenever role or phone changes."""

    entity_type = EntityType.USER
    entity_cls = User

    def __init__(
        self,
        store: DomainStore,
        auditor: AuditRecorder,
        credentials: CredentialProvider,
        clock: Clock | None = None,
    ):
        super().__init__(store, auditor, clock)
        self._credentials = credentials

    def prepare_new(self, intent: Intent, ctx: CommitContext) -> User:
        data = _without_signature(intent.payload)
        if data.get("password"):
            data["password"] = self._credentials.encrypt(data["password"])
        data["id"] = data.get("id") or str(uuid4())
        user = self.build(data)
        return replace(user, signature=self._credentials.sign(user.role.value, user.phone))

    def prepare_update(self, original: User, payload, ctx) -> User:
        data = _without_signature(payload)
        # Blank password on edit keeps the stored one
        if "password" in data and not data["password"]:
            del data["password"]
        if data.get("password"):
            data["password"] = self._credentials.encrypt(data["password"])
        merged = self.merge(original, data)
        if merged.role != original.role or merged.phone != original.phone:
            merged = replace(
                merged, signature=self._credentials.sign(merged.role.value, merged.phone)
            )
        return merged

    def validate(self, candidate: User, original) -> None:
        if not candidate.full_name or not candidate.phone or not candidate.password:
            raise InvalidPayloadError(
                self.entity_type.value, "full_name, phone and password are required"
            )
        validate_unique_phone(candidate, self.store.users)

    def check_delete(self, original: User, ctx: CommitContext) -> None:
        if original.id == ctx.actor.id:
            raise SelfDeletionError(original.id)

    def update_credentials(self, user: User, phone: str, password: str) -> User:
        """Self-service phone/password change.  Not gated, not audited."""
        updated = replace(
            user,
            phone=phone,
            password=self._credentials.encrypt(password),
            signature=self._credentials.sign(user.role.value, phone),
        )
        self.validate(updated, user)
        self.store.replace(self.entity_type, updated)
        logger.info("user_credentials_updated", extra={"user_id": user.id})
        return updated


def _without_signature(payload: Mapping[str, Any]) -> dict[str, Any]:
    # Only the credential provider produces role signatures
    return {k: v for k, v in payload.items() if k != "signature"}
