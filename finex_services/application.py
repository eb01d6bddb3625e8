"""
finex_services.application -- the application controller.

Responsibility:
    ``FinexApplication`` is the single owner of the ``DomainStore``, the
    ``MutationDispatcher`` and the authenticated session.  The
    presentation layer calls its command methods and reads its
    projections; it never holds authoritative state of its own.

Architecture position:
    Services -- top of the stack.  Wires every kernel service exactly
    once, in dependency order, from injected collaborators (credential
    provider, persistence adapter, clock) and configured limits.

Invariants enforced:
    - Every mutating command requires a logged-in user.
    - After each committed mutation the full store is written through to
      persistence.  The write follows the in-memory commit; a failing
      write raises ``PersistenceError`` but does not roll memory back.
    - Import never edits the live store: the decoded snapshot is saved
      and the application reloads from persistence.

Usage:
    app = open_application(credentials)
    if app.needs_setup:
        app.setup_admin("Admin", "0500000000", "secret")
    app.login("0500000000", "secret", as_admin=True)
    app.submit(Intent.delete(EntityType.ACCOUNT, "acc-104"))
    app.confirm("duplicate of 102")
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Any
from uuid import uuid4

from finex_config import (
    FinexConfig,
    build_default_chart,
    build_default_settings,
    get_active_config,
)
from finex_kernel.db.engine import create_tables, init_engine_from_url
from finex_kernel.domain.balances import (
    DEFAULT_OIL_PRICE,
    AccountBalances,
    DashboardStats,
    PartnerIntel,
)
from finex_kernel.domain.clock import Clock, SystemClock
from finex_kernel.domain.credentials import CredentialProvider
from finex_kernel.domain.entities import (
    Account,
    AppSettings,
    AuditLogEntry,
    EntityType,
    InventoryItem,
    InventoryLogEntry,
    JournalEntry,
    Partner,
    User,
    UserRole,
    UserStatus,
    Well,
)
from finex_kernel.domain.intents import Intent, IntentOperation
from finex_kernel.domain.validation import DEFAULT_BALANCE_TOLERANCE, DEFAULT_REASON_MIN_LENGTH
from finex_kernel.domain.workflow import CommitResult, PendingAction, PendingActionState
from finex_kernel.exceptions import (
    AuthenticationError,
    InvalidCredentialsError,
    InvalidPayloadError,
    NotAuthenticatedError,
    RoleSignatureMismatchError,
    UserBlockedError,
)
from finex_kernel.logging_config import LogContext, configure_logging, get_logger
from finex_kernel.selectors.audit_selector import AuditSelector
from finex_kernel.selectors.ledger_selector import LedgerSelector
from finex_kernel.selectors.portfolio_selector import PortfolioSelector
from finex_kernel.services.auditor_service import AuditRecorder
from finex_kernel.services.commit_handlers import (
    AccountHandler,
    InventoryHandler,
    JournalEntryHandler,
    PartnerHandler,
    UserHandler,
    WellHandler,
)
from finex_kernel.services.domain_store import DomainStore
from finex_kernel.services.mutation_dispatcher import MutationDispatcher
from finex_kernel.services.persistence_service import PersistenceAdapter
from finex_services import backup_service

logger = get_logger("services.application")

ADMIN_JOB_TITLE = "مدير النظام - Admin"
ALL_PERMISSIONS: tuple[str, ...] = (
    "dashboard",
    "journal",
    "wells",
    "partners",
    "inventory",
    "reports",
    "chart",
    "audit",
    "users",
    "settings",
)
MAX_NOTIFICATIONS = 10

# Notification message keys for committed intents; pairs not listed
# produce no notification.
_COMMIT_NOTIFICATIONS: dict[tuple[EntityType, IntentOperation], str] = {
    (EntityType.ACCOUNT, IntentOperation.CREATE): "account_added",
    (EntityType.ACCOUNT, IntentOperation.DELETE): "account_deleted",
    (EntityType.INVENTORY, IntentOperation.CREATE): "material_added",
    (EntityType.INVENTORY, IntentOperation.ISSUE): "material_issued",
}


class FinexApplication:
    """Command/projection facade over the mutation engine.

    Contract:
        Receives a ``CredentialProvider`` and a ``PersistenceAdapter``
        plus optional clock, limits and oil price.  Constructs the store,
        audit recorder, commit handlers, dispatcher and selectors exactly
        once.

    Non-goals:
        - Does NOT initialise the database engine; see ``open_application``.
        - Does NOT load persisted data on construction; call ``reload()``.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        persistence: PersistenceAdapter,
        *,
        clock: Clock | None = None,
        reason_min_length: int = DEFAULT_REASON_MIN_LENGTH,
        balance_tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE,
        oil_price: Decimal = DEFAULT_OIL_PRICE,
    ):
        self._credentials = credentials
        self._persistence = persistence
        self._clock = clock or SystemClock()

        self._store = DomainStore(persistence.empty_snapshot())
        self._auditor = AuditRecorder(self._store, self._clock, reason_min_length)
        self._users = UserHandler(self._store, self._auditor, credentials, self._clock)
        handlers = {
            EntityType.ENTRY: JournalEntryHandler(
                self._store, self._auditor, self._clock, balance_tolerance
            ),
            EntityType.ACCOUNT: AccountHandler(self._store, self._auditor, self._clock),
            EntityType.WELL: WellHandler(self._store, self._auditor, self._clock),
            EntityType.PARTNER: PartnerHandler(self._store, self._auditor, self._clock),
            EntityType.INVENTORY: InventoryHandler(self._store, self._auditor, self._clock),
            EntityType.USER: self._users,
        }
        self._dispatcher = MutationDispatcher(
            self._store, handlers, self._clock, reason_min_length
        )
        self.ledger = LedgerSelector(self._store)
        self.audit = AuditSelector(self._store)
        self.portfolio = PortfolioSelector(self._store, oil_price)

        self._current_user: User | None = None
        self._notifications: list[str] = []

    @classmethod
    def from_config(
        cls,
        config: FinexConfig,
        credentials: CredentialProvider,
        clock: Clock | None = None,
    ) -> FinexApplication:
        persistence = PersistenceAdapter(
            default_chart=build_default_chart(config),
            default_settings=build_default_settings(config),
            clock=clock,
        )
        return cls(
            credentials,
            persistence,
            clock=clock,
            reason_min_length=config.reason_min_length,
            balance_tolerance=config.balance_tolerance,
            oil_price=config.oil_price,
        )

    # ------------------------------------------------------------------
    # Read-only projections
    # ------------------------------------------------------------------

    @property
    def users(self) -> tuple[User, ...]:
        return self._store.users

    @property
    def entries(self) -> tuple[JournalEntry, ...]:
        return self._store.entries

    @property
    def wells(self) -> tuple[Well, ...]:
        return self._store.wells

    @property
    def partners(self) -> tuple[Partner, ...]:
        return self._store.partners

    @property
    def inventory(self) -> tuple[InventoryItem, ...]:
        return self._store.inventory

    @property
    def inventory_logs(self) -> tuple[InventoryLogEntry, ...]:
        return self._store.inventory_logs

    @property
    def audit_logs(self) -> tuple[AuditLogEntry, ...]:
        return self._store.audit_logs

    @property
    def coa(self) -> tuple[Account, ...]:
        return self._store.coa

    @property
    def settings(self) -> AppSettings:
        return self._store.settings

    @property
    def state(self) -> PendingActionState:
        return self._dispatcher.state

    @property
    def pending_action(self) -> PendingAction | None:
        return self._dispatcher.pending

    @property
    def current_user(self) -> User | None:
        return self._current_user

    @property
    def needs_setup(self) -> bool:
        return not any(u.is_admin for u in self._store.users)

    @property
    def notifications(self) -> tuple[str, ...]:
        """Most recent message keys, newest first."""
        return tuple(self._notifications)

    def balances(self) -> AccountBalances:
        return self.ledger.account_balances()

    def dashboard_stats(self) -> DashboardStats:
        return self.ledger.dashboard_stats()

    def stock_value(self) -> Decimal:
        return self.portfolio.stock_value()

    def partner_intel(self, partner_id: str) -> PartnerIntel:
        return self.portfolio.partner_intel(partner_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reload(self) -> None:
        """Replace the in-memory state with what persistence holds."""
        if self._dispatcher.pending is not None:
            self._dispatcher.cancel()
        self._store.restore(self._persistence.load())
        user_id = self._persistence.load_session()
        self._current_user = self._store.find(EntityType.USER, user_id)
        logger.info(
            "application_reloaded",
            extra={"session_user_id": self._current_user.id if self._current_user else None},
        )

    def setup_admin(self, full_name: str, phone: str, password: str) -> User:
        """
        First-run setup: wipe every persisted key and create the admin.

        The admin is created through the dispatcher as its own actor, so
        the password is encrypted and the role signed like any user.
        """
        if self._dispatcher.pending is not None:
            self._dispatcher.cancel()
        self._persistence.clear_all()
        self._store.restore(self._persistence.empty_snapshot())
        self._current_user = None

        admin_id = str(uuid4())
        bootstrap_actor = User(
            id=admin_id,
            full_name=full_name,
            job_title=ADMIN_JOB_TITLE,
            phone=phone,
            password="",
            role=UserRole.ADMIN,
        )
        self._dispatcher.submit(
            Intent.create(
                EntityType.USER,
                {
                    "id": admin_id,
                    "full_name": full_name,
                    "job_title": ADMIN_JOB_TITLE,
                    "phone": phone,
                    "password": password,
                    "permissions": ALL_PERMISSIONS,
                    "status": UserStatus.ACTIVE,
                    "role": UserRole.ADMIN,
                },
            ),
            bootstrap_actor,
        )
        self._persist()
        self._notify("system_setup")
        logger.info("admin_setup_completed", extra={"user_id": admin_id})
        return self._store.find(EntityType.USER, admin_id)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def login(self, phone: str, password: str, as_admin: bool = False) -> User:
        """
        Authenticate by phone and password.

        Checks run in order: unknown phone, admin role signature,
        password, admin role, blocked status.

        Raises:
            InvalidCredentialsError: unknown phone, wrong password, or an
                admin login by a non-admin.
            RoleSignatureMismatchError: admin login whose stored role
                signature does not verify.
            UserBlockedError: the user is blocked.
        """
        try:
            user = self._authenticate(phone, password, as_admin)
        except AuthenticationError as exc:
            logger.warning("login_failed", extra={"phone": phone, "cause": exc.code})
            raise
        except RoleSignatureMismatchError:
            logger.error("login_signature_mismatch", extra={"phone": phone})
            raise

        self._current_user = user
        self._persistence.save_session(user.id)
        logger.info("user_logged_in", extra={"user_id": user.id, "as_admin": as_admin})
        return user

    def _authenticate(self, phone: str, password: str, as_admin: bool) -> User:
        user = next((u for u in self._store.users if u.phone == phone), None)
        if user is None:
            raise InvalidCredentialsError(phone)
        if as_admin and not self._credentials.verify(UserRole.ADMIN.value, phone, user.signature):
            raise RoleSignatureMismatchError(user.id, UserRole.ADMIN.value)
        if self._credentials.decrypt(user.password) != password:
            raise InvalidCredentialsError(phone)
        if as_admin and not user.is_admin:
            raise InvalidCredentialsError(phone)
        if user.status is UserStatus.BLOCKED:
            raise UserBlockedError(user.id)
        return user

    def logout(self) -> None:
        if self._dispatcher.pending is not None:
            self._dispatcher.cancel()
        user_id = self._current_user.id if self._current_user else None
        self._current_user = None
        self._persistence.clear_session()
        logger.info("user_logged_out", extra={"user_id": user_id})

    def update_admin_profile(self, phone: str, password: str) -> User:
        """Change the logged-in user's phone and password; re-signs the role."""
        user = self._require_user("update_admin_profile")
        updated = self._users.update_credentials(user, phone, password)
        self._current_user = updated
        self._persist()
        self._persistence.save_session(updated.id)
        self._notify("admin_profile_updated")
        return updated

    # ------------------------------------------------------------------
    # Mutation commands
    # ------------------------------------------------------------------

    def submit(self, intent: Intent) -> CommitResult:
        actor = self._require_user("submit")
        result = self._dispatcher.submit(intent, actor)
        if result.committed:
            self._after_commit(intent)
        return result

    def confirm(self, reason: str) -> CommitResult:
        actor = self._require_user("confirm")
        pending = self._dispatcher.pending
        result = self._dispatcher.confirm(reason, actor)
        if result.committed:
            self._after_commit(pending.intent)
        return result

    def cancel(self) -> Intent:
        return self._dispatcher.cancel()

    def update_settings(self, **changes: Any) -> AppSettings:
        self._require_user("update_settings")
        try:
            settings = replace(self._store.settings, **changes)
        except TypeError as exc:
            raise InvalidPayloadError("SETTINGS", str(exc)) from exc
        self._store.update_settings(settings)
        self._persist()
        return settings

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def export_backup(self) -> dict[str, Any]:
        user = self._require_user("export_backup")
        return backup_service.export_backup(
            self._store.snapshot(), user, self._credentials, self._clock
        )

    def import_backup(self, document: Any) -> None:
        """Overwrite every persisted collection with ``document`` and reload."""
        self._require_user("import_backup")
        snapshot = backup_service.import_backup(document, self._persistence.empty_snapshot().settings)
        self._persistence.save(snapshot)
        self.reload()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_user(self, command: str) -> User:
        if self._current_user is None:
            raise NotAuthenticatedError(command)
        return self._current_user

    def _after_commit(self, intent: Intent) -> None:
        message = _COMMIT_NOTIFICATIONS.get(intent.key)
        if message:
            self._notify(message)
        if self._current_user is not None:
            refreshed = self._store.find(EntityType.USER, self._current_user.id)
            if refreshed is not None:
                self._current_user = refreshed
        with LogContext.bind(intent_id=intent.intent_id):
            self._persist()

    def _persist(self) -> None:
        self._persistence.save(self._store.snapshot())

    def _notify(self, message: str) -> None:
        self._notifications = [message, *self._notifications][:MAX_NOTIFICATIONS]


def open_application(
    credentials: CredentialProvider,
    *,
    config: FinexConfig | None = None,
    clock: Clock | None = None,
) -> FinexApplication:
    """Configure logging and the database from config, then load state."""
    config = config or get_active_config()
    configure_logging(level=config.log_level)
    init_engine_from_url(config.database_url)
    create_tables()
    app = FinexApplication.from_config(config, credentials, clock)
    app.reload()
    return app
