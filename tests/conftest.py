"""
Pytest fixtures for the FineX test suite.

Provides:
- In-memory SQLite database per test (no external server needed)
- Deterministic clock and a fake credential provider
- Kernel services wired to a fresh DomainStore
- A FinexApplication with an admin set up and logged in
- Captured structured logs
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from finex_kernel.db.engine import create_tables, drop_tables, init_engine_from_url, reset_engine
from finex_kernel.domain.clock import DeterministicClock
from finex_kernel.domain.entities import (
    Account,
    AccountCategory,
    AppSettings,
    EntityType,
    User,
    UserRole,
)
from finex_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from finex_kernel.services.auditor_service import AuditRecorder
from finex_kernel.services.commit_handlers import (
    AccountHandler,
    InventoryHandler,
    JournalEntryHandler,
    PartnerHandler,
    UserHandler,
    WellHandler,
)
from finex_kernel.services.domain_store import DomainStore, StoreSnapshot
from finex_kernel.services.mutation_dispatcher import MutationDispatcher
from finex_kernel.services.persistence_service import PersistenceAdapter
from finex_services.application import FinexApplication

ADMIN_PHONE = "0500000000"
ADMIN_PASSWORD = "admin-pass"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture finex_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, dispatcher):
            dispatcher.submit(...)
            logs = captured_logs()
            assert any(r["message"] == "intent_submitted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("finex_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Collaborators
# =============================================================================


class FakeCredentialProvider:
    """Reversible, deterministic stand-in for the credential layer."""

    def __init__(self, device_id: str = "device-test-001"):
        self._device_id = device_id

    def encrypt(self, plaintext: str) -> str:
        return "enc:" + plaintext[::-1]

    def decrypt(self, ciphertext: str) -> str:
        if not ciphertext.startswith("enc:"):
            return ""
        return ciphertext[4:][::-1]

    def sign(self, role: str, identity: str) -> str:
        return f"sig:{role}:{identity}"

    def verify(self, role: str, identity: str, signature: str) -> bool:
        return signature == self.sign(role, identity)

    def device_fingerprint(self) -> str:
        return self._device_id


@pytest.fixture
def deterministic_clock():
    """Clock fixed at 2024-01-01 12:00 UTC."""
    return DeterministicClock()


@pytest.fixture
def credentials():
    return FakeCredentialProvider()


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def database():
    """Fresh in-memory SQLite database with the tables created."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield
    drop_tables()
    reset_engine()


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def default_chart():
    return (
        Account(id="acc-101", code="101", name_ar="الصندوق", name_en="Cash", category=AccountCategory.ASSETS),
        Account(id="acc-201", code="201", name_ar="الموردون", name_en="Payables", category=AccountCategory.LIABILITIES),
        Account(id="acc-301", code="301", name_ar="رأس المال", name_en="Capital", category=AccountCategory.EQUITY),
    )


@pytest.fixture
def admin_user(credentials):
    return User(
        id="user-admin",
        full_name="Admin User",
        job_title="Administrator",
        phone=ADMIN_PHONE,
        password=credentials.encrypt(ADMIN_PASSWORD),
        permissions=("dashboard", "users"),
        role=UserRole.ADMIN,
        signature=credentials.sign("admin", ADMIN_PHONE),
    )


@pytest.fixture
def store(default_chart, admin_user):
    return DomainStore(StoreSnapshot(users=(admin_user,), coa=default_chart))


@pytest.fixture
def auditor(store, deterministic_clock):
    return AuditRecorder(store, deterministic_clock)


@pytest.fixture
def handlers(store, auditor, credentials, deterministic_clock):
    return {
        EntityType.ENTRY: JournalEntryHandler(store, auditor, deterministic_clock),
        EntityType.ACCOUNT: AccountHandler(store, auditor, deterministic_clock),
        EntityType.WELL: WellHandler(store, auditor, deterministic_clock),
        EntityType.PARTNER: PartnerHandler(store, auditor, deterministic_clock),
        EntityType.INVENTORY: InventoryHandler(store, auditor, deterministic_clock),
        EntityType.USER: UserHandler(store, auditor, credentials, deterministic_clock),
    }


@pytest.fixture
def dispatcher(store, handlers, deterministic_clock):
    return MutationDispatcher(store, handlers, deterministic_clock)


@pytest.fixture
def entry_payload():
    """Factory for journal entry CREATE payloads."""

    def _make(debit="1000", credit="1000", debit_account="acc-101", credit_account="acc-201", **extra):
        payload = {
            "date": date(2024, 1, 15),
            "description": "Crude sale",
            "debit_lines": [{"account_id": debit_account, "amount": Decimal(debit)}],
            "credit_lines": [{"account_id": credit_account, "amount": Decimal(credit)}],
        }
        payload.update(extra)
        return payload

    return _make


# =============================================================================
# Application fixtures
# =============================================================================


@pytest.fixture
def persistence(database, default_chart, deterministic_clock):
    return PersistenceAdapter(default_chart, AppSettings(), deterministic_clock)


@pytest.fixture
def app(persistence, credentials, deterministic_clock):
    """Application with no users, loaded from an empty database."""
    application = FinexApplication(credentials, persistence, clock=deterministic_clock)
    application.reload()
    return application


@pytest.fixture
def admin_app(app):
    """Application with an admin set up and logged in."""
    app.setup_admin("Admin User", ADMIN_PHONE, ADMIN_PASSWORD)
    app.login(ADMIN_PHONE, ADMIN_PASSWORD, as_admin=True)
    return app
