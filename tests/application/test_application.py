"""
Tests for FinexApplication commands and projections.

Covers:
- every mutating command requires a logged-in user
- write-through: committed state is visible to a freshly loaded instance
- a failing write leaves the in-memory commit in place
- notifications: newest first, capped
- settings updates
"""

from decimal import Decimal

import pytest

from finex_config.loader import parse_config
from finex_kernel.db.engine import drop_tables, reset_engine
from finex_kernel.domain.entities import EntityType
from finex_kernel.domain.intents import Intent
from finex_kernel.domain.workflow import PendingActionState
from finex_kernel.exceptions import (
    InvalidPayloadError,
    NotAuthenticatedError,
    PersistenceError,
    ReasonTooShortError,
    SelfDeletionError,
)
from finex_services.application import MAX_NOTIFICATIONS, FinexApplication, open_application


def _account(code, category="EXPENSES"):
    return Intent.create(
        EntityType.ACCOUNT,
        {"code": code, "name_ar": "", "name_en": f"Account {code}", "category": category},
    )


class TestAuthenticationRequired:
    @pytest.mark.parametrize(
        "command",
        [
            lambda app: app.submit(Intent.create(EntityType.PARTNER, {"name": "Acme"})),
            lambda app: app.confirm("reason"),
            lambda app: app.update_settings(theme="light"),
            lambda app: app.export_backup(),
            lambda app: app.import_backup({"users": [], "coa": []}),
            lambda app: app.update_admin_profile("0500000000", "x"),
        ],
    )
    def test_commands_reject_anonymous(self, app, command):
        with pytest.raises(NotAuthenticatedError):
            command(app)
        assert app.partners == ()


class TestWriteThrough:
    def test_commit_visible_after_reload(self, admin_app, persistence, credentials, deterministic_clock):
        admin_app.submit(Intent.create(EntityType.PARTNER, {"id": "p-1", "name": "Acme"}))
        admin_app.submit(Intent.delete(EntityType.ACCOUNT, "acc-301"))
        admin_app.confirm("never used")

        fresh = FinexApplication(credentials, persistence, clock=deterministic_clock)
        fresh.reload()
        assert fresh.partners == admin_app.partners
        assert fresh.coa == admin_app.coa
        assert fresh.audit_logs == admin_app.audit_logs

    def test_pending_intent_not_persisted(self, admin_app, persistence):
        admin_app.submit(Intent.delete(EntityType.ACCOUNT, "acc-301"))
        assert admin_app.state is PendingActionState.AWAITING_REASON
        assert len(persistence.load().coa) == 3

    def test_failed_write_keeps_memory_commit(self, admin_app):
        drop_tables()
        with pytest.raises(PersistenceError):
            admin_app.submit(Intent.create(EntityType.PARTNER, {"id": "p-1", "name": "Acme"}))
        assert [p.id for p in admin_app.partners] == ["p-1"]

    def test_current_user_refreshed_after_own_update(self, admin_app):
        user_id = admin_app.current_user.id
        admin_app.submit(Intent.update(EntityType.USER, user_id, {"job_title": "Owner"}))
        admin_app.confirm("title change")
        assert admin_app.current_user.job_title == "Owner"


class TestGuards:
    def test_cannot_delete_self(self, admin_app):
        with pytest.raises(SelfDeletionError):
            admin_app.submit(Intent.delete(EntityType.USER, admin_app.current_user.id))
        assert admin_app.pending_action is None
        assert len(admin_app.users) == 1


class TestNotifications:
    def test_commit_notifications_newest_first(self, admin_app):
        admin_app.submit(_account("501"))
        admin_app.confirm("new cost centre")
        admin_app.submit(Intent.delete(EntityType.ACCOUNT, "acc-301"))
        admin_app.confirm("never used")

        assert admin_app.notifications == ("account_deleted", "account_added", "system_setup")

    def test_ungated_commits_do_not_notify(self, admin_app):
        admin_app.submit(Intent.create(EntityType.PARTNER, {"name": "Acme"}))
        assert admin_app.notifications == ("system_setup",)

    def test_capped(self, admin_app):
        for i in range(MAX_NOTIFICATIONS + 1):
            admin_app.submit(_account(str(600 + i)))
            admin_app.confirm("bulk chart setup")
        assert len(admin_app.notifications) == MAX_NOTIFICATIONS
        assert set(admin_app.notifications) == {"account_added"}


class TestSettings:
    def test_update_persisted(self, admin_app, persistence):
        settings = admin_app.update_settings(theme="light", locale="en")
        assert settings.theme == "light"
        assert admin_app.settings == settings
        assert persistence.load().settings == settings

    def test_unknown_setting_rejected(self, admin_app):
        before = admin_app.settings
        with pytest.raises(InvalidPayloadError):
            admin_app.update_settings(font_size=12)
        assert admin_app.settings == before


class TestOpenApplication:
    @pytest.fixture
    def config(self):
        return parse_config(
            {
                "config_id": "test",
                "version": 1,
                "database_url": "sqlite://",
                "reason_min_length": 5,
                "oil_price": "70",
                "default_settings": {"theme": "light"},
                "default_chart": [
                    {"id": "a-2", "code": "20", "name_en": "Loans", "category": "LIABILITIES"},
                    {"id": "a-1", "code": "3", "name_en": "Cash", "category": "ASSETS"},
                ],
            }
        )

    @pytest.fixture
    def opened(self, config, credentials, deterministic_clock):
        app = open_application(credentials, config=config, clock=deterministic_clock)
        yield app
        reset_engine()

    def test_fresh_database_uses_configured_defaults(self, opened):
        assert opened.needs_setup
        assert [a.code for a in opened.coa] == ["3", "20"]
        assert opened.settings.theme == "light"

    def test_configured_reason_length_enforced(self, opened):
        opened.setup_admin("Owner", "0500000000", "secret")
        opened.login("0500000000", "secret", as_admin=True)
        opened.submit(Intent.delete(EntityType.ACCOUNT, "a-1"))

        with pytest.raises(ReasonTooShortError):
            opened.confirm("dupe")
        opened.confirm("duplicate")
        assert [a.id for a in opened.coa] == ["a-2"]

    def test_configured_oil_price_values_partner_shares(self, opened):
        opened.setup_admin("Owner", "0500000000", "secret")
        opened.login("0500000000", "secret", as_admin=True)
        opened.submit(Intent.create(EntityType.PARTNER, {"id": "p-1", "name": "Acme"}))
        opened.submit(
            Intent.create(
                EntityType.WELL,
                {
                    "id": "w-1",
                    "name": "W1",
                    "daily_yield": "200",
                    "shares": [{"partner_id": "p-1", "partner_name": "Acme", "percent": "50"}],
                },
            )
        )

        intel = opened.partner_intel("p-1")
        assert intel.oil_price == Decimal("70")
        assert intel.total_daily_revenue == Decimal("7000")
