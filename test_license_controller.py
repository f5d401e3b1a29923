"""
Tests for the UI-facing license controller and the setup/login lifecycle.
"""

import pytest

from conftest import LIFETIME_KEY, UNKNOWN_KEY, FakeAccountStore
from entitlement import (
    DEMO_LICENSE_KEY,
    ActivationOutcome,
    ReconcileOutcome,
    license_key_hash,
    resolve_entry_screen,
)


def test_activate_license_boolean_facade(make_controller, account_store, owner_account):
    controller = make_controller(account_store)

    assert controller.activate_license(LIFETIME_KEY) is True
    assert controller.activate_license(UNKNOWN_KEY) is False
    assert controller.activate_license("") is False
    assert account_store.activated[owner_account.account_id] == license_key_hash(LIFETIME_KEY)


def test_is_licensed(make_controller, account_store):
    controller = make_controller(account_store)
    assert controller.is_licensed() is False

    controller.activate_license(LIFETIME_KEY)
    assert controller.is_licensed() is True

    controller.activate_license(DEMO_LICENSE_KEY)
    assert controller.is_licensed() is False


def test_lookup_errors_collapse_to_false(make_controller, account_store):
    account_store.raise_on_lookup = True
    controller = make_controller(account_store)

    # No account resolvable: the key is parked as pending instead
    result = controller.activate_license_detailed(LIFETIME_KEY)
    assert result.outcome == ActivationOutcome.PENDING
    assert controller.is_licensed() is False


def test_unexpected_store_error_is_a_storage_failure(make_controller, account_store, monkeypatch):
    def explode(account_id, key_hash):
        raise RuntimeError("db down")

    monkeypatch.setattr(account_store, "set_activated_hash", explode)
    controller = make_controller(account_store)

    result = controller.activate_license_detailed(LIFETIME_KEY)

    assert result.outcome == ActivationOutcome.STORAGE_FAILURE
    assert controller.activate_license(LIFETIME_KEY) is False


class TestSetupAndLogin:
    def test_activation_before_setup_then_setup_then_login(self, make_controller, pending_store, owner_account):
        before_setup = FakeAccountStore(account=None, owner_exists=False)
        assert make_controller(before_setup).activate_license(LIFETIME_KEY) is True
        assert pending_store.load() == license_key_hash(LIFETIME_KEY)

        # Setup created the owner but nobody is signed in yet
        after_setup = FakeAccountStore(account=None, owner_exists=True)
        setup_result = make_controller(after_setup).complete_setup()
        assert setup_result.outcome == ReconcileOutcome.AWAITING_LOGIN
        assert setup_result.message == "Setup complete! Please log in to finalize your license activation."
        assert pending_store.load() == license_key_hash(LIFETIME_KEY)
        assert after_setup.writes == []

        signed_in = FakeAccountStore(account=owner_account)
        controller = make_controller(signed_in)
        login_result = controller.handle_login()
        assert login_result.outcome == ReconcileOutcome.APPLIED
        assert pending_store.load() is None
        assert controller.is_licensed() is True

    def test_setup_without_pending_license(self, make_controller):
        result = make_controller(FakeAccountStore(owner_exists=True)).complete_setup()
        assert result.outcome == ReconcileOutcome.NOTHING_PENDING
        assert result.message == "Setup complete! You can now log in."

    def test_login_with_nothing_pending(self, make_controller, account_store):
        assert make_controller(account_store).handle_login().outcome == ReconcileOutcome.NOTHING_PENDING
        assert account_store.writes == []

    def test_failed_login_reconciliation_keeps_pending(self, make_controller, account_store, pending_store):
        pending_store.save(license_key_hash(LIFETIME_KEY))
        account_store.fail_writes = True

        result = make_controller(account_store).handle_login()

        assert result.outcome == ReconcileOutcome.FAILED
        assert pending_store.load() == license_key_hash(LIFETIME_KEY)

    def test_login_reconciliation_can_be_disabled(self, make_controller, account_store, pending_store):
        pending_store.save(license_key_hash(LIFETIME_KEY))

        result = make_controller(account_store, reconcile_on_login=False).handle_login()

        assert result.outcome == ReconcileOutcome.AWAITING_LOGIN
        assert account_store.writes == []
        assert pending_store.load() == license_key_hash(LIFETIME_KEY)


def test_entitlement_state(make_controller, account_store, owner_account, pending_store):
    controller = make_controller(account_store)
    controller.activate_license(LIFETIME_KEY)
    pending_store.save(1)

    state = controller.get_entitlement_state()

    assert state.licensed is True
    assert state.setup_complete is True
    assert state.account_id == owner_account.account_id
    assert state.activated_hash == license_key_hash(LIFETIME_KEY)
    assert state.pending_hash == 1
    payload = state.to_dict()
    assert payload["activated"] is True
    assert payload["pending_activation"] is True
    assert "activated_hash" not in payload


def test_entitlement_state_before_setup(make_controller, anonymous_store):
    state = make_controller(anonymous_store).get_entitlement_state()

    assert state.licensed is False
    assert state.setup_complete is False
    assert state.account_id is None
    assert state.get_user_message() == "Setup required"


def test_diagnose_flags_demo_activation(make_controller, account_store):
    controller = make_controller(account_store)
    controller.activate_license(DEMO_LICENSE_KEY)

    diagnosis = controller.diagnose()

    assert diagnosis["account"]["activated_hash"] == license_key_hash(DEMO_LICENSE_KEY)
    assert diagnosis["account"]["activated_hash_allow_listed"] is False
    assert any("allow-list" in r for r in diagnosis["recommendations"])


@pytest.mark.parametrize(
    "setup_complete, licensed, logged_in, screen",
    [
        (False, False, False, "setup"),
        (False, True, True, "setup"),
        (True, False, False, "license"),
        (True, False, True, "license"),
        (True, True, False, "login"),
        (True, True, True, "app"),
    ],
)
def test_resolve_entry_screen(setup_complete, licensed, logged_in, screen):
    assert resolve_entry_screen(setup_complete, licensed, logged_in) == screen


def test_signed_out_state_reports_owner_license(make_controller, account_store, owner_account):
    account_store.activated[owner_account.account_id] = license_key_hash(LIFETIME_KEY)
    signed_out = make_controller(account_store.with_access_token(None))

    state = signed_out.get_entitlement_state()

    assert state.account_id is None
    assert state.licensed is False
    assert state.owner_licensed is True
    # The session-scoped check stays false without a signed-in owner
    assert signed_out.is_licensed() is False


def test_owner_license_read_failure_is_not_licensed(make_controller, account_store):
    def explode():
        raise RuntimeError("owner lookup exploded")

    account_store.get_owner_activated_hash = explode

    state = make_controller(account_store).get_entitlement_state()

    assert state.owner_licensed is False
