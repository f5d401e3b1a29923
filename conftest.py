"""
Pytest configuration and shared fixtures.
"""

import logging

import pytest

from config import Config
from entitlement import (
    Account,
    AccountStore,
    LicenseController,
    PendingLicenseStore,
    license_key_hash,
)
from entitlement.activation_flow import ActivationFlow


OWNER_TOKEN = "owner-session-token"
LIFETIME_KEY = "POS-PRO-LIFETIME-0001"
SECOND_KEY = "SECOND-KEY-0002"
UNKNOWN_KEY = "NOT-A-REAL-KEY"

# Issued keys are only known by hash; tests use their own allow-list of known keys.
TEST_ALLOW_LIST = frozenset({license_key_hash(LIFETIME_KEY), license_key_hash(SECOND_KEY)})


class FakeAccountStore(AccountStore):
    """In-memory stand-in for the hosted businesses table."""

    def __init__(self, account=None, owner_exists=None):
        self.account = account
        self.owner_exists = (account is not None) if owner_exists is None else owner_exists
        self.activated = {}
        self.writes = []
        self.fail_writes = False
        self.raise_on_lookup = False

    def get_current_account(self):
        if self.raise_on_lookup:
            raise RuntimeError("lookup exploded")
        return self.account

    def set_activated_hash(self, account_id, key_hash):
        if self.fail_writes:
            return False
        self.writes.append((account_id, key_hash))
        self.activated[account_id] = key_hash
        return True

    def get_activated_hash(self, account_id):
        return self.activated.get(account_id)

    def get_owner_activated_hash(self):
        # Single business: the owner row is the only row
        if self.account is None:
            return None
        return self.activated.get(self.account.account_id)

    def has_owner(self):
        return self.owner_exists

    def with_access_token(self, access_token):
        return _SessionBoundStore(self, access_token)


class _SessionBoundStore(AccountStore):
    """Fake store seen through a request's bearer token."""

    def __init__(self, parent, access_token):
        self.parent = parent
        self.access_token = access_token

    def get_current_account(self):
        if self.access_token != OWNER_TOKEN:
            return None
        return self.parent.get_current_account()

    def set_activated_hash(self, account_id, key_hash):
        return self.parent.set_activated_hash(account_id, key_hash)

    def get_activated_hash(self, account_id):
        return self.parent.get_activated_hash(account_id)

    def get_owner_activated_hash(self):
        return self.parent.get_owner_activated_hash()

    def has_owner(self):
        return self.parent.has_owner()


@pytest.fixture
def logger():
    return logging.getLogger("pospro-tests")


@pytest.fixture
def owner_account():
    return Account(account_id="biz-1", owner_user_id="user-1")


@pytest.fixture
def account_store(owner_account):
    """Store with a signed-in owner."""
    return FakeAccountStore(account=owner_account)


@pytest.fixture
def anonymous_store():
    """Store before setup: no owner, no session."""
    return FakeAccountStore(account=None, owner_exists=False)


@pytest.fixture
def pending_store(tmp_path, logger):
    return PendingLicenseStore(logger, str(tmp_path / "data"), "test-app-secret")


@pytest.fixture
def flow(account_store, pending_store, logger):
    return ActivationFlow(account_store, pending_store, logger, allow_list=TEST_ALLOW_LIST)


@pytest.fixture
def make_controller(pending_store, logger):
    def _make(store, reconcile_on_login=True):
        return LicenseController(
            logger, store, pending_store,
            reconcile_on_login=reconcile_on_login,
            allow_list=TEST_ALLOW_LIST,
        )
    return _make


@pytest.fixture
def test_config(tmp_path):
    class TestConfig(Config):
        TESTING = True
        DATA_DIR = str(tmp_path / "data")
        APP_SECRET_KEY = "test-app-secret"
        ENABLE_FILE_LOGGING = False
        RECONCILE_PENDING_ON_LOGIN = True
        SUPABASE_URL = "https://example.supabase.co"
        SUPABASE_ANON_KEY = "anon-key"

    return TestConfig
