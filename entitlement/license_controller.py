"""
License Controller
UI-facing surface of the entitlement subsystem
"""

from datetime import datetime
from typing import AbstractSet, Any, Dict, Optional

from .account_store import Account, AccountStore
from .activation_flow import ActivationFlow
from .license_key import VALID_KEY_HASHES, is_allow_listed
from .license_state import (
    ActivationOutcome,
    ActivationResult,
    EntitlementState,
    ReconcileOutcome,
    ReconcileResult,
)
from .storage_manager import PendingLicenseStore


def resolve_entry_screen(setup_complete: bool, licensed: bool, logged_in: bool) -> str:
    """Pick the first screen the POS shows: setup, license, login or app"""
    if not setup_complete:
        return "setup"
    if not licensed:
        return "license"
    if not logged_in:
        return "login"
    return "app"


class LicenseController:
    """
    Entry point used by the login, setup and admin screens.

    Failures never propagate: callers get a boolean or a result object and
    operators get a log line.
    """

    def __init__(self, app_logger, account_store: AccountStore,
                 pending_store: PendingLicenseStore,
                 reconcile_on_login: bool = True,
                 allow_list: AbstractSet[int] = VALID_KEY_HASHES):
        self.logger = app_logger
        self.accounts = account_store
        self.pending = pending_store
        self.reconcile_on_login = reconcile_on_login
        self.activation_flow = ActivationFlow(
            account_store, pending_store, app_logger, allow_list=allow_list
        )

    def _current_account(self) -> Optional[Account]:
        try:
            return self.accounts.get_current_account()
        except Exception as e:
            self.logger.error(f"Account lookup failed: {e}")
            return None

    def activate_license(self, key: str) -> bool:
        return self.activate_license_detailed(key).succeeded

    def activate_license_detailed(self, key: str) -> ActivationResult:
        try:
            return self.activation_flow.activate(key, self._current_account())
        except Exception as e:
            self.logger.error(f"License activation error: {e}")
            return ActivationResult(
                ActivationOutcome.STORAGE_FAILURE,
                message="License activation failed. Please try again.",
            )

    def is_licensed(self) -> bool:
        try:
            return self.activation_flow.is_licensed(self._current_account())
        except Exception as e:
            self.logger.error(f"License status error: {e}")
            return False

    def complete_setup(self) -> ReconcileResult:
        """
        Called once right after setup creates the owner account.

        The new owner is not signed in yet, so the pending hash cannot be
        written here; it stays in the slot until handle_login().
        """
        pending_hash = self.pending.load()
        if pending_hash is None:
            return ReconcileResult(
                ReconcileOutcome.NOTHING_PENDING,
                message="Setup complete! You can now log in.",
            )

        self.logger.info("Setup finished with a pending license - waiting for owner login")
        return ReconcileResult(
            ReconcileOutcome.AWAITING_LOGIN, key_hash=pending_hash,
            message="Setup complete! Please log in to finalize your license activation.",
        )

    def handle_login(self) -> ReconcileResult:
        """Apply a pending license once the owner has signed in"""
        if not self.reconcile_on_login:
            pending_hash = self.pending.load()
            if pending_hash is None:
                return ReconcileResult(ReconcileOutcome.NOTHING_PENDING)
            return ReconcileResult(
                ReconcileOutcome.AWAITING_LOGIN, key_hash=pending_hash,
                message="Pending license activation is not applied automatically.",
            )

        try:
            result = self.activation_flow.reconcile(self._current_account())
        except Exception as e:
            self.logger.error(f"License reconciliation error: {e}")
            return ReconcileResult(ReconcileOutcome.FAILED)

        if result.outcome == ReconcileOutcome.FAILED:
            self.logger.warning("Pending license kept for the next login")
        return result

    def has_owner(self) -> bool:
        try:
            return self.accounts.has_owner()
        except Exception as e:
            self.logger.error(f"Error checking setup status: {e}")
            return False

    def _owner_licensed(self) -> bool:
        """Whether the business record holds a valid license, with or without a session"""
        try:
            owner_hash = self.accounts.get_owner_activated_hash()
        except Exception as e:
            self.logger.error(f"Error reading owner license: {e}")
            return False
        return is_allow_listed(owner_hash, self.activation_flow.allow_list)

    def get_entitlement_state(self) -> EntitlementState:
        state = EntitlementState(setup_complete=self.has_owner())
        state.pending_hash = self.pending.load()
        state.owner_licensed = self._owner_licensed()

        account = self._current_account()
        if account is None:
            return state

        state.account_id = account.account_id
        try:
            state.activated_hash = self.accounts.get_activated_hash(account.account_id)
        except Exception as e:
            self.logger.error(f"Error reading activated license: {e}")
            return state
        state.licensed = is_allow_listed(state.activated_hash, self.activation_flow.allow_list)
        return state

    def diagnose(self) -> Dict[str, Any]:
        """License diagnosis for troubleshooting"""
        state = self.get_entitlement_state()
        diagnosis = {
            "timestamp": datetime.now().isoformat(),
            "device_id": self.pending.get_device_id(),
            "pending_slot": {
                "path": self.pending.slot_file,
                "file_exists": self.pending.exists(),
                "readable_hash": state.pending_hash,
            },
            "account": {
                "account_id": state.account_id,
                "activated_hash": state.activated_hash,
                "activated_hash_allow_listed": state.licensed,
            },
            "license": state.to_dict(),
            "recommendations": [],
        }

        if diagnosis["pending_slot"]["file_exists"] and state.pending_hash is None:
            diagnosis["recommendations"].append(
                "Pending license slot is unreadable on this device - re-enter the license key"
            )
        if state.has_pending and state.setup_complete:
            diagnosis["recommendations"].append("Log in as the owner to apply the pending license")
        if state.activated_hash is not None and not state.licensed:
            diagnosis["recommendations"].append(
                "Activated key is not in the allow-list (demo keys expire here) - enter a purchased key"
            )
        return diagnosis
