"""
Activation Flow
normalize -> hash -> allow-list check -> persist on the account or defer
"""

from typing import AbstractSet, Optional

from .account_store import Account, AccountStore
from .license_key import (
    VALID_KEY_HASHES,
    is_allow_listed,
    is_demo_key,
    license_key_hash,
    normalize_key,
)
from .license_state import (
    ActivationOutcome,
    ActivationResult,
    ReconcileOutcome,
    ReconcileResult,
)
from .storage_manager import PendingLicenseStore


class ActivationFlow:
    """
    Activation and entitlement checks for one account context.

    Each call runs to completion against the stores; nothing is retried.
    """

    def __init__(self, account_store: AccountStore, pending_store: PendingLicenseStore,
                 app_logger, allow_list: AbstractSet[int] = VALID_KEY_HASHES):
        self.accounts = account_store
        self.pending = pending_store
        self.logger = app_logger
        self.allow_list = allow_list

    def activate(self, raw_key: Optional[str], account: Optional[Account]) -> ActivationResult:
        normalized = normalize_key(raw_key)
        if not normalized:
            return ActivationResult(ActivationOutcome.INVALID_KEY, message="Please enter a license key.")

        key_hash = license_key_hash(normalized)
        demo = is_demo_key(normalized)
        # The demo key skips the allow-list; its hash is still what gets stored.
        if not demo and not is_allow_listed(key_hash, self.allow_list):
            self.logger.info(f"Rejected license key with hash {key_hash}")
            return ActivationResult(
                ActivationOutcome.INVALID_KEY,
                key_hash=key_hash,
                message="Invalid license key. Please try again or use "
                        "DEMO-1HOUR-ACCESS for a trial.",
            )

        if account is None:
            self.logger.warning("No owner found to activate license for - deferring to setup")
            if not self.pending.save(key_hash):
                return ActivationResult(
                    ActivationOutcome.STORAGE_FAILURE, key_hash=key_hash, demo=demo,
                    message="Could not save the license key on this device.",
                )
            return ActivationResult(
                ActivationOutcome.PENDING, key_hash=key_hash, demo=demo,
                message="License key accepted. It will be applied once setup is complete.",
            )

        if not self.accounts.set_activated_hash(account.account_id, key_hash):
            self.logger.error(f"Failed to persist license activation for account {account.account_id}")
            return ActivationResult(
                ActivationOutcome.STORAGE_FAILURE, key_hash=key_hash, demo=demo,
                message="Could not save the license activation. Please try again.",
            )

        self.logger.info(f"License activated for account {account.account_id} (demo={demo})")
        return ActivationResult(
            ActivationOutcome.ACTIVATED, key_hash=key_hash, demo=demo,
            message="License activated successfully!",
        )

    def is_licensed(self, account: Optional[Account]) -> bool:
        """
        Only allow-listed hashes count; a demo activation whose hash is not in
        the allow-list reads as unlicensed.
        """
        if account is None:
            return False
        activated_hash = self.accounts.get_activated_hash(account.account_id)
        if activated_hash is None:
            return False
        return is_allow_listed(activated_hash, self.allow_list)

    def reconcile(self, account: Optional[Account]) -> ReconcileResult:
        """Apply the pending hash to an authenticated account and clear the slot"""
        pending_hash = self.pending.load()
        if pending_hash is None:
            return ReconcileResult(ReconcileOutcome.NOTHING_PENDING)

        if account is None:
            return ReconcileResult(
                ReconcileOutcome.AWAITING_LOGIN, key_hash=pending_hash,
                message="Please log in to finalize your license activation.",
            )

        if not self.accounts.set_activated_hash(account.account_id, pending_hash):
            self.logger.error(f"Failed to apply pending license to account {account.account_id}")
            return ReconcileResult(
                ReconcileOutcome.FAILED, key_hash=pending_hash,
                message="License activation could not be finalized yet.",
            )

        if not self.pending.clear():
            self.logger.warning("Pending license applied but slot could not be cleared")

        self.logger.info(f"Pending license applied to account {account.account_id}")
        return ReconcileResult(
            ReconcileOutcome.APPLIED, key_hash=pending_hash,
            message="License activation finalized.",
        )
