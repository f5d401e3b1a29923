"""
POS Pro License Entitlement
Key hashing, allow-list checks and deferred activation
"""

from .account_store import Account, AccountStore, SupabaseAccountStore
from .activation_flow import ActivationFlow
from .license_controller import LicenseController, resolve_entry_screen
from .license_key import (
    DEMO_LICENSE_KEY,
    VALID_KEY_HASHES,
    is_allow_listed,
    license_key_hash,
    normalize_key,
)
from .license_state import (
    ActivationOutcome,
    ActivationResult,
    EntitlementState,
    ReconcileOutcome,
    ReconcileResult,
)
from .storage_manager import PendingLicenseStore

__all__ = [
    'Account',
    'AccountStore',
    'SupabaseAccountStore',
    'ActivationFlow',
    'LicenseController',
    'resolve_entry_screen',
    'DEMO_LICENSE_KEY',
    'VALID_KEY_HASHES',
    'is_allow_listed',
    'license_key_hash',
    'normalize_key',
    'ActivationOutcome',
    'ActivationResult',
    'EntitlementState',
    'ReconcileOutcome',
    'ReconcileResult',
    'PendingLicenseStore',
]
