"""
License State Management
Result types shared by activation, reconciliation and status queries
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any
from enum import Enum


class ActivationOutcome(Enum):
    """Outcomes of a single activation attempt"""
    ACTIVATED = "activated"
    PENDING = "pending"
    INVALID_KEY = "invalid_key"
    STORAGE_FAILURE = "storage_failure"


class ReconcileOutcome(Enum):
    """Outcomes of applying a pending hash to an account"""
    NOTHING_PENDING = "nothing_pending"
    AWAITING_LOGIN = "awaiting_login"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass
class ActivationResult:
    """
    Tagged activation result

    Truthiness gives the boolean the UI contract expects: a key that was
    accepted (stored on the account or parked as pending) is True.
    """

    outcome: ActivationOutcome
    key_hash: Optional[int] = None
    demo: bool = False
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.outcome in (ActivationOutcome.ACTIVATED, ActivationOutcome.PENDING)

    @property
    def pending(self) -> bool:
        return self.outcome == ActivationOutcome.PENDING

    def __bool__(self) -> bool:
        return self.succeeded

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.succeeded,
            "outcome": self.outcome.value,
            "pending": self.pending,
            "message": self.message,
        }


@dataclass
class ReconcileResult:
    """Result of setup completion or login-triggered reconciliation"""

    outcome: ReconcileOutcome
    key_hash: Optional[int] = None
    message: str = ""

    @property
    def applied(self) -> bool:
        return self.outcome == ReconcileOutcome.APPLIED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "applied": self.applied,
            "message": self.message,
        }


@dataclass
class EntitlementState:
    """
    Snapshot of the entitlement for status endpoints and diagnostics
    """

    licensed: bool = False
    setup_complete: bool = False
    account_id: Optional[str] = None
    activated_hash: Optional[int] = None
    pending_hash: Optional[int] = None
    owner_licensed: bool = False
    checked_at: datetime = field(default_factory=datetime.now)

    @property
    def has_pending(self) -> bool:
        return self.pending_hash is not None

    def get_user_message(self) -> str:
        """Get user-friendly status message"""
        if self.licensed:
            return "License active"
        if self.owner_licensed and self.account_id is None:
            return "Log in to continue"
        if not self.setup_complete:
            if self.has_pending:
                return "License key saved - finish setup to apply it"
            return "Setup required"
        if self.has_pending:
            return "Log in to finalize your license activation"
        if self.activated_hash is not None:
            return "Activated license is not valid - please enter a new key"
        return "License activation required"

    def to_dict(self) -> Dict[str, Any]:
        """Convert state to dictionary for API responses. Raw hashes stay internal."""
        return {
            "licensed": self.licensed,
            "owner_licensed": self.owner_licensed,
            "setup_complete": self.setup_complete,
            "account_id": self.account_id,
            "activated": self.activated_hash is not None,
            "pending_activation": self.has_pending,
            "checked_at": self.checked_at.isoformat(),
            "user_message": self.get_user_message(),
        }
