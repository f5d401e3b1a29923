"""
Account Store
Access to the owner's business record in the hosted database
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests


BUSINESSES_TABLE = 'businesses'
ACTIVATED_HASH_COLUMN = 'activated_license_key_hash'


@dataclass(frozen=True)
class Account:
    """Authenticated owner context, identified by its business record"""
    account_id: str
    owner_user_id: Optional[str] = None


class AccountStore(ABC):
    """
    Narrow data-access contract the entitlement core depends on.

    Implementations report failures as None/False and never raise for
    transport or storage errors.
    """

    @abstractmethod
    def get_current_account(self) -> Optional[Account]:
        """Business record of the signed-in owner, or None if unauthenticated"""

    @abstractmethod
    def set_activated_hash(self, account_id: str, key_hash: int) -> bool:
        """Overwrite the account's activated hash"""

    @abstractmethod
    def get_activated_hash(self, account_id: str) -> Optional[int]:
        """Read the account's activated hash, None if unset"""

    @abstractmethod
    def get_owner_activated_hash(self) -> Optional[int]:
        """Activated hash of the business record, readable without a session"""

    @abstractmethod
    def has_owner(self) -> bool:
        """Whether setup has created any business record"""

    def with_access_token(self, access_token: Optional[str]) -> 'AccountStore':
        """Bind the store to an owner session. Session-less stores return themselves."""
        return self


class SupabaseAccountStore(AccountStore):
    """
    AccountStore backed by the hosted database REST API.

    One request per call, no retries. The owner session is an access token
    issued by the identity service; without one the store is anonymous and
    get_current_account() returns None.
    """

    def __init__(self, app_logger, base_url: str, api_key: str,
                 access_token: Optional[str] = None, timeout: float = 10,
                 session: Optional[requests.Session] = None):
        self.logger = app_logger
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.access_token = access_token
        self.timeout = timeout
        self.session = session or requests.Session()

    def with_access_token(self, access_token: Optional[str]) -> 'SupabaseAccountStore':
        """Return a store bound to the given owner session"""
        return SupabaseAccountStore(
            self.logger, self.base_url, self.api_key,
            access_token=access_token, timeout=self.timeout, session=self.session
        )

    def _headers(self) -> Dict[str, str]:
        return {
            'apikey': self.api_key,
            'Authorization': f"Bearer {self.access_token or self.api_key}",
            'Content-Type': 'application/json',
        }

    def _request(self, method: str, path: str, **kwargs) -> Optional[requests.Response]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.exceptions.Timeout:
            self.logger.warning(f"Account store timeout: {method} {path}")
            return None
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Account store request error for {method} {path}: {e}")
            return None

        if response.status_code >= 400:
            self.logger.error(
                f"Account store HTTP {response.status_code} for {method} {path}: {response.text[:500]}"
            )
            return None
        return response

    def _json(self, response: Optional[requests.Response]) -> Any:
        if response is None:
            return None
        try:
            return response.json()
        except ValueError:
            self.logger.error("Account store returned invalid JSON")
            return None

    def _select_businesses(self, params: Dict[str, str]) -> Optional[List[Dict[str, Any]]]:
        rows = self._json(self._request('GET', f'/rest/v1/{BUSINESSES_TABLE}', params=params))
        if not isinstance(rows, list):
            return None
        return rows

    def get_current_account(self) -> Optional[Account]:
        if not self.access_token:
            return None

        user = self._json(self._request('GET', '/auth/v1/user'))
        if not isinstance(user, dict) or not user.get('id'):
            self.logger.info("No authenticated owner session")
            return None

        rows = self._select_businesses({
            'select': 'id,owner_user_id',
            'owner_user_id': f"eq.{user['id']}",
            'limit': '1',
        })
        if not rows or not rows[0].get('id'):
            self.logger.error("Could not fetch business details for current user")
            return None

        row = rows[0]
        return Account(
            account_id=str(row['id']),
            owner_user_id=row.get('owner_user_id'),
        )

    def set_activated_hash(self, account_id: str, key_hash: int) -> bool:
        response = self._request(
            'PATCH', f'/rest/v1/{BUSINESSES_TABLE}',
            params={'id': f'eq.{account_id}'},
            json={ACTIVATED_HASH_COLUMN: key_hash},
        )
        return response is not None

    def get_activated_hash(self, account_id: str) -> Optional[int]:
        rows = self._select_businesses({
            'select': ACTIVATED_HASH_COLUMN,
            'id': f'eq.{account_id}',
            'limit': '1',
        })
        if not rows:
            return None
        value = rows[0].get(ACTIVATED_HASH_COLUMN)
        return value if isinstance(value, int) else None

    def has_owner(self) -> bool:
        rows = self._select_businesses({'select': 'id', 'limit': '1'})
        return bool(rows)

    def get_owner_activated_hash(self) -> Optional[int]:
        # Single-business install: the first row is the owner's
        rows = self._select_businesses({'select': ACTIVATED_HASH_COLUMN, 'limit': '1'})
        if not rows:
            return None
        value = rows[0].get(ACTIVATED_HASH_COLUMN)
        return value if isinstance(value, int) else None
