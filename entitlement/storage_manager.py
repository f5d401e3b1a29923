"""
Pending License Storage
Device-local slot for a license hash captured before an owner account exists
"""

import os
import json
import threading
import hashlib
import platform
import uuid
import base64
from datetime import datetime
from typing import Optional, Dict, Any

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC


PENDING_SLOT_NAME = 'pending_license_hash'


class PendingLicenseStore:
    """
    Single-value ledger for a deferred activation

    The slot lives in the data directory, survives restarts on this device
    and is never synced. Writes overwrite (last write wins).
    """

    def __init__(self, app_logger, data_dir: str, app_secret_key: str):
        self.logger = app_logger
        self.data_dir = data_dir
        self.app_secret_key = str(app_secret_key)

        self.slot_file = os.path.join(data_dir, f'{PENDING_SLOT_NAME}.enc')

        self._fernet: Optional[Fernet] = None
        self._storage_lock = threading.Lock()

    def get_device_id(self) -> str:
        """Stable fingerprint of this device"""
        mac_node = uuid.getnode()
        # getnode() falls back to a random multicast address when no MAC is readable
        if mac_node & (1 << 40):
            mac = 'unknown'
        else:
            mac = ':'.join(f'{(mac_node >> (8 * (5 - i))) & 0xff:02x}' for i in range(6))
        combined = f"{mac}|{platform.node()}|{platform.machine()}"
        return hashlib.sha256(combined.encode()).hexdigest()

    def _get_encryption_key(self) -> Fernet:
        """Derive the slot encryption key from device id and app secret"""
        if self._fernet is None:
            password = f"{self.get_device_id()}{self.app_secret_key}".encode()
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=32,
                salt=b'pospro_pending_license_v1',
                iterations=100000,
            )
            self._fernet = Fernet(base64.urlsafe_b64encode(kdf.derive(password)))
        return self._fernet

    def _encrypt_data(self, data: Dict[str, Any]) -> bytes:
        return self._get_encryption_key().encrypt(json.dumps(data).encode())

    def _decrypt_data(self, encrypted_data: bytes) -> Optional[Dict[str, Any]]:
        try:
            decrypted = self._get_encryption_key().decrypt(encrypted_data)
            return json.loads(decrypted.decode())
        except (InvalidToken, ValueError) as e:
            self.logger.error(f"Failed to decrypt pending license slot: {e}")
            return None

    def exists(self) -> bool:
        return os.path.exists(self.slot_file)

    def load(self) -> Optional[int]:
        """Read the pending hash, or None when the slot is empty or unreadable"""
        with self._storage_lock:
            if not os.path.exists(self.slot_file):
                return None
            try:
                with open(self.slot_file, 'rb') as f:
                    encrypted_data = f.read()
            except OSError as e:
                self.logger.error(f"Error reading pending license slot: {e}")
                return None

            slot = self._decrypt_data(encrypted_data)
            if not slot or slot.get('device_id') != self.get_device_id():
                self.logger.warning("Ignoring invalid pending license slot")
                return None

            value = slot.get(PENDING_SLOT_NAME)
            if isinstance(value, bool) or not isinstance(value, int):
                self.logger.warning("Pending license slot holds no hash")
                return None
            return value

    def save(self, key_hash: int) -> bool:
        """Store a pending hash, replacing any previous value"""
        slot = {
            PENDING_SLOT_NAME: int(key_hash),
            'device_id': self.get_device_id(),
            'saved_at': datetime.now().isoformat(),
            'slot_version': '1.0',
        }
        with self._storage_lock:
            try:
                os.makedirs(self.data_dir, exist_ok=True)
                tmp_file = f"{self.slot_file}.tmp"
                with open(tmp_file, 'wb') as f:
                    f.write(self._encrypt_data(slot))
                os.replace(tmp_file, self.slot_file)
            except OSError as e:
                self.logger.error(f"Failed to save pending license slot: {e}")
                return False

        self.logger.info(f"Pending license hash stored: {key_hash}")
        return True

    def clear(self) -> bool:
        """Remove the pending hash. Clearing an empty slot succeeds."""
        with self._storage_lock:
            try:
                if os.path.exists(self.slot_file):
                    os.remove(self.slot_file)
                    self.logger.info("Pending license slot cleared")
                return True
            except OSError as e:
                self.logger.error(f"Failed to clear pending license slot: {e}")
                return False
