#!/usr/bin/env python3
"""
License Debug Tool - Run this to see exactly why a license key is rejected
"""
import logging
import sys

from config import Config
from entitlement import (
    DEMO_LICENSE_KEY,
    PendingLicenseStore,
    VALID_KEY_HASHES,
    is_allow_listed,
    license_key_hash,
    normalize_key,
)


def describe_key(raw_key):
    """Everything the activation flow computes for a key, without storing it"""
    normalized = normalize_key(raw_key)
    key_hash = license_key_hash(normalized)
    demo = normalized == DEMO_LICENSE_KEY
    allow_listed = is_allow_listed(key_hash)
    return {
        "normalized": normalized,
        "hash": key_hash,
        "demo": demo,
        "allow_listed": allow_listed,
        "accepted": bool(normalized) and (demo or allow_listed),
        "licensed_after_activation": allow_listed,
    }


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    raw_key = argv[0] if argv else input("License key: ")

    print("=" * 60)
    print("POS PRO LICENSE DEBUG")
    print("=" * 60)

    info = describe_key(raw_key)
    print(f"Normalized key:     '{info['normalized']}'")
    print(f"Key hash:           {info['hash']}")
    print(f"Demo key:           {info['demo']}")
    print(f"In allow-list:      {info['allow_listed']} ({len(VALID_KEY_HASHES)} hashes)")
    print(f"Activation accepts: {info['accepted']}")
    print(f"Reports licensed:   {info['licensed_after_activation']}")

    if info['demo'] and not info['allow_listed']:
        print("\nNOTE: the demo key activates but its hash is not allow-listed,")
        print("so status checks will report the account as unlicensed.")

    print("\n--- Pending license slot on this device ---")
    logger = logging.getLogger("license_debug")
    pending = PendingLicenseStore(logger, Config.DATA_DIR, Config.APP_SECRET_KEY)
    print(f"Slot file:          {pending.slot_file}")
    print(f"Slot file exists:   {pending.exists()}")
    pending_hash = pending.load()
    print(f"Pending hash:       {pending_hash}")
    if pending_hash is not None:
        print(f"Matches this key:   {pending_hash == info['hash']}")

    return 0 if info['accepted'] else 1


if __name__ == "__main__":
    sys.exit(main())
