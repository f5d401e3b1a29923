"""
License Key Hashing
Normalization, 32-bit key hash and the compiled-in allow-list
"""

from typing import AbstractSet, Optional

# Trial key accepted without an allow-list lookup
DEMO_LICENSE_KEY = "DEMO-1HOUR-ACCESS"

# Hashes of every issued license key. Changing this set requires a new release.
VALID_KEY_HASHES = frozenset({
    1465839238, -1316686012, 1944256136, 178203588, -2012624447, -203417734, -1899147192,
    1455325833, 1081555559, -1297924747, 102573216, -1149867517, -199926861, 715507845,
    -1335914105, 1904797046, -188377741, -126306515, 1851996519, -1859368557, -1889895077,
    -921287995, 1853664770, -1838965945, -738980347, 856403063, 1904944513, -1116246011,
    -79277685, -1777271816, 513360451, 1978249826, 114639917, -174549114, 1500021667,
})

_UINT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def normalize_key(raw_key: Optional[str]) -> str:
    """Trim and upper-case a user-supplied key. No validation happens here."""
    if raw_key is None:
        return ""
    return raw_key.strip().upper()


def _utf16_code_units(text: str):
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def license_key_hash(normalized_key: str) -> int:
    """
    Hash a normalized key to a signed 32-bit integer.

    acc = acc * 31 + code_unit, wrapped to 32 bits after every step.
    Code units are UTF-16, so keys hash identically to the web client.
    """
    acc = 0
    for code_unit in _utf16_code_units(normalized_key):
        acc = (acc * 31 + code_unit) & _UINT32_MASK
    if acc & _INT32_SIGN:
        acc -= 1 << 32
    return acc


def is_demo_key(normalized_key: str) -> bool:
    return normalized_key == DEMO_LICENSE_KEY


def is_allow_listed(key_hash: Optional[int],
                    allow_list: AbstractSet[int] = VALID_KEY_HASHES) -> bool:
    """Check a stored or computed hash against the allow-list"""
    if key_hash is None:
        return False
    return key_hash in allow_list
