"""Reversible credential obfuscation for values stored at rest.

The transform XORs the UTF-8 bytes of the value with a key embedded in the
application and base64-encodes the result. Anyone holding this source can
reverse it: it only keeps the credential from being readable at a glance in
the state directory and provides no confidentiality.
"""

from __future__ import annotations

import base64
import binascii
from itertools import cycle

OBFUSCATION_KEY = b"QuickChatSecure2024"


def _xor(data: bytes, key: bytes) -> bytes:
    return bytes(byte ^ key_byte for byte, key_byte in zip(data, cycle(key)))


def obfuscate(value: str, key: bytes = OBFUSCATION_KEY) -> str:
    """Return the obfuscated, base64-encoded form of ``value``."""
    if not value:
        return ""
    return base64.b64encode(_xor(value.encode("utf-8"), key)).decode("ascii")


def deobfuscate(encoded: str, key: bytes = OBFUSCATION_KEY) -> str:
    """Reverse :func:`obfuscate`; returns ``""`` for undecodable input."""
    if not encoded:
        return ""
    try:
        raw = base64.b64decode(encoded.encode("ascii"), validate=True)
        return _xor(raw, key).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        return ""
