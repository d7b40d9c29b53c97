"""Small parsing helpers."""

from __future__ import annotations

import re

_HEX_DIGITS = re.compile(r"[0-9A-Fa-f]+")


def parse_hex_to_uint8(text: str) -> int:
    """Parse a ``0x``-prefixed hexadecimal string into a byte value."""
    if not text.startswith("0x"):
        raise ValueError(f"invalid key format: expected '0x...' format, got {text}")
    digits = text[2:]
    if not _HEX_DIGITS.fullmatch(digits):
        raise ValueError(f"error parsing key '{digits}' to uint8: invalid syntax")
    value = int(digits, 16)
    if value > 0xFF:
        raise ValueError(f"error parsing key '{digits}' to uint8: value out of range")
    return value