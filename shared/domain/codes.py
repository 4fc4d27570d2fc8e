"""Short human-readable codes for bookings and service orders."""

from __future__ import annotations

import secrets
import time

ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789abcdefghjk"
BASE = len(ALPHABET)


def encode(number: int) -> str:
    if number == 0:
        return ALPHABET[0]
    chars = []
    while number:
        number, rest = divmod(number, BASE)
        chars.append(ALPHABET[rest])
    return "".join(reversed(chars))


def generate_code(prefix: str) -> str:
    """Encode a microsecond timestamp with a random tail, e.g. ``TH-Fx8k2QaPm``."""
    composite = time.time_ns() // 1000 * 1_000_000 + secrets.randbelow(1_000_000)
    return f"{prefix}-{encode(composite)}"
