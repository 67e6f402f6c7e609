"""Human readable reference generation."""

import secrets
import string
import time
from typing import Optional

_BASE36 = string.digits + string.ascii_uppercase


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_reference(prefix: str, suffix_length: int = 4, now_ms: Optional[int] = None) -> str:
    """
    Build a reference like ``BK-LQ3X0F2A-7K2Q``.

    The middle part is the base36 millisecond timestamp; the random tail
    keeps references unique for bookings created in the same millisecond.
    """
    stamp = to_base36(now_ms if now_ms is not None else int(time.time() * 1000))
    tail = "".join(secrets.choice(_BASE36) for _ in range(suffix_length))
    return f"{prefix}-{stamp}-{tail}"


def external_booking_reference(source_name: str) -> str:
    """Reference for a booking imported from an external channel."""
    return generate_reference(f"EXT-{source_name.upper()}")
