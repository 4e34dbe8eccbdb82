"""
Short code generation.

Codes are independent uniform draws (with replacement) from a fixed
62-character alphabet. Nothing here checks for collisions; the unique
constraint on content_links.short_code does.
"""

from __future__ import annotations

import random
import string

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
DEFAULT_LENGTH = 8

_system_random = random.SystemRandom()


def generate_short_code(length: int = DEFAULT_LENGTH, rng: random.Random | None = None) -> str:
    """
    Generate a short code.

    Args:
        length: Number of characters.
        rng: Random source; the OS entropy source when omitted.

    Returns:
        A string of ``length`` characters from ``ALPHABET``.
    """
    if length < 1:
        raise ValueError("length must be positive")
    rng = rng or _system_random
    return "".join(rng.choices(ALPHABET, k=length))


def is_short_code(value: str, length: int = DEFAULT_LENGTH) -> bool:
    """Check that ``value`` has the shape of a generated code."""
    return len(value) == length and all(c in ALPHABET for c in value)


def build_short_url(origin: str, short_code: str) -> str:
    """Public URL of a short link: {origin}/g/{short_code}."""
    return f"{origin.rstrip('/')}/g/{short_code}"
