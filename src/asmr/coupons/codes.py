"""Coupon code generation.

Codes are 16 symbols from a 32-character alphabet without the look-alike
characters 0, 1, O and I, printed in hyphen-separated groups of four:
``7KQ2-M9XD-4HTR-B3WZ``. The source of randomness does not need to be
cryptographic; uniqueness is enforced by the database.
"""

from __future__ import annotations

import random

COUPON_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"
COUPON_LENGTH = 16
COUPON_GROUP_SIZE = 4


def generate_coupon_code(rng: random.Random | None = None) -> str:
    """Generate a random ``XXXX-XXXX-XXXX-XXXX`` coupon code."""
    choice = (rng or random).choice
    symbols = "".join(choice(COUPON_ALPHABET) for _ in range(COUPON_LENGTH))
    return "-".join(
        symbols[i : i + COUPON_GROUP_SIZE] for i in range(0, COUPON_LENGTH, COUPON_GROUP_SIZE)
    )


def normalize_coupon_code(code: str) -> str:
    """Normalize a user-entered code for lookup (trim, uppercase)."""
    return code.strip().upper()
