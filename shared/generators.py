"""
Random code generators — pure, side-effect-free functions.

OTP codes come from the ``secrets`` module; placeholder avatars use the
system PRNG since they carry no security weight.
"""

from __future__ import annotations

import random
import secrets
import string

AVATAR_URL_TEMPLATE = "https://avatar.iran.liara.run/public/{index}.png"
AVATAR_COUNT = 100


def generate_otp_code(length: int = 6) -> str:
    """Generate a cryptographically secure numeric OTP.

    Every digit is drawn uniformly, so leading zeros are possible and the
    result always has exactly *length* characters.
    """
    return "".join(secrets.choice(string.digits) for _ in range(length))


def generate_avatar_url() -> str:
    """Pick one of the public placeholder avatars (1..100)."""
    return AVATAR_URL_TEMPLATE.format(index=random.randint(1, AVATAR_COUNT))
