"""
Input validators — framework-agnostic, pure functions.

Each validator returns a bool; callers decide which error to raise.
"""

from __future__ import annotations

from typing import Mapping

import validators as _validators

DEFAULT_PASSWORD_MIN_LENGTH = 6


def validate_email(email: str) -> bool:
    """Return True if *email* has a ``local@domain.tld`` shape.

    Addresses are compared exactly as stored elsewhere; this only checks
    syntax and never normalises case.
    """
    if not email or email != email.strip():
        return False
    return bool(_validators.email(email))


def validate_password(
    password: str, min_length: int = DEFAULT_PASSWORD_MIN_LENGTH
) -> bool:
    """Return True if *password* is at least *min_length* characters."""
    return bool(password) and len(password) >= min_length


def missing_fields(values: Mapping[str, object]) -> list[str]:
    """Return the keys of *values* whose value is empty or whitespace-only.

    Order follows the mapping, so error messages list fields the way the
    form presents them.
    """
    missing = []
    for name, value in values.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing
