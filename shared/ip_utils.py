"""
Client IP resolution for FastAPI requests.

The resolved address is recorded on trusted devices and hashed into request
logs; it never influences authentication.
"""

from __future__ import annotations

from fastapi import Request

# Checked in priority order; the first non-empty value wins
PROXY_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
)


def get_client_ip(request: Request) -> str:
    """Extract the real client IP from a FastAPI ``Request``.

    ``X-Forwarded-For`` may carry a chain; the left-most entry is the
    original client. Falls back to the socket peer address, or ``""``.
    """
    for header in PROXY_HEADERS:
        ip_value: str | None = request.headers.get(header)
        if ip_value:
            client_ip: str = ip_value.split(",")[0].strip()
            if client_ip:
                return client_ip

    return request.client.host if request.client else ""
