"""
Browser and OS detection from User-Agent strings.

Only used to fill in trusted-device metadata when the client does not send
it. The result is informational and never part of a trust decision.
"""

from __future__ import annotations

import re
from typing import NamedTuple

# Order matters: Edge and Opera UAs also contain "Chrome/", Chrome UAs
# also contain "Safari/".
_BROWSER_PATTERNS = [
    (re.compile(r"Edg/|Edge/"), "Edge"),
    (re.compile(r"OPR/|Opera"), "Opera"),
    (re.compile(r"Firefox/"), "Firefox"),
    (re.compile(r"Chrome/|CriOS/"), "Chrome"),
    (re.compile(r"Safari/"), "Safari"),
]

_OS_PATTERNS = [
    (re.compile(r"iPhone|iPad|iPod"), "iOS"),
    (re.compile(r"Android"), "Android"),
    (re.compile(r"Windows NT"), "Windows"),
    (re.compile(r"CrOS"), "Chrome OS"),
    (re.compile(r"Mac OS X|Macintosh"), "macOS"),
    (re.compile(r"Linux"), "Linux"),
]

UNKNOWN = "Unknown"


class UserAgentSummary(NamedTuple):
    browser: str
    os: str


def _first_match(user_agent: str, patterns) -> str:
    for pattern, name in patterns:
        if pattern.search(user_agent):
            return name
    return UNKNOWN


def parse_user_agent(user_agent: str | None) -> UserAgentSummary:
    """Return the browser and OS family named in *user_agent*."""
    if not user_agent:
        return UserAgentSummary(UNKNOWN, UNKNOWN)
    return UserAgentSummary(
        browser=_first_match(user_agent, _BROWSER_PATTERNS),
        os=_first_match(user_agent, _OS_PATTERNS),
    )
