"""
Purpose: Decide whether a listing's relative-time phrase is recent enough to alert on.
Constraints: Pure; unknown phrasing is treated as stale.
"""

# Imports
import re

# Constants
FRESH_MAX_MINUTES = 5
FRESH_MAX_SECONDS = 49

_JUST_NOW = re.compile(r"^just now$")
_FEW_SECONDS = re.compile(r"^a few seconds ago$")
_SECONDS = re.compile(r"^(?P<n>\d+) seconds? ago$")
_ONE_MINUTE = re.compile(r"^an? minute ago$")
_MINUTES = re.compile(r"^(?P<n>\d+) minutes? ago$")


# Public API
def is_fresh(phrase: str, max_minutes: int = FRESH_MAX_MINUTES) -> bool:
    """True for "just now", seconds under 50, and up to ``max_minutes`` minutes.

    The whole phrase must match, so "15 minutes ago" is never read as
    "5 minutes ago".
    """
    text = " ".join((phrase or "").lower().split())
    if not text:
        return False
    if _JUST_NOW.match(text) or _FEW_SECONDS.match(text):
        return True

    match = _SECONDS.match(text)
    if match:
        return int(match.group("n")) <= FRESH_MAX_SECONDS

    if _ONE_MINUTE.match(text):
        return max_minutes >= 1

    match = _MINUTES.match(text)
    if match:
        return int(match.group("n")) <= max_minutes
    return False
