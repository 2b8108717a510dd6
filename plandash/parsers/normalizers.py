"""Priority and effort normalization."""
from __future__ import annotations

import re
from typing import Any

from plandash.models import Priority

_PRIORITY_MAP = {
    "P1": "P1",
    "HIGH": "P1",
    "CRITICAL": "P1",
    "P2": "P2",
    "MEDIUM": "P2",
    "NORMAL": "P2",
    "P3": "P3",
    "LOW": "P3",
}
_PRIORITY_TOKEN_RE = re.compile(r"^P[0-3]$")

_HOURS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:h|hours?|hrs?)")
# Minutes are matched as whole numbers only.
_MINUTES_RE = re.compile(r"(\d+)\s*(?:m|min|minutes?)")
_DAYS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:d|days?)")
_HOURS_PER_DAY = 8


def normalize_priority(value: Any) -> Priority:
    """Normalize P1/High/Critical, P2/Medium/Normal, P3/Low; None when unrecognized."""
    if value is None or value == "":
        return None
    token = str(value).upper().strip()
    if token in _PRIORITY_MAP:
        return _PRIORITY_MAP[token]  # type: ignore[return-value]
    if _PRIORITY_TOKEN_RE.match(token):
        return token  # type: ignore[return-value]
    return None


def parse_effort_to_hours(value: Any) -> float:
    """Convert "4h", "30m", "2d" (8h days) into hours; 0 when nothing matches."""
    if not value:
        return 0
    text = str(value).lower().strip()

    match = _HOURS_RE.search(text)
    if match:
        return float(match.group(1))

    match = _MINUTES_RE.search(text)
    if match:
        return int(match.group(1)) / 60

    match = _DAYS_RE.search(text)
    if match:
        return float(match.group(1)) * _HOURS_PER_DAY

    return 0
