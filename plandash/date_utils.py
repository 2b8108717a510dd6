"""Shared date normalization helpers."""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

# YYMMDD, or YYYYMMDD (a 7-digit prefix is sliced like 8 digits), then optional -HHMM
_DIR_DATE_PREFIX_RE = re.compile(r"^(\d{6,8})(?:-(\d{4}))?-")


def _iso_date(token: str) -> Optional[date]:
    try:
        return datetime.fromisoformat(token.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def coerce_date(value: Any) -> Optional[date]:
    """Convert frontmatter/header date values (date, datetime, ISO text) into a date."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        return _iso_date(value.strip())
    return None


def parse_date_from_directory_name(name: str) -> Optional[date]:
    """Read the ``YYMMDD-``, ``YYMMDD-HHMM-`` or ``YYYYMMDD-`` prefix of a plan directory.

    The optional HHMM group is matched but not used. Returns None when there is
    no prefix or the digits do not form a real calendar date.
    """
    match = _DIR_DATE_PREFIX_RE.match(name or "")
    if not match:
        return None

    token = match.group(1)
    if len(token) == 6:
        year = 2000 + int(token[0:2])
        month = int(token[2:4])
        day = int(token[4:6])
    else:
        year = int(token[0:4])
        month = int(token[4:6])
        day = int(token[6:8])

    try:
        return date(year, month, day)
    except ValueError:
        return None


def file_modified_at(path: Path) -> datetime:
    """Return the file's modification time as an aware UTC datetime.

    Raises OSError when the file cannot be stat'ed.
    """
    stats = path.stat()
    return datetime.fromtimestamp(float(stats.st_mtime), timezone.utc)
