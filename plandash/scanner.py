"""Discover plan documents under a plans directory."""
from __future__ import annotations

import re
from pathlib import Path

PLAN_FILENAME = "plan.md"

_DATE_PREFIX_RE = re.compile(r"^\d{6}(-\d{4})?-")


def scan_plans_directory(plans_dir: Path) -> list[Path]:
    """Return ``<plans_dir>/<dir>/plan.md`` paths, newest directory name first.

    A missing plans directory yields an empty list.
    """
    plans_dir = Path(plans_dir)
    if not plans_dir.is_dir():
        return []

    plan_files = [
        entry / PLAN_FILENAME
        for entry in plans_dir.iterdir()
        if entry.is_dir() and (entry / PLAN_FILENAME).is_file()
    ]
    return sorted(plan_files, key=lambda p: p.parent.name, reverse=True)


def get_plan_id(plan_path: Path | str) -> str:
    return Path(plan_path).parent.name


def get_plan_display_name(plan_id: str) -> str:
    """``260102-0609-claude-kit`` → ``Claude Kit``."""
    without_date = _DATE_PREFIX_RE.sub("", plan_id, count=1)
    return " ".join(word[:1].upper() + word[1:] for word in without_date.split("-"))
