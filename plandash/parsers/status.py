"""Status normalization for phases and plans."""
from __future__ import annotations

import math
from typing import Iterable, Protocol

from plandash.models import PhaseStatus, PlanStatus

# Substring markers, checked in this order: completed wins over in-progress.
_COMPLETED_MARKERS = ("complete", "done", "✓", "✅")
_IN_PROGRESS_MARKERS = ("progress", "active", "wip", "🔄")

# Any of these makes a table cell count as a phase status.
STATUS_KEYWORDS = (
    "pending",
    "in-progress",
    "in progress",
    "completed",
    "complete",
    "done",
    "cancelled",
    "canceled",
    "todo",
    "wip",
    "planned",
    "not started",
    "not-started",
    "✅",
    "⏳",
    "🔄",
    "❌",
    "○",
    "⟳",
    "✓",
)

_PLAN_STATUS_MAP: dict[str, PlanStatus] = {
    "complete": "completed",
    "completed": "completed",
    "done": "completed",
    "in-progress": "in-progress",
    "in_progress": "in-progress",
    "active": "in-progress",
    "wip": "in-progress",
    "cancelled": "cancelled",
    "canceled": "cancelled",
}

_PHASE_ICONS = {
    "completed": "check",
    "in-progress": "sync~spin",
    "pending": "circle-outline",
}

_PLAN_ICONS = {
    "completed": "check-all",
    "in-progress": "sync",
    "pending": "circle-outline",
    "cancelled": "close",
}


class _HasStatus(Protocol):
    status: str


def normalize_status(raw: str | None) -> PhaseStatus:
    """Map free-form status text or emoji to a phase status.

    "✅ Complete", "done" → completed; "🔄 In Progress", "WIP" → in-progress;
    anything else, including empty input, → pending.
    """
    token = (raw or "").lower().strip()
    if any(marker in token for marker in _COMPLETED_MARKERS):
        return "completed"
    if any(marker in token for marker in _IN_PROGRESS_MARKERS):
        return "in-progress"
    return "pending"


def is_status_keyword(text: str | None) -> bool:
    token = (text or "").lower().strip()
    return any(keyword in token for keyword in STATUS_KEYWORDS)


def normalize_plan_status(raw: object) -> PlanStatus:
    """Map a frontmatter/header status word to a plan status (exact words only)."""
    if not raw:
        return "pending"
    return _PLAN_STATUS_MAP.get(str(raw).lower().strip(), "pending")


def calculate_plan_status(phases: Iterable[_HasStatus]) -> PlanStatus:
    statuses = [phase.status for phase in phases]
    if not statuses:
        return "pending"
    if all(status == "completed" for status in statuses):
        return "completed"
    if any(status in ("in-progress", "completed") for status in statuses):
        return "in-progress"
    return "pending"


def completion_percentage(completed: int, total: int) -> int:
    """Whole-number percentage, rounding halves up."""
    if total <= 0:
        return 0
    return int(math.floor(completed * 100 / total + 0.5))


def phase_status_icon(status: PhaseStatus) -> str:
    return _PHASE_ICONS.get(status, "circle-outline")


def plan_status_icon(status: PlanStatus) -> str:
    return _PLAN_ICONS.get(status, "circle-outline")
