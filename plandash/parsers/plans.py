"""Build a PlanRecord from a plan.md file and its phase files.

Metadata comes from three sources; for each field the first source that has a
value wins:

1. YAML frontmatter of plan.md
2. Bold header labels in the first 50 lines (``**Priority:** P1``)
3. Values derived from the directory name or the phase list
"""
from __future__ import annotations

import asyncio
import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from plandash.date_utils import coerce_date, file_modified_at, parse_date_from_directory_name
from plandash.models import PhaseRecord, PlanRecord, PlanStatus, Priority
from plandash.parsers.frontmatter import extract_frontmatter
from plandash.parsers.normalizers import normalize_priority
from plandash.parsers.phases import read_plan_phases
from plandash.parsers.status import (
    calculate_plan_status,
    completion_percentage,
    normalize_plan_status,
)
from plandash.scanner import get_plan_display_name, get_plan_id

logger = logging.getLogger("plandash.parsers")

_HEADER_SCAN_LINES = 50
_HEADER_PRIORITY_RE = re.compile(r"\*\*Priority:?\*\*:?\s*(P[0-3]|High|Medium|Low)", re.IGNORECASE)
_HEADER_STATUS_RE = re.compile(r"\*\*Status:?\*\*:?\s*([^\n(]+)", re.IGNORECASE)
_HEADER_BRANCH_RE = re.compile(r"\*\*Branch:?\*\*:?\s*`?([^`\n]+)`?", re.IGNORECASE)
_HEADER_ISSUE_RE = re.compile(r"\*\*Issue:?\*\*:?\s*(?:#(\d+)|.*?issues/(\d+))", re.IGNORECASE)
_HEADER_CREATED_RE = re.compile(r"\*\*(?:Created|Date):?\*\*:?\s*(\d{4}-\d{2}-\d{2})", re.IGNORECASE)

_OVERVIEW_RE = re.compile(r"##\s*Overview\s*\n+([^\n#]+)", re.IGNORECASE)
_FIRST_SENTENCE_RE = re.compile(r"^[^.!?]+[.!?]")
_DESCRIPTION_MAX_CHARS = 150


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _unique_tags(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    tags: list[str] = []
    seen: set[str] = set()
    for entry in value:
        if entry is None:
            continue
        tag = str(entry).strip()
        if not tag or tag in seen:
            continue
        seen.add(tag)
        tags.append(tag)
    return tags


def _metadata_from_frontmatter(text: str) -> dict[str, Any]:
    fm = extract_frontmatter(text)
    if not fm:
        return {}

    meta: dict[str, Any] = {
        "name": _optional_str(fm.get("title")),
        "description": _optional_str(fm.get("description")),
        "priority": normalize_priority(fm.get("priority")),
        "effort": _optional_str(fm.get("effort")),
        "tags": _unique_tags(fm.get("tags")),
        "branch": _optional_str(fm.get("branch")),
        "issue": _optional_str(fm.get("issue")),
        "createdDate": coerce_date(fm.get("created")),
        "completedDate": coerce_date(fm.get("completed")),
    }
    if "status" in fm:
        meta["status"] = normalize_plan_status(fm.get("status"))
    return meta


def _metadata_from_header(text: str) -> dict[str, Any]:
    header = "\n".join(text.split("\n")[:_HEADER_SCAN_LINES])
    meta: dict[str, Any] = {}

    match = _HEADER_PRIORITY_RE.search(header)
    if match:
        meta["priority"] = normalize_priority(match.group(1))

    match = _HEADER_STATUS_RE.search(header)
    if match:
        meta["status"] = normalize_plan_status(match.group(1).strip())

    match = _HEADER_BRANCH_RE.search(header)
    if match:
        meta["branch"] = match.group(1).strip()

    match = _HEADER_ISSUE_RE.search(header)
    if match:
        meta["issue"] = match.group(1) or match.group(2)

    match = _HEADER_CREATED_RE.search(header)
    if match:
        meta["createdDate"] = coerce_date(match.group(1))

    return meta


def extract_description(text: str) -> Optional[str]:
    """First sentence (or first 150 chars) of the paragraph under ``## Overview``."""
    match = _OVERVIEW_RE.search(text)
    if not match:
        return None
    paragraph = match.group(1).strip()
    sentence = _FIRST_SENTENCE_RE.match(paragraph)
    if sentence:
        return sentence.group(0).strip()
    return paragraph[:_DESCRIPTION_MAX_CHARS].strip()


def _first(*values: Any) -> Any:
    for value in values:
        if value:
            return value
    return None


def build_plan_record(
    plan_path: Path,
    text: str,
    phases: list[PhaseRecord],
    last_modified: datetime,
) -> PlanRecord:
    """Merge frontmatter, header and derived metadata with an already-enriched phase list."""
    plan_id = get_plan_id(plan_path)
    frontmatter = _metadata_from_frontmatter(text)
    header = _metadata_from_header(text)
    dir_date: Optional[date] = parse_date_from_directory_name(plan_id)

    completed = sum(1 for phase in phases if phase.status == "completed")
    total = len(phases)

    status: PlanStatus = _first(
        frontmatter.get("status"),
        header.get("status"),
        calculate_plan_status(phases),
    )
    priority: Priority = _first(frontmatter.get("priority"), header.get("priority"))

    return PlanRecord(
        id=plan_id,
        name=_first(frontmatter.get("name"), get_plan_display_name(plan_id)),
        path=str(plan_path),
        status=status,
        phases=phases,
        completedCount=completed,
        totalCount=total,
        percentage=completion_percentage(completed, total),
        lastModified=last_modified,
        description=_first(frontmatter.get("description"), extract_description(text)),
        priority=priority,
        tags=frontmatter.get("tags", []),
        issue=_first(frontmatter.get("issue"), header.get("issue")),
        branch=_first(frontmatter.get("branch"), header.get("branch")),
        effort=frontmatter.get("effort"),
        createdDate=_first(frontmatter.get("createdDate"), header.get("createdDate"), dir_date),
        completedDate=frontmatter.get("completedDate"),
    )


async def extract_plan(plan_path: Path | str) -> PlanRecord:
    """Read plan.md, parse and enrich its phases, and assemble the PlanRecord.

    Raises OSError when the plan file cannot be read or stat'ed.
    """
    path = Path(plan_path).absolute()
    text, phases = await read_plan_phases(path)
    last_modified = await asyncio.to_thread(file_modified_at, path)

    record = build_plan_record(path, text, phases, last_modified)
    logger.debug(
        f"Extracted plan {record.id}: {record.completedCount}/{record.totalCount} phases ({record.status})"
    )
    return record
