"""Read per-phase detail files and extract their authoritative status.

A phase file (``phase-01-setup.md``) may carry its own status in one of three
layouts, tried in this order:

1. Overview table::

       | Field | Value |
       |-------|-------|
       | Implementation Status | ✅ Complete |
       | Effort | 2h |

2. Inline bold metadata near the top of the file::

       **Effort**: 2h | **Priority**: P1 | **Status**: Complete

3. YAML frontmatter::

       ---
       status: completed
       ---

The status found in the phase file replaces whatever the plan's summary
table said about that phase.
"""
from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from plandash.models import PhaseFileMetadata, PhaseRecord
from plandash.parsers.frontmatter import has_frontmatter, split_frontmatter
from plandash.parsers.status import normalize_status

logger = logging.getLogger("plandash.parsers")

_TABLE_ROW_RE = re.compile(r"\|\s*([^|]+?)\s*\|\s*([^|]+?)\s*\|")
_INLINE_FIELD_RE = re.compile(r"\*\*([^*]+)\*\*:?\s*([^|*\n]+)")
_INLINE_SCAN_LINES = 20

# Only phase detail documents are eligible for enrichment.
PHASE_FILE_MARKER = "phase-"

_TABLE_FIELDS = {
    "review status": "reviewStatus",
    "effort": "effort",
    "priority": "priority",
    "description": "description",
    "depends on": "dependsOn",
    "dependencies": "dependsOn",
    "date": "date",
}
_INLINE_FIELDS = {
    "effort": "effort",
    "priority": "priority",
    "depends on": "dependsOn",
}
_STATUS_FIELDS = {"implementation status", "status"}


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def extract_from_overview_table(text: str) -> Optional[PhaseFileMetadata]:
    fields: dict[str, Any] = {}
    status = None

    for match in _TABLE_ROW_RE.finditer(text):
        key = match.group(1).strip().lower()
        value = match.group(2).strip()
        if key == "field" or "---" in key:
            continue
        if key in _STATUS_FIELDS:
            status = normalize_status(value)
        elif key in _TABLE_FIELDS:
            fields[_TABLE_FIELDS[key]] = value

    if status is None:
        return None
    return PhaseFileMetadata(status=status, **fields)


def extract_from_inline_metadata(text: str) -> Optional[PhaseFileMetadata]:
    header = "\n".join(text.split("\n")[:_INLINE_SCAN_LINES])
    fields: dict[str, Any] = {}
    status = None

    for match in _INLINE_FIELD_RE.finditer(header):
        key = match.group(1).strip().lower()
        value = match.group(2).strip()
        if key == "status":
            status = normalize_status(value)
        elif key in _INLINE_FIELDS:
            fields[_INLINE_FIELDS[key]] = value

    if status is None:
        return None
    return PhaseFileMetadata(status=status, **fields)


def extract_from_frontmatter(text: str) -> Optional[PhaseFileMetadata]:
    if not has_frontmatter(text):
        return None
    fm_text, _ = split_frontmatter(text)
    if fm_text is None:
        return None
    try:
        fm = yaml.safe_load(fm_text) or {}
    except (yaml.YAMLError, ValueError):
        return None
    if not isinstance(fm, dict) or not fm.get("status"):
        return None

    return PhaseFileMetadata(
        status=normalize_status(str(fm["status"])),
        effort=_optional_str(fm.get("effort")),
        priority=_optional_str(fm.get("priority")),
        description=_optional_str(fm.get("description")),
        dependsOn=_optional_str(fm.get("depends_on") or fm.get("dependsOn")),
        date=_optional_str(fm.get("date") or fm.get("created")),
    )


_EXTRACTORS: tuple[Callable[[str], Optional[PhaseFileMetadata]], ...] = (
    extract_from_overview_table,
    extract_from_inline_metadata,
    extract_from_frontmatter,
)


def extract_phase_text_metadata(text: str) -> Optional[PhaseFileMetadata]:
    for extractor in _EXTRACTORS:
        metadata = extractor(text)
        if metadata is not None:
            return metadata
    return None


def extract_phase_metadata(path: Path | str) -> Optional[PhaseFileMetadata]:
    """Extract metadata from a phase file; None if it is missing, unreadable or has no status."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    return extract_phase_text_metadata(text)


async def _enrich_phase(phase: PhaseRecord) -> PhaseRecord:
    if not phase.file or PHASE_FILE_MARKER not in phase.file:
        return phase

    try:
        metadata = await asyncio.to_thread(extract_phase_metadata, phase.file)
    except Exception as e:
        logger.debug(f"Phase metadata extraction failed for {phase.file}: {e}")
        return phase

    if metadata is None:
        return phase

    return phase.model_copy(update={
        "status": metadata.status,
        "effort": metadata.effort or phase.effort,
    })


async def enrich_phases(phases: list[PhaseRecord]) -> list[PhaseRecord]:
    """Override phase status/effort from linked phase files, preserving order."""
    if not phases:
        return []
    return list(await asyncio.gather(*(_enrich_phase(phase) for phase in phases)))
