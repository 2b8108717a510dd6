"""Extract the ordered phase list from a plan document.

Plans describe their phases in one of several hand-written layouts. Each layout
has its own extractor; they are tried in a fixed order and the first one that
finds at least one phase wins:

1. Multi-column table with a Status column
   ``| # | Phase | Status | Link |``
2. Link-first table
   ``| [Phase 1](./phase-01.md) | Description | ✅ Complete |``
3. Numbered list with inline status
   ``1. **Database Schema** (12h) - ✅ COMPLETE - 12 tables created``
4. Phase headings followed by a ``- Status:`` line
   ``### Phase 1: Setup``
5. Checkbox list of phase links
   ``- [x] **[Phase 1: Setup](./phase-01.md)**``
"""
from __future__ import annotations

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import Callable, Iterable

from plandash.models import PhaseRecord
from plandash.parsers.phase_metadata import enrich_phases
from plandash.parsers.status import is_status_keyword, normalize_status

logger = logging.getLogger("plandash.parsers")

_MD_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_FIRST_INT_RE = re.compile(r"(\d+)")
_DIGITS_ONLY_RE = re.compile(r"^\d+$")

_LINK_FIRST_ROW_RE = re.compile(
    r"\|\s*\[(?:Phase\s*)?(\d+)\]\(([^)]+)\)\s*\|\s*([^|]+)\s*\|\s*([^|]+)"
)
_NUMBERED_STATUS_RE = re.compile(
    r"^(\d+)\.\s*\*\*([^*]+)\*\*[^-\n]*-\s*"
    r"((?:[✅⏳🔄❌○⟳✓])?\s*"
    r"(?:COMPLETE|COMPLETED|DONE|IN[- ]?PROGRESS|PENDING|WIP|TODO|CANCELLED|NOT[- ]?STARTED|PLANNED)"
    r"[^\n-]*)",
    re.IGNORECASE | re.MULTILINE,
)
_PHASE_HEADING_RE = re.compile(r"###\s*Phase\s*(\d+)[:\s]+(.+)", re.IGNORECASE)
_STATUS_LINE_RE = re.compile(r"-\s*Status:\s*(.+)", re.IGNORECASE)
_CHECKBOX_RE = re.compile(
    r"^-\s*\[(x| )\]\s*\*\*\[(?:Phase\s*)?(\d+)[:\s]*([^\]]*)\]\(([^)]+)\)\*\*",
    re.IGNORECASE | re.MULTILINE,
)

_NUMBER_HEADERS = {"#", "order"}
_PHASE_HEADERS = {"phase", "phase name"}
_NAME_HEADERS = {"name", "title", "phase name"}
_DESCRIPTION_HEADERS = {"description", "desc"}
_LINK_HEADERS = {"link", "file"}


def _resolve(base_dir: str, link: str) -> str:
    return os.path.abspath(os.path.join(base_dir, link.strip()))


def _split_row(line: str) -> list[str]:
    # Empty cells are dropped, so column indexes shift past them.
    return [cell.strip() for cell in line.split("|") if cell.strip()]


def _cell(cells: list[str], index: int) -> str:
    if index < 0 or index >= len(cells):
        return ""
    return cells[index]


def _find_column(cells: list[str], names: Iterable[str]) -> int:
    wanted = set(names)
    for index, cell in enumerate(cells):
        if cell in wanted:
            return index
    return -1


def _clean_name(text: str) -> str:
    return _MD_LINK_RE.sub(r"\1", text.replace("**", ""))


# ── Strategy 1: multi-column table ──────────────────────────────────

def _parse_table_from(
    lines: list[str],
    start: int,
    base_dir: str,
    plan_file: str,
) -> tuple[list[PhaseRecord], int]:
    """Parse the first status table at or after ``start``.

    Returns the phases found and the line index where scanning should resume.
    """
    header_index = -1
    status_col = phase_col = name_col = desc_col = link_col = -1

    for index in range(start, len(lines)):
        line = lines[index]
        if "|" not in line:
            continue
        cells = [cell.lower() for cell in _split_row(line)]
        status_idx = next((i for i, cell in enumerate(cells) if "status" in cell), -1)
        if status_idx == -1:
            continue

        header_index = index
        status_col = status_idx
        number_col = _find_column(cells, _NUMBER_HEADERS)
        phase_name_col = _find_column(cells, _PHASE_HEADERS)
        if number_col != -1 and phase_name_col != -1:
            phase_col = number_col
            name_col = phase_name_col
        elif phase_name_col != -1:
            phase_col = phase_name_col
        else:
            phase_col = number_col
        if name_col == -1:
            name_col = _find_column(cells, _NAME_HEADERS)
        desc_col = _find_column(cells, _DESCRIPTION_HEADERS)
        link_col = _find_column(cells, _LINK_HEADERS)
        break

    if header_index == -1:
        return [], len(lines)

    if phase_col == -1 and name_col == -1 and desc_col == -1:
        # Status column alone (e.g. a dependency graph): skip the whole table.
        resume = header_index + 1
        while resume < len(lines) and "|" in lines[resume]:
            resume += 1
        return [], resume

    phases: list[PhaseRecord] = []
    table_end = header_index + 1
    for index in range(header_index + 1, len(lines)):
        line = lines[index]
        table_end = index + 1
        if "|" not in line:
            break
        if "---" in line or "===" in line:
            continue

        cells = _split_row(line)
        if len(cells) <= status_col:
            continue
        status_text = cells[status_col]
        if not is_status_keyword(status_text):
            continue

        phase_text = _cell(cells, phase_col)
        number = len(phases) + 1
        if phase_text:
            num_match = _FIRST_INT_RE.search(phase_text)
            if num_match:
                number = int(num_match.group(1))

        name = ""
        if _cell(cells, desc_col):
            name = _cell(cells, desc_col)
        elif _cell(cells, name_col):
            name = _cell(cells, name_col)
        elif phase_text:
            link_match = _MD_LINK_RE.search(phase_text)
            if link_match:
                name = link_match.group(1)
            elif not _DIGITS_ONLY_RE.match(phase_text):
                name = phase_text
        name = _clean_name(name).strip() or f"Phase {number}"

        file = plan_file
        link_text = name
        link_match = _MD_LINK_RE.search(_cell(cells, link_col))
        if link_match:
            link_text = link_match.group(1)
            file = _resolve(base_dir, link_match.group(2))

        for cell in cells:
            link_match = _MD_LINK_RE.search(cell)
            if link_match and "phase-" in link_match.group(2):
                link_text = link_match.group(1)
                file = _resolve(base_dir, link_match.group(2))
                break

        phases.append(PhaseRecord(
            phase=number,
            name=name,
            status=normalize_status(status_text),
            file=file,
            linkText=link_text.strip(),
        ))

    return phases, table_end


def parse_multi_column_table(text: str, base_dir: str, plan_file: str) -> list[PhaseRecord]:
    lines = text.split("\n")
    start = 0
    while start < len(lines):
        phases, resume = _parse_table_from(lines, start, base_dir, plan_file)
        if phases:
            return phases
        if resume <= start:
            break
        start = resume
    return []


# ── Strategy 2: link-first table ────────────────────────────────────

def parse_link_first_table(text: str, base_dir: str, plan_file: str) -> list[PhaseRecord]:
    phases: list[PhaseRecord] = []
    for match in _LINK_FIRST_ROW_RE.finditer(text):
        number, link_path, name, status = match.groups()
        if not is_status_keyword(status):
            continue
        phases.append(PhaseRecord(
            phase=int(number),
            name=name.strip() or f"Phase {number}",
            status=normalize_status(status),
            file=_resolve(base_dir, link_path),
            linkText=f"Phase {number}",
        ))
    return phases


# ── Strategy 3: numbered list with inline status ────────────────────

def parse_numbered_list(text: str, base_dir: str, plan_file: str) -> list[PhaseRecord]:
    phases: list[PhaseRecord] = []
    for match in _NUMBERED_STATUS_RE.finditer(text):
        number, name, status = match.groups()
        name = name.strip()
        phases.append(PhaseRecord(
            phase=int(number),
            name=name,
            status=normalize_status(status),
            file=plan_file,
            linkText=name,
        ))
    return phases


# ── Strategy 4: phase headings ──────────────────────────────────────

def parse_heading_phases(text: str, base_dir: str, plan_file: str) -> list[PhaseRecord]:
    phases: list[PhaseRecord] = []
    current: dict | None = None

    for line in text.split("\n"):
        heading = _PHASE_HEADING_RE.search(line)
        if heading:
            if current:
                phases.append(PhaseRecord(**current))
            number = int(heading.group(1))
            current = {
                "phase": number,
                "name": heading.group(2).strip(),
                "status": "pending",
                "file": plan_file,
                "linkText": f"Phase {number}",
            }

        if current:
            status_line = _STATUS_LINE_RE.search(line)
            if status_line:
                current["status"] = normalize_status(status_line.group(1))

    if current:
        phases.append(PhaseRecord(**current))
    return phases


# ── Strategy 5: checkbox list ───────────────────────────────────────

def parse_checkbox_list(text: str, base_dir: str, plan_file: str) -> list[PhaseRecord]:
    phases: list[PhaseRecord] = []
    for match in _CHECKBOX_RE.finditer(text):
        checked, number, name, link_path = match.groups()
        label = name.strip() or f"Phase {number}"
        phases.append(PhaseRecord(
            phase=int(number),
            name=label,
            status="completed" if checked.lower() == "x" else "pending",
            file=_resolve(base_dir, link_path),
            linkText=label,
        ))
    return phases


PhaseStrategy = Callable[[str, str, str], list[PhaseRecord]]

PHASE_STRATEGIES: tuple[PhaseStrategy, ...] = (
    parse_multi_column_table,
    parse_link_first_table,
    parse_numbered_list,
    parse_heading_phases,
    parse_checkbox_list,
)


def parse_phases(text: str, base_dir: str | Path, plan_file: str | Path) -> list[PhaseRecord]:
    """Run the layout extractors in order and return the first non-empty result."""
    base = str(base_dir)
    own_file = str(plan_file)
    for strategy in PHASE_STRATEGIES:
        phases = strategy(text or "", base, own_file)
        if phases:
            logger.debug("Parsed %d phases from %s using %s", len(phases), own_file, strategy.__name__)
            return phases
    return []


async def read_plan_phases(path: Path) -> tuple[str, list[PhaseRecord]]:
    """Read a plan file; return its text with the parsed and enriched phases.

    Raises OSError if the plan file itself cannot be read.
    """
    plan_path = Path(path).absolute()
    text = await asyncio.to_thread(plan_path.read_text, encoding="utf-8")
    phases = parse_phases(text, plan_path.parent, plan_path)
    return text, await enrich_phases(phases)


async def parse_plan_file(path: Path) -> list[PhaseRecord]:
    """Phases of a single plan file, enriched from its linked phase files."""
    _, phases = await read_plan_phases(path)
    return phases


async def parse_plans(paths: Iterable[Path]) -> dict[str, list[PhaseRecord]]:
    """Parse many plan files concurrently; a file that fails maps to an empty list."""
    plan_paths = [Path(p) for p in paths]
    results = await asyncio.gather(
        *(parse_plan_file(p) for p in plan_paths),
        return_exceptions=True,
    )

    parsed: dict[str, list[PhaseRecord]] = {}
    for plan_path, result in zip(plan_paths, results):
        if isinstance(result, BaseException) and not isinstance(result, Exception):
            raise result
        if isinstance(result, Exception):
            logger.warning(f"Failed to parse {plan_path}: {result}")
            parsed[str(plan_path)] = []
        else:
            parsed[str(plan_path)] = result
    return parsed
