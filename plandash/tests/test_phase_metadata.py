import tempfile
import unittest
from pathlib import Path

from plandash.models import PhaseRecord
from plandash.parsers.phase_metadata import (
    enrich_phases,
    extract_from_frontmatter,
    extract_from_inline_metadata,
    extract_from_overview_table,
    extract_phase_metadata,
)
from plandash.parsers.phases import parse_plan_file

OVERVIEW_TABLE_PHASE = """# Phase 1: Setup

## Overview

| Field | Value |
|-------|-------|
| Priority | P1 |
| Implementation Status | ✅ Complete |
| Review Status | Approved |
| Effort | 3h |
| Depends On | None |
| Date | 2026-01-02 |
"""

INLINE_PHASE = """# Phase 2: Build

**Effort**: 2h | **Priority**: P2 | **Status**: In Progress

Details follow.
"""

FRONTMATTER_PHASE = """---
status: completed
effort: 4h
priority: P3
description: Ship it
depends_on: phase-01
created: 2026-01-05
---
# Phase 3
"""


class PhaseFileFormatTests(unittest.TestCase):
    def test_overview_table(self) -> None:
        meta = extract_from_overview_table(OVERVIEW_TABLE_PHASE)
        assert meta is not None
        self.assertEqual(meta.status, "completed")
        self.assertEqual(meta.reviewStatus, "Approved")
        self.assertEqual(meta.effort, "3h")
        self.assertEqual(meta.priority, "P1")
        self.assertEqual(meta.dependsOn, "None")
        self.assertEqual(meta.date, "2026-01-02")

    def test_overview_table_requires_status_row(self) -> None:
        self.assertIsNone(extract_from_overview_table("| Field | Value |\n|---|---|\n| Effort | 2h |\n"))

    def test_inline_metadata(self) -> None:
        meta = extract_from_inline_metadata(INLINE_PHASE)
        assert meta is not None
        self.assertEqual(meta.status, "in-progress")
        self.assertEqual(meta.effort, "2h")
        self.assertEqual(meta.priority, "P2")

    def test_inline_metadata_only_reads_first_twenty_lines(self) -> None:
        text = "\n" * 25 + "**Status**: Done\n"
        self.assertIsNone(extract_from_inline_metadata(text))

    def test_frontmatter(self) -> None:
        meta = extract_from_frontmatter(FRONTMATTER_PHASE)
        assert meta is not None
        self.assertEqual(meta.status, "completed")
        self.assertEqual(meta.effort, "4h")
        self.assertEqual(meta.description, "Ship it")
        self.assertEqual(meta.dependsOn, "phase-01")
        self.assertEqual(meta.date, "2026-01-05")

    def test_frontmatter_requires_status_and_valid_yaml(self) -> None:
        self.assertIsNone(extract_from_frontmatter("---\neffort: 2h\n---\nBody\n"))
        self.assertIsNone(extract_from_frontmatter("---\nstatus: [unclosed\n---\nBody\n"))
        self.assertIsNone(extract_from_frontmatter("No frontmatter here\n"))

    def test_impossible_frontmatter_date_yields_none(self) -> None:
        text = "---\nstatus: completed\ncreated: 2025-02-30\n---\n# Phase 4\n"
        self.assertIsNone(extract_from_frontmatter(text))
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "phase-04-dates.md"
            path.write_text(text, encoding="utf-8")
            self.assertIsNone(extract_phase_metadata(path))

    def test_overview_table_wins_over_frontmatter(self) -> None:
        text = "---\nstatus: pending\n---\n| Status | Done |\n"
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "phase-01-x.md"
            path.write_text(text, encoding="utf-8")
            meta = extract_phase_metadata(path)
        assert meta is not None
        self.assertEqual(meta.status, "completed")

    def test_missing_or_statusless_file_yields_none(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            self.assertIsNone(extract_phase_metadata(root / "phase-09-missing.md"))
            plain = root / "phase-02-notes.md"
            plain.write_text("# Notes\n\nNothing structured.\n", encoding="utf-8")
            self.assertIsNone(extract_phase_metadata(plain))


class EnrichPhasesTests(unittest.IsolatedAsyncioTestCase):
    async def test_phase_file_status_overrides_table_status(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            plan_dir = Path(tmpdir) / "260110-enrich"
            plan_dir.mkdir()
            (plan_dir / "plan.md").write_text(
                """# Enrich

| # | Phase | Status | Link |
|---|-------|--------|------|
| 1 | Setup | Pending | [Phase 1](./phase-01-x.md) |
| 2 | Build | Pending | [Phase 2](./phase-02-y.md) |
""",
                encoding="utf-8",
            )
            (plan_dir / "phase-01-x.md").write_text(
                "| Field | Value |\n|---|---|\n| Implementation Status | ✅ Complete |\n| Effort | 3h |\n",
                encoding="utf-8",
            )

            phases = await parse_plan_file(plan_dir / "plan.md")

            self.assertEqual([p.status for p in phases], ["completed", "pending"])
            self.assertEqual(phases[0].effort, "3h")
            self.assertIsNone(phases[1].effort)

    async def test_existing_effort_is_kept_when_file_has_none(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "phase-03-z.md"
            path.write_text("---\nstatus: wip\n---\n", encoding="utf-8")
            phase = PhaseRecord(phase=3, name="Z", status="pending", file=str(path), linkText="Z", effort="1h")

            enriched = await enrich_phases([phase])

            self.assertEqual(enriched[0].status, "in-progress")
            self.assertEqual(enriched[0].effort, "1h")
            self.assertEqual(phase.status, "pending")

    async def test_non_phase_files_are_not_read(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            plan = Path(tmpdir) / "plan.md"
            plan.write_text("| Status | Done |\n", encoding="utf-8")
            phase = PhaseRecord(phase=1, name="A", status="pending", file=str(plan), linkText="A")

            enriched = await enrich_phases([phase])

            self.assertEqual(enriched[0].status, "pending")

    async def test_order_is_preserved_and_failures_pass_through(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            phases = []
            for number in range(1, 6):
                path = root / f"phase-0{number}-step.md"
                if number % 2:
                    path.write_text(f"**Status**: Done\n**Effort**: {number}h\n", encoding="utf-8")
                phases.append(PhaseRecord(
                    phase=number,
                    name=f"Step {number}",
                    status="pending",
                    file=str(path),
                    linkText=f"Phase {number}",
                ))

            enriched = await enrich_phases(phases)

            self.assertEqual([p.phase for p in enriched], [1, 2, 3, 4, 5])
            self.assertEqual(
                [p.status for p in enriched],
                ["completed", "pending", "completed", "pending", "completed"],
            )
            self.assertEqual(enriched[2].effort, "3h")

    async def test_empty_list(self) -> None:
        self.assertEqual(await enrich_phases([]), [])


if __name__ == "__main__":
    unittest.main()
