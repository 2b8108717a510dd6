"""Project-level plan aggregation and refresh."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable, Optional

from plandash import config
from plandash.models import PlanRecord, ProjectProgress, ScanResult
from plandash.parsers.plans import extract_plan
from plandash.parsers.status import completion_percentage
from plandash.scanner import scan_plans_directory

logger = logging.getLogger("plandash.project")


def aggregate(
    plans: Iterable[PlanRecord],
    root_path: str = "",
    project_name: str = "",
) -> ProjectProgress:
    """Sum phase counts across plans into project-wide progress."""
    plan_list = list(plans)
    total = sum(plan.totalCount for plan in plan_list)
    completed = sum(plan.completedCount for plan in plan_list)
    return ProjectProgress(
        rootPath=root_path,
        projectName=project_name,
        plans=plan_list,
        totalPhases=total,
        completedPhases=completed,
        percentage=completion_percentage(completed, total),
    )


async def extract_plans(plan_files: Iterable[Path]) -> ScanResult:
    """Extract every plan concurrently; failed plans are logged and left out."""
    paths = list(plan_files)
    results = await asyncio.gather(
        *(extract_plan(path) for path in paths),
        return_exceptions=True,
    )

    scan = ScanResult()
    for path, result in zip(paths, results):
        if isinstance(result, BaseException) and not isinstance(result, Exception):
            raise result
        if isinstance(result, Exception):
            logger.warning(f"Failed to parse {path}: {result}")
            scan.errors.append(f"{path}: {result}")
            continue
        scan.plans.append(result)
    return scan


def find_current_plan(progress: Optional[ProjectProgress]) -> Optional[PlanRecord]:
    """Pick the plan to highlight: in-progress, then started-but-pending, then most recent."""
    if not progress or not progress.plans:
        return None

    plans = progress.plans
    for plan in plans:
        if plan.status == "in-progress":
            return plan
    for plan in plans:
        if plan.status == "pending" and plan.completedCount > 0:
            return plan
    return max(plans, key=lambda plan: plan.lastModified)


class PlansProject:
    """Plans of one workspace, rebuilt wholesale on every refresh."""

    def __init__(self, root_path: Path, plans_path: str = "plans", name: Optional[str] = None):
        self.root_path = Path(root_path).resolve()
        self.plans_path = (self.root_path / plans_path).resolve()
        self.name = name or self.root_path.name
        self._progress: Optional[ProjectProgress] = None
        self._errors: list[str] = []

    async def refresh(self) -> ProjectProgress:
        plan_files = await asyncio.to_thread(scan_plans_directory, self.plans_path)
        if not plan_files:
            logger.info(f"No plans found under {self.plans_path}")

        scan = await extract_plans(plan_files)
        self._errors = scan.errors
        self._progress = aggregate(scan.plans, str(self.root_path), self.name)
        logger.info(
            f"Refreshed {len(scan.plans)} plans in {self.name} "
            f"({self._progress.completedPhases}/{self._progress.totalPhases} phases, "
            f"{len(scan.errors)} errors)"
        )
        return self._progress

    def get_progress(self) -> Optional[ProjectProgress]:
        return self._progress

    def get_errors(self) -> list[str]:
        return list(self._errors)

    def get_plan(self, plan_id: str) -> Optional[PlanRecord]:
        if not self._progress:
            return None
        for plan in self._progress.plans:
            if plan.id == plan_id:
                return plan
        return None

    def get_diagnostics(self) -> str:
        lines = [
            f"## Project: {self.name}",
            f"- Root: {self.root_path}",
            f"- Plans Path: {self.plans_path}",
            f"- Plans Directory Exists: {'Yes' if self.plans_path.is_dir() else 'No'}",
        ]

        progress = self._progress
        if progress:
            lines.extend([
                f"- Plans Found: {len(progress.plans)}",
                f"- Total Phases: {progress.totalPhases}",
                f"- Completed: {progress.completedPhases}",
                f"- Progress: {progress.percentage}%",
            ])
            if progress.plans:
                lines.extend(["", "### Plans:"])
                for plan in progress.plans:
                    lines.append(
                        f"- {plan.name}: {plan.completedCount}/{plan.totalCount} ({plan.percentage}%)"
                    )
        else:
            lines.append("- Progress: Not loaded")

        if self._errors:
            lines.extend(["", "### Errors:"])
            lines.extend(f"- {error}" for error in self._errors)

        return "\n".join(lines)


# Global instance for the configured workspace
plans_project = PlansProject(config.WORKSPACE_ROOT, config.PLANS_PATH, config.PROJECT_NAME)
