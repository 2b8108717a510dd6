"""Pydantic models for plans, phases and project-wide progress."""
from __future__ import annotations
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

PhaseStatus = Literal["pending", "in-progress", "completed"]
PlanStatus = Literal["pending", "in-progress", "completed", "cancelled"]
Priority = Optional[Literal["P0", "P1", "P2", "P3"]]


# ── Phase-related models ────────────────────────────────────────────

class PhaseRecord(BaseModel):
    phase: int
    name: str
    status: PhaseStatus = "pending"
    file: str  # absolute path; the plan file itself when no phase file is linked
    linkText: str = ""
    effort: Optional[str] = None

    def record_id(self, plan_id: str) -> str:
        """Identifier used by renderers to correlate a phase across refreshes."""
        return f"{plan_id}-phase-{self.phase}"


class PhaseFileMetadata(BaseModel):
    status: PhaseStatus
    reviewStatus: Optional[str] = None
    effort: Optional[str] = None
    priority: Optional[str] = None
    description: Optional[str] = None
    dependsOn: Optional[str] = None
    date: Optional[str] = None


# ── Plan-related models ─────────────────────────────────────────────

class PlanRecord(BaseModel):
    id: str  # containing directory name
    name: str
    path: str
    status: PlanStatus = "pending"
    phases: list[PhaseRecord] = Field(default_factory=list)
    completedCount: int = 0
    totalCount: int = 0
    percentage: int = 0
    lastModified: datetime
    description: Optional[str] = None
    priority: Priority = None
    tags: list[str] = Field(default_factory=list)
    issue: Optional[str] = None
    branch: Optional[str] = None
    effort: Optional[str] = None
    createdDate: Optional[date] = None
    completedDate: Optional[date] = None


class ScanResult(BaseModel):
    plans: list[PlanRecord] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


# ── Project model ──────────────────────────────────────────────────

class ProjectProgress(BaseModel):
    rootPath: str
    projectName: str
    plans: list[PlanRecord] = Field(default_factory=list)
    totalPhases: int = 0
    completedPhases: int = 0
    percentage: int = 0
