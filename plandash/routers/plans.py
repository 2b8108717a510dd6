"""API router for plan progress."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from plandash.models import PlanRecord, ProjectProgress
from plandash.project import find_current_plan, plans_project

plans_router = APIRouter(prefix="/api/plans", tags=["plans"])
logger = logging.getLogger("plandash.plans")


async def _loaded_progress() -> ProjectProgress:
    progress = plans_project.get_progress()
    if progress is None:
        progress = await plans_project.refresh()
    return progress


@plans_router.get("", response_model=ProjectProgress)
async def get_project_progress():
    """Return project-wide progress, loading plans on first use."""
    return await _loaded_progress()


@plans_router.post("/refresh", response_model=ProjectProgress)
async def refresh_plans():
    """Rescan the plans directory and rebuild every plan."""
    logger.info("Plan refresh requested")
    return await plans_project.refresh()


@plans_router.get("/current", response_model=PlanRecord)
async def get_current_plan():
    """Return the plan currently being worked on."""
    plan = find_current_plan(await _loaded_progress())
    if not plan:
        raise HTTPException(status_code=404, detail="No plans found")
    return plan


@plans_router.get("/diagnostics")
async def get_diagnostics():
    await _loaded_progress()
    return {"diagnostics": plans_project.get_diagnostics()}


@plans_router.get("/{plan_id}", response_model=PlanRecord)
async def get_plan(plan_id: str):
    await _loaded_progress()
    plan = plans_project.get_plan(plan_id)
    if not plan:
        raise HTTPException(status_code=404, detail=f"Plan not found: {plan_id}")
    return plan
