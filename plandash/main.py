"""PlanDash FastAPI backend: main application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from plandash import config
from plandash.project import plans_project
from plandash.routers.plans import plans_router

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))
logger = logging.getLogger("plandash")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("PlanDash backend starting up")

    if config.AUTO_REFRESH_ON_STARTUP:
        logger.info(f"Loading plans from {plans_project.plans_path}")
        try:
            await plans_project.refresh()
        except Exception as e:
            logger.error(f"Initial plan refresh failed: {e}")

    yield

    logger.info("PlanDash backend shutting down")


app = FastAPI(
    title="PlanDash API",
    description="Progress tracking for markdown plan documents",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS: allow the dashboard dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(plans_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    progress = plans_project.get_progress()
    return {
        "status": "ok",
        "plansPath": str(plans_project.plans_path),
        "plansLoaded": progress is not None,
    }
