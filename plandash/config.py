"""PlanDash Configuration."""
import os
from pathlib import Path


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw not in {"0", "false", "no", "off"}

# Workspace root (defaults to the current working directory)
WORKSPACE_ROOT = Path(os.getenv("PLANDASH_ROOT", os.getcwd())).resolve()

# Plans directory, relative to the workspace root unless absolute
PLANS_PATH = os.getenv("PLANDASH_PLANS_PATH", "plans")
PROJECT_NAME = os.getenv("PLANDASH_PROJECT_NAME", WORKSPACE_ROOT.name)

# Startup behaviour
AUTO_REFRESH_ON_STARTUP = _env_flag("PLANDASH_AUTO_REFRESH_ON_STARTUP", True)

# Logging
LOG_LEVEL = os.getenv("PLANDASH_LOG_LEVEL", "INFO").upper()

# CORS
FRONTEND_ORIGIN = os.getenv("PLANDASH_FRONTEND_ORIGIN", "http://localhost:3000")
