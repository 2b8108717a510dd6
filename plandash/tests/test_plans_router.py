import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fastapi import HTTPException

from plandash.project import PlansProject
from plandash.routers import plans as plans_router


def _write(root: Path, dir_name: str, text: str) -> None:
    plan_dir = root / "plans" / dir_name
    plan_dir.mkdir(parents=True)
    (plan_dir / "plan.md").write_text(text, encoding="utf-8")


class PlansRouterTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.project = PlansProject(self.root, "plans", "demo")
        patcher = patch.object(plans_router, "plans_project", self.project)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    async def test_progress_loads_on_first_request(self) -> None:
        _write(self.root, "260101-alpha", "# Alpha\n\n1. **One** - DONE\n2. **Two** - IN PROGRESS\n")

        progress = await plans_router.get_project_progress()

        self.assertEqual([p.id for p in progress.plans], ["260101-alpha"])
        self.assertEqual(progress.percentage, 50)

    async def test_refresh_picks_up_new_plans(self) -> None:
        first = await plans_router.get_project_progress()
        self.assertEqual(first.plans, [])

        _write(self.root, "260102-beta", "# Beta\n\n1. **One** - TODO\n")
        self.assertEqual((await plans_router.get_project_progress()).plans, [])

        refreshed = await plans_router.refresh_plans()
        self.assertEqual([p.id for p in refreshed.plans], ["260102-beta"])

    async def test_current_plan(self) -> None:
        _write(self.root, "260101-done", "# Done\n\n1. **One** - DONE\n")
        _write(self.root, "260102-active", "# Active\n\n1. **One** - DONE\n2. **Two** - TODO\n")

        plan = await plans_router.get_current_plan()

        self.assertEqual(plan.id, "260102-active")

    async def test_current_plan_404_without_plans(self) -> None:
        with self.assertRaises(HTTPException) as ctx:
            await plans_router.get_current_plan()
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_get_plan_by_id(self) -> None:
        _write(self.root, "260101-alpha", "# Alpha\n\n1. **One** - DONE\n")

        plan = await plans_router.get_plan("260101-alpha")
        self.assertEqual(plan.name, "Alpha")

        with self.assertRaises(HTTPException) as ctx:
            await plans_router.get_plan("260101-missing")
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_diagnostics(self) -> None:
        _write(self.root, "260101-alpha", "# Alpha\n\n1. **One** - DONE\n")

        payload = await plans_router.get_diagnostics()

        self.assertIn("- Alpha: 1/1 (100%)", payload["diagnostics"])


if __name__ == "__main__":
    unittest.main()
