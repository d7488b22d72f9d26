"""Tests for removal of partially generated projects."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from workspace_generator.errors import ErrorCategory, RollbackError
from workspace_generator.scaffolder.rollback import RollbackManager


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

pytestmark = pytest.mark.unit


class TestRollbackManager:
    @pytest.mark.asyncio
    async def test_removes_tree(self, tmp_path):
        root = tmp_path / "my-app"
        (root / "src" / "app").mkdir(parents=True)
        (root / "src" / "app" / "page.tsx").write_text("export default function Page() {}\n")

        await RollbackManager().rollback(root)

        assert not root.exists()
        assert tmp_path.exists()

    @pytest.mark.asyncio
    async def test_missing_root_is_noop(self, tmp_path):
        await RollbackManager().rollback(tmp_path / "never-created")

    @pytest.mark.asyncio
    async def test_failure_raises_rollback_error(self, tmp_path):
        root = tmp_path / "my-app"
        root.mkdir()
        with patch(
            "workspace_generator.scaffolder.rollback.shutil.rmtree",
            side_effect=OSError("Device or resource busy"),
        ):
            with pytest.raises(RollbackError) as exc_info:
                await RollbackManager().rollback(root)

        error = exc_info.value
        assert error.category is ErrorCategory.ROLLBACK_FAILED
        assert error.target_root == root
        assert error.suggestions == [f"Remove this directory manually: rm -rf {root}"]
        assert isinstance(error.cause, OSError)

    @pytest.mark.asyncio
    async def test_partial_removal_raises(self, tmp_path):
        root = tmp_path / "my-app"
        root.mkdir()
        with patch("workspace_generator.scaffolder.rollback.shutil.rmtree"):
            with pytest.raises(RollbackError):
                await RollbackManager().rollback(root)
