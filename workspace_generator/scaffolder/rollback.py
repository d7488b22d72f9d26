"""Cleanup of a partially generated project."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

from workspace_generator.errors import RollbackError


class RollbackManager:
    """Deletes the target root after a failed plan execution."""

    async def rollback(self, target_root: Path) -> None:
        """Recursively remove *target_root*.

        A missing directory is already rolled back.

        Raises:
            RollbackError: The tree could not be removed completely.
        """
        if not target_root.exists():
            return
        try:
            await asyncio.to_thread(shutil.rmtree, target_root)
        except OSError as exc:
            raise RollbackError(target_root, cause=exc) from exc
        if target_root.exists():
            raise RollbackError(target_root)
