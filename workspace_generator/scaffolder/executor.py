"""Sequential execution of an :class:`OperationPlan` with rollback.

Operations run strictly in plan order, one at a time.  The first failure
of any kind stops the run, the partially generated tree is removed by the
:class:`RollbackManager`, and the originating :class:`ExecutionError` is
re-raised with the rollback outcome attached.
"""

from __future__ import annotations

import asyncio
import stat
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from jinja2 import TemplateError, TemplateNotFound, UndefinedError

from workspace_generator.errors import ErrorCategory, ExecutionError, RollbackError
from workspace_generator.reporter import NullReporter, Reporter
from workspace_generator.scaffolder.operations import Copy, FileOperation, MakeDir, OperationPlan, Render
from workspace_generator.scaffolder.rollback import RollbackManager
from workspace_generator.scaffolder.templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class SessionStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED_ROLLED_BACK = "failed_rolled_back"
    FAILED_ROLLBACK_FAILED = "failed_rollback_failed"


@dataclass
class GenerationSession:
    """Mutable state of one executor run."""

    target_root: Path
    total: int
    completed: int = 0
    started_at: float = field(default_factory=time.time)
    finished_at: float | None = None
    status: SessionStatus = SessionStatus.RUNNING

    @property
    def duration(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.time()
        return end - self.started_at

    def summary(self) -> str:
        return f"{self.status.value}: {self.completed}/{self.total} operations in {self.target_root}"


# ---------------------------------------------------------------------------
# Filesystem primitives
# ---------------------------------------------------------------------------


class LocalFileSystem:
    """Blocking filesystem effects; the executor calls them off the event loop."""

    def write_text(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def write_bytes(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def make_dir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def make_executable(self, path: Path) -> None:
        current = path.stat().st_mode
        path.chmod(current | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


# ---------------------------------------------------------------------------
# PlanExecutor
# ---------------------------------------------------------------------------


class PlanExecutor:
    """Applies a plan to a target directory."""

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        *,
        reporter: Reporter | None = None,
        filesystem: LocalFileSystem | None = None,
        rollback: RollbackManager | None = None,
    ) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.reporter = reporter or NullReporter()
        self.fs = filesystem or LocalFileSystem()
        self.rollback_manager = rollback or RollbackManager()

    async def execute(self, plan: OperationPlan, target_root: Path) -> GenerationSession:
        """Run every operation of *plan* under *target_root*.

        Returns:
            The finished session with status ``SUCCESS``.

        Raises:
            ExecutionError: The first failing operation.  Its ``session``
                records how far the run got and its ``rollback_error`` is set
                when cleanup also failed.
        """
        target_root = Path(target_root)
        session = GenerationSession(target_root=target_root, total=len(plan))

        try:
            await self._run(plan, session)
        except ExecutionError as exc:
            exc.session = session
            self.reporter.error(exc)
            try:
                await self.rollback_manager.rollback(target_root)
            except RollbackError as rollback_exc:
                exc.attach_rollback_error(rollback_exc)
                session.status = SessionStatus.FAILED_ROLLBACK_FAILED
            else:
                session.status = SessionStatus.FAILED_ROLLED_BACK
            session.finished_at = time.time()
            raise

        session.status = SessionStatus.SUCCESS
        session.finished_at = time.time()
        return session

    async def _run(self, plan: OperationPlan, session: GenerationSession) -> None:
        root = session.target_root
        try:
            await asyncio.to_thread(self.fs.make_dir, root)
        except OSError as exc:
            raise _io_error(exc, str(root), None) from exc
        except Exception as exc:
            raise _unexpected_error(exc, str(root), None) from exc

        for plan_phase in plan.phases:
            phase_total = len(plan_phase.operations)
            self.reporter.phase_start(plan_phase.title, phase_total)
            for phase_completed, op in enumerate(plan_phase.operations, start=1):
                await self._apply(op, root, session.completed)
                session.completed += 1
                self.reporter.item_done(
                    plan_phase.phase.value,
                    op.dest,
                    session.completed,
                    session.total,
                    phase_completed=phase_completed,
                    phase_total=phase_total,
                )

    async def _apply(self, op: FileOperation, root: Path, index: int) -> None:
        dest = _resolve(root, op.dest, index)
        try:
            if isinstance(op, Render):
                if op.context is None:
                    raise ExecutionError(
                        ErrorCategory.MISSING_CONTEXT,
                        f"Render operation for {op.dest} has no context",
                        operation_index=index,
                        dest_path=op.dest,
                    )
                content = self.renderer.render(op.source, op.context)
                await asyncio.to_thread(self.fs.write_text, dest, content)
            elif isinstance(op, Copy):
                data = await asyncio.to_thread(self.renderer.read_static, op.source)
                await asyncio.to_thread(self.fs.write_bytes, dest, data)
            elif isinstance(op, MakeDir):
                await asyncio.to_thread(self.fs.make_dir, dest)
            else:
                raise TypeError(f"Unknown operation type: {type(op).__name__}")

            if getattr(op, "executable", False):
                await asyncio.to_thread(self.fs.make_executable, dest)
        except ExecutionError:
            raise
        except TemplateNotFound as exc:
            raise ExecutionError(
                ErrorCategory.TEMPLATE_NOT_FOUND,
                f"Template not found: {exc.name}",
                operation_index=index,
                dest_path=op.dest,
                suggestions=["Reinstall the generator; its bundled templates are incomplete"],
                cause=exc,
            ) from exc
        except UndefinedError as exc:
            raise ExecutionError(
                ErrorCategory.MISSING_CONTEXT,
                f"Missing template variable while rendering {op.dest}: {exc.message}",
                operation_index=index,
                dest_path=op.dest,
                cause=exc,
            ) from exc
        except TemplateError as exc:
            raise ExecutionError(
                ErrorCategory.TEMPLATE_RENDER_FAILED,
                f"Failed to render {op.dest}: {exc}",
                operation_index=index,
                dest_path=op.dest,
                cause=exc,
            ) from exc
        except FileNotFoundError as exc:
            if isinstance(op, Copy) and not self.renderer.exists(op.source):
                raise ExecutionError(
                    ErrorCategory.TEMPLATE_NOT_FOUND,
                    f"Static template not found: {op.source}",
                    operation_index=index,
                    dest_path=op.dest,
                    suggestions=["Reinstall the generator; its bundled templates are incomplete"],
                    cause=exc,
                ) from exc
            raise _io_error(exc, op.dest, index) from exc
        except OSError as exc:
            raise _io_error(exc, op.dest, index) from exc
        except Exception as exc:
            raise _unexpected_error(exc, op.dest, index) from exc


def _resolve(root: Path, dest: str, index: int) -> Path:
    path = (root / dest).resolve()
    if not path.is_relative_to(root.resolve()):
        raise ExecutionError(
            ErrorCategory.FILE_OPERATION_FAILED,
            f"Destination escapes the project directory: {dest}",
            operation_index=index,
            dest_path=dest,
        )
    return path


def _io_error(exc: OSError, dest: str, index: int | None) -> ExecutionError:
    if isinstance(exc, PermissionError):
        return ExecutionError(
            ErrorCategory.PERMISSION_DENIED,
            f"Permission denied writing {dest}",
            operation_index=index,
            dest_path=dest,
            suggestions=["Check directory permissions", "Choose a different output location"],
            cause=exc,
        )
    return ExecutionError(
        ErrorCategory.FILE_OPERATION_FAILED,
        f"Failed to write {dest}: {exc.strerror or exc}",
        operation_index=index,
        dest_path=dest,
        suggestions=["Check available disk space", "Check that no file blocks the path"],
        cause=exc,
    )


def _unexpected_error(exc: Exception, dest: str, index: int | None) -> ExecutionError:
    return ExecutionError(
        ErrorCategory.FILE_OPERATION_FAILED,
        f"Failed to write {dest}: {type(exc).__name__}: {exc}",
        operation_index=index,
        dest_path=dest,
        cause=exc,
    )
