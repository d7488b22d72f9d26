"""Shared pytest fixtures for the workspace generator test suite.

Provides reusable fixtures for:
- Temporary output directories
- Sample workspace configurations
- A reporter that records every event
- A scripted backend CLI double
- Mock subprocess helpers
"""

from __future__ import annotations

import copy
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from workspace_generator.config import QUICK_START, WorkspaceConfig
from workspace_generator.provisioner.cli import BackendCli, CommandResult
from workspace_generator.reporter import Reporter


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Empty parent directory that generated projects are written into."""
    out = tmp_path / "output"
    out.mkdir()
    yield out


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------

def make_config(name: str = "my-app", **sections: Any) -> WorkspaceConfig:
    """Build a config from snake_case section overrides on the quick-start data.

    Dict sections are merged key by key, anything else replaces the default.

    ``make_config(web={"typescript": False}, backend={"type": "firebase", "features": []})``
    """
    data: dict[str, Any] = {"name": name, **copy.deepcopy(QUICK_START)}
    for key, value in sections.items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key] = {**data[key], **value}
        else:
            data[key] = value
    return WorkspaceConfig.model_validate(data)


@pytest.fixture
def config_factory() -> Callable[..., WorkspaceConfig]:
    return make_config


@pytest.fixture
def default_workspace() -> WorkspaceConfig:
    """Quick-start configuration: Next.js, TypeScript, Tailwind, Playwright, no backend."""
    return make_config()


@pytest.fixture
def firebase_client_workspace() -> WorkspaceConfig:
    """Firebase backend with every feature, browser-side credentials."""
    return make_config(
        backend={
            "type": "firebase",
            "features": ["auth", "database", "storage", "functions"],
            "pattern": "client-side",
        },
        web={"state_management": "context"},
    )


@pytest.fixture
def firebase_server_workspace() -> WorkspaceConfig:
    """Firebase backend with auth and database, server-first credentials."""
    return make_config(
        backend={"type": "firebase", "features": ["auth", "database"], "pattern": "server-first"},
        web={"state_management": "zustand"},
    )


@pytest.fixture
def demo_workspace() -> WorkspaceConfig:
    """TypeScript, no backend, every developer tool switched off."""
    return make_config(
        "demo",
        web={"typescript": True, "linting": False, "formatting": False, "git_hooks": False},
    )


# ---------------------------------------------------------------------------
# Reporter
# ---------------------------------------------------------------------------

class RecordingReporter(Reporter):
    """Reporter that keeps every event for assertions."""

    def __init__(self) -> None:
        self.phases: list[tuple[str, int]] = []
        self.items: list[tuple[str, str, int, int]] = []
        self.phase_progress: list[tuple[str, int | None, int | None]] = []
        self.warnings: list[str] = []
        self.errors: list[Any] = []
        self.summaries: list[tuple[str, dict[str, str]]] = []

    def phase_start(self, title: str, total: int) -> None:
        self.phases.append((title, total))

    def item_done(
        self,
        phase: str,
        item: str,
        completed: int,
        total: int,
        *,
        phase_completed: int | None = None,
        phase_total: int | None = None,
    ) -> None:
        self.items.append((phase, item, completed, total))
        self.phase_progress.append((phase, phase_completed, phase_total))

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, error: Any) -> None:
        self.errors.append(error)

    def summary(self, title: str, rows: dict[str, str]) -> None:
        self.summaries.append((title, rows))


@pytest.fixture
def recording_reporter() -> RecordingReporter:
    return RecordingReporter()


# ---------------------------------------------------------------------------
# Backend CLI double
# ---------------------------------------------------------------------------

def sdk_config_payload(project_id: str, app_id: str, **overrides: Any) -> dict[str, Any]:
    """SDK configuration object as printed by ``apps:sdkconfig``."""
    payload = {
        "apiKey": f"AIza-{project_id}",
        "authDomain": f"{project_id}.firebaseapp.com",
        "projectId": project_id,
        "storageBucket": f"{project_id}.appspot.com",
        "messagingSenderId": "123456789012",
        "appId": app_id,
        "measurementId": "G-TEST123",
    }
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not None}


class FakeBackendCli(BackendCli):
    """Scripted :class:`BackendCli`.

    By default every command succeeds with realistic output.  Tests override
    single invocations through :attr:`responses`, keyed by
    ``(subcommand, project_id)``; a value is a :class:`CommandResult` or a
    list consumed one per call.
    """

    binary = "firebase"

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.cwds: list[Path | None] = []
        self.responses: dict[tuple[str, str], Any] = {}
        self.logged_in = True

    async def run(self, *args: str, cwd: Path | None = None) -> CommandResult:
        self.calls.append(args)
        self.cwds.append(cwd)
        command = args[0]
        project_id = args[args.index("--project") + 1] if "--project" in args else (
            args[1] if command == "projects:create" else ""
        )

        scripted = self.responses.get((command, project_id))
        if isinstance(scripted, list):
            if scripted:
                return scripted.pop(0)
        elif scripted is not None:
            return scripted
        return self._default(args, project_id)

    def _default(self, args: tuple[str, ...], project_id: str) -> CommandResult:
        command = args[0]
        if command == "--version":
            return CommandResult(list(args), 0, "13.0.0")
        if command == "login:list":
            out = "Logged in as dev@example.com" if self.logged_in else "No authorized accounts"
            return CommandResult(list(args), 0, out)
        if command == "projects:create":
            return CommandResult(list(args), 0, f"Creating Google Cloud Platform project {project_id}\nProject created")
        if command == "apps:create":
            return CommandResult(list(args), 0, f"Creating your Web app\nApp ID: 1:123:web:{project_id}")
        if command == "apps:list":
            return CommandResult(list(args), 0, f"1:123:web:{project_id}  (WEB)")
        if command == "apps:sdkconfig":
            payload = sdk_config_payload(project_id, args[2])
            return CommandResult(list(args), 0, "// Copy and paste this into your JavaScript code:\n" + json.dumps(payload, indent=2))
        if command == "deploy":
            return CommandResult(list(args), 0, "Deploy complete!")
        return CommandResult(list(args), 1, "", f"unknown command {command}")

    def commands_for(self, project_id: str) -> list[str]:
        """Subcommands issued for *project_id*, in call order."""
        return [
            call[0] for call in self.calls
            if project_id in call
        ]


@pytest.fixture
def fake_cli() -> FakeBackendCli:
    return FakeBackendCli()


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


@pytest.fixture
def sdk_payload() -> Callable[..., dict[str, Any]]:
    return sdk_config_payload
