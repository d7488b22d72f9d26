"""Steps that run after a project tree has been generated successfully.

Git initialisation and dependency installation are conveniences: they
report failures as warnings and never roll back the generated project.
"""

from __future__ import annotations

from pathlib import Path

from workspace_generator.config import PackageManager, WorkspaceConfig
from workspace_generator.reporter import Reporter
from workspace_generator.utils import run_command

_GIT_STEPS: tuple[tuple[list[str], str], ...] = (
    (["git", "init"], "Initialized Git repository"),
    (["git", "checkout", "-b", "develop"], "Created develop branch"),
    (["git", "add", "."], "Staged generated files"),
    (["git", "commit", "-m", "chore: initial commit"], "Created initial commit"),
    (["git", "branch", "main"], "Created main branch"),
)

_INSTALL_COMMANDS: dict[PackageManager, list[str]] = {
    PackageManager.NPM: ["npm", "install"],
    PackageManager.YARN: ["yarn", "install"],
    PackageManager.PNPM: ["pnpm", "install"],
    PackageManager.BUN: ["bun", "install"],
}

_DEV_COMMANDS: dict[PackageManager, str] = {
    PackageManager.NPM: "npm run dev",
    PackageManager.YARN: "yarn dev",
    PackageManager.PNPM: "pnpm dev",
    PackageManager.BUN: "bun dev",
}


async def setup_git(project_dir: Path, reporter: Reporter, timeout: int = 60) -> bool:
    """Initialise a repository with ``develop`` checked out and a ``main`` branch.

    Returns ``True`` when every step succeeded.
    """
    rc, _, _ = await run_command(["git", "--version"], timeout=timeout)
    if rc != 0:
        reporter.warning("Git is not installed. Skipping repository setup.")
        return False

    for cmd, done in _GIT_STEPS:
        rc, _, stderr = await run_command(cmd, cwd=project_dir, timeout=timeout)
        if rc != 0:
            reporter.warning(f"Git setup failed at '{' '.join(cmd)}': {stderr or 'unknown error'}")
            reporter.warning("You can initialize the repository manually later.")
            return False
        reporter.item_done("git", done, 0, 0)
    return True


async def install_dependencies(
    project_dir: Path,
    manager: PackageManager,
    reporter: Reporter,
    timeout: int = 600,
) -> bool:
    """Run the package manager's install command inside *project_dir*."""
    cmd = _INSTALL_COMMANDS[manager]
    rc, _, stderr = await run_command(cmd, cwd=project_dir, timeout=timeout)
    if rc != 0:
        reporter.warning(f"Dependency installation failed: {stderr or 'unknown error'}")
        reporter.warning(f"Run '{' '.join(cmd)}' inside {project_dir.name} to retry.")
        return False
    return True


def next_steps(config: WorkspaceConfig, *, installed: bool) -> list[str]:
    """Commands a user runs to start working on the generated project."""
    manager = config.package_manager
    steps = [f"cd {config.name}"]
    if not installed:
        steps.append(" ".join(_INSTALL_COMMANDS[manager]))
    if config.has_backend:
        steps.append(f"workspace-generator provision {config.name} -e dev")
    steps.append(_DEV_COMMANDS[manager])
    return steps
