"""Main scaffolding orchestrator.

Takes a validated ``WorkspaceConfig`` and turns it into a project directory:
validate, compile the plan, execute it (rolling back on failure), then run
the optional git and dependency-installation steps.
"""

from __future__ import annotations

from pathlib import Path

from workspace_generator.config import GeneratorSettings, WorkspaceConfig
from workspace_generator.reporter import NullReporter, Reporter
from workspace_generator.scaffolder.executor import GenerationSession, PlanExecutor
from workspace_generator.scaffolder.operations import OperationPlan
from workspace_generator.scaffolder.planner import compile_plan
from workspace_generator.scaffolder.post_setup import install_dependencies, next_steps, setup_git
from workspace_generator.scaffolder.templates import TemplateRenderer
from workspace_generator.utils import format_duration
from workspace_generator.validation import check_target_directory, validate_config


class ProjectGenerator:
    """Generates one project from a :class:`WorkspaceConfig`."""

    def __init__(
        self,
        config: WorkspaceConfig,
        settings: GeneratorSettings | None = None,
        *,
        reporter: Reporter | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.settings = settings or GeneratorSettings()
        self.reporter = reporter or NullReporter()
        self.renderer = renderer or TemplateRenderer(self.settings.templates_dir)

    # -- Public API --------------------------------------------------------

    def plan(self) -> OperationPlan:
        """Validate the configuration and compile its plan without side effects."""
        validate_config(self.config)
        return compile_plan(self.config)

    async def generate(self, output_dir: str | Path) -> GenerationSession:
        """Generate the project under ``output_dir / config.name``.

        Raises:
            ConfigurationError: Invalid configuration or unusable target.
            ExecutionError: An operation failed; the target was rolled back.
        """
        project_root = Path(output_dir).resolve() / self.config.name

        # 1. Preconditions: nothing touches the disk before these pass
        plan = self.plan()
        check_target_directory(project_root)

        # 2. Execute the plan
        executor = PlanExecutor(self.renderer, reporter=self.reporter)
        session = await executor.execute(plan, project_root)

        # 3. Optional conveniences
        installed = False
        if self.settings.install_dependencies:
            installed = await install_dependencies(
                project_root,
                self.config.package_manager,
                self.reporter,
                timeout=self.settings.install_timeout,
            )
        if self.settings.init_git:
            await setup_git(project_root, self.reporter)

        # 4. Summary
        self.reporter.summary(
            f"Created {self.config.name}",
            {
                "Location": str(project_root),
                "Files": str(session.completed),
                "Duration": format_duration(session.duration),
                "Next steps": "\n".join(next_steps(self.config, installed=installed)),
            },
        )
        return session
