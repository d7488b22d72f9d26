"""Command-line entry point.

Subcommands:

* ``create``: generate a project from a config file, a bare name (quick
  defaults) or interactive prompts.
* ``provision``: create backend projects for one or more environments and
  write their environment files.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.panel import Panel
from rich.table import Table

from workspace_generator import __version__
from workspace_generator.config import GeneratorSettings, WorkspaceConfig, default_config, load_config
from workspace_generator.errors import GeneratorError, display_error
from workspace_generator.provisioner import (
    AuthProvider,
    CredentialPattern,
    FirebaseCli,
    ProvisioningOrchestrator,
    ProvisioningResult,
    build_plan,
    write_environment_files,
)
from workspace_generator.reporter import RichReporter
from workspace_generator.scaffolder import ProjectGenerator
from workspace_generator.utils import console, print_success, print_warning


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


def _resolve_config(args: argparse.Namespace) -> WorkspaceConfig:
    if args.config:
        config = load_config(args.config)
        if args.project_name and args.project_name != config.name:
            config = config.model_copy(update={"name": args.project_name})
        return config
    if args.project_name:
        return default_config(args.project_name)

    from workspace_generator.prompts import prompt_for_config

    return prompt_for_config()


async def _create(args: argparse.Namespace, config: WorkspaceConfig) -> int:
    settings = GeneratorSettings.from_env()
    settings = settings.model_copy(update={
        "install_dependencies": settings.install_dependencies and not args.skip_install,
        "init_git": settings.init_git and not args.skip_git,
    })

    console.print(Panel(
        f"[bold]{config.name}[/bold]\n{config.web.framework.value} / "
        f"{'TypeScript' if config.web.typescript else 'JavaScript'} / {config.web.styling.value}",
        title=f"workspace-generator {__version__}",
        border_style="cyan",
    ))

    generator = ProjectGenerator(config, settings, reporter=RichReporter(verbose=args.verbose))
    await generator.generate(args.output)
    print_success(f"Project {config.name} created successfully!")
    return 0


# ---------------------------------------------------------------------------
# provision
# ---------------------------------------------------------------------------


def _results_table(results: dict[str, ProvisioningResult]) -> Table:
    table = Table(title="Environments", show_header=True, header_style="bold cyan")
    table.add_column("Environment", no_wrap=True)
    table.add_column("Project")
    table.add_column("Status")
    table.add_column("Detail")
    for env, result in results.items():
        if result.succeeded:
            status = "[green]ready[/green]"
            detail = f"app {result.app_id}"
        else:
            status = "[red]failed[/red]"
            detail = f"{result.failed_step.value}: {result.error.message}"
        table.add_row(env, result.project_id, status, detail)
    return table


async def _provision(args: argparse.Namespace) -> int:
    settings = GeneratorSettings.from_env()
    plan = build_plan(
        base_name=args.base_name,
        environments=tuple(args.environments),
        auth_enabled=not args.no_auth,
        auth_providers=tuple(args.auth_providers or [AuthProvider.EMAIL.value]),
        database_enabled=args.database,
        storage_enabled=args.storage,
        pattern=args.pattern,
    )
    reporter = RichReporter(verbose=args.verbose)
    orchestrator = ProvisioningOrchestrator(
        FirebaseCli(settings.backend_cli, timeout_seconds=settings.cli_timeout),
        reporter=reporter,
        max_parallel=settings.max_parallel_environments,
    )

    target = Path(args.target)
    await orchestrator.verify_cli()
    results = await orchestrator.provision(plan, project_dir=target)
    console.print(_results_table(results))

    written = write_environment_files(results, target, plan.pattern, overwrite=args.overwrite)
    for path in written:
        print_success(f"Wrote {path}")

    for result in results.values():
        for step in result.manual_steps:
            console.print(f"  [cyan]→[/cyan] [{result.environment}] {step}")

    failed = [env for env, result in results.items() if not result.succeeded]
    if failed:
        print_warning(f"Provisioning degraded: {', '.join(failed)} failed")
        return 1
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workspace-generator",
        description="Generate web application workspaces and provision their backends",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  workspace-generator create my-app\n"
            "  workspace-generator create --config workspace.json --skip-install\n"
            "  workspace-generator provision my-app -e dev -e prod --target ./my-app\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a new project")
    create.add_argument("project_name", nargs="?", help="Project name (quick defaults)")
    create.add_argument("--config", "-c", help="Path to a JSON configuration file")
    create.add_argument("--output", "-o", default=".", help="Parent directory (default: .)")
    create.add_argument("--skip-install", action="store_true", help="Skip dependency installation")
    create.add_argument("--skip-git", action="store_true", help="Skip git repository setup")
    create.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    provision = sub.add_parser("provision", help="Provision backend projects per environment")
    provision.add_argument("base_name", help="Base name; projects are named <base>-<env>")
    provision.add_argument(
        "--env", "-e", dest="environments", action="append", required=True,
        help="Environment tag (repeatable)",
    )
    provision.add_argument(
        "--pattern", choices=[p.value for p in CredentialPattern], default="client",
        help="Environment file layout (default: client)",
    )
    provision.add_argument("--target", "-t", default=".", help="Project directory for env files")
    provision.add_argument("--no-auth", action="store_true", help="Do not enable authentication")
    provision.add_argument(
        "--auth-provider", dest="auth_providers", action="append",
        choices=[p.value for p in AuthProvider], help="Auth provider (repeatable)",
    )
    provision.add_argument("--database", action="store_true", help="Enable the database")
    provision.add_argument("--storage", action="store_true", help="Enable file storage")
    provision.add_argument("--overwrite", action="store_true", help="Overwrite .env.local")
    provision.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``workspace-generator``."""
    args = build_parser().parse_args(argv)

    try:
        if args.command == "create":
            # Prompts block on stdin, so the config is resolved before the loop starts.
            config = _resolve_config(args)
            exit_code = asyncio.run(_create(args, config))
        else:
            exit_code = asyncio.run(_provision(args))
    except GeneratorError as exc:
        display_error(exc, verbose=args.verbose)
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(130)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
