"""Error taxonomy for the workspace generator.

Every failure surfaced to a user is a :class:`GeneratorError` carrying a
stable :class:`ErrorCategory` tag, a human-readable message and a list of
remediation suggestions.  Subclasses map onto the stages of a run:
configuration, planning, execution, rollback and provisioning.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.panel import Panel

if TYPE_CHECKING:
    from workspace_generator.scaffolder.executor import GenerationSession


class ErrorCategory(str, Enum):
    """Machine-readable error tags."""

    # Configuration
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_PROJECT_NAME = "INVALID_PROJECT_NAME"
    CONFIG_FILE_NOT_FOUND = "CONFIG_FILE_NOT_FOUND"
    DIRECTORY_EXISTS = "DIRECTORY_EXISTS"
    PERMISSION_DENIED = "PERMISSION_DENIED"

    # Planning
    DUPLICATE_DESTINATION = "DUPLICATE_DESTINATION"

    # Execution
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    TEMPLATE_RENDER_FAILED = "TEMPLATE_RENDER_FAILED"
    MISSING_CONTEXT = "MISSING_CONTEXT"
    FILE_OPERATION_FAILED = "FILE_OPERATION_FAILED"

    # Rollback
    ROLLBACK_FAILED = "ROLLBACK_FAILED"

    # Provisioning
    CLI_NOT_FOUND = "CLI_NOT_FOUND"
    CLI_NOT_AUTHENTICATED = "CLI_NOT_AUTHENTICATED"
    CLI_TIMEOUT = "CLI_TIMEOUT"
    PROJECT_CREATE_FAILED = "PROJECT_CREATE_FAILED"
    APP_REGISTER_FAILED = "APP_REGISTER_FAILED"
    APP_RECOVERY_FAILED = "APP_RECOVERY_FAILED"
    CREDENTIALS_FETCH_FAILED = "CREDENTIALS_FETCH_FAILED"
    OUTPUT_PARSE_FAILED = "OUTPUT_PARSE_FAILED"
    CREDENTIALS_INVALID = "CREDENTIALS_INVALID"
    ENV_FILE_EXISTS = "ENV_FILE_EXISTS"


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------


class GeneratorError(Exception):
    """Base class for every user-facing failure."""

    def __init__(
        self,
        category: ErrorCategory,
        message: str,
        suggestions: list[str] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.message = message
        self.suggestions: list[str] = list(suggestions or [])
        self.cause = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.category.value}: {self.message!r})"


class ConfigurationError(GeneratorError):
    """Malformed or semantically invalid configuration."""


class PlanningError(GeneratorError):
    """Internal invariant violation while compiling a plan.

    This is a programming error, not something a user can fix.
    """

    def __init__(self, message: str, dest_path: str, rules: list[str]) -> None:
        super().__init__(
            ErrorCategory.DUPLICATE_DESTINATION,
            message,
            suggestions=["This is a bug in the generator rule set; please report it."],
        )
        self.dest_path = dest_path
        self.rules = rules


class RollbackError(GeneratorError):
    """Failure to clean up a partially generated project."""

    def __init__(self, target_root: Path, cause: BaseException | None = None) -> None:
        super().__init__(
            ErrorCategory.ROLLBACK_FAILED,
            f"Could not remove partially generated project at {target_root}",
            suggestions=[f"Remove this directory manually: rm -rf {target_root}"],
            cause=cause,
        )
        self.target_root = target_root


class ExecutionError(GeneratorError):
    """An operation in the plan failed; the run was rolled back."""

    def __init__(
        self,
        category: ErrorCategory,
        message: str,
        *,
        operation_index: int | None = None,
        dest_path: str | None = None,
        suggestions: list[str] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(category, message, suggestions=suggestions, cause=cause)
        self.operation_index = operation_index
        self.dest_path = dest_path
        self.session: GenerationSession | None = None
        self.rollback_error: RollbackError | None = None

    def attach_rollback_error(self, error: RollbackError) -> None:
        """Record a secondary rollback failure without replacing this error."""
        self.rollback_error = error
        for hint in error.suggestions:
            if hint not in self.suggestions:
                self.suggestions.append(hint)


class ProvisioningError(GeneratorError):
    """A provisioning step failed for one environment."""

    def __init__(
        self,
        category: ErrorCategory,
        message: str,
        *,
        environment: str | None = None,
        step: Any = None,
        suggestions: list[str] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(category, message, suggestions=suggestions, cause=cause)
        self.environment = environment
        self.step = step


class CredentialValidationError(ProvisioningError):
    """A fetched credential bundle is missing required fields."""

    def __init__(self, missing_fields: list[str], **kwargs: Any) -> None:
        super().__init__(
            ErrorCategory.CREDENTIALS_INVALID,
            "Credential bundle is missing required fields: " + ", ".join(missing_fields),
            suggestions=[
                "Check the application in the backend console",
                "Re-run provisioning to fetch the configuration again",
            ],
            **kwargs,
        )
        self.missing_fields = missing_fields


# ---------------------------------------------------------------------------
# Factories for common errors
# ---------------------------------------------------------------------------


def directory_exists(path: Path) -> ConfigurationError:
    return ConfigurationError(
        ErrorCategory.DIRECTORY_EXISTS,
        f'Directory "{path.name}" already exists',
        suggestions=[
            "Choose a different project name",
            f"Remove the existing directory: rm -rf {path}",
            "Use a different output location",
        ],
    )


def permission_denied(path: Path) -> ConfigurationError:
    return ConfigurationError(
        ErrorCategory.PERMISSION_DENIED,
        f"Permission denied: cannot write to {path}",
        suggestions=[
            "Check directory permissions",
            "Choose a different output location",
        ],
    )


def invalid_project_name(name: str, reasons: list[str]) -> ConfigurationError:
    return ConfigurationError(
        ErrorCategory.INVALID_PROJECT_NAME,
        f'Invalid project name "{name}": ' + "; ".join(reasons),
        suggestions=[
            "Use lowercase letters, numbers and hyphens",
            "Start with a letter",
            'Example: "my-awesome-app"',
        ],
    )


def config_file_not_found(path: Path) -> ConfigurationError:
    return ConfigurationError(
        ErrorCategory.CONFIG_FILE_NOT_FOUND,
        f"Configuration file not found: {path}",
        suggestions=[
            "Check that the file path is correct",
            "Omit --config to use the interactive prompts",
        ],
    )


def invalid_config(problems: list[str], cause: BaseException | None = None) -> ConfigurationError:
    return ConfigurationError(
        ErrorCategory.INVALID_CONFIG,
        "Invalid configuration:\n" + "\n".join(f"  - {p}" for p in problems),
        suggestions=["Fix the listed fields and run the command again"],
        cause=cause,
    )


def cli_not_found(binary: str) -> ProvisioningError:
    return ProvisioningError(
        ErrorCategory.CLI_NOT_FOUND,
        f"{binary} CLI is not installed or not on PATH",
        suggestions=[
            "Install it with: npm install -g firebase-tools",
            f"Verify the installation with: {binary} --version",
        ],
    )


def cli_not_authenticated(binary: str) -> ProvisioningError:
    return ProvisioningError(
        ErrorCategory.CLI_NOT_AUTHENTICATED,
        f"{binary} CLI is not logged in",
        suggestions=[f"Run: {binary} login"],
    )


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------


def display_error(error: BaseException, *, verbose: bool = False) -> None:
    """Print an error with its category and suggestions."""
    from workspace_generator.utils import console

    if not isinstance(error, GeneratorError):
        console.print(
            Panel(str(error) or type(error).__name__, title="Unexpected error", border_style="red")
        )
        return

    lines = [f"[bold]{error.message}[/bold]", f"[dim]category: {error.category.value}[/dim]"]
    rollback_error = getattr(error, "rollback_error", None)
    if rollback_error is not None:
        lines.append(f"[yellow]Cleanup also failed: {rollback_error.message}[/yellow]")
    if error.suggestions:
        lines.append("")
        lines.append("Suggestions:")
        lines.extend(f"  - {s}" for s in error.suggestions)
    if verbose and error.cause is not None:
        lines.append("")
        lines.append(f"[dim]Caused by: {type(error.cause).__name__}: {error.cause}[/dim]")

    console.print(Panel("\n".join(lines), title="Error", border_style="red"))
