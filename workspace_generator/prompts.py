"""Interactive questions that assemble a :class:`WorkspaceConfig`."""

from __future__ import annotations

from rich.prompt import Confirm, Prompt

from workspace_generator.config import (
    BackendFeature,
    BackendPattern,
    BackendSettings,
    BackendType,
    DocumentationSettings,
    Framework,
    PackageManager,
    Platform,
    PwaSettings,
    StateManagement,
    Styling,
    TestingFramework,
    UiLibrary,
    WebSettings,
    WorkspaceConfig,
    WorkspaceSettings,
    WorkspaceType,
)
from workspace_generator.utils import console
from workspace_generator.validation import project_name_problems


def _choice(question: str, enum: type, default: str) -> str:
    return Prompt.ask(question, choices=[member.value for member in enum], default=default)


def ask_project_name(default: str = "my-app") -> str:
    while True:
        name = Prompt.ask("Project name", default=default)
        problems = project_name_problems(name)
        if not problems:
            return name
        for problem in problems:
            console.print(f"[red]{problem}[/red]")


def prompt_for_config(name: str | None = None) -> WorkspaceConfig:
    """Ask the user for every configuration choice and return the result."""
    console.print("[bold cyan]Let's configure your new workspace.[/bold cyan]\n")
    project_name = name or ask_project_name()

    web = WebSettings(
        framework=_choice("Framework", Framework, Framework.NEXT.value),
        typescript=Confirm.ask("Use TypeScript?", default=True),
        styling=_choice("Styling", Styling, Styling.TAILWIND.value),
        ui=_choice("UI library", UiLibrary, UiLibrary.NONE.value),
        testing=_choice("Testing framework", TestingFramework, TestingFramework.PLAYWRIGHT.value),
        state_management=_choice("State management", StateManagement, StateManagement.NONE.value),
        animations=Confirm.ask("Include animation helpers?", default=False),
        linting=Confirm.ask("Set up ESLint?", default=True),
        formatting=Confirm.ask("Set up Prettier?", default=True),
        git_hooks=Confirm.ask("Set up git hooks (husky + commitlint)?", default=True),
    )

    backend = None
    backend_type = _choice("Backend", BackendType, BackendType.NONE.value)
    if backend_type != BackendType.NONE.value:
        features = tuple(
            feature
            for feature in BackendFeature
            if Confirm.ask(f"Enable {feature.value}?", default=feature is BackendFeature.AUTH)
        )
        backend = BackendSettings(
            type=backend_type,
            features=features,
            pattern=_choice("Credential pattern", BackendPattern, BackendPattern.CLIENT_SIDE.value),
        )

    is_pwa = Confirm.ask("Make it a Progressive Web App?", default=False)
    pwa = PwaSettings() if is_pwa else None
    workspace = WorkspaceSettings(
        type=WorkspaceType.SINGLE,
        platforms=(Platform.PWA if is_pwa else Platform.WEB,),
    )

    documentation = DocumentationSettings(
        ai_instructions=Confirm.ask("Generate AI assistant instructions?", default=True),
        architecture=Confirm.ask("Generate architecture docs?", default=True),
        api_docs=Confirm.ask("Generate API docs?", default=False),
        styleguide=Confirm.ask("Generate a style guide?", default=False),
    )

    return WorkspaceConfig(
        name=project_name,
        workspace=workspace,
        web=web,
        backend=backend,
        pwa=pwa,
        documentation=documentation,
        package_manager=_choice("Package manager", PackageManager, PackageManager.NPM.value),
    )
