"""Workspace generator configuration.

Two families of settings live here:

* :class:`WorkspaceConfig` describes the project to generate.  It is loaded
  from a JSON file, built from quick-start defaults, or assembled by the
  interactive prompts, and it is never mutated afterwards.
* :class:`GeneratorSettings` tunes the tool itself (template location,
  backend CLI binary, timeouts) and can be read from ``WSGEN_*`` environment
  variables.

All models are Pydantic v2 so malformed input is rejected at construction
time, before a plan is ever compiled.  The ``workspace``, ``web`` and
``documentation`` sections are required and toggles must be real booleans;
quick-start defaults live in :data:`QUICK_START` only.
"""

from __future__ import annotations

import copy
import json
import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, ValidationError
from pydantic.alias_generators import to_camel

from workspace_generator.errors import config_file_not_found, invalid_config


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class WorkspaceType(str, Enum):
    SINGLE = "single"
    MULTI = "multi"


class Platform(str, Enum):
    WEB = "web"
    PWA = "pwa"
    IOS = "ios"
    ANDROID = "android"


class Framework(str, Enum):
    NEXT = "next"
    VITE = "vite"
    REMIX = "remix"


class Styling(str, Enum):
    TAILWIND = "tailwind"
    CSS_MODULES = "css-modules"
    STYLED_COMPONENTS = "styled-components"


class UiLibrary(str, Enum):
    RADIX = "radix"
    SHADCN = "shadcn"
    MUI = "mui"
    CHAKRA = "chakra"
    NONE = "none"


class TestingFramework(str, Enum):
    PLAYWRIGHT = "playwright"
    CYPRESS = "cypress"
    VITEST = "vitest"
    NONE = "none"


class StateManagement(str, Enum):
    CONTEXT = "context"
    ZUSTAND = "zustand"
    NONE = "none"


class BackendType(str, Enum):
    FIREBASE = "firebase"
    SUPABASE = "supabase"
    CUSTOM = "custom"
    NONE = "none"


class BackendFeature(str, Enum):
    AUTH = "auth"
    DATABASE = "database"
    STORAGE = "storage"
    FUNCTIONS = "functions"


class BackendPattern(str, Enum):
    """Where backend credentials are used: in the browser or on the server."""
    CLIENT_SIDE = "client-side"
    SERVER_FIRST = "server-first"


class CiPlatform(str, Enum):
    GITHUB = "github"
    GITLAB = "gitlab"
    NONE = "none"


class PackageManager(str, Enum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    BUN = "bun"


# ---------------------------------------------------------------------------
# Workspace configuration
# ---------------------------------------------------------------------------

class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class WorkspaceSettings(_ConfigModel):
    type: WorkspaceType
    platforms: tuple[Platform, ...]


class WebSettings(_ConfigModel):
    framework: Framework
    typescript: StrictBool = Field(..., description="Emit typed sources and tsconfig.json")
    styling: Styling
    ui: UiLibrary
    testing: TestingFramework
    state_management: StateManagement = Field(default=StateManagement.NONE)
    animations: StrictBool = Field(default=False)
    linting: StrictBool
    formatting: StrictBool
    git_hooks: StrictBool


class BackendSettings(_ConfigModel):
    type: BackendType
    features: tuple[BackendFeature, ...]
    pattern: BackendPattern = Field(
        default=BackendPattern.CLIENT_SIDE,
        validation_alias=AliasChoices("pattern", "firebasePattern"),
        description="Credential architecture: browser SDK only, or server-first with an admin module",
    )

    def has_feature(self, feature: BackendFeature) -> bool:
        return feature in self.features


class DocumentationSettings(_ConfigModel):
    ai_instructions: StrictBool
    architecture: StrictBool
    api_docs: StrictBool
    styleguide: StrictBool


class PwaSettings(_ConfigModel):
    offline: StrictBool = Field(default=True)
    installable: StrictBool = Field(default=True)
    notifications: StrictBool = Field(default=False)


class CicdSettings(_ConfigModel):
    platform: CiPlatform = Field(default=CiPlatform.GITHUB)
    semantic_release: StrictBool = Field(default=True)
    auto_deployment: StrictBool = Field(default=False)


class WorkspaceConfig(_ConfigModel):
    """Immutable description of the project to generate."""

    name: str = Field(..., description="npm package name, also the target directory name")
    description: Optional[str] = None
    author: Optional[str] = None
    workspace: WorkspaceSettings
    web: WebSettings
    backend: Optional[BackendSettings] = None
    documentation: DocumentationSettings
    cicd: Optional[CicdSettings] = None
    pwa: Optional[PwaSettings] = None
    package_manager: PackageManager = Field(default=PackageManager.NPM)

    @property
    def has_backend(self) -> bool:
        """True when a real backend (not ``none``) is configured."""
        return self.backend is not None and self.backend.type is not BackendType.NONE

    @property
    def is_pwa(self) -> bool:
        return self.pwa is not None or Platform.PWA in self.workspace.platforms

    @property
    def pwa_settings(self) -> PwaSettings:
        return self.pwa or PwaSettings()

    def has_backend_feature(self, feature: BackendFeature) -> bool:
        return self.has_backend and self.backend.has_feature(feature)

    def uses_pattern(self, pattern: BackendPattern) -> bool:
        return self.has_backend and self.backend.pattern is pattern

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2, exclude_none=True)


def load_config(path: str | Path) -> WorkspaceConfig:
    """Load a :class:`WorkspaceConfig` from a JSON file.

    Raises:
        ConfigurationError: If the file is missing, is not JSON, or does not
            match the configuration schema.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise config_file_not_found(config_path)

    raw = config_path.read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise invalid_config([f"{config_path.name} is not valid JSON: {exc}"], cause=exc) from exc

    try:
        return WorkspaceConfig.model_validate(data)
    except ValidationError as exc:
        raise invalid_config(_format_validation_errors(exc), cause=exc) from exc


QUICK_START: dict[str, Any] = {
    "workspace": {"type": "single", "platforms": ["web"]},
    "web": {
        "framework": "next",
        "typescript": True,
        "styling": "tailwind",
        "ui": "none",
        "testing": "playwright",
        "linting": True,
        "formatting": True,
        "git_hooks": True,
    },
    "documentation": {
        "ai_instructions": True,
        "architecture": True,
        "api_docs": False,
        "styleguide": False,
    },
}


def default_config(name: str) -> WorkspaceConfig:
    """Quick-start configuration used when only a project name is given."""
    return WorkspaceConfig.model_validate({"name": name, **copy.deepcopy(QUICK_START)})


def _format_validation_errors(exc: ValidationError) -> list[str]:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "<root>"
        problems.append(f"{location}: {err['msg']}")
    return problems


# ---------------------------------------------------------------------------
# Tool settings
# ---------------------------------------------------------------------------

class GeneratorSettings(BaseModel):
    """Tuneable parameters of the generator itself."""

    templates_dir: Optional[Path] = Field(
        default=None, description="Override for the bundled template directory"
    )
    backend_cli: str = Field(default="firebase", description="Backend CLI executable")
    cli_timeout: int = Field(default=120, ge=1, description="Per-invocation CLI timeout in seconds")
    max_parallel_environments: int = Field(
        default=4, ge=1, description="Environments provisioned concurrently"
    )
    init_git: bool = Field(default=True)
    install_dependencies: bool = Field(default=True)
    install_timeout: int = Field(default=600, ge=1)

    @classmethod
    def from_env(cls) -> "GeneratorSettings":
        """Build settings from environment variables.

        Recognised variables (all optional):
            WSGEN_TEMPLATES_DIR, WSGEN_BACKEND_CLI, WSGEN_CLI_TIMEOUT,
            WSGEN_MAX_PARALLEL_ENVIRONMENTS, WSGEN_INIT_GIT, WSGEN_INSTALL_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("WSGEN_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["WSGEN_TEMPLATES_DIR"])
        if os.environ.get("WSGEN_BACKEND_CLI"):
            kwargs["backend_cli"] = os.environ["WSGEN_BACKEND_CLI"]
        if os.environ.get("WSGEN_CLI_TIMEOUT"):
            kwargs["cli_timeout"] = int(os.environ["WSGEN_CLI_TIMEOUT"])
        if os.environ.get("WSGEN_MAX_PARALLEL_ENVIRONMENTS"):
            kwargs["max_parallel_environments"] = int(os.environ["WSGEN_MAX_PARALLEL_ENVIRONMENTS"])
        if os.environ.get("WSGEN_INIT_GIT"):
            kwargs["init_git"] = os.environ["WSGEN_INIT_GIT"].lower() not in ("0", "false", "no")
        if os.environ.get("WSGEN_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["WSGEN_INSTALL_TIMEOUT"])
        return cls(**kwargs)
