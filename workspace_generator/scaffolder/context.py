"""Template context derived from a :class:`WorkspaceConfig`."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from workspace_generator.config import BackendFeature, BackendPattern, CiPlatform, Framework, WorkspaceConfig

FRAMEWORK_LABELS = {
    Framework.NEXT: "Next.js",
    Framework.VITE: "Vite",
    Framework.REMIX: "Remix",
}

_INSTALL_COMMANDS = {
    "npm": "npm install",
    "yarn": "yarn",
    "pnpm": "pnpm install",
    "bun": "bun install",
}

_RUN_PREFIXES = {
    "npm": "npm run",
    "yarn": "yarn",
    "pnpm": "pnpm",
    "bun": "bun run",
}


def build_template_context(config: WorkspaceConfig) -> Mapping[str, Any]:
    """Flatten *config* into the read-only variables every template sees."""
    web = config.web
    backend = config.backend if config.has_backend else None
    pwa = config.pwa_settings
    cicd = config.cicd
    manager = config.package_manager.value
    framework_label = FRAMEWORK_LABELS[web.framework]

    context: dict[str, Any] = {
        "project_name": config.name,
        "description": config.description or f"A modern web application built with {framework_label}",
        "author": config.author or "",
        "framework": web.framework.value,
        "framework_label": framework_label,
        "typescript": web.typescript,
        "styling": web.styling.value,
        "ui_library": web.ui.value,
        "testing": web.testing.value,
        "state_management": web.state_management.value,
        "animations": web.animations,
        "linting": web.linting,
        "formatting": web.formatting,
        "git_hooks": web.git_hooks,
        # Backend
        "backend": backend.type.value if backend else "none",
        "backend_features": [f.value for f in backend.features] if backend else [],
        "backend_pattern": backend.pattern.value if backend else BackendPattern.CLIENT_SIDE.value,
        "server_first": bool(backend and backend.pattern is BackendPattern.SERVER_FIRST),
        "has_auth": config.has_backend_feature(BackendFeature.AUTH),
        "has_database": config.has_backend_feature(BackendFeature.DATABASE),
        "has_storage": config.has_backend_feature(BackendFeature.STORAGE),
        "has_functions": config.has_backend_feature(BackendFeature.FUNCTIONS),
        # PWA
        "pwa": config.is_pwa,
        "pwa_offline": config.is_pwa and pwa.offline,
        "pwa_installable": config.is_pwa and pwa.installable,
        "pwa_notifications": config.is_pwa and pwa.notifications,
        # Documentation
        "ai_instructions": config.documentation.ai_instructions,
        "architecture_docs": config.documentation.architecture,
        "api_docs": config.documentation.api_docs,
        "styleguide": config.documentation.styleguide,
        # CI/CD
        "ci_platform": cicd.platform.value if cicd else CiPlatform.GITHUB.value,
        "semantic_release": cicd.semantic_release if cicd else True,
        "auto_deployment": cicd.auto_deployment if cicd else False,
        # Tooling
        "package_manager": manager,
        "install_command": _INSTALL_COMMANDS[manager],
        "run_prefix": _RUN_PREFIXES[manager],
    }
    return MappingProxyType(context)
