"""Semantic validation of a :class:`WorkspaceConfig` and its target directory.

The Pydantic models only guarantee shape and closed enumerations.  The
cross-field rules here must hold before a plan is compiled; the compiler
itself assumes a valid configuration.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from workspace_generator.config import BackendType, Platform, WorkspaceConfig, WorkspaceType
from workspace_generator.errors import (
    directory_exists,
    invalid_config,
    invalid_project_name,
    permission_denied,
)

_MAX_NAME_LENGTH = 214
_URL_SAFE_NAME = re.compile(r"^(?:@[a-z0-9*~-][a-z0-9*._~-]*/)?[a-z0-9~-][a-z0-9._~-]*$")

_NODE_BUILTINS = frozenset({
    "assert", "buffer", "child_process", "cluster", "console", "constants",
    "crypto", "dgram", "dns", "domain", "events", "fs", "http", "https",
    "module", "net", "os", "path", "process", "punycode", "querystring",
    "readline", "repl", "stream", "string_decoder", "timers", "tls", "tty",
    "url", "util", "v8", "vm", "zlib",
})
_BLACKLISTED_NAMES = frozenset({"node_modules", "favicon.ico"})

_NATIVE_PLATFORMS = frozenset({Platform.IOS, Platform.ANDROID})
_WEB_PLATFORMS = frozenset({Platform.WEB, Platform.PWA})


def project_name_problems(name: str) -> list[str]:
    """Return every npm package-name rule that *name* breaks."""
    if not name or not name.strip():
        return ["Project name cannot be empty"]

    problems: list[str] = []
    if name != name.strip():
        problems.append("Project name cannot contain leading or trailing spaces")
    if len(name) > _MAX_NAME_LENGTH:
        problems.append(f"Project name cannot be longer than {_MAX_NAME_LENGTH} characters")
    if name != name.lower():
        problems.append("Project name must be lowercase")
    if " " in name:
        problems.append("Project name cannot contain spaces")
    if name.startswith((".", "_")):
        problems.append("Project name cannot start with . or _")
    if name.lower() in _NODE_BUILTINS or name.lower() in _BLACKLISTED_NAMES:
        problems.append(f'"{name}" is a reserved name')
    if not problems and not _URL_SAFE_NAME.match(name):
        problems.append("Project name can only contain URL-friendly characters")
    return problems


def validate_project_name(name: str) -> None:
    """Raise ``INVALID_PROJECT_NAME`` when *name* is not a valid package name."""
    problems = project_name_problems(name)
    if problems:
        raise invalid_project_name(name, problems)


def validate_config(config: WorkspaceConfig) -> None:
    """Check the cross-field invariants of *config*.

    Raises:
        ConfigurationError: ``INVALID_PROJECT_NAME`` for a bad name, otherwise
            ``INVALID_CONFIG`` listing every violated rule.
    """
    validate_project_name(config.name)

    problems: list[str] = []
    platforms = config.workspace.platforms

    if not platforms:
        problems.append("workspace.platforms must contain at least one platform")
    elif len(set(platforms)) != len(platforms):
        problems.append("workspace.platforms must not contain duplicates")

    if config.workspace.type is WorkspaceType.SINGLE and platforms:
        if len(platforms) != 1 or platforms[0] not in _WEB_PLATFORMS:
            problems.append("Single workspace can only have one platform (web or pwa)")

    if any(p in _NATIVE_PLATFORMS for p in platforms) and not any(
        p in _WEB_PLATFORMS for p in platforms
    ):
        problems.append("Native apps require web or pwa platform")

    backend = config.backend
    if backend is not None:
        if backend.type is BackendType.NONE and backend.features:
            problems.append('backend.features must be empty when backend.type is "none"')
        if len(set(backend.features)) != len(backend.features):
            problems.append("backend.features must not contain duplicates")

    if problems:
        raise invalid_config(problems)


def check_target_directory(target: Path) -> None:
    """Ensure *target* does not exist and can be created.

    Existence is a rejection, never an overwrite.
    """
    if target.exists():
        raise directory_exists(target)

    parent = target.parent
    while not parent.exists() and parent != parent.parent:
        parent = parent.parent
    if not os.access(parent, os.W_OK):
        raise permission_denied(parent)
