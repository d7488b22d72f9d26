"""Backend CLI capability interface and its subprocess implementation.

The orchestrator only talks to :class:`BackendCli`.  Each subcommand is a
thin method over :meth:`BackendCli.run`, so a test double only has to
script ``run``.  Output scraping lives in module-level functions that take
captured stdout and can be tested without a process.

Extraction patterns (coupled to the external tool's text output):

* ``apps:create`` prints ``App ID: <id>``.
* ``apps:list`` prints one row per app with ``<id> (WEB)``.
* ``apps:sdkconfig`` prints the SDK configuration as a JSON object, possibly
  surrounded by informational lines.
"""

from __future__ import annotations

import asyncio
import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from workspace_generator.errors import ErrorCategory, ProvisioningError, CredentialValidationError, cli_not_found
from workspace_generator.provisioner.models import REQUIRED_CREDENTIAL_FIELDS, CredentialBundle

APP_ID_PATTERN = re.compile(r"App ID: (\S+)")
EXISTING_WEB_APP_PATTERN = re.compile(r"(\S+)\s+\(WEB\)")
ALREADY_EXISTS_MARKER = "already exists"


# ---------------------------------------------------------------------------
# Result model
# ---------------------------------------------------------------------------


@dataclass
class CommandResult:
    """Captured outcome of one CLI invocation."""

    args: list[str] = field(default_factory=list)
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    def mentions(self, text: str) -> bool:
        return text.lower() in self.output.lower()

    @property
    def already_exists(self) -> bool:
        return not self.ok and self.mentions(ALREADY_EXISTS_MARKER)

    def describe_failure(self) -> str:
        detail = (self.stderr or self.stdout).strip().splitlines()
        reason = detail[-1] if detail else f"exit code {self.returncode}"
        return f"'{' '.join(self.args)}' failed: {reason}"


# ---------------------------------------------------------------------------
# Capability interface
# ---------------------------------------------------------------------------


class BackendCli(ABC):
    """The external backend CLI as seen by the provisioning orchestrator."""

    binary: str = "firebase"

    @abstractmethod
    async def run(self, *args: str, cwd: Path | None = None) -> CommandResult:
        """Invoke the CLI with *args* in *cwd* and capture its output.

        A non-zero exit is returned, not raised.

        Raises:
            ProvisioningError: The binary is missing (``CLI_NOT_FOUND``) or
                the invocation timed out (``CLI_TIMEOUT``).
        """

    async def version(self) -> CommandResult:
        return await self.run("--version")

    async def login_list(self) -> CommandResult:
        return await self.run("login:list")

    async def create_project(self, project_id: str) -> CommandResult:
        return await self.run("projects:create", project_id, "--display-name", project_id)

    async def create_web_app(self, project_id: str, app_name: str) -> CommandResult:
        return await self.run("apps:create", "WEB", app_name, "--project", project_id)

    async def list_apps(self, project_id: str) -> CommandResult:
        return await self.run("apps:list", "--project", project_id)

    async def get_sdk_config(self, project_id: str, app_id: str) -> CommandResult:
        return await self.run("apps:sdkconfig", "WEB", app_id, "--project", project_id)

    async def deploy_firestore_rules(self, project_id: str, project_dir: Path | None = None) -> CommandResult:
        """Deploy ``firestore.rules`` and indexes from *project_dir*."""
        return await self.run("deploy", "--only", "firestore", "--project", project_id, cwd=project_dir)


class FirebaseCli(BackendCli):
    """Runs the real CLI as an asyncio subprocess with a per-call timeout."""

    def __init__(self, binary: str = "firebase", timeout_seconds: int = 120) -> None:
        self.binary = binary
        self.timeout_seconds = timeout_seconds

    async def run(self, *args: str, cwd: Path | None = None) -> CommandResult:
        cmd = [self.binary, *args]
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd is not None else None,
            )
        except FileNotFoundError as exc:
            raise cli_not_found(self.binary) from exc
        except PermissionError as exc:
            raise ProvisioningError(
                ErrorCategory.CLI_NOT_FOUND,
                f"Permission denied executing {self.binary}",
                cause=exc,
            ) from exc
        except OSError as exc:
            raise ProvisioningError(
                ErrorCategory.CLI_NOT_FOUND,
                f"Could not execute {self.binary}: {exc.strerror or exc}",
                suggestions=[f"Verify the installation with: {self.binary} --version"],
                cause=exc,
            ) from exc

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise ProvisioningError(
                ErrorCategory.CLI_TIMEOUT,
                f"'{' '.join(cmd)}' timed out after {self.timeout_seconds}s",
                suggestions=[
                    "Check your network connection",
                    "Re-run provisioning; completed steps are detected as already existing",
                ],
                cause=exc,
            ) from exc

        return CommandResult(
            args=cmd,
            returncode=proc.returncode or 0,
            stdout=(stdout_bytes or b"").decode("utf-8", errors="replace").strip(),
            stderr=(stderr_bytes or b"").decode("utf-8", errors="replace").strip(),
        )


# ---------------------------------------------------------------------------
# Output extraction
# ---------------------------------------------------------------------------


def extract_app_id(stdout: str) -> str | None:
    """App id printed by ``apps:create``, or ``None``."""
    match = APP_ID_PATTERN.search(stdout)
    return match.group(1) if match else None


def extract_existing_app_id(stdout: str) -> str | None:
    """First web app id listed by ``apps:list``, or ``None``."""
    match = EXISTING_WEB_APP_PATTERN.search(stdout)
    return match.group(1) if match else None


def parse_sdk_config(stdout: str) -> CredentialBundle:
    """Parse ``apps:sdkconfig`` output into a :class:`CredentialBundle`.

    Tries the whole output as JSON first, then the outermost ``{...}`` block.

    Raises:
        ProvisioningError: ``OUTPUT_PARSE_FAILED`` when no JSON object is found.
        CredentialValidationError: A required field is missing or empty.
    """
    data = _parse_json_object(stdout)
    if data is None:
        snippet = stdout.strip()[:200] or "<empty>"
        raise ProvisioningError(
            ErrorCategory.OUTPUT_PARSE_FAILED,
            f"Could not find an SDK configuration object in CLI output: {snippet}",
            suggestions=["Check that your CLI version prints the SDK config as JSON"],
        )

    missing = [name for name in REQUIRED_CREDENTIAL_FIELDS if not _non_empty(data.get(name))]
    if missing:
        raise CredentialValidationError(missing)

    payload = {name: str(data[name]) for name in REQUIRED_CREDENTIAL_FIELDS}
    if _non_empty(data.get("measurementId")):
        payload["measurementId"] = str(data["measurementId"])
    try:
        return CredentialBundle.model_validate(payload)
    except ValidationError as exc:
        raise CredentialValidationError(
            sorted({str(err["loc"][0]) for err in exc.errors()}), cause=exc
        ) from exc


def _parse_json_object(text: str) -> dict[str, Any] | None:
    # Strategy 1: direct JSON parse
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, dict):
        return data

    # Strategy 2: outermost brace block
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _non_empty(value: Any) -> bool:
    return value is not None and str(value).strip() != ""
