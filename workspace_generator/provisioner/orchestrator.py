"""Multi-environment backend provisioning.

Every environment runs the same three steps in order:

1. create the backend project ``{base}-{env}``
2. register a web application in it
3. fetch the application's SDK configuration

When the database is enabled, Firestore rules are then deployed from the
project directory; a failed deploy is a warning plus a manual step, never a
failed environment.

"Already exists" answers from the CLI count as success, so re-running a
partially completed provisioning is safe.  Environments run concurrently
(bounded by ``max_parallel``) and fail independently: the result map always
has one entry per requested environment.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

from workspace_generator.errors import (
    ErrorCategory,
    ProvisioningError,
    cli_not_authenticated,
    cli_not_found,
)
from workspace_generator.provisioner.cli import (
    BackendCli,
    extract_app_id,
    extract_existing_app_id,
    parse_sdk_config,
)
from workspace_generator.provisioner.models import (
    CredentialPattern,
    EnvironmentState,
    ProvisioningPlan,
    ProvisioningResult,
    ProvisioningStep,
)
from workspace_generator.reporter import NullReporter, Reporter

CONSOLE_URL = "https://console.firebase.google.com/project/{project_id}"

StepHandler = Callable[[ProvisioningPlan, ProvisioningResult], Awaitable[None]]

_STEP_FAILURES = {
    ProvisioningStep.CREATE_BACKEND_PROJECT: ErrorCategory.PROJECT_CREATE_FAILED,
    ProvisioningStep.REGISTER_APPLICATION: ErrorCategory.APP_REGISTER_FAILED,
    ProvisioningStep.FETCH_CREDENTIALS: ErrorCategory.CREDENTIALS_FETCH_FAILED,
}


class ProvisioningOrchestrator:
    """Drives a :class:`BackendCli` through the provisioning steps."""

    def __init__(
        self,
        cli: BackendCli,
        *,
        reporter: Reporter | None = None,
        max_parallel: int = 4,
    ) -> None:
        self.cli = cli
        self.reporter = reporter or NullReporter()
        self.max_parallel = max(1, max_parallel)

    # -- Preflight ---------------------------------------------------------

    async def verify_cli(self) -> None:
        """Ensure the CLI is installed and logged in.

        Raises:
            ProvisioningError: ``CLI_NOT_FOUND`` or ``CLI_NOT_AUTHENTICATED``.
        """
        version = await self.cli.version()
        if not version.ok:
            raise cli_not_found(self.cli.binary)

        accounts = await self.cli.login_list()
        if not accounts.ok or "@" not in accounts.stdout:
            raise cli_not_authenticated(self.cli.binary)

    # -- Public API --------------------------------------------------------

    async def provision(
        self, plan: ProvisioningPlan, project_dir: Path | None = None
    ) -> dict[str, ProvisioningResult]:
        """Provision every environment of *plan*.

        *project_dir* is where ``firestore.rules`` lives; the current
        directory when omitted.

        Returns:
            ``{environment: result}`` in request order.  Failures are recorded
            in the individual results, never raised.
        """
        semaphore = asyncio.Semaphore(self.max_parallel)

        async def _guarded(environment: str) -> ProvisioningResult:
            async with semaphore:
                return await self._provision_environment(plan, environment, project_dir)

        results = await asyncio.gather(*(_guarded(env) for env in plan.environments))
        by_env = {result.environment: result for result in results}

        self.reporter.summary("Provisioning", {
            env: (
                f"ok ({result.project_id}, app {result.app_id})"
                if result.succeeded
                else f"failed at {result.failed_step.value}: {result.error.message}"
            )
            for env, result in by_env.items()
        })
        return by_env

    # -- Per-environment pipeline ------------------------------------------

    async def _provision_environment(
        self, plan: ProvisioningPlan, environment: str, project_dir: Path | None
    ) -> ProvisioningResult:
        result = ProvisioningResult(environment=environment, project_id=plan.project_id(environment))
        steps: tuple[tuple[ProvisioningStep, StepHandler], ...] = (
            (ProvisioningStep.CREATE_BACKEND_PROJECT, self._create_project),
            (ProvisioningStep.REGISTER_APPLICATION, self._register_application),
            (ProvisioningStep.FETCH_CREDENTIALS, self._fetch_credentials),
        )

        self.reporter.phase_start(f"Environment {environment} ({result.project_id})", len(steps))
        for index, (step, handler) in enumerate(steps, start=1):
            try:
                await handler(plan, result)
            except ProvisioningError as exc:
                return self._record_failure(result, step, exc)
            except Exception as exc:
                error = ProvisioningError(
                    _STEP_FAILURES[step],
                    f"Unexpected error during {step.value} for {result.project_id}: "
                    f"{type(exc).__name__}: {exc}",
                    cause=exc,
                )
                return self._record_failure(result, step, error)
            self.reporter.item_done(environment, step.value, index, len(steps))

        result.manual_steps = _manual_steps(plan, result.project_id)
        if plan.database_enabled:
            await self._deploy_firestore_rules(result, project_dir)
        return result

    def _record_failure(
        self, result: ProvisioningResult, step: ProvisioningStep, error: ProvisioningError
    ) -> ProvisioningResult:
        error.environment = result.environment
        error.step = step
        result.failed_at = result.state
        result.failed_step = step
        result.state = EnvironmentState.FAILED
        result.error = error
        self.reporter.error(error)
        return result

    async def _create_project(self, plan: ProvisioningPlan, result: ProvisioningResult) -> None:
        outcome = await self.cli.create_project(result.project_id)
        if outcome.already_exists:
            result.project_already_existed = True
            self.reporter.warning(f"Project {result.project_id} already exists, continuing")
        elif not outcome.ok:
            raise ProvisioningError(
                ErrorCategory.PROJECT_CREATE_FAILED,
                f"Could not create project {result.project_id}: {outcome.describe_failure()}",
                suggestions=[
                    "Project ids are global; try a different base name",
                    "Check your project quota in the backend console",
                ],
            )
        result.state = EnvironmentState.PROJECT_CREATED

    async def _register_application(
        self, plan: ProvisioningPlan, result: ProvisioningResult
    ) -> None:
        app_name = plan.app_name(result.environment)
        outcome = await self.cli.create_web_app(result.project_id, app_name)

        if outcome.ok:
            app_id = extract_app_id(outcome.stdout)
            if app_id is None:
                raise ProvisioningError(
                    ErrorCategory.OUTPUT_PARSE_FAILED,
                    f"Registered {app_name} but could not read its app id from CLI output",
                    suggestions=["Check that your CLI version prints 'App ID: <id>'"],
                )
        elif outcome.already_exists:
            self.reporter.warning(f"App {app_name} already exists, looking up its id")
            app_id = await self._recover_existing_app(result.project_id, app_name)
            result.app_already_existed = True
        else:
            raise ProvisioningError(
                ErrorCategory.APP_REGISTER_FAILED,
                f"Could not register {app_name}: {outcome.describe_failure()}",
                suggestions=[f"Check the project in the console: {CONSOLE_URL.format(project_id=result.project_id)}"],
            )

        result.app_id = app_id
        result.state = EnvironmentState.APP_REGISTERED

    async def _recover_existing_app(self, project_id: str, app_name: str) -> str:
        listing = await self.cli.list_apps(project_id)
        app_id = extract_existing_app_id(listing.stdout) if listing.ok else None
        if app_id is None:
            detail = listing.stdout.strip() or listing.describe_failure()
            raise ProvisioningError(
                ErrorCategory.APP_RECOVERY_FAILED,
                f"App {app_name} exists but its id could not be retrieved from: {detail}",
                suggestions=[
                    f"Look up the app id manually: {self.cli.binary} apps:list --project {project_id}",
                ],
            )
        return app_id

    async def _fetch_credentials(self, plan: ProvisioningPlan, result: ProvisioningResult) -> None:
        outcome = await self.cli.get_sdk_config(result.project_id, result.app_id)
        if not outcome.ok:
            raise ProvisioningError(
                ErrorCategory.CREDENTIALS_FETCH_FAILED,
                f"Could not fetch SDK config for {result.app_id}: {outcome.describe_failure()}",
            )
        result.credentials = parse_sdk_config(outcome.stdout)
        result.state = EnvironmentState.CREDENTIALS_FETCHED

    async def _deploy_firestore_rules(
        self, result: ProvisioningResult, project_dir: Path | None
    ) -> None:
        try:
            outcome = await self.cli.deploy_firestore_rules(result.project_id, project_dir)
            reason = None if outcome.ok else outcome.describe_failure()
        except Exception as exc:
            reason = f"{type(exc).__name__}: {exc}"

        if reason is None:
            result.rules_deployed = True
            return
        self.reporter.warning(
            f"Firestore rules deployment skipped for {result.environment} ({reason}); deploy manually later"
        )
        result.manual_steps.append(
            f"Deploy Firestore rules: {self.cli.binary} deploy --only firestore --project {result.project_id}"
        )


def _manual_steps(plan: ProvisioningPlan, project_id: str) -> list[str]:
    """Console actions the CLI cannot perform."""
    base = CONSOLE_URL.format(project_id=project_id)
    steps: list[str] = []
    if plan.auth_enabled:
        providers = ", ".join(p.value for p in plan.auth_providers)
        steps.append(f"Enable auth providers ({providers}): {base}/authentication/providers")
    if plan.database_enabled:
        steps.append(f"Create the Firestore database: {base}/firestore")
    if plan.storage_enabled:
        steps.append(f"Enable Cloud Storage: {base}/storage")
    if plan.pattern is CredentialPattern.SERVER:
        steps.append(f"Download a service account key: {base}/settings/serviceaccounts/adminsdk")
    return steps
