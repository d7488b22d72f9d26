"""Provisioner package -- creates backend projects and writes their credentials.

Key classes:
- ``ProvisioningOrchestrator``: runs create-project, register-app and
  fetch-credentials for every environment in parallel.
- ``BackendCli`` / ``FirebaseCli``: capability interface over the external CLI.
- ``CredentialWriter``: renders client, server and placeholder env files.
"""

from workspace_generator.provisioner.cli import (
    BackendCli,
    CommandResult,
    FirebaseCli,
    extract_app_id,
    extract_existing_app_id,
    parse_sdk_config,
)
from workspace_generator.provisioner.credentials import (
    CredentialWriter,
    parse_env_text,
    write_environment_files,
)
from workspace_generator.provisioner.models import (
    AuthProvider,
    CredentialBundle,
    CredentialPattern,
    EnvironmentState,
    ProvisioningPlan,
    ProvisioningResult,
    ProvisioningStep,
    build_plan,
    validate_project_id,
)
from workspace_generator.provisioner.orchestrator import ProvisioningOrchestrator

__all__ = [
    # CLI boundary
    "BackendCli",
    "CommandResult",
    "FirebaseCli",
    "extract_app_id",
    "extract_existing_app_id",
    "parse_sdk_config",
    # Models
    "AuthProvider",
    "CredentialBundle",
    "CredentialPattern",
    "EnvironmentState",
    "ProvisioningPlan",
    "ProvisioningResult",
    "ProvisioningStep",
    "build_plan",
    "validate_project_id",
    # Orchestration
    "ProvisioningOrchestrator",
    # Credentials
    "CredentialWriter",
    "parse_env_text",
    "write_environment_files",
]
