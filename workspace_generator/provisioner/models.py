"""Pydantic v2 models for backend provisioning.

Describes what to provision (:class:`ProvisioningPlan`), what the backend
returns (:class:`CredentialBundle`) and the per-environment outcome
(:class:`ProvisioningResult`).
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)

from workspace_generator.errors import ProvisioningError, invalid_config

_PROJECT_ID_PATTERN = re.compile(r"^[a-z][a-z0-9-]*$")
PROJECT_ID_MIN_LENGTH = 6
PROJECT_ID_MAX_LENGTH = 30


def project_id_for(base_name: str, environment: str) -> str:
    return f"{base_name}-{environment}"


def app_name_for(base_name: str, environment: str) -> str:
    return f"{base_name}-{environment}-web"


def validate_project_id(project_id: str) -> bool:
    """Check the backend's project-id rules.

    6-30 characters, starts with a lowercase letter, only lowercase letters,
    digits and hyphens, and does not end with a hyphen.
    """
    if not PROJECT_ID_MIN_LENGTH <= len(project_id) <= PROJECT_ID_MAX_LENGTH:
        return False
    if not _PROJECT_ID_PATTERN.match(project_id):
        return False
    return not project_id.endswith("-")


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class EnvironmentState(str, Enum):
    """Progress of one environment's pipeline."""
    PENDING = "pending"
    PROJECT_CREATED = "project_created"
    APP_REGISTERED = "app_registered"
    CREDENTIALS_FETCHED = "credentials_fetched"
    FAILED = "failed"


class ProvisioningStep(str, Enum):
    """Steps run in this order for every environment."""
    CREATE_BACKEND_PROJECT = "create_backend_project"
    REGISTER_APPLICATION = "register_application"
    FETCH_CREDENTIALS = "fetch_credentials"


class AuthProvider(str, Enum):
    EMAIL = "email"
    GOOGLE = "google"
    GITHUB = "github"
    ANONYMOUS = "anonymous"


class CredentialPattern(str, Enum):
    """Which environment-file layout the credential writer produces."""
    CLIENT = "client"
    SERVER = "server"


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

class ProvisioningPlan(BaseModel):
    """What to provision: one backend project per environment."""

    model_config = ConfigDict(frozen=True)

    base_name: str = Field(..., description="Prefix shared by every environment's project id")
    environments: tuple[str, ...] = Field(..., min_length=1)
    auth_enabled: bool = Field(default=True)
    auth_providers: tuple[AuthProvider, ...] = Field(default=(AuthProvider.EMAIL,))
    database_enabled: bool = Field(default=False)
    storage_enabled: bool = Field(default=False)
    pattern: CredentialPattern = Field(default=CredentialPattern.CLIENT)

    @field_validator("environments")
    @classmethod
    def _unique_environments(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if len(set(value)) != len(value):
            raise ValueError("environment tags must be unique")
        for env in value:
            if not re.fullmatch(r"[a-z0-9]+", env):
                raise ValueError(f"environment tag {env!r} must be lowercase letters and digits")
        return value

    @model_validator(mode="after")
    def _valid_project_ids(self) -> "ProvisioningPlan":
        invalid = [
            project_id_for(self.base_name, env)
            for env in self.environments
            if not validate_project_id(project_id_for(self.base_name, env))
        ]
        if invalid:
            raise ValueError(
                "invalid project ids (6-30 chars, lowercase letters, digits and hyphens, "
                f"starting with a letter): {', '.join(invalid)}"
            )
        return self

    def project_id(self, environment: str) -> str:
        return project_id_for(self.base_name, environment)

    def app_name(self, environment: str) -> str:
        return app_name_for(self.base_name, environment)


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

REQUIRED_CREDENTIAL_FIELDS: tuple[str, ...] = (
    "apiKey",
    "authDomain",
    "projectId",
    "storageBucket",
    "messagingSenderId",
    "appId",
)


class CredentialBundle(BaseModel):
    """Web SDK configuration returned by the backend for one application."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_key: str = Field(..., alias="apiKey", min_length=1)
    auth_domain: str = Field(..., alias="authDomain", min_length=1)
    project_id: str = Field(..., alias="projectId", min_length=1)
    storage_bucket: str = Field(..., alias="storageBucket", min_length=1)
    messaging_sender_id: str = Field(..., alias="messagingSenderId", min_length=1)
    app_id: str = Field(..., alias="appId", min_length=1)
    measurement_id: Optional[str] = Field(default=None, alias="measurementId")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class ProvisioningResult(BaseModel):
    """Outcome of one environment's pipeline."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    environment: str
    project_id: str
    state: EnvironmentState = EnvironmentState.PENDING
    app_id: Optional[str] = None
    credentials: Optional[CredentialBundle] = None
    failed_at: Optional[EnvironmentState] = Field(
        default=None, description="Last state reached before the failing step"
    )
    failed_step: Optional[ProvisioningStep] = None
    error: Optional[ProvisioningError] = None
    project_already_existed: bool = False
    app_already_existed: bool = False
    rules_deployed: bool = False
    manual_steps: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def succeeded(self) -> bool:
        return self.state is EnvironmentState.CREDENTIALS_FETCHED and self.credentials is not None


def build_plan(**kwargs: object) -> ProvisioningPlan:
    """Construct a :class:`ProvisioningPlan`, reporting problems as a configuration error."""
    try:
        return ProvisioningPlan(**kwargs)
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(p) for p in err['loc']) or 'plan'}: {err['msg']}" for err in exc.errors()
        ]
        raise invalid_config(problems, cause=exc) from exc
