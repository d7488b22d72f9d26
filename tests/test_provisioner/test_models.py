"""Tests for provisioning plans, project ids and results."""

from __future__ import annotations

import pytest

from workspace_generator.errors import ConfigurationError, ErrorCategory
from workspace_generator.provisioner.models import (
    AuthProvider,
    CredentialPattern,
    EnvironmentState,
    ProvisioningResult,
    app_name_for,
    build_plan,
    project_id_for,
    validate_project_id,
)


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

pytestmark = pytest.mark.unit


class TestProjectIds:
    @pytest.mark.parametrize("project_id", ["ab-dev", "my-app-prod", "a" * 30, "shop2-staging"])
    def test_valid(self, project_id):
        assert validate_project_id(project_id)

    @pytest.mark.parametrize("project_id", ["a-dev", "a" * 31, "1shop-dev", "My-App-dev", "shop_dev", "shop-dev-"])
    def test_invalid(self, project_id):
        assert not validate_project_id(project_id)

    def test_naming(self):
        assert project_id_for("acme", "dev") == "acme-dev"
        assert app_name_for("acme", "dev") == "acme-dev-web"


class TestBuildPlan:
    def test_defaults(self):
        plan = build_plan(base_name="acme", environments=("dev", "prod"))
        assert plan.auth_enabled is True
        assert plan.auth_providers == (AuthProvider.EMAIL,)
        assert plan.pattern is CredentialPattern.CLIENT
        assert plan.project_id("prod") == "acme-prod"
        assert plan.app_name("prod") == "acme-prod-web"

    def test_invalid_project_id(self):
        with pytest.raises(ConfigurationError) as exc_info:
            build_plan(base_name="ab", environments=("qa",))
        assert exc_info.value.category is ErrorCategory.INVALID_CONFIG
        assert "ab-qa" in exc_info.value.message

    def test_duplicate_environments(self):
        with pytest.raises(ConfigurationError) as exc_info:
            build_plan(base_name="acme", environments=("dev", "dev"))
        assert "unique" in exc_info.value.message

    def test_environment_tag_format(self):
        with pytest.raises(ConfigurationError):
            build_plan(base_name="acme", environments=("Dev",))

    def test_requires_an_environment(self):
        with pytest.raises(ConfigurationError):
            build_plan(base_name="acme", environments=())

    def test_unknown_auth_provider(self):
        with pytest.raises(ConfigurationError):
            build_plan(base_name="acme", environments=("dev",), auth_providers=("myspace",))


class TestProvisioningResult:
    def test_pending_is_not_succeeded(self):
        result = ProvisioningResult(environment="dev", project_id="acme-dev")
        assert result.state is EnvironmentState.PENDING
        assert result.succeeded is False
