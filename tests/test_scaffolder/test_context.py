"""Tests for the template context built from a configuration."""

from __future__ import annotations

import pytest

from workspace_generator.scaffolder.context import build_template_context


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

pytestmark = pytest.mark.unit


class TestTemplateContext:
    def test_defaults(self, default_workspace):
        ctx = build_template_context(default_workspace)
        assert ctx["project_name"] == "my-app"
        assert ctx["framework_label"] == "Next.js"
        assert ctx["description"] == "A modern web application built with Next.js"
        assert ctx["backend"] == "none"
        assert ctx["backend_features"] == []
        assert ctx["server_first"] is False
        assert ctx["has_auth"] is False
        assert ctx["pwa"] is False
        assert ctx["ci_platform"] == "github"
        assert ctx["install_command"] == "npm install"
        assert ctx["run_prefix"] == "npm run"

    def test_backend(self, firebase_server_workspace):
        ctx = build_template_context(firebase_server_workspace)
        assert ctx["backend"] == "firebase"
        assert ctx["backend_features"] == ["auth", "database"]
        assert ctx["backend_pattern"] == "server-first"
        assert ctx["server_first"] is True
        assert ctx["has_auth"] and ctx["has_database"]
        assert not ctx["has_storage"]

    def test_pwa_flags_require_pwa(self, config_factory):
        ctx = build_template_context(config_factory(pwa={"notifications": True}))
        assert ctx["pwa_notifications"] is True
        ctx = build_template_context(config_factory())
        assert ctx["pwa_offline"] is False

    def test_package_manager_commands(self, config_factory):
        ctx = build_template_context(config_factory(package_manager="pnpm"))
        assert ctx["install_command"] == "pnpm install"
        assert ctx["run_prefix"] == "pnpm"

    def test_read_only(self, default_workspace):
        ctx = build_template_context(default_workspace)
        with pytest.raises(TypeError):
            ctx["project_name"] = "x"
