"""Tests for the plan compiler and the default rule set.

Covers:
- Destination uniqueness across representative configurations
- Feature toggles adding and removing files
- Suppression and last-write-wins between rules
- Phase ordering with empty phases omitted
- Purity: identical configurations compile to identical plans
- PlanningError for a rule that emits one destination twice
"""

from __future__ import annotations

import pytest

from workspace_generator.config import WorkspaceConfig
from workspace_generator.errors import ErrorCategory, PlanningError
from workspace_generator.scaffolder.operations import PHASE_ORDER, Copy, MakeDir, Phase, Render
from workspace_generator.scaffolder.planner import compile_plan
from workspace_generator.scaffolder.rules import SERVICES_PLACEHOLDER, Rule


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

pytestmark = pytest.mark.unit


def _describe(plan) -> list[tuple[str, str, str | None]]:
    return [(op.kind, op.dest, getattr(op, "source", None)) for op in plan]


# ---------------------------------------------------------------------------
# Uniqueness and ordering
# ---------------------------------------------------------------------------


class TestPlanShape:
    @pytest.mark.parametrize("sections", [
        {},
        {"web": {"typescript": False, "framework": "vite", "testing": "cypress"}},
        {"backend": {"type": "firebase", "features": ["auth", "database", "storage", "functions"],
                     "pattern": "server-first"}},
        {"workspace": {"platforms": ["pwa"]}, "web": {"animations": True, "styling": "css-modules"}},
        {"cicd": {"platform": "gitlab"}, "web": {"framework": "remix", "testing": "vitest"}},
    ])
    def test_destinations_unique(self, config_factory, sections):
        plan = compile_plan(config_factory(**sections))
        destinations = plan.destinations
        assert len(destinations) == len(set(destinations))
        assert len(plan) == len(destinations)

    def test_phases_follow_fixed_order(self, default_workspace):
        plan = compile_plan(default_workspace)
        phases = [p.phase for p in plan.phases]
        assert phases == [p for p in PHASE_ORDER if p in phases]
        assert phases == list(PHASE_ORDER)

    def test_manifest_is_first(self, default_workspace):
        plan = compile_plan(default_workspace)
        first = next(iter(plan))
        assert first.dest == "package.json"
        assert isinstance(first, Render)

    def test_empty_devtools_phase_omitted(self, demo_workspace):
        plan = compile_plan(demo_workspace)
        assert plan.phase(Phase.DEVTOOLS) is None
        assert [p.phase for p in plan.phases] == [Phase.CONFIG, Phase.SOURCE, Phase.ROOT]

    def test_every_phase_non_empty(self, firebase_client_workspace):
        plan = compile_plan(firebase_client_workspace)
        assert all(p.operations for p in plan.phases)

    def test_phase_titles(self, default_workspace):
        plan = compile_plan(default_workspace)
        assert plan.phase(Phase.CONFIG).title == "Configuration files"
        assert plan.phase(Phase.DEVTOOLS).title == "Development tools"

    def test_pure(self, firebase_server_workspace):
        first = compile_plan(firebase_server_workspace)
        second = compile_plan(firebase_server_workspace)
        assert _describe(first) == _describe(second)
        assert [p.phase for p in first.phases] == [p.phase for p in second.phases]


# ---------------------------------------------------------------------------
# Feature toggles
# ---------------------------------------------------------------------------


class TestFeatureRules:
    def test_quick_start_files(self, default_workspace):
        plan = compile_plan(default_workspace)
        for dest in ("package.json", "next.config.js", "tsconfig.json", "tailwind.config.js",
                     "playwright.config.ts", "src/app/layout.tsx", ".gitignore",
                     ".github/workflows/ci-main.yml", ".releaserc.json", "eslint.config.mjs",
                     ".husky/pre-commit", "CLAUDE.md", "docs/ARCHITECTURE.md", "next-env.d.ts"):
            assert plan.find(dest) is not None, dest
        assert isinstance(plan.find("src/components/features"), MakeDir)

    def test_javascript_has_no_tsconfig(self, config_factory):
        plan = compile_plan(config_factory(web={"typescript": False}))
        assert plan.find("tsconfig.json") is None
        assert plan.find("next-env.d.ts") is None
        assert plan.find("jsconfig.json") is not None

    def test_no_backend_emits_no_backend_files(self, default_workspace):
        plan = compile_plan(default_workspace)
        assert not [d for d in plan.destinations if d.startswith("src/lib/backend")]
        assert plan.find(SERVICES_PLACEHOLDER) is not None
        assert plan.find("scripts/backend-setup.js") is None

    def test_backend_type_none_behaves_like_no_backend(self, config_factory):
        plan = compile_plan(config_factory(backend={"type": "none", "features": []}))
        assert plan.find("src/lib/backend/config.ts") is None
        assert plan.find(SERVICES_PLACEHOLDER) is not None

    def test_backend_suppresses_services_placeholder(self, firebase_client_workspace):
        plan = compile_plan(firebase_client_workspace)
        assert plan.find(SERVICES_PLACEHOLDER) is None
        assert plan.find("src/lib/backend/config.ts") is not None

    def test_backend_features(self, firebase_client_workspace):
        plan = compile_plan(firebase_client_workspace)
        for dest in ("src/lib/backend/auth.ts", "src/lib/backend/database.ts",
                     "src/lib/backend/storage.ts", "src/lib/backend/functions.ts",
                     "src/hooks/backend/useAuth.tsx", "src/components/storage/FileUpload.tsx",
                     "firestore.rules", "storage.rules", "src/contexts/AuthContext.tsx"):
            assert plan.find(dest) is not None, dest

    def test_only_selected_features(self, config_factory):
        plan = compile_plan(config_factory(backend={"type": "firebase", "features": ["auth"]}))
        assert plan.find("src/lib/backend/auth.ts") is not None
        assert plan.find("src/lib/backend/storage.ts") is None
        assert plan.find("firestore.rules") is None

    def test_supabase_has_no_firebase_rules(self, config_factory):
        plan = compile_plan(config_factory(
            backend={"type": "supabase", "features": ["database", "storage"]}
        ))
        assert plan.find("src/lib/backend/database.ts") is not None
        assert plan.find("firestore.rules") is None
        assert plan.find("storage.rules") is None

    def test_client_side_pattern(self, firebase_client_workspace):
        plan = compile_plan(firebase_client_workspace)
        assert plan.find("src/lib/backend-admin.ts") is not None
        assert plan.find("middleware.ts") is None
        assert not [d for d in plan.destinations if d.startswith("src/lib/backend-admin/")]

    def test_server_first_pattern(self, firebase_server_workspace):
        plan = compile_plan(firebase_server_workspace)
        assert plan.find("middleware.ts") is not None
        assert plan.find("src/lib/backend-admin.ts") is None
        for name in ("config", "auth", "database", "session"):
            assert plan.find(f"src/lib/backend-admin/{name}.ts") is not None
        assert plan.find("src/stores/useAuthStore.ts") is not None

    def test_server_first_middleware_follows_language(self, config_factory):
        plan = compile_plan(config_factory(
            web={"typescript": False},
            backend={"type": "firebase", "features": [], "pattern": "server-first"},
        ))
        assert plan.find("middleware.js") is not None

    def test_server_auth_routes_replace_static_routes(self, default_workspace, firebase_server_workspace):
        route = "src/app/api/auth/login/route.ts"
        assert isinstance(compile_plan(default_workspace).find(route), Copy)
        assert isinstance(compile_plan(firebase_server_workspace).find(route), Render)

    def test_vite_javascript_config(self, config_factory):
        plan = compile_plan(config_factory(web={"framework": "vite", "typescript": False}))
        assert plan.find("vite.config.js") is not None
        assert plan.find("next.config.js") is None

    def test_testing_frameworks_are_exclusive(self, config_factory):
        plan = compile_plan(config_factory(web={"testing": "cypress"}))
        assert plan.find("cypress.config.ts") is not None
        assert plan.find("playwright.config.ts") is None
        assert plan.find("tests/e2e/home.spec.ts") is None

        plan = compile_plan(config_factory(web={"testing": "none"}))
        assert not [d for d in plan.destinations if d.startswith(("tests/", "cypress"))]

    def test_styling_variants(self, config_factory):
        css = compile_plan(config_factory(web={"styling": "css-modules"}))
        assert css.find("src/styles/theme.module.css") is not None
        assert css.find("tailwind.config.js") is None

        styled = compile_plan(config_factory(web={"styling": "styled-components"}))
        assert styled.find("src/lib/styled-registry.tsx") is not None

    def test_pwa(self, config_factory):
        plan = compile_plan(config_factory(workspace={"platforms": ["pwa"]}))
        for dest in ("public/manifest.json", "public/offline.html",
                     "src/components/pwa/PWAProvider.tsx", "src/app/offline/page.tsx"):
            assert plan.find(dest) is not None, dest

        plan = compile_plan(config_factory(pwa={"offline": False, "installable": False}))
        assert plan.find("public/manifest.json") is not None
        assert plan.find("public/offline.html") is None
        assert plan.find("src/components/pwa/InstallPrompt.tsx") is None

    def test_gitlab_pipeline(self, config_factory):
        plan = compile_plan(config_factory(cicd={"platform": "gitlab"}))
        assert plan.find(".gitlab-ci.yml") is not None
        assert plan.find(".github/workflows/ci-main.yml") is None

    def test_ci_disabled(self, config_factory):
        plan = compile_plan(config_factory(cicd={"platform": "none"}))
        assert not [d for d in plan.destinations if d.startswith(".github/workflows")]
        assert plan.find(".releaserc.json") is None

    def test_documentation_toggles(self, config_factory):
        plan = compile_plan(config_factory(documentation={
            "ai_instructions": False, "architecture": False, "api_docs": True, "styleguide": True,
        }))
        assert plan.find("CLAUDE.md") is None
        assert plan.find("docs/ARCHITECTURE.md") is None
        assert plan.find("docs/API.md") is not None
        assert plan.find("docs/STYLEGUIDE.md") is not None

    def test_devtools_toggles(self, config_factory):
        plan = compile_plan(config_factory(web={"linting": False, "formatting": True, "git_hooks": False}))
        devtools = plan.phase(Phase.DEVTOOLS)
        assert [op.dest for op in devtools.operations] == [".prettierrc.json", ".prettierignore"]

    def test_husky_hooks_are_executable(self, default_workspace):
        plan = compile_plan(default_workspace)
        assert plan.find(".husky/pre-commit").executable is True
        assert plan.find(".husky/commit-msg").executable is True

    def test_dotfiles_use_undotted_sources(self, default_workspace):
        plan = compile_plan(default_workspace)
        assert plan.find(".gitignore").source == "web/root/gitignore.j2"
        assert plan.find(".husky/pre-commit").source == "web/devtools/husky/pre-commit"
        assert plan.find(".github/ISSUE_TEMPLATE/bug_report.md").source == (
            "web/root/github/ISSUE_TEMPLATE/bug_report.md"
        )


# ---------------------------------------------------------------------------
# Rule mechanics
# ---------------------------------------------------------------------------


def _emit(*dests: str, source: str = "x"):
    return lambda config, context: [Copy(source, d) for d in dests]


class TestRuleMechanics:
    def test_later_rule_wins(self, default_workspace):
        rules = (
            Rule("first", Phase.CONFIG, produce=_emit("a.txt", source="one")),
            Rule("second", Phase.CONFIG, produce=_emit("a.txt", source="two")),
        )
        plan = compile_plan(default_workspace, rules)
        assert _describe(plan) == [("copy", "a.txt", "two")]

    def test_suppression_removes_earlier_destinations(self, default_workspace):
        rules = (
            Rule("placeholder", Phase.SOURCE, produce=_emit("a.txt", "keep.txt")),
            Rule("replacement", Phase.SOURCE, produce=_emit("b.txt"), suppresses=("a.txt",)),
        )
        plan = compile_plan(default_workspace, rules)
        assert plan.destinations == ["keep.txt", "b.txt"]

    def test_suppression_does_not_affect_later_rules(self, default_workspace):
        rules = (
            Rule("suppressor", Phase.SOURCE, suppresses=("a.txt",)),
            Rule("late", Phase.SOURCE, produce=_emit("a.txt")),
        )
        assert compile_plan(default_workspace, rules).destinations == ["a.txt"]

    def test_inactive_rule_does_not_suppress(self, default_workspace):
        rules = (
            Rule("placeholder", Phase.SOURCE, produce=_emit("a.txt")),
            Rule("never", Phase.SOURCE, guard=lambda c: False, suppresses=("a.txt",)),
        )
        assert compile_plan(default_workspace, rules).destinations == ["a.txt"]

    def test_rule_emitting_duplicate_raises(self, default_workspace):
        rules = (Rule("broken", Phase.ROOT, produce=_emit("dup.txt", "dup.txt")),)
        with pytest.raises(PlanningError) as exc_info:
            compile_plan(default_workspace, rules)
        assert exc_info.value.category is ErrorCategory.DUPLICATE_DESTINATION
        assert exc_info.value.dest_path == "dup.txt"
        assert exc_info.value.rules == ["broken"]

    def test_phase_grouping_keeps_rule_order(self, default_workspace):
        rules = (
            Rule("root", Phase.ROOT, produce=_emit("r.txt")),
            Rule("config", Phase.CONFIG, produce=_emit("c1.txt")),
            Rule("config-2", Phase.CONFIG, produce=_emit("c2.txt")),
        )
        plan = compile_plan(default_workspace, rules)
        assert [p.phase for p in plan.phases] == [Phase.CONFIG, Phase.ROOT]
        assert plan.destinations == ["c1.txt", "c2.txt", "r.txt"]

    def test_empty_rule_set(self, default_workspace):
        plan = compile_plan(default_workspace, ())
        assert len(plan) == 0
        assert plan.phases == ()

    def test_render_context_is_shared_and_read_only(self, default_workspace):
        plan = compile_plan(default_workspace)
        contexts = {id(op.context) for op in plan if isinstance(op, Render)}
        assert len(contexts) == 1
        context = plan.find("package.json").context
        with pytest.raises(TypeError):
            context["project_name"] = "other"

    def test_config_is_not_mutated(self, default_workspace):
        before = default_workspace.model_dump()
        compile_plan(default_workspace)
        assert default_workspace.model_dump() == before
        assert isinstance(default_workspace, WorkspaceConfig)
