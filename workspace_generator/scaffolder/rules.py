"""Feature rules: the single place where configuration decides which files exist.

Each :class:`Rule` pairs a guard predicate with a producer of file
operations.  Rules are evaluated in the fixed order of :data:`DEFAULT_RULES`.
When two rules emit the same destination the later rule wins, and a rule
may also *suppress* destinations emitted by earlier rules without replacing
them.

Template sources ending in ``.j2`` are rendered; everything else is copied
verbatim.  Source ids are relative to the template root.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from workspace_generator.config import (
    BackendFeature,
    BackendPattern,
    BackendType,
    CiPlatform,
    Framework,
    StateManagement,
    Styling,
    TestingFramework,
    WorkspaceConfig,
)
from workspace_generator.scaffolder.operations import Copy, FileOperation, MakeDir, Phase, Render

Context = Mapping[str, Any]
Producer = Callable[[WorkspaceConfig, Context], list[FileOperation]]
Guard = Callable[[WorkspaceConfig], bool]

SERVICES_PLACEHOLDER = "src/lib/services.ts"


def _always(config: WorkspaceConfig) -> bool:
    return True


def _nothing(config: WorkspaceConfig, context: Context) -> list[FileOperation]:
    return []


@dataclass(frozen=True)
class Rule:
    """A guarded producer of file operations.

    Attributes:
        name: Stable identifier used in planning diagnostics.
        phase: Reporting phase the produced operations belong to.
        guard: Predicate deciding whether the rule fires.
        produce: Returns the operations to add when the rule fires.
        suppresses: Destinations removed from the plan when the rule fires.
    """

    name: str
    phase: Phase
    guard: Guard = _always
    produce: Producer = _nothing
    suppresses: tuple[str, ...] = ()

    def applies(self, config: WorkspaceConfig) -> bool:
        return bool(self.guard(config))


# ---------------------------------------------------------------------------
# Operation helpers
# ---------------------------------------------------------------------------


def _source(bucket: str, path: str) -> str:
    """Template id for *path*; source-tree files live directly under ``web/``."""
    return "/".join(part for part in ("web", bucket, path) if part)


def _templated(bucket: str, dest: str, context: Context, *, executable: bool = False) -> Render:
    return Render(_source(bucket, f"{dest}.j2"), dest, context, executable=executable)


def _static(bucket: str, dest: str, *, executable: bool = False) -> Copy:
    return Copy(_source(bucket, dest), dest, executable=executable)


def _dotfile(bucket: str, dest: str, *, templated: bool = False, context: Context | None = None,
             executable: bool = False) -> FileOperation:
    """Dotfiles are stored without their leading dot so packaging keeps them."""
    source = "/".join(part.lstrip(".") for part in dest.split("/"))
    if templated:
        return Render(_source(bucket, f"{source}.j2"), dest, context, executable=executable)
    return Copy(_source(bucket, source), dest, executable=executable)


def _ext(config: WorkspaceConfig) -> str:
    return "ts" if config.web.typescript else "js"


# ---------------------------------------------------------------------------
# Configuration files
# ---------------------------------------------------------------------------


def _manifest(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("config", "package.json", ctx)]


def _next_config(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("config", "next.config.js", ctx)]


def _vite_config(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [Render("web/config/vite.config.j2", f"vite.config.{_ext(config)}", ctx)]


def _remix_config(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("config", "remix.config.js", ctx)]


def _tsconfig(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("config", "tsconfig.json", ctx)]


def _jsconfig(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("config", "jsconfig.json", ctx)]


def _tailwind(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [
        _static("config", "tailwind.config.js"),
        _static("config", "postcss.config.js"),
    ]


def _playwright_config(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("config", "playwright.config.ts", ctx)]


def _cypress_config(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("config", "cypress.config.ts", ctx)]


def _vitest_config(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("config", "vitest.config.ts", ctx)]


# ---------------------------------------------------------------------------
# Source tree
# ---------------------------------------------------------------------------


def _app_shell(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    ops: list[FileOperation] = [
        _templated("", "src/app/layout.tsx", ctx),
        _templated("", "src/app/page.tsx", ctx),
        _static("", "src/app/globals.css"),
        _static("", "src/app/loading.tsx"),
        _static("", "src/app/error.tsx"),
        _static("", "src/app/not-found.tsx"),
    ]
    for page in ("about", "login", "login/verify", "terms", "privacy", "components"):
        ops.append(_static("", f"src/app/{page}/page.tsx"))
    for component in ("Header", "Footer", "Navigation"):
        ops.append(_templated("", f"src/components/layout/{component}.tsx", ctx))
    for component in ("button.tsx", "card.tsx", "input.tsx", "sheet.tsx", "index.ts"):
        ops.append(_static("", f"src/components/ui/{component}"))
    ops += [
        _static("", "src/components/gdpr/CookieConsent.tsx"),
        MakeDir("src/components/features"),
        _static("", "src/lib/utils.ts"),
        _static("", SERVICES_PLACEHOLDER),
        _templated("", "src/lib/env.ts", ctx),
        _static("", "src/hooks/index.ts"),
        MakeDir("src/types"),
        _templated("", "src/types/global.d.ts", ctx),
        _static("", "src/types/utils.ts"),
        _static("", "src/types/index.ts"),
    ]
    return ops


def _api_layer(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    ops: list[FileOperation] = [
        _static("", f"src/lib/api/{name}.ts")
        for name in ("response", "errors", "validation", "middleware", "index")
    ]
    for route in ("hello", "users", "users/[id]", "upload", "auth/login", "auth/logout",
                  "webhooks/stripe"):
        ops.append(_static("", f"src/app/api/{route}/route.ts"))
    return ops


def _css_modules(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_static("", "src/styles/theme.module.css")]


def _styled_components(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_static("", "src/lib/styled-registry.tsx")]


def _animations(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    ops: list[FileOperation] = [
        _static("", "src/lib/animations/variants.ts"),
        _static("", "src/lib/animations/hooks.ts"),
    ]
    for component in ("FadeIn.tsx", "SlideIn.tsx", "PageTransition.tsx", "ScrollReveal.tsx",
                      "Stagger.tsx", "index.ts"):
        ops.append(_static("", f"src/lib/animations/components/{component}"))
    ops.append(_static("", "src/lib/animations/index.ts"))
    return ops


def _pwa_provider(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_static("", "src/components/pwa/PWAProvider.tsx")]


def _pwa_offline(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [
        _static("", "src/app/offline/page.tsx"),
        _static("", "src/lib/pwa/service-worker.ts"),
    ]


def _pwa_install_prompt(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_static("", "src/components/pwa/InstallPrompt.tsx")]


# -- Backend -------------------------------------------------------------


def _backend_client(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("", "src/lib/backend/config.ts", ctx)]


def _backend_auth(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [
        _templated("", "src/lib/backend/auth.ts", ctx),
        _static("", "src/lib/backend/auth-client.ts"),
        _templated("", "src/hooks/backend/useAuth.tsx", ctx),
        _static("", "src/hooks/backend/useAuthClient.tsx"),
    ]


def _backend_database(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [
        _templated("", "src/lib/backend/database.ts", ctx),
        _templated("", "src/hooks/backend/useDatabase.tsx", ctx),
        _static("", "src/lib/db/models/user.ts"),
        _static("", "src/lib/db/models/post.ts"),
    ]


def _backend_storage(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [
        _templated("", "src/lib/backend/storage.ts", ctx),
        _static("", "src/hooks/backend/useStorage.tsx"),
        _static("", "src/components/storage/FileUpload.tsx"),
        _static("", "src/components/storage/ImageUpload.tsx"),
        _static("", "src/components/storage/FileManager.tsx"),
    ]


def _backend_functions(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("", "src/lib/backend/functions.ts", ctx)]


def _admin_modular(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    ops: list[FileOperation] = [
        _templated("", f"src/lib/backend-admin/{name}.ts", ctx)
        for name in ("config", "auth", "database", "session")
    ]
    ops.append(_static("", "src/app/actions/example.ts"))
    return ops


def _admin_legacy(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("", "src/lib/backend-admin.ts", ctx)]


def _server_auth_routes(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [
        _templated("", "src/app/api/auth/login/route.ts", ctx),
        _templated("", "src/app/api/auth/logout/route.ts", ctx),
    ]


# -- State management ----------------------------------------------------


def _theme_context(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_static("", "src/contexts/ThemeContext.tsx")]


def _auth_context(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("", "src/contexts/AuthContext.tsx", ctx)]


def _theme_store(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_static("", "src/stores/useThemeStore.ts")]


def _auth_store(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_static("", "src/stores/useAuthStore.ts")]


# -- Test suites ---------------------------------------------------------


def _playwright_suites(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [
        _static("", "tests/e2e/home.spec.ts"),
        _static("", "tests/e2e/api.spec.ts"),
        _static("", "tests/e2e/components.spec.ts"),
        _static("", "tests/page-objects/HomePage.ts"),
        _static("", "tests/page-objects/ComponentsPage.ts"),
        _static("", "tests/helpers/test-utils.ts"),
        _static("", "tests/fixtures/test-data.ts"),
        _templated("", "tests/README.md", ctx),
    ]


def _cypress_suites(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_static("", "cypress/e2e/home.cy.ts")]


def _vitest_suites(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_static("", "tests/unit/utils.test.ts")]


# ---------------------------------------------------------------------------
# Root and documentation files
# ---------------------------------------------------------------------------


def _root_meta(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [
        _dotfile("root", ".gitignore", templated=True, context=ctx),
        _templated("root", "README.md", ctx),
        _dotfile("root", ".env.example", templated=True, context=ctx),
        _dotfile("root", ".gitattributes"),
        _templated("root", "CONTRIBUTING.md", ctx),
        _dotfile("root", ".github/PULL_REQUEST_TEMPLATE.md"),
        _dotfile("root", ".github/ISSUE_TEMPLATE/bug_report.md"),
        _dotfile("root", ".github/ISSUE_TEMPLATE/feature_request.md"),
        _dotfile("root", ".github/ISSUE_TEMPLATE/question.md"),
        _templated("root", "components.json", ctx),
        MakeDir("public"),
    ]


def _next_env(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_static("root", "next-env.d.ts")]


def _ai_instructions(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("root", "CLAUDE.md", ctx)]


def _architecture_docs(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("root", "docs/ARCHITECTURE.md", ctx)]


def _api_docs(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("root", "docs/API.md", ctx)]


def _styleguide(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("root", "docs/STYLEGUIDE.md", ctx)]


def _server_middleware(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [Render("web/root/middleware.j2", f"middleware.{_ext(config)}", ctx)]


def _database_rules(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_static("root", "firestore.rules"), _static("root", "firestore.indexes.json")]


def _storage_rules(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_static("root", "storage.rules")]


def _backend_setup_script(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("root", "scripts/backend-setup.js", ctx, executable=True)]


def _github_workflows(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [
        _dotfile("root", ".github/workflows/ci-develop.yml", templated=True, context=ctx),
        _dotfile("root", ".github/workflows/ci-main.yml", templated=True, context=ctx),
    ]


def _gitlab_pipeline(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_dotfile("root", ".gitlab-ci.yml", templated=True, context=ctx)]


def _semantic_release(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_dotfile("root", ".releaserc.json")]


def _pwa_assets(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [
        _templated("root", "public/manifest.json", ctx),
        _static("root", "public/icons/README.md"),
        _static("root", "public/screenshots/README.md"),
    ]


def _pwa_offline_page(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("root", "public/offline.html", ctx)]


# ---------------------------------------------------------------------------
# Developer tooling
# ---------------------------------------------------------------------------


def _eslint(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [_templated("devtools", "eslint.config.mjs", ctx)]


def _prettier(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [
        _dotfile("devtools", ".prettierrc.json"),
        _dotfile("devtools", ".prettierignore"),
    ]


def _git_hooks(config: WorkspaceConfig, ctx: Context) -> list[FileOperation]:
    return [
        _static("devtools", "commitlint.config.js"),
        _dotfile("devtools", ".lintstagedrc.json", templated=True, context=ctx),
        _dotfile("devtools", ".husky/pre-commit", executable=True),
        _dotfile("devtools", ".husky/commit-msg", executable=True),
    ]


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def _framework(framework: Framework) -> Guard:
    return lambda config: config.web.framework is framework


def _styling(styling: Styling) -> Guard:
    return lambda config: config.web.styling is styling


def _testing(testing: TestingFramework) -> Guard:
    return lambda config: config.web.testing is testing


def _state(state: StateManagement) -> Guard:
    return lambda config: config.web.state_management is state


def _feature(feature: BackendFeature) -> Guard:
    return lambda config: config.has_backend_feature(feature)


def _pattern(pattern: BackendPattern) -> Guard:
    return lambda config: config.uses_pattern(pattern)


def _has_backend(config: WorkspaceConfig) -> bool:
    return config.has_backend


def _firebase_feature(feature: BackendFeature) -> Guard:
    return lambda config: (
        config.has_backend_feature(feature) and config.backend.type is BackendType.FIREBASE
    )


def _ci_platform(config: WorkspaceConfig) -> CiPlatform:
    return config.cicd.platform if config.cicd else CiPlatform.GITHUB


def _semantic_release_enabled(config: WorkspaceConfig) -> bool:
    if config.cicd is None:
        return True
    return config.cicd.semantic_release and config.cicd.platform is not CiPlatform.NONE


# ---------------------------------------------------------------------------
# Rule sequence
# ---------------------------------------------------------------------------

DEFAULT_RULES: tuple[Rule, ...] = (
    # Configuration files
    Rule("manifest", Phase.CONFIG, produce=_manifest),
    Rule("framework-next", Phase.CONFIG, _framework(Framework.NEXT), _next_config),
    Rule("framework-vite", Phase.CONFIG, _framework(Framework.VITE), _vite_config),
    Rule("framework-remix", Phase.CONFIG, _framework(Framework.REMIX), _remix_config),
    Rule("typescript-config", Phase.CONFIG, lambda c: c.web.typescript, _tsconfig),
    Rule("javascript-config", Phase.CONFIG, lambda c: not c.web.typescript, _jsconfig),
    Rule("styling-tailwind", Phase.CONFIG, _styling(Styling.TAILWIND), _tailwind),
    Rule("testing-playwright-config", Phase.CONFIG, _testing(TestingFramework.PLAYWRIGHT),
         _playwright_config),
    Rule("testing-cypress-config", Phase.CONFIG, _testing(TestingFramework.CYPRESS),
         _cypress_config),
    Rule("testing-vitest-config", Phase.CONFIG, _testing(TestingFramework.VITEST),
         _vitest_config),
    # Source tree
    Rule("app-shell", Phase.SOURCE, produce=_app_shell),
    Rule("api-layer", Phase.SOURCE, produce=_api_layer),
    Rule("styling-css-modules", Phase.SOURCE, _styling(Styling.CSS_MODULES), _css_modules),
    Rule("styling-styled-components", Phase.SOURCE, _styling(Styling.STYLED_COMPONENTS),
         _styled_components),
    Rule("animations", Phase.SOURCE, lambda c: c.web.animations, _animations),
    Rule("pwa-provider", Phase.SOURCE, lambda c: c.is_pwa, _pwa_provider),
    Rule("pwa-offline", Phase.SOURCE, lambda c: c.is_pwa and c.pwa_settings.offline,
         _pwa_offline),
    Rule("pwa-install-prompt", Phase.SOURCE, lambda c: c.is_pwa and c.pwa_settings.installable,
         _pwa_install_prompt),
    Rule("backend-client", Phase.SOURCE, _has_backend, _backend_client,
         suppresses=(SERVICES_PLACEHOLDER,)),
    Rule("backend-auth", Phase.SOURCE, _feature(BackendFeature.AUTH), _backend_auth),
    Rule("backend-database", Phase.SOURCE, _feature(BackendFeature.DATABASE), _backend_database),
    Rule("backend-storage", Phase.SOURCE, _feature(BackendFeature.STORAGE), _backend_storage),
    Rule("backend-functions", Phase.SOURCE, _feature(BackendFeature.FUNCTIONS),
         _backend_functions),
    Rule("backend-admin-modular", Phase.SOURCE, _pattern(BackendPattern.SERVER_FIRST),
         _admin_modular),
    Rule("backend-admin-legacy", Phase.SOURCE, _pattern(BackendPattern.CLIENT_SIDE),
         _admin_legacy),
    Rule("backend-server-auth-routes", Phase.SOURCE, _pattern(BackendPattern.SERVER_FIRST),
         _server_auth_routes),
    Rule("state-context", Phase.SOURCE, _state(StateManagement.CONTEXT), _theme_context),
    Rule("state-context-auth", Phase.SOURCE,
         lambda c: _state(StateManagement.CONTEXT)(c) and c.has_backend_feature(BackendFeature.AUTH),
         _auth_context),
    Rule("state-zustand", Phase.SOURCE, _state(StateManagement.ZUSTAND), _theme_store),
    Rule("state-zustand-auth", Phase.SOURCE,
         lambda c: _state(StateManagement.ZUSTAND)(c) and c.has_backend_feature(BackendFeature.AUTH),
         _auth_store),
    Rule("testing-playwright-suites", Phase.SOURCE, _testing(TestingFramework.PLAYWRIGHT),
         _playwright_suites),
    Rule("testing-cypress-suites", Phase.SOURCE, _testing(TestingFramework.CYPRESS),
         _cypress_suites),
    Rule("testing-vitest-suites", Phase.SOURCE, _testing(TestingFramework.VITEST),
         _vitest_suites),
    # Root and documentation files
    Rule("root-meta", Phase.ROOT, produce=_root_meta),
    Rule("next-env", Phase.ROOT,
         lambda c: c.web.typescript and c.web.framework is Framework.NEXT, _next_env),
    Rule("docs-ai-instructions", Phase.ROOT, lambda c: c.documentation.ai_instructions,
         _ai_instructions),
    Rule("docs-architecture", Phase.ROOT, lambda c: c.documentation.architecture,
         _architecture_docs),
    Rule("docs-api", Phase.ROOT, lambda c: c.documentation.api_docs, _api_docs),
    Rule("docs-styleguide", Phase.ROOT, lambda c: c.documentation.styleguide, _styleguide),
    Rule("backend-middleware", Phase.ROOT, _pattern(BackendPattern.SERVER_FIRST),
         _server_middleware),
    Rule("backend-database-rules", Phase.ROOT, _firebase_feature(BackendFeature.DATABASE),
         _database_rules),
    Rule("backend-storage-rules", Phase.ROOT, _firebase_feature(BackendFeature.STORAGE),
         _storage_rules),
    Rule("backend-setup-script", Phase.ROOT, _has_backend, _backend_setup_script),
    Rule("ci-github", Phase.ROOT, lambda c: _ci_platform(c) is CiPlatform.GITHUB,
         _github_workflows),
    Rule("ci-gitlab", Phase.ROOT, lambda c: _ci_platform(c) is CiPlatform.GITLAB,
         _gitlab_pipeline),
    Rule("semantic-release", Phase.ROOT, _semantic_release_enabled, _semantic_release),
    Rule("pwa-assets", Phase.ROOT, lambda c: c.is_pwa, _pwa_assets),
    Rule("pwa-offline-page", Phase.ROOT, lambda c: c.is_pwa and c.pwa_settings.offline,
         _pwa_offline_page),
    # Developer tooling
    Rule("devtools-eslint", Phase.DEVTOOLS, lambda c: c.web.linting, _eslint),
    Rule("devtools-prettier", Phase.DEVTOOLS, lambda c: c.web.formatting, _prettier),
    Rule("devtools-git-hooks", Phase.DEVTOOLS, lambda c: c.web.git_hooks, _git_hooks),
)
