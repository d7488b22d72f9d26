"""Scaffolder package -- compiles a workspace configuration into files on disk.

Usage::

    from workspace_generator.config import default_config
    from workspace_generator.scaffolder import ProjectGenerator

    generator = ProjectGenerator(default_config("my-app"))
    session = await generator.generate("./output")
"""

from workspace_generator.scaffolder.executor import (
    GenerationSession,
    LocalFileSystem,
    PlanExecutor,
    SessionStatus,
)
from workspace_generator.scaffolder.generator import ProjectGenerator
from workspace_generator.scaffolder.operations import (
    Copy,
    FileOperation,
    MakeDir,
    OperationPlan,
    Phase,
    PlanPhase,
    Render,
)
from workspace_generator.scaffolder.planner import compile_plan
from workspace_generator.scaffolder.rollback import RollbackManager
from workspace_generator.scaffolder.rules import DEFAULT_RULES, Rule
from workspace_generator.scaffolder.templates import TemplateRenderer

__all__ = [
    # Planning
    "DEFAULT_RULES",
    "Rule",
    "compile_plan",
    "Copy",
    "FileOperation",
    "MakeDir",
    "OperationPlan",
    "Phase",
    "PlanPhase",
    "Render",
    # Execution
    "GenerationSession",
    "LocalFileSystem",
    "PlanExecutor",
    "RollbackManager",
    "SessionStatus",
    "TemplateRenderer",
    # Orchestration
    "ProjectGenerator",
]
