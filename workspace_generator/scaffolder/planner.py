"""Plan compiler: configuration in, ordered file operations out.

``compile_plan`` is pure.  It builds the template context once, evaluates
every rule in order and assembles the surviving operations into phases.
The caller is responsible for validating the configuration first.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from workspace_generator.config import WorkspaceConfig
from workspace_generator.errors import PlanningError
from workspace_generator.scaffolder.context import build_template_context
from workspace_generator.scaffolder.operations import (
    PHASE_ORDER,
    FileOperation,
    OperationPlan,
    Phase,
    PlanPhase,
)
from workspace_generator.scaffolder.rules import DEFAULT_RULES, Rule


@dataclass(frozen=True)
class _Entry:
    rule: str
    phase: Phase
    operation: FileOperation


def compile_plan(config: WorkspaceConfig, rules: Sequence[Rule] = DEFAULT_RULES) -> OperationPlan:
    """Compile *config* into an :class:`OperationPlan`.

    Rules fire in sequence.  A firing rule first drops any destinations it
    suppresses, then replaces earlier operations that target the same
    destinations it emits (last write wins).

    Raises:
        PlanningError: A single rule emitted one destination twice, or the
            assembled plan still contains a duplicate destination.
    """
    context = build_template_context(config)
    entries: list[_Entry] = []

    for rule in rules:
        if not rule.applies(config):
            continue

        if rule.suppresses:
            suppressed = set(rule.suppresses)
            entries = [e for e in entries if e.operation.dest not in suppressed]

        produced = rule.produce(config, context)
        emitted: set[str] = set()
        for op in produced:
            if op.dest in emitted:
                raise PlanningError(
                    f"Rule {rule.name!r} emits {op.dest!r} more than once",
                    dest_path=op.dest,
                    rules=[rule.name],
                )
            emitted.add(op.dest)

        entries = [e for e in entries if e.operation.dest not in emitted]
        entries.extend(_Entry(rule.name, rule.phase, op) for op in produced)

    _check_unique(entries)

    phases = []
    for phase in PHASE_ORDER:
        operations = tuple(e.operation for e in entries if e.phase is phase)
        if operations:
            phases.append(PlanPhase(phase, operations))
    return OperationPlan(tuple(phases))


def _check_unique(entries: list[_Entry]) -> None:
    owners: dict[str, list[str]] = {}
    for entry in entries:
        owners.setdefault(entry.operation.dest, []).append(entry.rule)
    for dest, rules in owners.items():
        if len(rules) > 1:
            raise PlanningError(
                f"Destination {dest!r} is produced by more than one rule: {', '.join(rules)}",
                dest_path=dest,
                rules=rules,
            )
