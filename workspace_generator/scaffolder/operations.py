"""File operations and the ordered plan that groups them into phases."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class Phase(str, Enum):
    """Reporting phases, in execution order."""

    CONFIG = "config"
    SOURCE = "source"
    ROOT = "root"
    DEVTOOLS = "devtools"

    @property
    def title(self) -> str:
        return _PHASE_TITLES[self]


_PHASE_TITLES = {
    Phase.CONFIG: "Configuration files",
    Phase.SOURCE: "Source structure",
    Phase.ROOT: "Documentation and root files",
    Phase.DEVTOOLS: "Development tools",
}

PHASE_ORDER: tuple[Phase, ...] = (Phase.CONFIG, Phase.SOURCE, Phase.ROOT, Phase.DEVTOOLS)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Render:
    """Render template ``source`` with ``context`` and write it to ``dest``."""

    source: str
    dest: str
    context: Mapping[str, Any] | None
    executable: bool = False

    kind = "render"


@dataclass(frozen=True)
class Copy:
    """Copy the static file ``source`` byte-for-byte to ``dest``."""

    source: str
    dest: str
    executable: bool = False

    kind = "copy"


@dataclass(frozen=True)
class MakeDir:
    """Create the directory ``dest``."""

    dest: str

    kind = "mkdir"


FileOperation = Union[Render, Copy, MakeDir]


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlanPhase:
    phase: Phase
    operations: tuple[FileOperation, ...]

    @property
    def title(self) -> str:
        return self.phase.title


@dataclass(frozen=True)
class OperationPlan:
    """Ordered operations partitioned into reporting phases.

    Phase boundaries only matter for progress output; the executor runs the
    operations as one flat sequence.
    """

    phases: tuple[PlanPhase, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[FileOperation]:
        for plan_phase in self.phases:
            yield from plan_phase.operations

    def __len__(self) -> int:
        return sum(len(p.operations) for p in self.phases)

    @property
    def destinations(self) -> list[str]:
        return [op.dest for op in self]

    def phase(self, phase: Phase) -> PlanPhase | None:
        for plan_phase in self.phases:
            if plan_phase.phase is phase:
                return plan_phase
        return None

    def find(self, dest: str) -> FileOperation | None:
        for op in self:
            if op.dest == dest:
                return op
        return None
