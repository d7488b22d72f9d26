"""Progress reporting for generation and provisioning runs.

The executor and the provisioning orchestrator never print.  They emit
events to a :class:`Reporter`; :class:`RichReporter` turns those events into
console output, :class:`NullReporter` drops them.
"""

from __future__ import annotations

from workspace_generator.errors import GeneratorError, display_error
from workspace_generator.utils import (
    console,
    print_phase_header,
    print_summary_table,
    print_warning,
)


class Reporter:
    """Event sink.  The base implementation ignores every event."""

    def phase_start(self, title: str, total: int) -> None:
        """A named group of ``total`` items is about to run."""

    def item_done(
        self,
        phase: str,
        item: str,
        completed: int,
        total: int,
        *,
        phase_completed: int | None = None,
        phase_total: int | None = None,
    ) -> None:
        """One item of *phase* finished.

        ``completed``/``total`` count across the whole run;
        ``phase_completed``/``phase_total`` count inside *phase* when known.
        """

    def warning(self, message: str) -> None:
        """A non-fatal problem worth surfacing."""

    def error(self, error: GeneratorError) -> None:
        """A failure that ends the current run or environment."""

    def summary(self, title: str, rows: dict[str, str]) -> None:
        """Final key/value summary of a run."""


class NullReporter(Reporter):
    pass


class RichReporter(Reporter):
    """Console reporter built on the shared Rich console."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    def phase_start(self, title: str, total: int) -> None:
        print_phase_header(f"{title} ({total})")

    def item_done(
        self,
        phase: str,
        item: str,
        completed: int,
        total: int,
        *,
        phase_completed: int | None = None,
        phase_total: int | None = None,
    ) -> None:
        if not self.verbose:
            return
        progress = f"{completed}/{total}"
        if phase_completed is not None and phase_total is not None:
            progress = f"{phase} {phase_completed}/{phase_total}, {progress}"
        console.print(f"  [green]✓[/green] {item} [dim]({progress})[/dim]")

    def warning(self, message: str) -> None:
        print_warning(message)

    def error(self, error: GeneratorError) -> None:
        display_error(error, verbose=self.verbose)

    def summary(self, title: str, rows: dict[str, str]) -> None:
        console.print()
        print_summary_table(rows, title=title)
