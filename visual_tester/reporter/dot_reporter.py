"""Compact reporter: one character per test event."""

from __future__ import annotations

from rich.console import Console

from visual_tester.models.test_result import FAIL_TO_MATCH, FailureRecord, RunSummary

from .base import Reporter


class DotReporter(Reporter):

    def __init__(self, console: Console | None = None):
        super().__init__(console)
        self.errors: list[tuple[str, BaseException]] = []

    def test_passed(self, url: str) -> None:
        self.console.print("[green].[/green]", end="")

    def test_failed(self, url: str, mismatch: float) -> None:
        self.console.print("[red]F[/red]", end="")

    def retry(self, url: str, attempt: int) -> None:
        self.console.print("[yellow]R[/yellow]", end="")

    def error(self, message: str, err: BaseException) -> None:
        # Detail is printed after the dot line, in report()
        self.errors.append((message, err))
        self.console.print("[red]E[/red]", end="")

    def report(self, failures: list[FailureRecord], summary: RunSummary) -> None:
        self.console.print()
        for message, err in self.errors:
            self.console.print(f"[red]{message}:[/red] {err}")
        for i, failure in enumerate(failures, 1):
            if failure.kind == FAIL_TO_MATCH:
                detail = f"mismatch {failure.mismatch_percentage:.2f}%, see {failure.filename}"
            else:
                detail = failure.detail
            self.console.print(f"  {i}) {failure.test_name} [dim]{failure.url}[/dim]")
            self.console.print(f"     [red]{failure.kind}[/red]: {detail}")
        self.console.print(self._summary_line(summary))
