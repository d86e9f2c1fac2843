"""Reporting interface shared by all reporter styles."""

from __future__ import annotations

from rich.console import Console

from visual_tester.models.test_result import FailureRecord, RunSummary


class Reporter:
    """Receives run events and renders them for the user.

    Per-test events are silent here; styles override the ones they show.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def info(self, message: str) -> None:
        self.console.print(message)

    def test_passed(self, url: str) -> None:
        pass

    def test_failed(self, url: str, mismatch: float) -> None:
        pass

    def retry(self, url: str, attempt: int) -> None:
        pass

    def error(self, message: str, err: BaseException) -> None:
        self.console.print(f"[red]{message}:[/red] {err}")

    def report(self, failures: list[FailureRecord], summary: RunSummary) -> None:
        self.console.print(self._summary_line(summary))

    def _summary_line(self, summary: RunSummary) -> str:
        parts = [
            f"[green]{summary.passed} passed[/green]",
            f"[red]{summary.failed} failed[/red]",
        ]
        if summary.skipped:
            parts.append(f"[yellow]{summary.skipped} skipped[/yellow]")
        if summary.focused:
            parts.append(f"[blue]{summary.focused} focused[/blue]")
        parts.append(f"{summary.total} total")
        return ", ".join(parts)
