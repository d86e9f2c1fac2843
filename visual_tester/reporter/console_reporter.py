"""Line-per-event reporter with a summary table."""

from __future__ import annotations

from rich.table import Table

from visual_tester.models.test_result import FAIL_TO_MATCH, FailureRecord, RunSummary

from .base import Reporter


class ConsoleReporter(Reporter):

    def test_passed(self, url: str) -> None:
        self.console.print(f"[green]PASS[/green] {url}")

    def test_failed(self, url: str, mismatch: float) -> None:
        self.console.print(f"[red]FAIL[/red] {url} (mismatch {mismatch:.2f}%)")

    def retry(self, url: str, attempt: int) -> None:
        self.console.print(f"[yellow]RETRY[/yellow] {url} (attempt {attempt})")

    def report(self, failures: list[FailureRecord], summary: RunSummary) -> None:
        if failures:
            table = Table(title="Failures")
            table.add_column("Test", style="bold")
            table.add_column("URL")
            table.add_column("Type")
            table.add_column("Detail")
            for failure in failures:
                if failure.kind == FAIL_TO_MATCH:
                    detail = f"{failure.mismatch_percentage:.2f}% mismatch ({failure.filename})"
                else:
                    detail = failure.detail
                table.add_row(failure.test_name, failure.url, failure.kind, detail)
            self.console.print(table)

        table = Table(title="Results Summary")
        table.add_column("Metric", style="bold")
        table.add_column("Value")
        table.add_row("Total Tests", str(summary.total))
        table.add_row("Passed", f"[green]{summary.passed}[/green]")
        table.add_row("Failed", f"[red]{summary.failed}[/red]")
        table.add_row("Skipped", f"[yellow]{summary.skipped}[/yellow]")
        table.add_row("Focused", str(summary.focused))
        self.console.print(table)
