"""CLI entry point for the visual tester."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from playwright.async_api import Error as PlaywrightError
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from visual_tester.models.config import RunnerConfig
from visual_tester.orchestrator import Runner
from visual_tester.reporter.reporter import create_reporter
from visual_tester.suite import SuiteLoadError, load_suite

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(path: str) -> RunnerConfig:
    if not Path(path).exists():
        # Missing default config is fine; an explicit wrong path is not
        if path != "visual-config.json":
            console.print(f"[red]Config file not found: {path}[/red]")
            console.print("Run 'visual-tester init' to create a default config.")
            sys.exit(1)
        return RunnerConfig()
    try:
        return RunnerConfig.load(path)
    except (ValueError, ValidationError) as e:
        console.print(f"[red]Invalid config {path}:[/red] {e}")
        sys.exit(1)


def _build_runner(config: RunnerConfig, suite: str) -> Runner:
    runner = Runner(config, reporter=create_reporter(config.reporter, console))
    try:
        load_suite(runner, suite)
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    except (SuiteLoadError, ValidationError) as e:
        console.print(f"[red]Could not load suite:[/red] {e}")
        sys.exit(1)
    return runner


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression testing: capture pages and compare them to baselines."""
    setup_logging(verbose)


@cli.command()
@click.option("--suite", "-s", required=True, help="Suite file (.json or .py)")
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
@click.option("--overwrite", is_flag=True, help="Replace baselines with fresh captures")
@click.option("--open-browser", is_flag=True, help="Run the browser headed")
@click.option("--group", "groups", multiple=True, help="Only register these test groups")
@click.option("--reporter", type=click.Choice(["dot", "console"]), default=None, help="Output style")
@click.option("--retries", type=int, default=None, help="Retry limit per test")
def run(
    suite: str,
    config: str,
    overwrite: bool,
    open_browser: bool,
    groups: tuple[str, ...],
    reporter: Optional[str],
    retries: Optional[int],
) -> None:
    """Run a suite and exit non-zero if any test failed."""
    cfg = _load_config(config)
    overrides: dict = {}
    if overwrite:
        overrides["overwrite"] = True
    if open_browser:
        overrides["open_browser"] = True
    if groups:
        overrides["test_groups"] = list(groups)
    if reporter:
        overrides["reporter"] = reporter
    if retries is not None:
        overrides["retries"] = retries
    if overrides:
        cfg = RunnerConfig(**{**cfg.model_dump(), **overrides})

    runner = _build_runner(cfg, suite)
    try:
        result = runner.run_sync()
    except OSError as e:
        console.print(f"[red]Could not prepare image directories:[/red] {e}")
        sys.exit(1)
    except PlaywrightError as e:
        console.print(f"[red]Browser failed to start:[/red] {escape(str(e))}")
        console.print("Run 'playwright install chromium' if the browser is missing.")
        sys.exit(1)
    sys.exit(result.exit_code)


@cli.command("list")
@click.option("--suite", "-s", required=True, help="Suite file (.json or .py)")
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def list_tests(suite: str, config: str) -> None:
    """Show which tests a run would execute, without launching a browser."""
    cfg = _load_config(config)
    runner = _build_runner(cfg, suite)
    tests = runner.tests()
    if not tests:
        console.print("[yellow]No tests found[/yellow]")
        return

    table = Table(title=f"{len(tests)} tests selected")
    table.add_column("#", style="bold")
    table.add_column("Name")
    table.add_column("URL")
    table.add_column("Selector")
    for index, test in enumerate(tests):
        options = runner.resolve(test)
        table.add_row(str(index), test.name, f"{options.base_url}{test.url}", options.selector or "(full page)")
    console.print(table)


@cli.command()
@click.option("--base-url", "-u", prompt="Base URL", help="Site under test")
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def init(base_url: str, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = RunnerConfig(base_url=base_url)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nDeclare tests in a suite file and run:")
    console.print("  [blue]visual-tester run --suite suite.json[/blue]")


if __name__ == "__main__":
    cli()
