"""Reporter selection."""

from __future__ import annotations

from rich.console import Console

from .base import Reporter
from .console_reporter import ConsoleReporter
from .dot_reporter import DotReporter

REPORTERS: dict[str, type[Reporter]] = {
    "console": ConsoleReporter,
    "dot": DotReporter,
}


def create_reporter(style: str, console: Console | None = None) -> Reporter:
    """Build the reporter for a style name, falling back to dots."""
    return REPORTERS.get(style, DotReporter)(console)
