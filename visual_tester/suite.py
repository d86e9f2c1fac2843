"""Suite loading — declare tests from JSON or Python files."""

from __future__ import annotations

import importlib.util
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field, ValidationError

from visual_tester.models.test_case import TestGroup

if TYPE_CHECKING:
    from visual_tester.orchestrator import Runner

logger = logging.getLogger(__name__)


class SuiteLoadError(ValueError):
    """Raised when a suite file cannot be read or has the wrong shape."""


class SuiteEntry(BaseModel):
    url: str
    mode: Literal["normal", "focus", "ignore"] = "normal"
    options: dict[str, Any] = Field(default_factory=dict)


class SuiteFile(BaseModel):
    defaults: dict[str, Any] = Field(default_factory=dict)
    tests: list[SuiteEntry] = Field(default_factory=list)
    groups: list[TestGroup] = Field(default_factory=list)


def apply_suite(runner: "Runner", suite: SuiteFile) -> None:
    """Register everything a parsed suite declares on ``runner``."""
    if suite.defaults:
        runner.spec_options(suite.defaults)
    for entry in suite.tests:
        match entry.mode:
            case "focus":
                runner.fit(entry.url, entry.options)
            case "ignore":
                runner.xit(entry.url, entry.options)
            case _:
                runner.it(entry.url, entry.options)
    for group in suite.groups:
        runner.group(group)


def load_suite(runner: "Runner", path: str | Path) -> None:
    """Load a suite file into ``runner``.

    ``.json`` files are parsed as :class:`SuiteFile`. ``.py`` files are
    imported and must define ``register(runner)``.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Suite file not found: {path}")

    if path.suffix == ".py":
        _load_python_suite(runner, path)
        return

    try:
        with open(path) as f:
            data = json.load(f)
        suite = SuiteFile.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise SuiteLoadError(f"Invalid suite file {path}: {e}") from e
    logger.debug("Loaded suite %s: %d tests, %d groups", path, len(suite.tests), len(suite.groups))
    apply_suite(runner, suite)


def _load_python_suite(runner: "Runner", path: Path) -> None:
    spec = importlib.util.spec_from_file_location(f"visual_suite_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise SuiteLoadError(f"Cannot import suite {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    register = getattr(module, "register", None)
    if not callable(register):
        raise SuiteLoadError(f"Suite {path} must define register(runner)")
    register(runner)
