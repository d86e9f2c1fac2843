"""Option resolution — merge global, run-level and per-test options."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from visual_tester.models.test_case import TestOptions

logger = logging.getLogger(__name__)


def _explicit(layer: TestOptions | Mapping[str, Any] | None) -> dict[str, Any]:
    if layer is None:
        return {}
    if not isinstance(layer, TestOptions):
        layer = TestOptions.model_validate(dict(layer))
    explicit = layer.model_dump(exclude_unset=True)
    # An empty selector defers to the lower layers
    if not explicit.get("selector", True):
        del explicit["selector"]
    return explicit


def resolve_options(
    global_defaults: TestOptions | Mapping[str, Any] | None,
    run_defaults: TestOptions | Mapping[str, Any] | None,
    test_options: TestOptions | Mapping[str, Any] | None,
) -> TestOptions:
    """Resolve the effective options for one test.

    Only values that were explicitly set in a layer take part, with
    precedence per-test > run defaults > global defaults.
    """
    merged: dict[str, Any] = {}
    for layer in (global_defaults, run_defaults, test_options):
        merged.update(_explicit(layer))
    logger.debug("Resolved options: %s", sorted(merged))
    return TestOptions(**merged)
