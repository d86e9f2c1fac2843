"""Baseline comparator — decides baseline-created, pass, or fail for a capture."""

from __future__ import annotations

import asyncio
import logging

from visual_tester.models.config import DiffConfig
from visual_tester.models.test_case import TestOptions
from visual_tester.models.test_result import ComparisonOutcome

from .image_diff import compare_images
from .store import SnapshotStore

logger = logging.getLogger(__name__)


class BaselineComparator:
    """Compares fresh captures against stored baselines.

    Any nonzero mismatch fails; there is no tolerance band on the
    percentage. Per-pixel tolerance lives in the image diff.
    """

    def __init__(self, store: SnapshotStore, diff_config: DiffConfig | None = None, overwrite: bool = False):
        self.store = store
        self.diff_config = diff_config or DiffConfig()
        self.overwrite = overwrite

    async def compare(self, image_name: str, options: TestOptions | None = None) -> ComparisonOutcome:
        if options is None:
            options = TestOptions()

        if self.overwrite or not self.store.has_baseline(image_name):
            reason = "overwrite mode" if self.overwrite else "no baseline yet"
            logger.debug("Creating baseline for %s (%s)", image_name, reason)
            await asyncio.to_thread(self.store.promote, image_name)
            return ComparisonOutcome.baseline_created()

        baseline, current = await asyncio.to_thread(self.store.read_pair, image_name)
        diff = await asyncio.to_thread(
            compare_images,
            baseline,
            current,
            options.ignore_regions,
            self.diff_config.pixel_tolerance,
        )

        if diff.mismatch_percentage > 0:
            diff_path = await asyncio.to_thread(self.store.write_diff, image_name, diff.diff_image)
            logger.debug("%s mismatched by %.4f%%, diff at %s",
                         image_name, diff.mismatch_percentage, diff_path)
            return ComparisonOutcome.failing(diff.mismatch_percentage, str(diff_path))

        return ComparisonOutcome.passing()
