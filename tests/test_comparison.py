"""Tests for the image diff, snapshot store and baseline comparator."""

import io

import pytest
from PIL import Image

from visual_tester.comparison.comparator import BaselineComparator
from visual_tester.comparison.image_diff import DIFF_COLOR, compare_images
from visual_tester.comparison.store import SnapshotStore
from visual_tester.models.config import DiffConfig
from visual_tester.models.test_case import IgnoreRegion, TestOptions

RED = (255, 0, 0)
WHITE = (255, 255, 255)


# ============================================================================
# compare_images
# ============================================================================


class TestCompareImages:

    def test_identical_images(self, png):
        diff = compare_images(png(), png())
        assert diff.mismatch_percentage == 0.0

    def test_one_pixel_of_four(self, png):
        diff = compare_images(png(2, 2), png(2, 2, dots={(0, 0): RED}))
        assert diff.mismatch_percentage == pytest.approx(25.0)

    def test_deterministic(self, png):
        a, b = png(10, 10), png(10, 10, dots={(3, 3): RED, (4, 4): RED})
        assert compare_images(a, b).mismatch_percentage == compare_images(a, b).mismatch_percentage

    def test_within_pixel_tolerance(self, png):
        diff = compare_images(png(2, 2), png(2, 2, dots={(0, 0): (250, 250, 250)}), pixel_tolerance=16)
        assert diff.mismatch_percentage == 0.0

    def test_zero_tolerance_detects_small_delta(self, png):
        diff = compare_images(png(2, 2), png(2, 2, dots={(0, 0): (250, 250, 250)}), pixel_tolerance=0)
        assert diff.mismatch_percentage == pytest.approx(25.0)

    def test_ignore_region_excludes_pixels(self, png):
        diff = compare_images(
            png(4, 4),
            png(4, 4, dots={(0, 0): RED, (3, 3): RED}),
            ignore_regions=[IgnoreRegion(left=0, top=0, right=1, bottom=1)],
        )
        assert diff.mismatch_percentage == pytest.approx(100 / 16)

    def test_size_difference_counts_as_mismatch(self, png):
        diff = compare_images(png(2, 2), png(2, 4))
        assert (diff.width, diff.height) == (2, 4)
        assert diff.mismatch_percentage == pytest.approx(50.0)

    def test_diff_image_marks_changed_pixels(self, png):
        diff = compare_images(png(2, 2), png(2, 2, dots={(1, 1): RED}))
        img = Image.open(io.BytesIO(diff.diff_image)).convert("RGBA")
        assert img.getpixel((1, 1)) == DIFF_COLOR
        assert img.getpixel((0, 0)) != DIFF_COLOR


# ============================================================================
# SnapshotStore
# ============================================================================


class TestSnapshotStore:

    def test_prepare_creates_directories(self, tmp_path):
        store = SnapshotStore(tmp_path / "b", tmp_path / "c", tmp_path / "d")
        store.prepare()
        assert store.base_dir.is_dir()
        assert store.current_dir.is_dir()
        assert store.diff_dir.is_dir()

    def test_prepare_clears_current_and_diff_but_keeps_baselines(self, tmp_path):
        store = SnapshotStore(tmp_path / "b", tmp_path / "c", tmp_path / "d")
        store.prepare()
        (store.base_dir / "keep.png").write_bytes(b"x")
        (store.current_dir / "old.png").write_bytes(b"x")
        (store.diff_dir / "old.png").write_bytes(b"x")

        store.prepare()

        assert (store.base_dir / "keep.png").exists()
        assert list(store.current_dir.iterdir()) == []
        assert list(store.diff_dir.iterdir()) == []

    def test_prepare_fails_loudly(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        store = SnapshotStore(blocker / "base", tmp_path / "c", tmp_path / "d")
        with pytest.raises(OSError):
            store.prepare()

    def test_promote_copies_current(self, store):
        store.current_path("a.png").write_bytes(b"image")
        store.promote("a.png")
        assert store.has_baseline("a.png")
        assert store.baseline_path("a.png").read_bytes() == b"image"


# ============================================================================
# BaselineComparator
# ============================================================================


class TestBaselineComparator:

    @pytest.mark.asyncio
    async def test_first_run_creates_baseline(self, store, png):
        store.current_path("home0.png").write_bytes(png(dots={(0, 0): RED}))
        outcome = await BaselineComparator(store).compare("home0.png")
        assert outcome.status == "baseline_created"
        assert outcome.passed
        assert store.baseline_path("home0.png").read_bytes() == store.current_path("home0.png").read_bytes()

    @pytest.mark.asyncio
    async def test_overwrite_replaces_existing_baseline(self, store, png):
        store.baseline_path("home0.png").write_bytes(png())
        store.current_path("home0.png").write_bytes(png(dots={(0, 0): RED}))

        outcome = await BaselineComparator(store, overwrite=True).compare("home0.png")

        assert outcome.status == "baseline_created"
        assert store.baseline_path("home0.png").read_bytes() == png(dots={(0, 0): RED})
        assert not store.diff_path("home0.png").exists()

    @pytest.mark.asyncio
    async def test_identical_capture_passes_twice(self, store, png):
        store.baseline_path("home0.png").write_bytes(png())
        store.current_path("home0.png").write_bytes(png())
        comparator = BaselineComparator(store)

        first = await comparator.compare("home0.png")
        second = await comparator.compare("home0.png")

        assert first.status == second.status == "pass"
        assert not store.diff_path("home0.png").exists()

    @pytest.mark.asyncio
    async def test_mismatch_fails_and_writes_diff(self, store, png):
        store.baseline_path("home0.png").write_bytes(png(2, 2))
        store.current_path("home0.png").write_bytes(png(2, 2, dots={(0, 0): RED}))

        outcome = await BaselineComparator(store).compare("home0.png")

        assert outcome.status == "fail"
        assert not outcome.passed
        assert outcome.mismatch_percentage == pytest.approx(25.0)
        assert outcome.diff_path == str(store.diff_path("home0.png"))
        assert store.diff_path("home0.png").exists()

    @pytest.mark.asyncio
    async def test_any_nonzero_mismatch_fails(self, store, png):
        store.baseline_path("big0.png").write_bytes(png(100, 100))
        store.current_path("big0.png").write_bytes(png(100, 100, dots={(50, 50): RED}))

        outcome = await BaselineComparator(store).compare("big0.png")

        assert outcome.status == "fail"
        assert outcome.mismatch_percentage == pytest.approx(0.01)

    @pytest.mark.asyncio
    async def test_ignore_regions_from_options(self, store, png):
        store.baseline_path("home0.png").write_bytes(png())
        store.current_path("home0.png").write_bytes(png(dots={(1, 1): RED}))
        options = TestOptions(ignore_regions=[IgnoreRegion(left=1, top=1, right=1, bottom=1)])

        outcome = await BaselineComparator(store).compare("home0.png", options)

        assert outcome.status == "pass"

    @pytest.mark.asyncio
    async def test_pixel_tolerance_from_config(self, store, png):
        store.baseline_path("home0.png").write_bytes(png())
        store.current_path("home0.png").write_bytes(png(dots={(1, 1): (250, 250, 250)}))

        strict = BaselineComparator(store, DiffConfig(pixel_tolerance=0))
        outcome = await strict.compare("home0.png")

        assert outcome.status == "fail"
