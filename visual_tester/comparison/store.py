"""Snapshot store — baseline, current and diff image directories."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Manages the three image directories used by a run."""

    def __init__(self, base_path: str | Path, current_path: str | Path, diff_path: str | Path):
        self.base_dir = Path(base_path)
        self.current_dir = Path(current_path)
        self.diff_dir = Path(diff_path)

    def prepare(self) -> None:
        """Wipe current/diff directories and make sure all three exist.

        Errors propagate: a run must not start with missing directories.
        """
        for directory in (self.current_dir, self.diff_dir):
            if directory.exists():
                logger.debug("Clearing %s", directory)
                shutil.rmtree(directory)
        for directory in (self.base_dir, self.current_dir, self.diff_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def baseline_path(self, image_name: str) -> Path:
        return self.base_dir / image_name

    def current_path(self, image_name: str) -> Path:
        return self.current_dir / image_name

    def diff_path(self, image_name: str) -> Path:
        return self.diff_dir / image_name

    def has_baseline(self, image_name: str) -> bool:
        return self.baseline_path(image_name).exists()

    def promote(self, image_name: str) -> Path:
        """Copy the current capture over the baseline."""
        dest = self.baseline_path(image_name)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(self.current_path(image_name), dest)
        logger.debug("Stored baseline %s", dest)
        return dest

    def read_pair(self, image_name: str) -> tuple[bytes, bytes]:
        """Return (baseline, current) image bytes."""
        return (
            self.baseline_path(image_name).read_bytes(),
            self.current_path(image_name).read_bytes(),
        )

    def write_diff(self, image_name: str, data: bytes) -> Path:
        dest = self.diff_path(image_name)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(data)
        return dest
