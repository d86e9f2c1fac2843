"""Shared URL utilities — build page URLs and derive stable image names."""

from __future__ import annotations


def build_page_url(base_url: str, url: str) -> str:
    """Prefix a test URL with its base URL (plain concatenation)."""
    return f"{base_url}{url}"


def snapshot_filename(url: str, index: int) -> str:
    """Derive the image filename for a test: slashes become hyphens, run index appended."""
    return f"{url}{index}".replace("/", "-") + ".png"
