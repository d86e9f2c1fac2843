"""Pixel comparison of two PNG images using Pillow."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Iterable

from PIL import Image, ImageChops, ImageDraw

from visual_tester.models.test_case import IgnoreRegion

logger = logging.getLogger(__name__)

DIFF_COLOR = (255, 0, 255, 255)


@dataclass
class ImageDiff:
    mismatch_percentage: float
    diff_image: bytes
    width: int
    height: int


def _load_rgba(data: bytes) -> Image.Image:
    with Image.open(io.BytesIO(data)) as img:
        return img.convert("RGBA")


def _pad(img: Image.Image, size: tuple[int, int]) -> Image.Image:
    if img.size == size:
        return img
    canvas = Image.new("RGBA", size, (0, 0, 0, 0))
    canvas.paste(img, (0, 0))
    return canvas


def compare_images(
    baseline: bytes,
    current: bytes,
    ignore_regions: Iterable[IgnoreRegion] = (),
    pixel_tolerance: int = 16,
) -> ImageDiff:
    """Compare two images and produce a mismatch percentage plus a diff image.

    A pixel is mismatched when any RGBA channel differs by more than
    ``pixel_tolerance``. Images of different sizes are compared on the
    larger canvas, so the non-overlapping area counts as mismatched.
    Pixels inside ``ignore_regions`` never count as mismatched.
    """
    base_img = _load_rgba(baseline)
    curr_img = _load_rgba(current)
    size = (max(base_img.width, curr_img.width), max(base_img.height, curr_img.height))
    if base_img.size != curr_img.size:
        logger.debug("Size mismatch %s vs %s, comparing on %dx%d canvas", base_img.size, curr_img.size, *size)
    base_img = _pad(base_img, size)
    curr_img = _pad(curr_img, size)

    # Per-pixel maximum channel delta
    bands = ImageChops.difference(base_img, curr_img).split()
    delta = bands[0]
    for band in bands[1:]:
        delta = ImageChops.lighter(delta, band)
    mask = delta.point(lambda v: 255 if v > pixel_tolerance else 0)

    draw = ImageDraw.Draw(mask)
    for region in ignore_regions:
        draw.rectangle((region.left, region.top, region.right, region.bottom), fill=0)

    total = size[0] * size[1]
    mismatched = mask.histogram()[255]
    percentage = (mismatched / total) * 100 if total else 0.0

    faded = Image.blend(curr_img, Image.new("RGBA", size, (255, 255, 255, 255)), 0.7)
    diff = Image.composite(Image.new("RGBA", size, DIFF_COLOR), faded, mask)
    buf = io.BytesIO()
    diff.save(buf, format="PNG")

    return ImageDiff(
        mismatch_percentage=percentage,
        diff_image=buf.getvalue(),
        width=size[0],
        height=size[1],
    )
