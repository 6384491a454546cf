"""
Swatch Rendering Module

Renders a dominant color palette as a PNG strip for quick visual QA. Each
chip's width is proportional to its color's score.
"""

import base64
from typing import List, Sequence

import cv2
import numpy as np
from loguru import logger

from .types import DominantColor


def chip_widths(scores: Sequence[float], strip_width: int, min_chip_width: int = 4) -> List[int]:
    """
    Split ``strip_width`` pixels among chips in proportion to their scores.

    Every chip gets at least ``min_chip_width`` pixels; rounding leftovers go
    to the first chip so the widths always sum to ``strip_width``.
    """
    if not scores:
        return []
    total = float(sum(scores))
    widths = [max(min_chip_width, int(strip_width * score / total)) for score in scores]
    widths[0] += strip_width - sum(widths)
    return widths


def render_palette_strip(colors: Sequence[DominantColor], strip_width: int = 320, height: int = 40) -> str:
    """
    Render dominant colors as a horizontal strip.

    Args:
        colors: Dominant colors, most dominant first
        strip_width: Total strip width in pixels
        height: Strip height in pixels

    Returns:
        Base64-encoded PNG image string

    Raises:
        ValueError: If ``colors`` is empty or the strip is too narrow for every chip
    """
    if not colors:
        raise ValueError("Empty color list provided")
    widths = chip_widths([color.score for color in colors], strip_width)
    if widths[0] <= 0:
        raise ValueError(f"Strip width {strip_width} too small for {len(colors)} colors")

    img = np.zeros((height, strip_width, 3), dtype=np.uint8)
    x_start = 0
    for color, width in zip(colors, widths):
        r, g, b = color.rgb
        img[:, x_start:x_start + width] = (b, g, r)  # BGR for OpenCV
        x_start += width

    success, buffer = cv2.imencode('.png', img)
    if not success:
        raise RuntimeError("Failed to encode palette strip as PNG")

    logger.debug(f"Rendered palette strip with {len(colors)} chips: {widths}")
    return base64.b64encode(buffer.tobytes()).decode('ascii')
