"""
Pass 1: flood-fill from every edge pixel inward through border-coloured pixels,
making each one fully transparent.

Depth guard: the fill is hard-stopped at ``max_depth`` pixels from the nearest
image edge (min(x, y, w-1-x, h-1-y)). A thin chain of near-black pixels, such
as a printed rule touching the microfilm edge, can therefore never carry the
fill into the page content.

Default max_depth is 2% of the image width; scan borders are never wider than
that.
"""

import logging
import math
from typing import Callable, Optional

import numpy as np

DEFAULT_DEPTH_RATIO = 0.02

# Predicates receive the R, G, B planes and return a boolean mask.
BorderPredicate = Callable[[np.ndarray, np.ndarray, np.ndarray], np.ndarray]

logger = logging.getLogger(__name__)


def black_predicate(black_threshold: int) -> BorderPredicate:
    def is_black(r, g, b):
        return (r <= black_threshold) & (g <= black_threshold) & (b <= black_threshold)
    return is_black


def white_predicate(white_threshold: int) -> BorderPredicate:
    def is_white(r, g, b):
        return (r >= white_threshold) & (g >= white_threshold) & (b >= white_threshold)
    return is_white


def combined_predicate(black_threshold: int, white_threshold: int) -> BorderPredicate:
    """Near-black OR near-white, so both are removed in one traversal."""
    is_black = black_predicate(black_threshold)
    is_white = white_predicate(white_threshold)

    def is_border(r, g, b):
        return is_black(r, g, b) | is_white(r, g, b)
    return is_border


def default_max_depth(width: int, ratio: float = DEFAULT_DEPTH_RATIO) -> int:
    """round(width * ratio), halves rounded up."""
    return int(math.floor(width * ratio + 0.5))


def edge_depth(height: int, width: int) -> np.ndarray:
    """Distance of every pixel from the nearest image edge."""
    ys = np.arange(height).reshape(-1, 1)
    xs = np.arange(width).reshape(1, -1)
    return np.minimum(np.minimum(ys, height - 1 - ys), np.minimum(xs, width - 1 - xs))


def guard_band(height: int, width: int, max_depth: int) -> np.ndarray:
    """Boolean mask of pixels no deeper than ``max_depth`` from an edge.

    Same as ``edge_depth(height, width) <= max_depth`` without building the
    full depth map.
    """
    band = np.zeros((height, width), dtype=bool)
    if max_depth < 0:
        return band
    d = max_depth + 1
    band[:d, :] = True
    band[max(height - d, 0):, :] = True
    band[:, :d] = True
    band[:, max(width - d, 0):] = True
    return band


def fill_edges(pixels: np.ndarray, predicate: BorderPredicate,
               max_depth: Optional[int] = None) -> int:
    """Erase border-coloured pixels reachable from the image edge.

    Mutates the alpha channel of ``pixels`` in place; RGB is never touched.
    Traversal is 4-connected and uses an explicit stack, so large scans
    cannot exhaust the interpreter's recursion limit.

    Args:
        pixels: RGBA array shaped (height, width, 4)
        predicate: Border colour test over the R, G, B planes
        max_depth: Deepest edge distance the fill may reach
                   (default: 2% of the width)

    Returns:
        Number of pixels made transparent
    """
    height, width = pixels.shape[:2]
    if height == 0 or width == 0:
        return 0
    if max_depth is None:
        max_depth = default_max_depth(width)

    r, g, b = pixels[..., 0], pixels[..., 1], pixels[..., 2]
    # A pixel is pushed when it is within the guard band and border-coloured
    candidate = bytearray(
        (np.asarray(predicate(r, g, b), dtype=bool) & guard_band(height, width, max_depth))
        .astype(np.uint8).tobytes()
    )

    visited = bytearray(width * height)
    filled = np.zeros(width * height, dtype=bool)
    stack = []

    def examine(idx):
        if visited[idx]:
            return
        visited[idx] = 1
        if candidate[idx]:
            stack.append(idx)

    for x in range(width):
        examine(x)
        examine((height - 1) * width + x)
    for y in range(1, height - 1):
        examine(y * width)
        examine(y * width + width - 1)

    while stack:
        idx = stack.pop()
        filled[idx] = True
        y, x = divmod(idx, width)
        if y > 0:
            examine(idx - width)
        if y < height - 1:
            examine(idx + width)
        if x > 0:
            examine(idx - 1)
        if x < width - 1:
            examine(idx + 1)

    mask = filled.reshape(height, width)
    pixels[mask, 3] = 0
    count = int(filled.sum())
    logger.debug(f"Edge fill: {count} pixels cleared (max_depth={max_depth})")
    return count
