"""
Pass 2: keep only the main body of the page.

The main body is the 4-connected opaque region containing the opaque pixel
closest to the image centre. Any other opaque pixel (dust, emulsion specks,
islands cut loose by pass 1) is made transparent.

Known limitation: an image with two large disconnected regions keeps only the
one nearer the centre.
"""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def find_center_seed(opaque: np.ndarray) -> Optional[Tuple[int, int]]:
    """Return (x, y) of the opaque pixel nearest the geometric centre.

    Ties go to the first pixel in row-major order. Returns None when nothing
    is opaque.
    """
    height, width = opaque.shape
    flat = np.flatnonzero(opaque)
    if flat.size == 0:
        return None

    ys, xs = np.divmod(flat, width)
    cx = width / 2
    cy = height / 2
    dist = (xs - cx) ** 2 + (ys - cy) ** 2
    best = int(np.argmin(dist))
    return int(xs[best]), int(ys[best])


def main_body_mask(opaque: np.ndarray, seed: Tuple[int, int]) -> np.ndarray:
    """4-connected component of ``opaque`` that contains ``seed``."""
    _, labels = cv2.connectedComponents(opaque.astype(np.uint8), connectivity=4)
    x, y = seed
    return labels == labels[y, x]


def remove_detached_fragments(pixels: np.ndarray) -> int:
    """Erase every opaque pixel not connected to the main body.

    Mutates the alpha channel of ``pixels`` in place.

    Returns:
        Number of pixels made transparent
    """
    opaque = pixels[..., 3] > 0
    seed = find_center_seed(opaque)
    if seed is None:
        logger.debug("Fragment pruning skipped: image is fully transparent")
        return 0

    detached = opaque & ~main_body_mask(opaque, seed)
    pixels[detached, 3] = 0
    count = int(detached.sum())
    logger.debug(f"Fragment pruning: seed={seed}, {count} detached pixels cleared")
    return count
