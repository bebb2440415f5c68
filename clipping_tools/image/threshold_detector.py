"""
Border threshold calibration from the outermost ring of pixels.

Strategy:
 - "black" detection uses max(R,G,B) per pixel: all channels low = dark.
 - "white" detection uses min(R,G,B) per pixel: all channels high = bright.
 - If at least 20% of edge pixels form a dark cluster, the black threshold is
   the 95th percentile of that cluster plus 20 of slack for JPEG noise.
 - Same logic inverted for white, using the 5th percentile minus 20.
 - Falls back to conservative defaults when no strong cluster is found.
"""

from dataclasses import dataclass
from typing import Dict

import numpy as np

DEFAULT_BLACK_THRESHOLD = 40
DEFAULT_WHITE_THRESHOLD = 215
MAX_BLACK_THRESHOLD = 100
MIN_WHITE_THRESHOLD = 155
CLUSTER_MIN_SHARE = 0.2
SLACK = 20
MIDPOINT = 128


@dataclass(frozen=True)
class BorderThresholds:
    black_threshold: int = DEFAULT_BLACK_THRESHOLD
    white_threshold: int = DEFAULT_WHITE_THRESHOLD

    def to_dict(self) -> Dict[str, int]:
        return {
            'blackThreshold': self.black_threshold,
            'whiteThreshold': self.white_threshold,
        }


def sample_edge_ring(pixels: np.ndarray) -> np.ndarray:
    """Return the RGB values of the outer ring as an (n, 3) array.

    Top and bottom rows are taken whole; the side columns skip their first
    and last rows so corners are only counted once.
    """
    rgb = pixels[..., :3]
    height = rgb.shape[0]
    parts = [rgb[0, :, :], rgb[height - 1, :, :]]
    if height > 2:
        parts.append(rgb[1:height - 1, 0, :])
        parts.append(rgb[1:height - 1, -1, :])
    return np.concatenate(parts, axis=0)


def detect_thresholds(pixels: np.ndarray) -> BorderThresholds:
    """Derive black/white cut-offs calibrated to this image's border tones.

    Args:
        pixels: RGBA array shaped (height, width, 4)

    Returns:
        BorderThresholds (defaults when there is no confident border signal)
    """
    samples = sample_edge_ring(pixels)
    n = len(samples)
    if n == 0:
        return BorderThresholds()

    max_chs = samples.max(axis=1).astype(int)  # low means dark
    min_chs = samples.min(axis=1).astype(int)  # high means bright

    black_threshold = DEFAULT_BLACK_THRESHOLD
    dark = np.sort(max_chs[max_chs < MIDPOINT])
    if len(dark) / n >= CLUSTER_MIN_SHARE:
        p95 = int(dark[min(int(len(dark) * 0.95), len(dark) - 1)])
        black_threshold = min(p95 + SLACK, MAX_BLACK_THRESHOLD)

    white_threshold = DEFAULT_WHITE_THRESHOLD
    bright = np.sort(min_chs[min_chs > MIDPOINT])
    if len(bright) / n >= CLUSTER_MIN_SHARE:
        p5 = int(bright[int(len(bright) * 0.05)])
        white_threshold = max(p5 - SLACK, MIN_WHITE_THRESHOLD)

    return BorderThresholds(black_threshold, white_threshold)
