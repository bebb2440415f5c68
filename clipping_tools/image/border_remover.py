#!/usr/bin/env python3
"""
Border removal for archival newspaper scans.

Removes scan-artifact borders (near-black microfilm edges, near-white page
margins) and returns a PNG with a transparent background.

Algorithm:
1. Decode once to an RGBA buffer
2. Calibrate black/white thresholds from the outermost pixel ring
3. Flood-fill border-coloured pixels from the edges, capped by a depth guard
4. Erase opaque fragments not connected to the main body
5. Encode the result as PNG

Only the alpha channel is ever modified.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from .border_fill import (
    DEFAULT_DEPTH_RATIO,
    black_predicate,
    combined_predicate,
    default_max_depth,
    fill_edges,
    white_predicate,
)
from .codec import decode_rgba, encode_png
from .fragment_pruner import remove_detached_fragments
from .threshold_detector import BorderThresholds, detect_thresholds

MODES = ('black', 'white', 'both')
LEADING_INT_PATTERN = re.compile(r'\s*([+-]?\d+)')


@dataclass
class BorderRemovalResult:
    """PNG bytes plus the thresholds that were actually applied."""
    png: bytes
    black_threshold: int
    white_threshold: int

    @property
    def thresholds(self) -> BorderThresholds:
        return BorderThresholds(self.black_threshold, self.white_threshold)


class BorderRemover:
    """Removes black and/or white scan borders from newspaper page images."""

    def __init__(self, config: Dict[str, Any] = None):
        """Initialize border remover.

        Args:
            config: Configuration dictionary with optional keys:
                - depth_ratio: Depth guard as a fraction of image width (default: 0.02)
                - max_depth: Fixed depth guard in pixels, overrides depth_ratio
        """
        self.config = config or {}
        self.logger = logging.getLogger(__name__)

        self.depth_ratio = float(self.config.get('depth_ratio', DEFAULT_DEPTH_RATIO))
        self.max_depth = self.config.get('max_depth')

    def max_depth_for(self, width: int) -> int:
        if self.max_depth is not None:
            return int(self.max_depth)
        return default_max_depth(width, self.depth_ratio)

    # -------------------- Buffer level --------------------

    def detect_thresholds(self, pixels: np.ndarray) -> BorderThresholds:
        thresholds = detect_thresholds(pixels)
        self.logger.debug(f"Detected thresholds: black<={thresholds.black_threshold}, "
                          f"white>={thresholds.white_threshold}")
        return thresholds

    def clean_pixels(self, pixels: np.ndarray, mode: str = 'both',
                     black_threshold: Optional[int] = None,
                     white_threshold: Optional[int] = None) -> BorderThresholds:
        """Run detection, edge fill and fragment pruning on a decoded buffer.

        Mutates ``pixels`` alpha in place. Detection always runs so the
        channel that was not overridden still reports its detected value.

        Args:
            pixels: RGBA array shaped (height, width, 4), owned by the caller
            mode: 'black', 'white' or 'both'
            black_threshold: Explicit max R/G/B for black (None = auto-detect)
            white_threshold: Explicit min R/G/B for white (None = auto-detect)

        Returns:
            Thresholds actually used
        """
        if mode not in MODES:
            raise ValueError(f"mode must be one of {', '.join(MODES)}, got {mode!r}")

        detected = self.detect_thresholds(pixels)
        bt = black_threshold if black_threshold is not None else detected.black_threshold
        wt = white_threshold if white_threshold is not None else detected.white_threshold

        if mode == 'black':
            predicate = black_predicate(bt)
        elif mode == 'white':
            predicate = white_predicate(wt)
        else:
            predicate = combined_predicate(bt, wt)

        width = pixels.shape[1]
        cleared = fill_edges(pixels, predicate, self.max_depth_for(width))
        pruned = remove_detached_fragments(pixels)
        self.logger.debug(f"Mode {mode}: black<={bt}, white>={wt}, "
                          f"{cleared} border pixels and {pruned} fragment pixels removed")
        return BorderThresholds(bt, wt)

    # -------------------- Encoded bytes --------------------

    def detect_border_thresholds(self, data: bytes) -> BorderThresholds:
        """Preview what auto-detection would choose, without touching pixels."""
        pixels, _, _ = decode_rgba(data)
        return self.detect_thresholds(pixels)

    def process(self, data: bytes, mode: str = 'both',
                black_threshold: Optional[int] = None,
                white_threshold: Optional[int] = None) -> BorderRemovalResult:
        """Decode, clean and re-encode an image.

        Raises:
            DecodeError: If ``data`` is not an image
            ValueError: If ``mode`` is unknown
        """
        pixels, width, height = decode_rgba(data)
        self.logger.debug(f"Decoded {width}x{height} image")
        used = self.clean_pixels(pixels, mode, black_threshold, white_threshold)
        return BorderRemovalResult(encode_png(pixels), used.black_threshold, used.white_threshold)

    def remove_black_borders(self, data: bytes, threshold: Optional[int] = None) -> BorderRemovalResult:
        return self.process(data, 'black', black_threshold=threshold)

    def remove_white_borders(self, data: bytes, threshold: Optional[int] = None) -> BorderRemovalResult:
        return self.process(data, 'white', white_threshold=threshold)

    def remove_borders(self, data: bytes, black_threshold: Optional[int] = None,
                       white_threshold: Optional[int] = None) -> BorderRemovalResult:
        return self.process(data, 'both', black_threshold, white_threshold)


def parse_threshold(raw: Optional[str]) -> Optional[int]:
    """Parse a textual threshold override.

    Leading digits are used, so "12px" and "12.5" both mean 12. Missing or
    non-numeric input means auto-detect (None); anything else is clamped to
    0-255.
    """
    if raw is None:
        return None
    match = LEADING_INT_PATTERN.match(str(raw))
    if not match:
        return None
    return max(0, min(255, int(match.group(1))))


def detect_border_thresholds(data: bytes) -> BorderThresholds:
    """Sample the edge ring of an encoded image and return calibrated thresholds."""
    return BorderRemover().detect_border_thresholds(data)


def remove_black_borders(data: bytes, threshold: Optional[int] = None) -> BorderRemovalResult:
    """Remove near-black borders, then detached fragments. Omit threshold to auto-detect."""
    return BorderRemover().remove_black_borders(data, threshold)


def remove_white_borders(data: bytes, threshold: Optional[int] = None) -> BorderRemovalResult:
    """Remove near-white borders, then detached fragments. Omit threshold to auto-detect."""
    return BorderRemover().remove_white_borders(data, threshold)


def remove_borders(data: bytes, black_threshold: Optional[int] = None,
                   white_threshold: Optional[int] = None) -> BorderRemovalResult:
    """Remove near-black and near-white borders in a single pass."""
    return BorderRemover().remove_borders(data, black_threshold, white_threshold)


def remove_borders_by_mode(data: bytes, mode: str = 'both',
                           black_threshold: Optional[int] = None,
                           white_threshold: Optional[int] = None) -> BorderRemovalResult:
    """Dispatch to the black, white or combined entry point."""
    if mode == 'black':
        return remove_black_borders(data, black_threshold)
    if mode == 'white':
        return remove_white_borders(data, white_threshold)
    if mode == 'both':
        return remove_borders(data, black_threshold, white_threshold)
    raise ValueError(f"mode must be one of {', '.join(MODES)}, got {mode!r}")
