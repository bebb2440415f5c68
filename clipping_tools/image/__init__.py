"""
Scan border removal: threshold detection, edge flood fill and fragment pruning.
"""

from .codec import DecodeError, decode_rgba, encode_png
from .threshold_detector import BorderThresholds, detect_thresholds
from .border_fill import fill_edges
from .fragment_pruner import remove_detached_fragments
from .border_remover import (
    BorderRemovalResult,
    BorderRemover,
    detect_border_thresholds,
    remove_black_borders,
    remove_borders,
    remove_borders_by_mode,
    remove_white_borders,
)

__all__ = [
    'DecodeError', 'decode_rgba', 'encode_png',
    'BorderThresholds', 'detect_thresholds',
    'fill_edges', 'remove_detached_fragments',
    'BorderRemovalResult', 'BorderRemover',
    'detect_border_thresholds', 'remove_black_borders', 'remove_white_borders',
    'remove_borders', 'remove_borders_by_mode',
]
