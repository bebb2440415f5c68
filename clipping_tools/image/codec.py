"""
Byte <-> pixel-buffer conversion for the border removal pipeline.

Everything downstream works on a single RGBA ``uint8`` array shaped
``(height, width, 4)``. Decoding happens once per call so detection and
filling share the same buffer.
"""

import io
from typing import Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError


class DecodeError(ValueError):
    """Raised when input bytes cannot be parsed as an image."""


def decode_rgba(data: bytes) -> Tuple[np.ndarray, int, int]:
    """Decode any image Pillow understands into an owned RGBA array.

    Args:
        data: Encoded image bytes (PNG, JPEG, TIFF, ...)

    Returns:
        Tuple of (pixels, width, height)

    Raises:
        DecodeError: If the bytes are not a readable image
    """
    if not data:
        raise DecodeError("Empty image data")

    # Pillow raises plain ValueError for some malformed chunks
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            rgba = img.convert('RGBA')
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Could not decode image: {e}") from e

    # np.array copies, so the buffer is writable and owned by the caller
    pixels = np.array(rgba, dtype=np.uint8)
    height, width = pixels.shape[:2]
    return pixels, width, height


def encode_png(pixels: np.ndarray) -> bytes:
    """Encode an RGBA array as PNG bytes (alpha channel preserved)."""
    img = Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8), 'RGBA')
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    return buffer.getvalue()
