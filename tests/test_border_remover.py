"""
Tests for the border removal pipeline on encoded images.
"""

import io
import sys
from pathlib import Path

import numpy as np
import pytest
from PIL import Image, PngImagePlugin

sys.path.insert(0, str(Path(__file__).parent.parent))

from clipping_tools.image.border_fill import edge_depth
from clipping_tools.image.border_remover import (
    BorderRemover,
    detect_border_thresholds,
    parse_threshold,
    remove_black_borders,
    remove_borders,
    remove_borders_by_mode,
    remove_white_borders,
)
from clipping_tools.image.codec import DecodeError, decode_rgba, encode_png
from clipping_tools.image.threshold_detector import BorderThresholds


def to_png(rgb: np.ndarray) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(rgb.astype(np.uint8)).save(buffer, format='PNG')
    return buffer.getvalue()


def decode(png: bytes) -> np.ndarray:
    pixels, _, _ = decode_rgba(png)
    return pixels


def microfilm_scan(width=120, height=100):
    """Gray page with a black film edge and a printed black rule."""
    rgb = np.full((height, width, 3), 180, dtype=np.uint8)
    rgb[edge_depth(height, width) <= 1] = 5
    rgb[height // 2, :] = 5
    return rgb


class TestCodec:
    """Test decode/encode at the byte boundary."""
    
    def test_decode_adds_alpha(self):
        """RGB input decodes to opaque RGBA."""
        pixels, width, height = decode_rgba(to_png(np.zeros((4, 6, 3))))
        assert (width, height) == (6, 4)
        assert pixels.shape == (4, 6, 4)
        assert (pixels[..., 3] == 255).all()
    
    def test_decode_is_writable_copy(self):
        """Decoded buffer can be mutated."""
        pixels, _, _ = decode_rgba(to_png(np.zeros((4, 4, 3))))
        pixels[0, 0, 3] = 0
        assert pixels[0, 0, 3] == 0
    
    def test_png_roundtrip_keeps_transparent_rgb(self):
        """Colour under alpha 0 survives encoding."""
        pixels = np.full((3, 3, 4), 77, dtype=np.uint8)
        pixels[..., 3] = 0
        assert np.array_equal(decode(encode_png(pixels)), pixels)
    
    @pytest.mark.parametrize("data", [b"", b"not an image", b"\x89PNG\r\n\x1a\n garbage"])
    def test_decode_error(self, data):
        """Unreadable bytes raise DecodeError."""
        with pytest.raises(DecodeError):
            decode_rgba(data)
    
    def test_oversized_text_chunk(self):
        """Pillow's ValueError for a bloated zTXt chunk becomes DecodeError."""
        info = PngImagePlugin.PngInfo()
        info.add_text('k', 'x' * (PngImagePlugin.MAX_TEXT_CHUNK + 10), zip=True)
        buffer = io.BytesIO()
        Image.fromarray(np.zeros((4, 4, 3), dtype=np.uint8)).save(buffer, format='PNG', pnginfo=info)
        with pytest.raises(DecodeError):
            decode_rgba(buffer.getvalue())
    
    def test_decode_error_propagates(self):
        """Entry points do not swallow decode failures."""
        with pytest.raises(DecodeError):
            remove_borders(b"not an image")
        with pytest.raises(DecodeError):
            detect_border_thresholds(b"not an image")


class TestScenarios:
    """End-to-end scenarios on synthetic scans."""
    
    def test_uniform_black_keeps_interior(self):
        """100x100 near-black image only loses a 2px-deep ring."""
        data = to_png(np.full((100, 100, 3), 20))
        result = remove_black_borders(data, 50)
        pixels = decode(result.png)
        
        band = edge_depth(100, 100) <= 2
        assert (pixels[band, 3] == 0).all()
        assert (pixels[~band, 3] == 255).all()
        assert (pixels[..., :3] == 20).all()
        assert result.black_threshold == 50
    
    def test_white_margin_removed_small_image(self):
        """White margin around a black block, with a guard deep enough to reach it."""
        rgb = np.full((200, 200, 3), 250)
        rgb[50:150, 50:150] = 0
        remover = BorderRemover({'max_depth': 50})
        result = remover.remove_white_borders(to_png(rgb), 200)
        pixels = decode(result.png)
        
        block = np.zeros((200, 200), dtype=bool)
        block[50:150, 50:150] = True
        assert (pixels[~block, 3] == 0).all()
        assert (pixels[block, 3] == 255).all()
        assert (pixels[block, :3] == 0).all()
        assert result.white_threshold == 200
    
    def test_white_margin_default_guard(self):
        """20px margin on a 1000px scan sits inside the default 2% guard."""
        rgb = np.full((1000, 1000, 3), 128)
        rgb[edge_depth(1000, 1000) < 20] = 250
        rgb[450:550, 450:550] = 0
        pixels = decode(remove_white_borders(to_png(rgb), 200).png)
        
        margin = edge_depth(1000, 1000) < 20
        assert (pixels[margin, 3] == 0).all()
        assert (pixels[~margin, 3] == 255).all()
    
    def test_detect_black_threshold(self):
        """Ring dominated by max(R,G,B)=10 detects 30."""
        rgb = np.full((50, 50, 3), 10)
        rgb[0, :10] = 200
        assert detect_border_thresholds(to_png(rgb)).black_threshold == 30
    
    def test_corner_speck_pruned(self):
        """Speck isolated by the erased film edge is removed, content kept."""
        rgb = np.full((100, 100, 3), 128)
        rgb[0:3, 0:3] = 70
        rgb[0:4, 3] = 0
        rgb[3, 0:4] = 0
        result = remove_borders(to_png(rgb), black_threshold=50, white_threshold=200)
        pixels = decode(result.png)
        
        assert (pixels[0:3, 0:3, 3] == 0).all()
        assert (pixels[0:3, 0:3, :3] == 70).all()
        assert pixels[3, 3, 3] == 255
        assert (pixels[4:, :, 3] == 255).all()
        assert (pixels[:, 4:, 3] == 255).all()


class TestInvariants:
    """Properties that hold for every input."""
    
    @pytest.fixture
    def scan(self):
        return to_png(microfilm_scan())
    
    def test_dimensions_and_rgb_preserved(self, scan):
        """Only alpha differs between input and output."""
        before = decode(scan)
        after = decode(remove_borders(scan).png)
        assert after.shape == before.shape
        assert np.array_equal(after[..., :3], before[..., :3])
        assert set(np.unique(after[..., 3])) <= {0, 255}
    
    def test_deterministic(self, scan):
        """Same input and thresholds give identical output."""
        assert remove_borders(scan, 40, 200).png == remove_borders(scan, 40, 200).png
    
    def test_idempotent(self, scan):
        """Reprocessing with the same thresholds changes nothing."""
        first = remove_borders(scan, 40, 200)
        second = remove_borders(first.png, 40, 200)
        assert np.array_equal(decode(first.png), decode(second.png))
    
    def test_rule_not_followed_into_content(self, scan):
        """Black rule touching the film edge is only cut within the guard."""
        pixels = decode(remove_black_borders(scan).png)
        depth = edge_depth(100, 120)
        assert (pixels[depth <= 1, 3] == 0).all()
        row = pixels[50, :, 3]
        assert (row[:3] == 0).all() and (row[-3:] == 0).all()
        assert (row[3:-3] == 255).all()
    
    def test_random_noise_is_total(self):
        """Arbitrary pixel data never raises."""
        rng = np.random.default_rng(5)
        data = to_png(rng.integers(0, 256, size=(37, 53, 3)))
        result = remove_borders(data)
        assert decode(result.png).shape == (37, 53, 4)


class TestThresholdReporting:
    """Test which thresholds are reported back."""
    
    def test_auto_detected(self):
        """No overrides reports the detected values."""
        data = to_png(microfilm_scan())
        detected = detect_border_thresholds(data)
        result = remove_borders(data)
        assert result.thresholds == detected
        assert detected == BorderThresholds(25, 215)
    
    def test_black_override_reports_detected_white(self):
        """Single-channel calls still report the other channel."""
        rgb = np.full((40, 40, 3), 245)
        result = remove_black_borders(to_png(rgb), 77)
        assert (result.black_threshold, result.white_threshold) == (77, 225)
    
    def test_white_override_reports_detected_black(self):
        """White call reports the detected black threshold."""
        result = remove_white_borders(to_png(microfilm_scan()), 190)
        assert (result.black_threshold, result.white_threshold) == (25, 190)
    
    def test_out_of_range_override_used_as_given(self):
        """The core does not clamp overrides."""
        data = to_png(np.full((20, 20, 3), 128))
        assert remove_black_borders(data, 300).black_threshold == 300
        pixels = decode(remove_black_borders(data, 300).png)
        assert pixels[0, 0, 3] == 0


class TestModes:
    """Test mode dispatch and threshold parsing."""
    
    def test_mode_dispatch(self):
        """Black mode ignores white borders and vice versa."""
        rgb = np.full((50, 50, 3), 128)
        rgb[0, :] = 0
        rgb[-1, :] = 255
        data = to_png(rgb)
        
        black = decode(remove_borders_by_mode(data, 'black', 50, 200).png)
        assert (black[0, :, 3] == 0).all() and (black[-1, :, 3] == 255).all()
        
        white = decode(remove_borders_by_mode(data, 'white', 50, 200).png)
        assert (white[0, :, 3] == 255).all() and (white[-1, :, 3] == 0).all()
        
        both = decode(remove_borders_by_mode(data, 'both', 50, 200).png)
        assert (both[0, :, 3] == 0).all() and (both[-1, :, 3] == 0).all()
    
    def test_unknown_mode(self):
        """Unknown modes are rejected."""
        data = to_png(np.zeros((5, 5, 3)))
        with pytest.raises(ValueError):
            remove_borders_by_mode(data, 'gray')
        with pytest.raises(ValueError):
            BorderRemover().process(data, 'gray')
    
    @pytest.mark.parametrize("raw,expected", [
        (None, None),
        ("", None),
        ("abc", None),
        ("42", 42),
        (" 7 ", 7),
        ("12px", 12),
        ("12.5", 12),
        ("+9", 9),
        ("px12", None),
        ("-5", 0),
        ("999", 255),
    ])
    def test_parse_threshold(self, raw, expected):
        """Textual overrides are parsed and clamped to 0-255."""
        assert parse_threshold(raw) == expected


class TestConfig:
    """Test BorderRemover configuration."""
    
    def test_depth_ratio(self):
        """depth_ratio scales the guard with width."""
        assert BorderRemover().max_depth_for(100) == 2
        assert BorderRemover({'depth_ratio': 0.1}).max_depth_for(100) == 10
    
    def test_fixed_max_depth(self):
        """max_depth overrides the ratio."""
        assert BorderRemover({'max_depth': 7, 'depth_ratio': 0.5}).max_depth_for(100) == 7
