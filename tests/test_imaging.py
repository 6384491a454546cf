"""
Unit tests for image decoding, preprocessing and palette swatches.
"""

import base64
import io

import cv2
import numpy as np
import pytest
from fastapi import HTTPException
from PIL import Image

from dominant_colors.services.colors import DominantColor
from dominant_colors.services.colors.swatches import chip_widths, render_palette_strip
from dominant_colors.services.imaging import (
    decode_image_bytes, detect_background_mask, preprocess_logo, preprocess_standard,
    resize_long_edge, validate_magic_bytes
)


def encode_png(array: np.ndarray) -> bytes:
    """Encode an RGB or RGBA uint8 array as PNG bytes."""
    buffer = io.BytesIO()
    Image.fromarray(array).save(buffer, format="PNG")
    return buffer.getvalue()


class TestDecoding:
    """Test upload decoding"""

    def test_rgb_png_has_no_alpha(self):
        rgb = np.zeros((16, 16, 3), dtype=np.uint8)
        rgb[:, :, 0] = 255
        decoded, alpha = decode_image_bytes(encode_png(rgb))
        assert alpha is None
        np.testing.assert_array_equal(decoded, rgb)

    def test_rgba_png_keeps_alpha(self):
        rgba = np.zeros((16, 16, 4), dtype=np.uint8)
        rgba[:, 8:] = (0, 0, 255, 255)
        decoded, alpha = decode_image_bytes(encode_png(rgba))
        assert decoded.shape == (16, 16, 3)
        assert alpha.shape == (16, 16)
        assert alpha[0, 0] == 0 and alpha[0, 15] == 255

    def test_invalid_magic_bytes(self):
        with pytest.raises(HTTPException) as exc_info:
            validate_magic_bytes(b"GIF89a-not-supported")
        assert exc_info.value.status_code == 400

    def test_corrupt_png(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_image_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 32)
        assert exc_info.value.status_code == 400

    def test_image_too_small(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_image_bytes(encode_png(np.zeros((4, 4, 3), dtype=np.uint8)))
        assert exc_info.value.status_code == 400
        assert "too small" in exc_info.value.detail


class TestPreprocessing:
    """Test downscaling and HSV conversion"""

    def test_resize_long_edge(self):
        img = np.zeros((100, 400, 3), dtype=np.uint8)
        assert resize_long_edge(img, 200).shape == (50, 200, 3)
        assert resize_long_edge(img, 500) is img

    def test_standard_to_hsv(self):
        rgb = np.zeros((300, 150, 3), dtype=np.uint8)
        rgb[:] = (0, 0, 255)
        hsv = preprocess_standard(rgb, max_working_resolution=100, bilateral_range_sigma=0.1)
        assert hsv.shape == (100, 50, 3)
        np.testing.assert_array_equal(hsv[50, 25], [120, 255, 255])

    def test_logo_mask_from_alpha(self):
        rgb = np.full((20, 20, 3), 255, dtype=np.uint8)
        alpha = np.zeros((20, 20), dtype=np.uint8)
        alpha[:, 10:] = 200
        hsv, mask = preprocess_logo(rgb, alpha, max_working_resolution=256)
        assert hsv.shape == (20, 20, 3)
        assert set(np.unique(mask).tolist()) == {0, 255}
        assert int((mask > 0).sum()) == 200

    def test_uniform_logo_without_alpha_is_all_foreground(self):
        rgb = np.zeros((40, 20, 3), dtype=np.uint8)
        hsv, mask = preprocess_logo(rgb, None, max_working_resolution=20)
        assert hsv.shape == (20, 10, 3)
        assert mask.shape == (20, 10)
        assert np.all(mask == 255)

    def test_opaque_logo_background_removed(self):
        rgb = np.full((64, 64, 3), 255, dtype=np.uint8)
        rgb[24:40, 24:40] = (255, 0, 0)
        hsv, mask = preprocess_logo(rgb, None, max_working_resolution=256)
        assert int((mask > 0).sum()) == 16 * 16
        assert mask[0, 0] == 0
        assert mask[32, 32] == 255


class TestBackgroundDetection:
    """Test border-color background detection for opaque logos"""

    def test_enclosed_background_color_stays_foreground(self):
        """White inside a red ring is part of the artwork"""
        rgb = np.full((40, 40, 3), 255, dtype=np.uint8)
        rgb[10:30, 10:30] = (255, 0, 0)
        rgb[15:25, 15:25] = (255, 255, 255)
        mask = detect_background_mask(rgb)
        assert int((mask > 0).sum()) == 20 * 20
        assert mask[20, 20] == 255

    def test_near_background_shades_removed(self):
        rgb = np.full((32, 32, 3), 250, dtype=np.uint8)
        rgb[:, :16] = (255, 255, 255)
        rgb[8:24, 8:24] = (0, 0, 255)
        mask = detect_background_mask(rgb)
        assert int((mask > 0).sum()) == 16 * 16

    def test_mixed_border_is_all_foreground(self):
        rgb = np.zeros((32, 32, 3), dtype=np.uint8)
        rgb[:16] = (255, 0, 0)
        rgb[16:] = (0, 0, 255)
        assert np.all(detect_background_mask(rgb) == 255)

    def test_border_fraction_threshold(self):
        """A logo touching most of the border leaves no background"""
        rgb = np.full((32, 32, 3), 255, dtype=np.uint8)
        rgb[:, 4:28] = (0, 128, 0)
        assert np.all(detect_background_mask(rgb, min_border_fraction=0.75) == 255)
        assert int((detect_background_mask(rgb, min_border_fraction=0.2) > 0).sum()) == 32 * 24


class TestSwatches:
    """Test palette strip rendering"""

    def test_chip_widths_proportional(self):
        assert chip_widths([0.5, 0.3, 0.2], 100) == [50, 30, 20]

    def test_chip_widths_minimum(self):
        widths = chip_widths([0.99, 0.01], 100)
        assert widths == [96, 4]
        assert sum(widths) == 100

    def test_render_strip(self):
        colors = [DominantColor((255, 0, 0), 0.75), DominantColor((0, 0, 255), 0.25)]
        png_b64 = render_palette_strip(colors, strip_width=100, height=10)
        img = cv2.imdecode(np.frombuffer(base64.b64decode(png_b64), np.uint8), cv2.IMREAD_COLOR)
        assert img.shape == (10, 100, 3)
        np.testing.assert_array_equal(img[5, 0], [0, 0, 255])
        np.testing.assert_array_equal(img[5, 99], [255, 0, 0])

    def test_render_empty(self):
        with pytest.raises(ValueError):
            render_palette_strip([])
