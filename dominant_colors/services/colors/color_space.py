"""
Color Space Utilities

Vectorized RGB, HSV and LUV conversions built on OpenCV, plus the one-time
warm-up of the RGB to LUV conversion path.

Conventions follow OpenCV 8-bit images: hue in [0, 180), saturation and value
in [0, 255], RGB in [0, 255]. LUV is computed from float RGB in [0, 1], so L
lies in [0, 100] and distances are in CIE L*u*v* units.
"""

import threading
from typing import Sequence, Union

import cv2
import numpy as np
from loguru import logger

ColorTriple = Union[Sequence[int], np.ndarray]


def _as_pixel_row(colors: np.ndarray, dtype) -> np.ndarray:
    """Reshape an (N, 3) array into the (1, N, 3) image layout cvtColor expects."""
    colors = np.asarray(colors)
    if colors.ndim == 1:
        colors = colors.reshape(1, 3)
    if colors.shape[-1] != 3:
        raise ValueError(f"Expected colors with 3 channels, got shape {colors.shape}")
    return np.ascontiguousarray(colors.reshape(1, -1, 3), dtype=dtype)


def hsv_to_rgb(hsv_u8: np.ndarray) -> np.ndarray:
    """Convert (N, 3) or (3,) HSV uint8 colors to RGB uint8."""
    hsv_u8 = np.asarray(hsv_u8)
    single = hsv_u8.ndim == 1
    rgb = cv2.cvtColor(_as_pixel_row(hsv_u8, np.uint8), cv2.COLOR_HSV2RGB).reshape(-1, 3)
    return rgb[0] if single else rgb


def rgb_to_hsv(rgb_u8: np.ndarray) -> np.ndarray:
    """Convert (N, 3) or (3,) RGB uint8 colors to HSV uint8."""
    rgb_u8 = np.asarray(rgb_u8)
    single = rgb_u8.ndim == 1
    hsv = cv2.cvtColor(_as_pixel_row(rgb_u8, np.uint8), cv2.COLOR_RGB2HSV).reshape(-1, 3)
    return hsv[0] if single else hsv


def rgb_to_luv(rgb_u8: np.ndarray) -> np.ndarray:
    """Convert (N, 3) or (3,) RGB uint8 colors to float32 LUV."""
    rgb_u8 = np.asarray(rgb_u8)
    single = rgb_u8.ndim == 1
    rgb_f = _as_pixel_row(rgb_u8, np.float32) / 255.0
    luv = cv2.cvtColor(rgb_f, cv2.COLOR_RGB2Luv).reshape(-1, 3)
    return luv[0] if single else luv


def hsv_to_luv(hsv_u8: np.ndarray) -> np.ndarray:
    """Convert (N, 3) or (3,) HSV uint8 colors to float32 LUV."""
    return rgb_to_luv(hsv_to_rgb(hsv_u8))


def luv_distance(luv_a: np.ndarray, luv_b: np.ndarray) -> Union[float, np.ndarray]:
    """Euclidean distance in LUV space; broadcasts over leading axes."""
    diff = np.asarray(luv_a, dtype=np.float64) - np.asarray(luv_b, dtype=np.float64)
    distance = np.sqrt(np.sum(diff * diff, axis=-1))
    return float(distance) if np.ndim(distance) == 0 else distance


def rgb_to_hex(rgb_u8: ColorTriple) -> str:
    """Convert RGB uint8 triple to hex color string."""
    r, g, b = [int(x) for x in rgb_u8]
    return f"#{r:02X}{g:02X}{b:02X}"


class LuvConversionWarmUp:
    """
    Process-wide, run-once warm-up of the RGB to LUV conversion.

    The first ``cv2.cvtColor`` call with ``COLOR_RGB2Luv`` builds internal
    lookup tables and is much slower than every later call. Processors call
    :meth:`run` at construction so the cost is not paid on the first real
    extraction. The first caller performs the conversion; concurrent and
    subsequent callers return immediately once it has completed.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def run(self) -> None:
        if self._done:
            return
        with self._lock:
            if self._done:
                return
            sample = np.zeros((1, 1, 3), dtype=np.float32)
            cv2.cvtColor(sample, cv2.COLOR_RGB2Luv)
            self._done = True
            logger.debug("RGB to LUV conversion warmed up")


# Shared by every processor in the process
LUV_CONVERSION_WARM_UP = LuvConversionWarmUp()


def warm_up_luv_conversion() -> None:
    """Run the RGB to LUV conversion once per process; later calls are no-ops."""
    LUV_CONVERSION_WARM_UP.run()
