"""
Data model for the dominant colors pipeline.

Pixel samples are HSV colors in the OpenCV 8-bit convention with an integer
repetition weight. Large sample collections are held column-wise in a
read-only :class:`SampleSet` so the pipeline never materializes per-weight
duplicates.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Sequence, Tuple

import numpy as np

from .color_space import hsv_to_luv, hsv_to_rgb, rgb_to_hex

HUE_RANGE = 180
CHANNEL_RANGE = 256

HSVColor = Tuple[int, int, int]
RGBColor = Tuple[int, int, int]


@dataclass(frozen=True)
class PixelSample:
    """A single HSV color with a repetition weight."""
    h: int
    s: int
    v: int
    weight: int = 1

    def __post_init__(self):
        if not 0 <= self.h < HUE_RANGE:
            raise ValueError(f"Hue must be in [0, {HUE_RANGE}), got {self.h}")
        if not 0 <= self.s < CHANNEL_RANGE or not 0 <= self.v < CHANNEL_RANGE:
            raise ValueError(f"Saturation and value must be in [0, 255], got ({self.s}, {self.v})")
        if self.weight < 1:
            raise ValueError(f"Sample weight must be >= 1, got {self.weight}")

    @property
    def hsv(self) -> HSVColor:
        return (self.h, self.s, self.v)


def _read_only(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


class SampleSet:
    """
    Column-wise, immutable collection of weighted HSV samples.

    Args:
        hsv: (N, 3) HSV values in the OpenCV 8-bit convention
        weights: (N,) positive integer repetition weights, defaults to ones

    Raises:
        ValueError: If shapes disagree, hue is out of range or a weight is < 1
    """

    def __init__(self, hsv: np.ndarray, weights: Optional[np.ndarray] = None):
        hsv = np.asarray(hsv)
        if hsv.size == 0:
            hsv = hsv.reshape(0, 3)
        if hsv.ndim != 2 or hsv.shape[1] != 3:
            raise ValueError(f"Expected (N, 3) HSV array, got shape {hsv.shape}")
        if hsv.size and (hsv.min() < 0 or hsv.max() > 255 or hsv[:, 0].max() >= HUE_RANGE):
            raise ValueError("HSV samples out of range for 8-bit OpenCV convention")

        if weights is None:
            weights = np.ones(len(hsv), dtype=np.int64)
        weights = np.asarray(weights, dtype=np.int64).reshape(-1)
        if len(weights) != len(hsv):
            raise ValueError(f"Got {len(weights)} weights for {len(hsv)} samples")
        if weights.size and weights.min() < 1:
            raise ValueError("Sample weights must be >= 1")

        self._hsv = _read_only(np.array(hsv, dtype=np.uint8))
        self._weights = _read_only(np.array(weights, dtype=np.int64))

    @classmethod
    def from_samples(cls, samples: Sequence[PixelSample]) -> "SampleSet":
        """Build a sample set from a sequence of PixelSamples, keeping input order."""
        hsv = np.array([sample.hsv for sample in samples], dtype=np.uint8).reshape(-1, 3)
        weights = np.array([sample.weight for sample in samples], dtype=np.int64)
        return cls(hsv, weights)

    @classmethod
    def from_image(cls, hsv_image: np.ndarray) -> "SampleSet":
        """Build a unit-weight sample set from an (H, W, 3) HSV image in row-major order."""
        hsv_image = np.asarray(hsv_image)
        if hsv_image.ndim != 3 or hsv_image.shape[2] != 3:
            raise ValueError(f"Expected (H, W, 3) HSV image, got shape {hsv_image.shape}")
        return cls(hsv_image.reshape(-1, 3))

    @property
    def hsv(self) -> np.ndarray:
        return self._hsv

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    @property
    def total_weight(self) -> int:
        return int(self._weights.sum())

    def __len__(self) -> int:
        return len(self._hsv)

    def __iter__(self) -> Iterator[PixelSample]:
        for (h, s, v), weight in zip(self._hsv.tolist(), self._weights.tolist()):
            yield PixelSample(h, s, v, weight)

    def subset(self, indices: np.ndarray) -> "SampleSet":
        """Samples at ``indices`` (index array or boolean mask), as a new set."""
        return SampleSet(self._hsv[indices], self._weights[indices])

    def aggregate(self) -> "SampleSet":
        """
        Merge identical HSV values, summing their weights.

        The result is sorted lexicographically by (h, s, v), so it is the same
        for any ordering of the input.
        """
        if len(self) == 0:
            return self
        unique, inverse = np.unique(self._hsv, axis=0, return_inverse=True)
        weights = np.bincount(inverse.reshape(-1), weights=self._weights, minlength=len(unique))
        return SampleSet(unique, np.rint(weights).astype(np.int64))


@dataclass(frozen=True, order=True)
class BinIndex:
    """
    Histogram cell identifier.

    Standard bins use hue and saturation only. Logo bins add a value index;
    gray bins set ``gray`` and keep their gray level in ``value_index``.
    """
    hue_index: int
    saturation_index: int
    value_index: int = 0
    gray: bool = False


@dataclass(frozen=True)
class HistogramBin:
    """A histogram cell and the samples that fell into it."""
    index: BinIndex
    samples: SampleSet

    @property
    def total_weight(self) -> int:
        return self.samples.total_weight


@dataclass(frozen=True)
class Histogram:
    """Binned admitted samples plus the total retained weight."""
    bins: Dict[BinIndex, HistogramBin]
    total_weight: int

    def __len__(self) -> int:
        return len(self.bins)


@dataclass(frozen=True)
class ScoredColor:
    """A representative HSV color and the fraction of pixel mass it stands for."""
    hsv: HSVColor
    score: float
    luv: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "luv", hsv_to_luv(np.array(self.hsv, dtype=np.uint8)))

    @property
    def rgb(self) -> RGBColor:
        return tuple(int(c) for c in hsv_to_rgb(np.array(self.hsv, dtype=np.uint8)))


@dataclass(frozen=True)
class DominantColor:
    """Dominant color in RGB with its score in (0, 1]."""
    rgb: RGBColor
    score: float

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.rgb)

    @classmethod
    def from_scored(cls, scored: ScoredColor) -> "DominantColor":
        return cls(rgb=scored.rgb, score=float(scored.score))
