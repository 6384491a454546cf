"""
Histogram Building and Bin Prioritization

Partitions weighted HSV samples into fixed-width histogram bins and orders
those bins for the dominant color search. Two binning policies exist:
hue x saturation for the standard processor, and hue x saturation x value
plus a separate gray axis for the logo processor.
"""

from typing import List, Optional

import numpy as np
from loguru import logger

from .errors import InvalidConfiguration
from .types import CHANNEL_RANGE, HUE_RANGE, BinIndex, Histogram, HistogramBin, SampleSet


def _check_bin_count(name: str, count: int, upper: int) -> None:
    if not isinstance(count, (int, np.integer)) or not 1 <= count <= upper:
        raise InvalidConfiguration(f"{name} must be an integer in [1, {upper}], got {count!r}")


def _channel_index(values: np.ndarray, num_bins: int, channel_range: int) -> np.ndarray:
    """Fixed-width bin index of each value; the last bin absorbs rounding at the top edge."""
    index = values.astype(np.int64) * num_bins // channel_range
    return np.minimum(index, num_bins - 1)


class HueSaturationBinning:
    """Bins samples by hue and saturation; value is not divided."""

    def __init__(self, num_hue_bins: int, num_saturation_bins: int):
        _check_bin_count("num_hue_bins", num_hue_bins, HUE_RANGE)
        _check_bin_count("num_saturation_bins", num_saturation_bins, CHANNEL_RANGE)
        self.num_hue_bins = int(num_hue_bins)
        self.num_saturation_bins = int(num_saturation_bins)

    def codes(self, hsv: np.ndarray) -> np.ndarray:
        hue = _channel_index(hsv[:, 0], self.num_hue_bins, HUE_RANGE)
        saturation = _channel_index(hsv[:, 1], self.num_saturation_bins, CHANNEL_RANGE)
        return hue * self.num_saturation_bins + saturation

    def index_of(self, code: int) -> BinIndex:
        hue, saturation = divmod(int(code), self.num_saturation_bins)
        return BinIndex(hue, saturation)


class LogoBinning:
    """
    Bins colored samples by hue, saturation and value, and gray samples by
    value alone.

    A sample is gray when its saturation is below ``max_gray_saturation``
    (a fraction of the full range). Gray codes are placed after all color
    codes so the two ranges never collide.
    """

    def __init__(self, num_hue_bins: int, num_saturation_bins: int, num_value_bins: int,
                 num_gray_bins: int, max_gray_saturation: float = 0.0):
        _check_bin_count("num_hue_bins", num_hue_bins, HUE_RANGE)
        _check_bin_count("num_saturation_bins", num_saturation_bins, CHANNEL_RANGE)
        _check_bin_count("num_value_bins", num_value_bins, CHANNEL_RANGE)
        _check_bin_count("num_gray_bins", num_gray_bins, CHANNEL_RANGE)
        if not 0.0 <= max_gray_saturation <= 1.0:
            raise InvalidConfiguration(f"max_gray_saturation must be in [0, 1], got {max_gray_saturation}")
        self.num_hue_bins = int(num_hue_bins)
        self.num_saturation_bins = int(num_saturation_bins)
        self.num_value_bins = int(num_value_bins)
        self.num_gray_bins = int(num_gray_bins)
        self.gray_threshold = max_gray_saturation * (CHANNEL_RANGE - 1)
        self._num_color_codes = self.num_hue_bins * self.num_saturation_bins * self.num_value_bins

    def codes(self, hsv: np.ndarray) -> np.ndarray:
        hue = _channel_index(hsv[:, 0], self.num_hue_bins, HUE_RANGE)
        saturation = _channel_index(hsv[:, 1], self.num_saturation_bins, CHANNEL_RANGE)
        value = _channel_index(hsv[:, 2], self.num_value_bins, CHANNEL_RANGE)
        color_codes = (hue * self.num_saturation_bins + saturation) * self.num_value_bins + value

        gray_codes = self._num_color_codes + _channel_index(hsv[:, 2], self.num_gray_bins, CHANNEL_RANGE)
        is_gray = hsv[:, 1].astype(np.float64) < self.gray_threshold
        return np.where(is_gray, gray_codes, color_codes)

    def index_of(self, code: int) -> BinIndex:
        code = int(code)
        if code >= self._num_color_codes:
            return BinIndex(0, 0, code - self._num_color_codes, gray=True)
        rest, value = divmod(code, self.num_value_bins)
        hue, saturation = divmod(rest, self.num_saturation_bins)
        return BinIndex(hue, saturation, value)


def saturation_value_admission(samples: SampleSet, minimal_saturation: float,
                               minimal_value: float) -> np.ndarray:
    """
    Admission mask keeping samples at or above minimal saturation and value.

    Args:
        samples: Samples to test
        minimal_saturation: Threshold as a fraction of the saturation range [0, 1]
        minimal_value: Threshold as a fraction of the value range [0, 1]

    Returns:
        Boolean mask aligned with ``samples``
    """
    s = samples.hsv[:, 1].astype(np.float64)
    v = samples.hsv[:, 2].astype(np.float64)
    return (s >= minimal_saturation * (CHANNEL_RANGE - 1)) & (v >= minimal_value * (CHANNEL_RANGE - 1))


def build_histogram(samples: SampleSet, binning, admitted: Optional[np.ndarray] = None) -> Histogram:
    """
    Partition admitted samples into histogram bins.

    Samples failing admission are dropped and do not count toward any bin or
    toward the histogram's total weight.

    Args:
        samples: Weighted HSV samples
        binning: HueSaturationBinning or LogoBinning
        admitted: Optional boolean mask aligned with ``samples``

    Returns:
        Histogram mapping each non-empty BinIndex to its HistogramBin
    """
    if admitted is not None:
        admitted = np.asarray(admitted, dtype=bool).reshape(-1)
        if len(admitted) != len(samples):
            raise ValueError(f"Admission mask has {len(admitted)} entries for {len(samples)} samples")
        samples = samples.subset(admitted)

    if len(samples) == 0:
        return Histogram(bins={}, total_weight=0)

    codes = binning.codes(samples.hsv)
    bins = {}
    for code in np.unique(codes):
        index = binning.index_of(code)
        bins[index] = HistogramBin(index=index, samples=samples.subset(codes == code))

    histogram = Histogram(bins=bins, total_weight=samples.total_weight)
    logger.debug(f"Histogram: {len(samples)} samples into {len(bins)} bins, total weight {histogram.total_weight}")
    return histogram


def prioritize_bins(histogram: Histogram,
                    saturated_priority_factor: float = 0.0,
                    num_saturation_bins: Optional[int] = None,
                    min_bin_size_percent: float = 0.0) -> List[HistogramBin]:
    """
    Order bins by priority weight, dropping bins below a minimum size.

    Priority is the bin's raw weight, boosted by
    ``1 + saturated_priority_factor * normalized_saturation`` where the
    normalized saturation is the center of the bin's saturation range in
    [0, 1]. Gray bins have normalized saturation 0. Ties are broken by
    ascending bin index.

    Args:
        histogram: Histogram to order
        saturated_priority_factor: Saturation boost, 0 ranks by raw weight
        num_saturation_bins: Saturation bin count, needed when the factor is non-zero
        min_bin_size_percent: Bins with less than this percent of the total weight are dropped

    Returns:
        Bins in descending priority
    """
    if saturated_priority_factor < 0:
        raise InvalidConfiguration(f"saturated_priority_factor must be >= 0, got {saturated_priority_factor}")
    if not 0.0 <= min_bin_size_percent <= 100.0:
        raise InvalidConfiguration(f"min_bin_size_percent must be in [0, 100], got {min_bin_size_percent}")
    if saturated_priority_factor > 0 and not num_saturation_bins:
        raise InvalidConfiguration("num_saturation_bins is required with a saturated priority factor")

    total = histogram.total_weight
    ranked = []
    for index, histogram_bin in histogram.bins.items():
        raw = histogram_bin.total_weight
        if total == 0 or 100.0 * raw / total < min_bin_size_percent:
            continue
        priority = float(raw)
        if saturated_priority_factor > 0 and not index.gray:
            normalized_saturation = (index.saturation_index + 0.5) / num_saturation_bins
            priority *= 1.0 + saturated_priority_factor * normalized_saturation
        ranked.append((-priority, index, histogram_bin))

    ranked.sort(key=lambda entry: (entry[0], entry[1]))
    dropped = len(histogram.bins) - len(ranked)
    if dropped:
        logger.debug(f"Dropped {dropped} bins below {min_bin_size_percent}% of total weight")
    return [entry[2] for entry in ranked]
