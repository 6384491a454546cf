"""
Representative Color Selection

Turns a weighted set of HSV samples into a single representative color by
selecting an independent weighted percentile in each channel. The
representative therefore need not be any single observed sample.
"""

from typing import List

import numpy as np
from loguru import logger

from .configuration import RepresentativePercentileParams, RepresentativesPickerConfiguration
from .dbscan import DBSCAN
from .errors import EmptyCluster, InvalidConfiguration
from .types import HistogramBin, HSVColor, SampleSet

# Relative slack on the rank target so that e.g. 0.3 * 10 still selects the 3rd unit
_RANK_TOLERANCE = 1e-9


def weighted_percentile(values: np.ndarray, weights: np.ndarray, percentile: float) -> int:
    """
    Nearest-rank weighted percentile with an inclusive boundary.

    Returns the minimal value ``v`` such that the total weight of samples
    with a value <= ``v`` is at least ``percentile * total_weight``. Each
    value counts ``weight`` times without being duplicated: values are
    stably sorted and their cumulative weights scanned.

    Example: values [10, 10, 10, 20] with unit weights give 10 for
    percentiles up to 0.75 and 20 above it.

    Args:
        values: (N,) channel values
        weights: (N,) non-negative weights
        percentile: Percentile in [0, 1]

    Returns:
        The selected channel value

    Raises:
        EmptyCluster: If the total weight is zero
        InvalidConfiguration: If percentile is outside [0, 1]
    """
    if not 0.0 <= percentile <= 1.0:
        raise InvalidConfiguration(f"Percentile must be in [0, 1], got {percentile}")

    values = np.asarray(values).reshape(-1)
    weights = np.asarray(weights, dtype=np.float64).reshape(-1)
    total = weights.sum() if len(weights) else 0.0
    if total <= 0:
        raise EmptyCluster("Cannot pick a percentile of a set with zero total weight")

    order = np.argsort(values, kind="stable")
    cumulative = np.cumsum(weights[order])
    target = percentile * total - _RANK_TOLERANCE * total
    position = int(np.searchsorted(cumulative, target, side="left"))
    position = min(position, len(order) - 1)
    return int(values[order[position]])


def pick_representative(samples: SampleSet, percentiles: RepresentativePercentileParams) -> HSVColor:
    """Combine independently chosen hue, saturation and value percentiles into one color."""
    if samples.total_weight == 0:
        raise EmptyCluster("Representative requested for a cluster with zero weight")
    return tuple(
        weighted_percentile(samples.hsv[:, channel], samples.weights, percentile)
        for channel, percentile in enumerate(percentiles.as_tuple())
    )


class BinRepresentativesPicker:
    """
    Picks representative colors from one histogram bin.

    The bin's samples are aggregated by HSV value, clustered with DBSCAN in
    the multiplier-scaled HSV space, and one representative is picked from
    each cluster.
    """

    def __init__(self, picker_configuration: RepresentativesPickerConfiguration,
                 percentiles: RepresentativePercentileParams):
        self.percentiles = percentiles
        self.dbscan = DBSCAN(
            radius=picker_configuration.dbscan_radius,
            min_neighbors=picker_configuration.dbscan_min_neighbors,
            multipliers=picker_configuration.dbscan_point_multipliers
        )

    def find_clusters(self, histogram_bin: HistogramBin) -> List[SampleSet]:
        samples = histogram_bin.samples.aggregate()
        members = self.dbscan.clusters(samples.hsv, samples.weights)
        return [samples.subset(indices) for indices in members]

    def find_representatives(self, histogram_bin: HistogramBin) -> List[HSVColor]:
        clusters = self.find_clusters(histogram_bin)
        representatives = [pick_representative(cluster, self.percentiles) for cluster in clusters]
        logger.debug(f"Bin {histogram_bin.index}: {len(clusters)} clusters -> {representatives}")
        return representatives
