"""
Dominant Color Scoring and Deduplication

Scores representative colors by the share of pixel mass they stand for and
filters the scored pool down to a perceptually diverse, priority ordered
palette.
"""

from typing import List, Sequence

import numpy as np
from loguru import logger

from .color_space import hsv_to_luv, luv_distance
from .errors import InvalidConfiguration
from .types import HistogramBin, HSVColor, SampleSet, ScoredColor


class ImageCoverageScorer:
    """
    Scores a representative by the fraction of all admitted image weight
    within ``score_luv_distance`` of it in LUV space.

    The scan covers the whole image, not only the representative's cluster,
    since a representative may also be close to pixels of other clusters.
    """

    def __init__(self, samples: SampleSet, score_luv_distance: float):
        if not score_luv_distance > 0:
            raise InvalidConfiguration(f"score_luv_distance must be positive, got {score_luv_distance}")
        aggregated = samples.aggregate()
        self.score_luv_distance = float(score_luv_distance)
        self.total_weight = aggregated.total_weight
        self._weights = aggregated.weights
        self._luv = hsv_to_luv(aggregated.hsv) if len(aggregated) else np.zeros((0, 3), np.float32)

    def score(self, representative: HSVColor) -> float:
        if self.total_weight == 0:
            return 0.0
        rep_luv = hsv_to_luv(np.array(representative, dtype=np.uint8))
        close = luv_distance(self._luv, rep_luv) <= self.score_luv_distance
        return float(self._weights[close].sum()) / self.total_weight


def bin_share_score(histogram_bin: HistogramBin, total_weight: int) -> float:
    """Fraction of the total (foreground) weight that falls in ``histogram_bin``."""
    if total_weight <= 0:
        return 0.0
    return histogram_bin.total_weight / total_weight


def top_scored(candidates: Sequence[ScoredColor], limit: int) -> List[ScoredColor]:
    """Highest scoring ``limit`` candidates; equal scores keep their input order."""
    if limit < 1:
        raise InvalidConfiguration(f"limit must be >= 1, got {limit}")
    return sorted(candidates, key=lambda c: -c.score)[:limit]


def filter_dominant_colors(candidates: Sequence[ScoredColor],
                           initial_min_luv_distance: float,
                           min_luv_distance_increase_rate: float = 0.0) -> List[ScoredColor]:
    """
    Remove colors too close in LUV space to a more dominant accepted color.

    Candidates are visited by descending score (stable on ties). A candidate
    is accepted iff its LUV distance to every accepted color is greater than
    ``initial_min_luv_distance + min_luv_distance_increase_rate * k``, where
    ``k`` is the number of colors accepted so far. Later, less dominant
    colors must therefore be increasingly distinct. Rejected candidates are
    not retried.

    Args:
        candidates: Scored colors from all processed bins
        initial_min_luv_distance: Threshold applied to the second accepted color
        min_luv_distance_increase_rate: Threshold increase per accepted color

    Returns:
        Accepted colors ordered by descending score
    """
    if not initial_min_luv_distance > 0:
        raise InvalidConfiguration(f"initial_min_luv_distance must be positive, got {initial_min_luv_distance}")
    if min_luv_distance_increase_rate < 0:
        raise InvalidConfiguration(
            f"min_luv_distance_increase_rate must be >= 0, got {min_luv_distance_increase_rate}"
        )

    accepted: List[ScoredColor] = []
    for candidate in sorted(candidates, key=lambda c: -c.score):
        threshold = initial_min_luv_distance + min_luv_distance_increase_rate * len(accepted)
        if all(luv_distance(candidate.luv, kept.luv) > threshold for kept in accepted):
            accepted.append(candidate)

    logger.debug(f"Deduplication kept {len(accepted)} of {len(candidates)} candidates")
    return accepted
