"""
Unit tests for weighted percentiles and representative picking.
"""

import numpy as np
import pytest

from dominant_colors.services.colors import (
    EmptyCluster, InvalidConfiguration, RepresentativePercentileParams,
    RepresentativesPickerConfiguration, SampleSet
)
from dominant_colors.services.colors.representatives import (
    BinRepresentativesPicker, pick_representative, weighted_percentile
)
from dominant_colors.services.colors.types import BinIndex, HistogramBin


class TestWeightedPercentile:
    """Test nearest-rank weighted percentile"""

    @pytest.mark.parametrize("percentile,expected", [
        (0.0, 10), (0.5, 10), (0.75, 10), (0.76, 20), (0.8, 20), (1.0, 20)
    ])
    def test_inclusive_boundary(self, percentile, expected):
        values = np.array([10, 20, 10, 10])
        assert weighted_percentile(values, np.ones(4), percentile) == expected

    def test_weights_count_as_repetitions(self):
        values = np.array([5, 1])
        weights = np.array([1, 9])
        assert weighted_percentile(values, weights, 0.5) == 1
        assert weighted_percentile(values, weights, 0.95) == 5
        repeated = np.array([5] + [1] * 9)
        assert weighted_percentile(repeated, np.ones(10), 0.5) == 1

    def test_float_rank_rounding(self):
        """0.3 of ten units selects the third unit despite float error"""
        values = np.arange(1, 11)
        assert weighted_percentile(values, np.ones(10), 0.3) == 3

    def test_zero_weight_raises(self):
        with pytest.raises(EmptyCluster):
            weighted_percentile(np.array([1, 2]), np.zeros(2), 0.5)
        with pytest.raises(EmptyCluster):
            weighted_percentile(np.array([]), np.array([]), 0.5)

    def test_percentile_out_of_range(self):
        with pytest.raises(InvalidConfiguration):
            weighted_percentile(np.array([1]), np.ones(1), 1.5)


class TestPickRepresentative:
    """Test per-channel representative selection"""

    def test_channels_chosen_independently(self):
        """The representative need not be an observed sample"""
        samples = SampleSet(np.array([[0, 255, 100], [10, 100, 255]], dtype=np.uint8))
        params = RepresentativePercentileParams(hue=0.0, saturation=0.0, value=1.0)
        assert pick_representative(samples, params) == (0, 100, 255)

    def test_median_of_weighted_cluster(self):
        samples = SampleSet(
            np.array([[20, 200, 200], [22, 210, 220], [24, 220, 240]], dtype=np.uint8),
            np.array([1, 5, 1])
        )
        params = RepresentativePercentileParams()
        assert pick_representative(samples, params) == (22, 210, 220)

    def test_empty_cluster_raises(self):
        with pytest.raises(EmptyCluster):
            pick_representative(SampleSet(np.zeros((0, 3), dtype=np.uint8)), RepresentativePercentileParams())


class TestBinRepresentativesPicker:
    """Test clustering inside a histogram bin"""

    @pytest.fixture
    def picker(self):
        return BinRepresentativesPicker(
            RepresentativesPickerConfiguration(), RepresentativePercentileParams()
        )

    def _bin(self, rows, weights):
        samples = SampleSet(np.array(rows, dtype=np.uint8), np.array(weights))
        return HistogramBin(index=BinIndex(0, 3), samples=samples)

    def test_one_representative_per_cluster(self, picker):
        histogram_bin = self._bin([[2, 250, 250], [2, 150, 100]], [50, 50])
        assert picker.find_representatives(histogram_bin) == [(2, 150, 100), (2, 250, 250)]

    def test_noise_contributes_nothing(self, picker):
        histogram_bin = self._bin([[2, 250, 250], [7, 90, 30]], [50, 1])
        assert picker.find_representatives(histogram_bin) == [(2, 250, 250)]

    def test_duplicate_samples_are_merged(self, picker):
        """Repeated identical samples behave like one weighted sample"""
        histogram_bin = self._bin([[2, 250, 250]] * 40, [1] * 40)
        clusters = picker.find_clusters(histogram_bin)
        assert len(clusters) == 1
        assert len(clusters[0]) == 1
        assert clusters[0].total_weight == 40

    def test_sparse_bin_has_no_representatives(self, picker):
        histogram_bin = self._bin([[2, 250, 250], [2, 240, 200]], [3, 3])
        assert picker.find_representatives(histogram_bin) == []
