"""
Dominant Colors Processors

Two explicit orchestration paths over the shared histogram, clustering,
representative, scoring and deduplication primitives.

Standard processor:

1. Drop samples below the minimal saturation and value.
2. Bin the remaining samples by hue and saturation.
3. Order bins by weight, boosted for saturated bins, and keep the first
   ``max_bins_to_iterate``.
4. For each bin, cluster its samples with DBSCAN, pick a representative per
   cluster, score each representative by the share of image pixels close to
   it in LUV space, and keep the bin's best ``max_dominant_colors_per_bin``.
5. Deduplicate the pooled candidates in LUV space.

Logo processor:

1. Keep foreground samples only.
2. Bin them by hue, saturation and value, with low-saturation samples in
   separate gray bins.
3. Drop bins below ``min_bin_size_percent`` of the foreground weight.
4. Pick one representative per bin (from the eroded bin mask when a spatial
   image is given) scored by the bin's share of the foreground.
5. Deduplicate with a LUV threshold that grows as dominance decreases.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar, Union

import cv2
import numpy as np
from loguru import logger

from .color_space import warm_up_luv_conversion
from .configuration import DominantColorsConfiguration, DominantColorsLogoConfiguration
from .histogram import (
    HueSaturationBinning, LogoBinning, build_histogram, prioritize_bins, saturation_value_admission
)
from .representatives import BinRepresentativesPicker, pick_representative
from .scoring import ImageCoverageScorer, bin_share_score, filter_dominant_colors, top_scored
from .types import DominantColor, HistogramBin, PixelSample, SampleSet, ScoredColor

Samples = Union[SampleSet, Sequence[PixelSample]]
T = TypeVar("T")


def as_sample_set(samples: Samples) -> SampleSet:
    if isinstance(samples, SampleSet):
        return samples
    return SampleSet.from_samples(list(samples))


def _map_bins(func: Callable[[HistogramBin], T], bins: List[HistogramBin],
              max_workers: Optional[int]) -> List[T]:
    """Apply ``func`` to every bin, optionally on a thread pool; results keep bin order."""
    if max_workers and max_workers > 1 and len(bins) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(func, bins))
    return [func(histogram_bin) for histogram_bin in bins]


def _elapsed_ms(start_time: float) -> float:
    return (time.time() - start_time) * 1000


class DominantColorsProcessor:
    """
    Finds dominant colors in general images.

    Construction warms up the LUV conversion; create one instance and reuse
    it for many extractions.

    Args:
        configuration: Processor configuration, defaults to ``DominantColorsConfiguration.default()``
        max_workers: Thread count for per-bin work; ``None`` or 1 runs sequentially
    """

    def __init__(self, configuration: Optional[DominantColorsConfiguration] = None,
                 max_workers: Optional[int] = None):
        self.configuration = configuration or DominantColorsConfiguration.default()
        self.max_workers = max_workers
        self._binning = HueSaturationBinning(
            self.configuration.num_hue_bins, self.configuration.num_saturation_bins
        )
        self._picker = BinRepresentativesPicker(
            self.configuration.picker, self.configuration.representative_percentiles
        )
        warm_up_luv_conversion()

    def find_dominant_colors(self, samples: Samples) -> List[DominantColor]:
        """
        Find dominant colors among HSV samples.

        Args:
            samples: PixelSamples or a SampleSet, OpenCV 8-bit HSV

        Returns:
            Dominant colors by descending score; empty when no sample is admitted
        """
        config = self.configuration
        start_time = time.time()
        sample_set = as_sample_set(samples)

        admitted = saturation_value_admission(sample_set, config.minimal_saturation, config.minimal_value)
        histogram = build_histogram(sample_set, self._binning, admitted)
        if histogram.total_weight == 0:
            logger.warning(f"No samples admitted out of {len(sample_set)}; no dominant colors")
            return []

        bins = prioritize_bins(
            histogram,
            saturated_priority_factor=config.saturated_priority_factor,
            num_saturation_bins=config.num_saturation_bins
        )[:config.max_bins_to_iterate]

        scorer = ImageCoverageScorer(sample_set.subset(admitted), config.score_luv_distance)
        per_bin = _map_bins(lambda histogram_bin: self._bin_candidates(histogram_bin, scorer),
                            bins, self.max_workers)
        pool = [candidate for candidates in per_bin for candidate in candidates]

        accepted = filter_dominant_colors(pool, config.luv_min_distance)
        logger.info(
            f"Standard extraction: {len(histogram)} bins, {len(bins)} iterated, "
            f"{len(pool)} candidates, {len(accepted)} dominant colors in {_elapsed_ms(start_time):.1f}ms"
        )
        return [DominantColor.from_scored(color) for color in accepted]

    def find_dominant_colors_in_image(self, hsv_image: np.ndarray) -> List[DominantColor]:
        """Find dominant colors in an (H, W, 3) OpenCV 8-bit HSV image."""
        return self.find_dominant_colors(SampleSet.from_image(hsv_image).aggregate())

    def _bin_candidates(self, histogram_bin: HistogramBin, scorer: ImageCoverageScorer) -> List[ScoredColor]:
        representatives = self._picker.find_representatives(histogram_bin)
        scored = [ScoredColor(hsv=rep, score=scorer.score(rep)) for rep in representatives]
        # A representative with no close pixels stands for nothing
        scored = [color for color in scored if color.score > 0]
        if not scored:
            return []
        return top_scored(scored, self.configuration.max_dominant_colors_per_bin)


class DominantColorsLogoProcessor:
    """
    Finds dominant colors in logo images, ignoring the background.

    Args:
        configuration: Processor configuration, defaults to ``DominantColorsLogoConfiguration.default()``
        max_workers: Thread count for per-bin work; ``None`` or 1 runs sequentially
    """

    def __init__(self, configuration: Optional[DominantColorsLogoConfiguration] = None,
                 max_workers: Optional[int] = None):
        self.configuration = configuration or DominantColorsLogoConfiguration.default()
        self.max_workers = max_workers
        self._binning = LogoBinning(
            self.configuration.num_hue_bins,
            self.configuration.num_saturation_bins,
            self.configuration.num_value_bins,
            self.configuration.num_gray_bins,
            self.configuration.max_gray_saturation
        )
        warm_up_luv_conversion()

    def find_dominant_colors(self, samples: Samples,
                             foreground: Optional[Sequence[bool]] = None) -> List[DominantColor]:
        """
        Find dominant colors among foreground HSV samples.

        Args:
            samples: PixelSamples or a SampleSet, OpenCV 8-bit HSV
            foreground: Per-sample foreground membership; all samples when omitted

        Returns:
            Dominant colors by descending score; empty when there is no foreground
        """
        sample_set = as_sample_set(samples)
        histogram, bins = self._histogram(sample_set, foreground)
        if histogram is None:
            return []

        def candidate(histogram_bin: HistogramBin) -> ScoredColor:
            representative = pick_representative(
                histogram_bin.samples, self.configuration.representative_percentiles
            )
            return ScoredColor(hsv=representative, score=bin_share_score(histogram_bin, histogram.total_weight))

        return self._finish(_map_bins(candidate, bins, self.max_workers), len(histogram))

    def find_dominant_colors_in_image(self, hsv_image: np.ndarray,
                                      foreground_mask: Optional[np.ndarray] = None) -> List[DominantColor]:
        """
        Find dominant colors in an (H, W, 3) HSV image.

        Each bin's representative is picked from the bin's pixels that survive
        an erosion of the bin mask, which drops anti-aliased edges between
        flat regions. When erosion removes the whole bin its full population is
        used instead. Scores always use the full bin weight.

        Args:
            hsv_image: OpenCV 8-bit HSV image
            foreground_mask: (H, W) mask, non-zero for foreground; whole image when omitted
        """
        hsv_image = np.asarray(hsv_image, dtype=np.uint8)
        height, width = hsv_image.shape[:2]
        if foreground_mask is None:
            foreground_image = np.ones((height, width), dtype=bool)
        else:
            foreground_image = np.asarray(foreground_mask) > 0
            if foreground_image.shape != (height, width):
                raise ValueError(
                    f"Image and mask dimension mismatch: image={width}x{height}, "
                    f"mask={foreground_image.shape[1]}x{foreground_image.shape[0]}"
                )

        sample_set = SampleSet.from_image(hsv_image)
        histogram, bins = self._histogram(sample_set, foreground_image.reshape(-1))
        if histogram is None:
            return []

        code_image = self._binning.codes(sample_set.hsv).reshape(height, width)
        codes_by_index = {
            self._binning.index_of(code): code for code in np.unique(code_image[foreground_image])
        }
        erosion_px = self.configuration.mask_erosion_px
        kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (erosion_px * 2 + 1, erosion_px * 2 + 1))

        def candidate(histogram_bin: HistogramBin) -> ScoredColor:
            bin_mask = ((code_image == codes_by_index[histogram_bin.index]) & foreground_image).astype(np.uint8)
            if erosion_px > 0:
                bin_mask = cv2.erode(bin_mask * 255, kernel, iterations=1)
            population = hsv_image[bin_mask > 0]
            if len(population) == 0:
                logger.debug(f"Bin {histogram_bin.index} vanished under erosion; using all its pixels")
                interior = histogram_bin.samples
            else:
                interior = SampleSet(population)
            representative = pick_representative(interior, self.configuration.representative_percentiles)
            return ScoredColor(hsv=representative, score=bin_share_score(histogram_bin, histogram.total_weight))

        return self._finish(_map_bins(candidate, bins, self.max_workers), len(histogram))

    def _histogram(self, sample_set: SampleSet, foreground: Optional[Sequence[bool]]):
        admitted = None if foreground is None else np.asarray(foreground, dtype=bool)
        histogram = build_histogram(sample_set, self._binning, admitted)
        if histogram.total_weight == 0:
            logger.warning(f"No foreground samples out of {len(sample_set)}; no dominant colors")
            return None, []
        bins = prioritize_bins(histogram, min_bin_size_percent=self.configuration.min_bin_size_percent)
        return histogram, bins

    def _finish(self, candidates: List[ScoredColor], num_bins: int) -> List[DominantColor]:
        accepted = filter_dominant_colors(
            candidates,
            self.configuration.initial_min_luv_distance,
            self.configuration.min_luv_distance_increase_rate
        )
        logger.info(
            f"Logo extraction: {num_bins} bins, {len(candidates)} above minimum size, "
            f"{len(accepted)} dominant colors"
        )
        return [DominantColor.from_scored(color) for color in accepted]
