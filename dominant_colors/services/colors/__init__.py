"""
Dominant Colors Module

Histogram binning, DBSCAN clustering, percentile representatives, LUV
scoring and deduplication for extracting dominant colors from images.
"""

from .color_space import warm_up_luv_conversion
from .configuration import (
    DominantColorsConfiguration,
    DominantColorsLogoConfiguration,
    RepresentativePercentileParams,
    RepresentativesPickerConfiguration,
)
from .errors import DominantColorsError, EmptyCluster, InvalidConfiguration
from .processor import DominantColorsLogoProcessor, DominantColorsProcessor
from .types import DominantColor, PixelSample, SampleSet

__all__ = [
    'DominantColor',
    'DominantColorsConfiguration',
    'DominantColorsError',
    'DominantColorsLogoConfiguration',
    'DominantColorsLogoProcessor',
    'DominantColorsProcessor',
    'EmptyCluster',
    'InvalidConfiguration',
    'PixelSample',
    'RepresentativePercentileParams',
    'RepresentativesPickerConfiguration',
    'SampleSet',
    'warm_up_luv_conversion',
]
