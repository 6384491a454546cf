"""
Configuration value objects for the dominant colors processors.

All bundles are frozen pydantic models validated at construction. Any value
outside its documented range raises :class:`InvalidConfiguration` instead of
being clamped.
"""

from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import InvalidConfiguration


def _invalid(model: type, error: ValidationError) -> InvalidConfiguration:
    return InvalidConfiguration(f"Invalid {model.__name__}: {error.errors(include_url=False)}")


class _FrozenConfiguration(BaseModel):
    """
    Immutable parameter bundle that reports violations as InvalidConfiguration.

    Construction, ``model_validate``, ``model_validate_json`` and
    ``model_copy(update=...)`` all validate; a copy with updates is rebuilt
    through the constructor rather than patched in place.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise _invalid(type(self), e) from e

    @classmethod
    def model_validate(cls, obj: Any, **kwargs: Any):
        try:
            return super().model_validate(obj, **kwargs)
        except ValidationError as e:
            raise _invalid(cls, e) from e

    @classmethod
    def model_validate_json(cls, json_data: Union[str, bytes], **kwargs: Any):
        try:
            return super().model_validate_json(json_data, **kwargs)
        except ValidationError as e:
            raise _invalid(cls, e) from e

    def model_copy(self, *, update: Optional[Dict[str, Any]] = None, deep: bool = False):
        if not update:
            return super().model_copy(deep=deep)
        fields = {name: getattr(self, name) for name in type(self).model_fields}
        fields.update(update)
        return type(self)(**fields)


class RepresentativePercentileParams(_FrozenConfiguration):
    """
    Per-channel percentiles for picking a representative of a set of colors.

    A percentile of 0.8 for hue selects the minimal hue such that 80% of the
    samples' weight has a hue lower than or equal to it.
    """
    hue: float = Field(0.5, ge=0.0, le=1.0, description="Hue percentile of the representative")
    saturation: float = Field(0.5, ge=0.0, le=1.0, description="Saturation percentile of the representative")
    value: float = Field(0.5, ge=0.0, le=1.0, description="Value percentile of the representative")

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.hue, self.saturation, self.value)


class RepresentativesPickerConfiguration(_FrozenConfiguration):
    """DBSCAN parameters used to split a bin into clusters."""
    dbscan_radius: float = Field(
        4.0, gt=0.0,
        description="Two points are neighbors iff their scaled distance is <= this radius"
    )
    dbscan_min_neighbors: int = Field(
        30, ge=0,
        description="A point is core if it has more than this many neighbors"
    )
    dbscan_point_multipliers: Tuple[float, float, float] = Field(
        (2.0, 0.5, 0.25),
        description="Per-axis HSV scale applied before distance computation"
    )

    @model_validator(mode="after")
    def _check_multipliers(self):
        if any(m <= 0 for m in self.dbscan_point_multipliers):
            raise ValueError("dbscan_point_multipliers must all be positive")
        return self


class DominantColorsConfiguration(_FrozenConfiguration):
    """Configuration of the standard dominant colors processor."""
    num_hue_bins: int = Field(12, ge=1, le=180, description="Histogram bins across the hue range [0, 180)")
    num_saturation_bins: int = Field(4, ge=1, le=256, description="Histogram bins across the saturation range")
    luv_min_distance: float = Field(20.0, gt=0.0, description="Minimum LUV distance between any two dominant colors")
    minimal_saturation: float = Field(0.15, ge=0.0, le=1.0, description="Pixels with lower saturation are ignored")
    minimal_value: float = Field(0.15, ge=0.0, le=1.0, description="Pixels with lower value are ignored")
    max_bins_to_iterate: int = Field(10, ge=1, description="Maximum bins to extract dominant colors from")
    representative_percentiles: RepresentativePercentileParams = Field(
        default_factory=lambda: RepresentativePercentileParams(hue=0.5, saturation=0.7, value=0.7)
    )
    saturated_priority_factor: float = Field(
        1.0, ge=0.0,
        description="Raises bin priority in proportion to the bin's saturation"
    )
    max_dominant_colors_per_bin: int = Field(2, ge=1, description="Maximum dominant colors taken from one bin")
    picker: RepresentativesPickerConfiguration = Field(default_factory=RepresentativesPickerConfiguration)
    score_luv_distance: float = Field(
        10.0, gt=0.0,
        description="Pixels within this LUV distance of a representative count toward its score"
    )

    @model_validator(mode="after")
    def _check_bins_to_iterate(self):
        total_bins = self.num_hue_bins * self.num_saturation_bins
        if self.max_bins_to_iterate > total_bins:
            raise ValueError(
                f"max_bins_to_iterate ({self.max_bins_to_iterate}) exceeds the number of bins ({total_bins})"
            )
        return self

    @classmethod
    def default(cls) -> "DominantColorsConfiguration":
        return cls()


class DominantColorsLogoConfiguration(_FrozenConfiguration):
    """Configuration of the logo dominant colors processor."""
    num_hue_bins: int = Field(12, ge=1, le=180, description="Histogram bins across the hue range [0, 180)")
    num_saturation_bins: int = Field(3, ge=1, le=256, description="Histogram bins across the saturation range")
    num_value_bins: int = Field(3, ge=1, le=256, description="Histogram bins across the value range")
    num_gray_bins: int = Field(4, ge=1, le=256, description="Histogram bins across the gray range")
    min_bin_size_percent: float = Field(
        2.0, ge=0.0, le=100.0,
        description="Bins holding less than this percent of the foreground weight are ignored"
    )
    initial_min_luv_distance: float = Field(15.0, gt=0.0, description="LUV threshold for the second dominant color")
    min_luv_distance_increase_rate: float = Field(
        0.0, ge=0.0,
        description="Threshold increase per already accepted dominant color"
    )
    representative_percentiles: RepresentativePercentileParams = Field(default_factory=RepresentativePercentileParams)
    max_gray_saturation: float = Field(
        0.12, ge=0.0, le=1.0,
        description="Pixels with lower saturation fall into the gray bins"
    )
    mask_erosion_px: int = Field(1, ge=0, le=10, description="Bin mask erosion radius for spatial inputs")

    @classmethod
    def default(cls) -> "DominantColorsLogoConfiguration":
        return cls()
