"""
Dominant Colors API Schemas
Pydantic models for dominant color extraction responses.
"""
from typing import Dict, List, Optional, Any
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("dominant-colors", description="Service name")


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")


class DominantColorEntry(BaseModel):
    """Single dominant color with its score."""
    hex: str = Field(
        ...,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Hex color code in format #RRGGBB"
    )
    rgb: List[int] = Field(
        ...,
        min_length=3,
        max_length=3,
        description="RGB channels, each in [0, 255]"
    )
    score: float = Field(
        ...,
        gt=0.0,
        le=1.0,
        description="Fraction of the relevant pixel mass this color represents"
    )


class ExtractionDebug(BaseModel):
    """Debug information about an extraction."""
    variant: str = Field(..., description="Processing variant used: 'standard' or 'logo'")
    width: int = Field(..., description="Working image width in pixels")
    height: int = Field(..., description="Working image height in pixels")
    sampled_pixels: int = Field(..., description="Number of pixels handed to the processor")
    configuration: Dict[str, Any] = Field(..., description="Processor configuration used")
    timing_ms: Dict[str, float] = Field(..., description="Timing breakdown in milliseconds")


class ExtractionArtifacts(BaseModel):
    """Optional extraction artifacts."""
    swatch_png_b64: Optional[str] = Field(
        None,
        description="Base64-encoded PNG palette strip, chip widths proportional to score"
    )


class DominantColorsResponse(BaseModel):
    """Dominant color extraction response."""
    request_id: str = Field(..., description="Request id for log correlation")
    colors: List[DominantColorEntry] = Field(
        ...,
        description="Dominant colors ordered by descending score; may be empty"
    )
    debug: ExtractionDebug = Field(..., description="Debug information and parameters")
    artifacts: Optional[ExtractionArtifacts] = Field(
        None,
        description="Optional artifacts like the palette swatch"
    )
