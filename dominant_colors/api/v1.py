"""
Dominant Colors v1 API Routes
Implements /v1/dominant-colors and supporting routes.
"""
import time
from typing import Any, Dict, List

from fastapi import APIRouter, File, HTTPException, Query, UploadFile

from dominant_colors import __version__
from dominant_colors.config import config
from dominant_colors.schemas import (
    DominantColorEntry, DominantColorsResponse, ErrorResponse, ExtractionArtifacts, ExtractionDebug,
    HealthResponse
)
from dominant_colors.services.colors import (
    DominantColor, DominantColorsLogoProcessor, DominantColorsProcessor
)
from dominant_colors.services.colors.swatches import render_palette_strip
from dominant_colors.services.imaging import (
    preprocess_logo, preprocess_standard, read_image, validate_file_upload
)
from dominant_colors.utils.ids import generate_request_id
from dominant_colors.utils.logging import get_logger
from dominant_colors.utils.metrics import get_metrics

router = APIRouter(prefix="/v1", tags=["Dominant Colors"])
logger = get_logger()

# Processors are heavy to create; share one of each for the process lifetime
_workers = config.BIN_WORKERS or None
standard_processor = DominantColorsProcessor(max_workers=_workers)
logo_processor = DominantColorsLogoProcessor(max_workers=_workers)


def _to_entries(colors: List[DominantColor]) -> List[DominantColorEntry]:
    return [
        DominantColorEntry(hex=color.hex, rgb=list(color.rgb), score=color.score)
        for color in colors
    ]


@router.get("/healthz", response_model=HealthResponse)
async def healthz() -> HealthResponse:
    """Liveness probe."""
    return HealthResponse(ok=True, version=__version__)


@router.get("/metrics")
async def metrics() -> Dict[str, Any]:
    """In-process counters and timing statistics."""
    return get_metrics().get_summary()


@router.post("/dominant-colors",
             response_model=DominantColorsResponse,
             responses={
                 400: {"model": ErrorResponse, "description": "Corrupt, too large or too small image"},
                 415: {"model": ErrorResponse, "description": "Unsupported media type"},
                 500: {"model": ErrorResponse, "description": "Extraction failure"}
             },
             summary="Dominant Colors",
             description="Extract a ranked list of perceptually distinct dominant colors from an image")
async def extract_dominant_colors(
    file: UploadFile = File(..., description="PNG or JPEG image"),
    variant: str = Query("standard", pattern="^(standard|logo)$", description="Processing variant"),
    max_working_resolution: int = Query(
        config.MAX_WORKING_RESOLUTION,
        ge=config.MIN_WORKING_RESOLUTION,
        le=config.MAX_WORKING_RESOLUTION_LIMIT,
        description="Images are downscaled so their long edge is at most this size"
    ),
    bilateral_range_sigma: float = Query(
        config.BILATERAL_RANGE_SIGMA, ge=0.0, le=1.0,
        description="Bilateral smoothing range sigma (standard variant, 0 disables)"
    ),
    include_swatch: bool = Query(False, description="Include a PNG palette strip")
) -> DominantColorsResponse:
    """
    Dominant color extraction endpoint.

    **standard**: general photos, saturated colors preferred.

    **logo**: flat-color artwork; the alpha channel marks the foreground. Opaque
    images have the border-colored background connected to the image edge removed.
    """
    request_id = generate_request_id()
    start_time = time.time()
    metrics_collector = get_metrics()
    metrics_collector.increment_request_count(variant)
    logger.info("Starting dominant color extraction", extra={"request_id": request_id, "variant": variant})

    try:
        validate_file_upload(file)
        rgb, alpha = await read_image(file)
        decode_ms = (time.time() - start_time) * 1000

        preprocess_start = time.time()
        if variant == "logo":
            hsv, mask = preprocess_logo(rgb, alpha, max_working_resolution)
            sampled_pixels = int((mask > 0).sum())
        else:
            hsv = preprocess_standard(rgb, max_working_resolution, bilateral_range_sigma)
            sampled_pixels = hsv.shape[0] * hsv.shape[1]
        preprocess_ms = (time.time() - preprocess_start) * 1000

        extract_start = time.time()
        if variant == "logo":
            processor = logo_processor
            colors = processor.find_dominant_colors_in_image(hsv, mask)
        else:
            processor = standard_processor
            colors = processor.find_dominant_colors_in_image(hsv)
        extract_ms = (time.time() - extract_start) * 1000

        artifacts = None
        if include_swatch and colors:
            artifacts = ExtractionArtifacts(swatch_png_b64=render_palette_strip(colors))

        total_ms = (time.time() - start_time) * 1000
        metrics_collector.record_timing("extraction", extract_ms)
        metrics_collector.record_timing("total", total_ms)
        metrics_collector.record_palette_size(len(colors), variant)
        if not colors:
            metrics_collector.increment_empty_result_count()

        logger.info(
            f"Extracted {len(colors)} dominant colors in {total_ms:.1f}ms",
            extra={"request_id": request_id, "variant": variant}
        )

        height, width = hsv.shape[:2]
        return DominantColorsResponse(
            request_id=request_id,
            colors=_to_entries(colors),
            debug=ExtractionDebug(
                variant=variant,
                width=width,
                height=height,
                sampled_pixels=sampled_pixels,
                configuration=processor.configuration.model_dump(),
                timing_ms={
                    "decode": decode_ms,
                    "preprocess": preprocess_ms,
                    "extract": extract_ms,
                    "total": total_ms
                }
            ),
            artifacts=artifacts
        )

    except HTTPException as e:
        metrics_collector.increment_failure_count(f"http_{e.status_code}")
        logger.warning(f"Extraction rejected: {e.detail}", extra={"request_id": request_id})
        raise
    except Exception as e:
        metrics_collector.increment_failure_count("internal")
        logger.error(f"Extraction failed: {str(e)}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail=f"Dominant color extraction failed: {str(e)}")
