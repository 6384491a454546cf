"""
Dominant Colors Imaging Utilities
Handles upload validation, decoding and the preprocessing that turns an
image into the HSV samples consumed by the processors.
"""
import io
from typing import Optional, Tuple

import cv2
import numpy as np
from fastapi import HTTPException, UploadFile
from PIL import Image

from dominant_colors.config import config
from dominant_colors.services.colors.color_space import luv_distance, rgb_to_luv


def validate_file_upload(file: UploadFile) -> None:
    """
    Validate uploaded file for size and format compliance.

    Args:
        file: FastAPI UploadFile object

    Raises:
        HTTPException: 400 for invalid files, 415 for unsupported formats
    """
    # file.size might be None for some clients
    if file.size and file.size > config.MAX_FILE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {config.MAX_FILE_MB}MB"
        )

    if file.content_type not in config.SUPPORTED_MIME_TYPES:
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported media type. Supported: {', '.join(config.SUPPORTED_MIME_TYPES)}"
        )

    if file.filename:
        ext = file.filename.lower().split('.')[-1] if '.' in file.filename else ''
        if f".{ext}" not in config.SUPPORTED_EXTENSIONS:
            raise HTTPException(
                status_code=415,
                detail=f"Unsupported file extension. Supported: {', '.join(sorted(config.SUPPORTED_EXTENSIONS))}"
            )


def validate_magic_bytes(file_bytes: bytes) -> str:
    """
    Validate file magic bytes to ensure it's actually an image.

    Returns:
        Detected MIME type

    Raises:
        HTTPException: 400 for invalid/corrupt files
    """
    if len(file_bytes) < 8:
        raise HTTPException(status_code=400, detail="File too small or corrupt")

    if file_bytes.startswith(b'\xff\xd8\xff'):
        return "image/jpeg"
    elif file_bytes.startswith(b'\x89PNG\r\n\x1a\n'):
        return "image/png"
    else:
        raise HTTPException(
            status_code=400,
            detail="Invalid image file. Magic bytes don't match supported formats."
        )


def decode_image_bytes(file_bytes: bytes) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Decode image bytes into an RGB array and, when present, its alpha channel.

    Returns:
        Tuple of (rgb uint8 (H, W, 3), alpha uint8 (H, W) or None)

    Raises:
        HTTPException: 400 for decode errors or images below the minimum edge
    """
    validate_magic_bytes(file_bytes)

    try:
        # Decode using PIL for safety
        pil_image = Image.open(io.BytesIO(file_bytes))
        has_alpha = pil_image.mode in ('RGBA', 'LA') or (
            pil_image.mode == 'P' and 'transparency' in pil_image.info
        )
        if has_alpha:
            rgba = np.array(pil_image.convert('RGBA'))
            rgb, alpha = np.ascontiguousarray(rgba[:, :, :3]), np.ascontiguousarray(rgba[:, :, 3])
        else:
            rgb, alpha = np.array(pil_image.convert('RGB')), None
    except Exception as e:
        raise HTTPException(
            status_code=400,
            detail=f"Failed to decode image: {str(e)}"
        )

    height, width = rgb.shape[:2]
    if width < config.MIN_EDGE or height < config.MIN_EDGE:
        raise HTTPException(
            status_code=400,
            detail=f"Image too small. Minimum dimension: {config.MIN_EDGE}px"
        )

    return rgb, alpha


async def read_image(file: UploadFile) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Safely read and decode an uploaded image.

    Raises:
        HTTPException: 400 for read or decode errors
    """
    try:
        file_bytes = await file.read()
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Failed to read file: {str(e)}")

    if len(file_bytes) > config.MAX_FILE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {config.MAX_FILE_MB}MB"
        )

    return decode_image_bytes(file_bytes)


def resize_long_edge(img: np.ndarray, max_edge: int, interpolation: int = cv2.INTER_AREA) -> np.ndarray:
    """
    Resize image so the longest edge is at most max_edge pixels.

    Args:
        img: Input image, any channel count
        max_edge: Maximum edge size
        interpolation: OpenCV interpolation flag (INTER_AREA for downscaling)

    Returns:
        Resized image, or the input when already small enough
    """
    height, width = img.shape[:2]
    current_max = max(height, width)

    if current_max <= max_edge:
        return img

    scale = max_edge / current_max
    new_width = max(1, int(width * scale))
    new_height = max(1, int(height * scale))

    return cv2.resize(img, (new_width, new_height), interpolation=interpolation)


def preprocess_standard(rgb: np.ndarray, max_working_resolution: int,
                        bilateral_range_sigma: float = 0.0) -> np.ndarray:
    """
    Prepare an RGB image for the standard processor.

    Downscales, optionally smooths with an edge preserving bilateral filter,
    and converts to OpenCV 8-bit HSV.

    Args:
        rgb: RGB uint8 image
        max_working_resolution: Maximum edge length after downscaling
        bilateral_range_sigma: Range sigma as a fraction of the 8-bit range; 0 disables

    Returns:
        HSV uint8 image
    """
    working = resize_long_edge(rgb, max_working_resolution)
    if bilateral_range_sigma > 0:
        working = cv2.bilateralFilter(working, d=5, sigmaColor=bilateral_range_sigma * 255, sigmaSpace=5)
    return cv2.cvtColor(working, cv2.COLOR_RGB2HSV)


def detect_background_mask(rgb: np.ndarray,
                           max_luv_distance: Optional[float] = None,
                           min_border_fraction: Optional[float] = None) -> np.ndarray:
    """
    Estimate the foreground of an opaque logo from its border color.

    The background color is the per-channel median of the border pixels in
    LUV. When enough of the border lies within ``max_luv_distance`` of it,
    every matching pixel connected to the border is background. Matching
    pixels enclosed by the artwork stay foreground.

    Args:
        rgb: RGB uint8 image
        max_luv_distance: LUV tolerance around the border color
        min_border_fraction: Share of border pixels that must match

    Returns:
        Foreground mask uint8 0/255; all 255 when no uniform border is found
        or the whole image matches it
    """
    if max_luv_distance is None:
        max_luv_distance = config.LOGO_BACKGROUND_LUV_DISTANCE
    if min_border_fraction is None:
        min_border_fraction = config.LOGO_BACKGROUND_BORDER_FRACTION

    height, width = rgb.shape[:2]
    all_foreground = np.full((height, width), 255, dtype=np.uint8)

    luv = rgb_to_luv(rgb.reshape(-1, 3)).reshape(height, width, 3)
    border = np.concatenate([luv[0], luv[-1], luv[1:-1, 0], luv[1:-1, -1]])
    background_luv = np.median(border, axis=0)

    near = luv_distance(luv, background_luv) <= max_luv_distance
    border_near = np.concatenate([near[0], near[-1], near[1:-1, 0], near[1:-1, -1]])
    if border_near.mean() < min_border_fraction:
        return all_foreground

    # A matching frame joins every matching border pixel into one region
    flood_fill = cv2.copyMakeBorder(
        np.where(near, 255, 0).astype(np.uint8), 1, 1, 1, 1, cv2.BORDER_CONSTANT, value=255
    )
    ff_mask = np.zeros((height + 4, width + 4), np.uint8)
    cv2.floodFill(flood_fill, ff_mask, (0, 0), 128)
    background = flood_fill[1:-1, 1:-1] == 128

    if background.all():
        return all_foreground
    return np.where(background, 0, 255).astype(np.uint8)


def preprocess_logo(rgb: np.ndarray, alpha: Optional[np.ndarray],
                    max_working_resolution: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Prepare an RGB(A) image for the logo processor.

    The foreground mask comes from the alpha channel (alpha > 127) when there
    is one. Opaque images fall back to :func:`detect_background_mask`.

    Returns:
        Tuple of (HSV uint8 image, foreground mask uint8 0/255)
    """
    working = resize_long_edge(rgb, max_working_resolution)
    height, width = working.shape[:2]
    if alpha is None:
        mask = detect_background_mask(working)
    else:
        alpha = cv2.resize(alpha, (width, height), interpolation=cv2.INTER_NEAREST)
        mask = np.where(alpha > 127, 255, 0).astype(np.uint8)
    return cv2.cvtColor(working, cv2.COLOR_RGB2HSV), mask
