"""
Dominant Colors Configuration
Manages environment variables and defaults for the extraction service.
"""
import os
from typing import List


class Config:
    """Configuration class for the dominant colors service."""

    # Upload limits
    MAX_FILE_MB: int = int(os.environ.get("DOMINANT_COLORS_MAX_FILE_MB", "10"))
    MIN_EDGE: int = int(os.environ.get("DOMINANT_COLORS_MIN_EDGE", "8"))

    # Preprocessing defaults
    MAX_WORKING_RESOLUTION: int = int(os.environ.get("DOMINANT_COLORS_MAX_WORKING_RESOLUTION", "256"))
    BILATERAL_RANGE_SIGMA: float = float(os.environ.get("DOMINANT_COLORS_BILATERAL_RANGE_SIGMA", "0.1"))

    # Per-bin worker threads (0 runs bins sequentially)
    BIN_WORKERS: int = int(os.environ.get("DOMINANT_COLORS_BIN_WORKERS", "0"))

    # Opaque logo background detection: border color tolerance (LUV units) and
    # the share of border pixels that must match it
    LOGO_BACKGROUND_LUV_DISTANCE: float = float(os.environ.get("DOMINANT_COLORS_LOGO_BACKGROUND_LUV_DISTANCE", "12.0"))
    LOGO_BACKGROUND_BORDER_FRACTION: float = float(
        os.environ.get("DOMINANT_COLORS_LOGO_BACKGROUND_BORDER_FRACTION", "0.75")
    )

    # Logging
    LOG_LEVEL: str = os.environ.get("DOMINANT_COLORS_LOG_LEVEL", "INFO")

    # CORS settings
    ALLOWED_ORIGINS: str = os.environ.get("DOMINANT_COLORS_ALLOWED_ORIGINS", "")

    # Supported image formats
    SUPPORTED_MIME_TYPES = ["image/jpeg", "image/png"]
    SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png"}

    # Accepted ranges for request parameters
    MIN_WORKING_RESOLUTION: int = 16
    MAX_WORKING_RESOLUTION_LIMIT: int = 2048

    @classmethod
    def allowed_origins(cls) -> List[str]:
        """Parse the comma separated CORS origins list."""
        return [origin.strip() for origin in cls.ALLOWED_ORIGINS.split(",") if origin.strip()]


# Global config instance
config = Config()
