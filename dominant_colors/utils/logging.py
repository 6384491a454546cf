"""
Dominant Colors Structured Logging
Configures the loguru sink and binds request fields for API logs.
"""
import sys
from typing import Dict, Any, Optional

from loguru import logger

from dominant_colors.config import config

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function} | {message} | {extra}"


class StructuredLogger:
    """
    loguru front end for the API layer.

    Core modules log through ``loguru.logger`` directly; this wrapper owns the
    sink configuration and attaches extra fields such as request ids.
    """

    def __init__(self, level: Optional[str] = None):
        self.level = level or config.LOG_LEVEL
        self._configure_logger()

    def _configure_logger(self):
        # Replace loguru's default stderr handler
        logger.remove()
        logger.add(sys.stdout, format=LOG_FORMAT, level=self.level, serialize=False)

    def _log(self, level: str, message: str, extra: Optional[Dict[str, Any]]):
        target = logger.bind(**extra) if extra else logger
        target.opt(depth=2).log(level, message)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("INFO", message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("WARNING", message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("ERROR", message, extra)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("DEBUG", message, extra)


_logger: Optional[StructuredLogger] = None


def get_logger() -> StructuredLogger:
    """Get or create the process-wide structured logger."""
    global _logger
    if _logger is None:
        _logger = StructuredLogger()
    return _logger
