"""Core utilities."""

import hashlib
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import cv2
import numpy as np

from box_calibration.core.settings.app_settings import LoggingSettings
from box_calibration.models import ImageDescriptor

logger = logging.getLogger(__name__)

# Handler names used to identify handlers and avoid duplicates
APP_STREAM_HANDLER_NAME = "boxcal_app_stream_handler"
APP_FILE_HANDLER_NAME = "boxcal_app_file_handler"


class HealthCheckFilter(logging.Filter):
    """Filter to exclude health check requests from access logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Filter out health check log entries.

        Args:
            record (logging.LogRecord): Log record to check.

        Returns:
            bool: False to exclude the record, True to include it.
        """
        message = record.getMessage()
        return not ("/health" in message and "GET" in message)


def get_opencv_version() -> str | None:
    """
    Get the OpenCV version string.

    Returns:
        str | None: Version string, None if it cannot be determined.
    """
    version = getattr(cv2, "__version__", None)
    return str(version) if version else None


def image_key(data: bytes) -> str:
    """
    Derive the identity of an image decode from its encoded bytes.

    Args:
        data (bytes): Encoded image bytes.

    Returns:
        str: Short hex digest.
    """
    return hashlib.sha256(data).hexdigest()[:16]


def decode_image(data: bytes) -> np.ndarray | None:
    """
    Decode encoded image bytes into a BGR array.

    Args:
        data (bytes): Encoded image bytes (PNG, JPEG, ...).

    Returns:
        np.ndarray | None: Decoded image, None if the bytes are not an image.
    """
    if not data:
        return None
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if image is None:
        logger.warning(f"Failed to decode image ({len(data)} bytes)")
    return image


def describe_image(image: np.ndarray) -> ImageDescriptor:
    """
    Get the natural size of a decoded image.

    Args:
        image (np.ndarray): Decoded image array (height, width, channels).

    Returns:
        ImageDescriptor: Natural width and height.
    """
    height, width = image.shape[:2]
    return ImageDescriptor(width=width, height=height)


def _level(name: str) -> int:
    return logging.getLevelNamesMapping()[name.upper()]


def _build_handler(settings: LoggingSettings) -> logging.Handler:
    """
    Create the application handler described by the logging settings.

    Args:
        settings (LoggingSettings): Logging settings.

    Returns:
        logging.Handler: A named file, rotating file or stdout handler.
    """
    if not settings.log_file:
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        handler.set_name(APP_STREAM_HANDLER_NAME)
        return handler

    log_path = Path(settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    if settings.rotate_logs:
        handler = TimedRotatingFileHandler(filename=log_path, when="midnight", encoding="utf-8")
    else:
        handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.set_name(APP_FILE_HANDLER_NAME)
    return handler


def setup_logging(settings: LoggingSettings) -> None:
    """
    Setup logging configuration for the application.

    Safe to call repeatedly: previously installed application handlers are
    replaced rather than duplicated.

    Args:
        settings (LoggingSettings): Logging settings to configure logging.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(_level(settings.log_level))

    for existing in list(root_logger.handlers):
        if existing.get_name() in {APP_STREAM_HANDLER_NAME, APP_FILE_HANDLER_NAME}:
            root_logger.removeHandler(existing)
            existing.close()

    handler = _build_handler(settings)
    handler.setFormatter(logging.Formatter(fmt=settings.log_format, datefmt=settings.date_format))
    # The handler must pass records from loggers configured below the root level
    handler.setLevel(min([_level(settings.log_level), *map(_level, settings.loggers.values())]))
    root_logger.addHandler(handler)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        logging.getLogger(logger_name).setLevel(logging.NOTSET)
    for logger_name, level in settings.loggers.items():
        logging.getLogger(logger_name).setLevel(_level(level))

    access_logger = logging.getLogger("uvicorn.access")
    if not any(isinstance(f, HealthCheckFilter) for f in access_logger.filters):
        access_logger.addFilter(HealthCheckFilter())
