"""Structured logging utilities."""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from polisgeo.utils.error_tracking import capture_exception

LOGGER_NAME = "polisgeo"


def setup_logging(level: str = "INFO"):
    """Setup structured JSON logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(message)s',
        handlers=[logging.StreamHandler()]
    )


def log_structured(level: str, message: str, **kwargs):
    """
    Log structured JSON message.

    Args:
        level: Log level (debug, info, warning, error, etc.)
        message: Log message
        **kwargs: Additional structured fields
    """
    logger = logging.getLogger(LOGGER_NAME)
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        level_no = logging.INFO

    # Debug events fire per lookup; skip serialization when filtered out
    if not logger.isEnabledFor(level_no):
        return

    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level.upper(),
        "message": message,
        **kwargs
    }
    logger.log(level_no, json.dumps(log_entry, ensure_ascii=False, default=str))


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None):
    """
    Log an exception as structured JSON and forward it to error tracking.

    Args:
        error: The exception that was caught
        context: Where it happened (module, function, input, ...)
    """
    context = context or {}
    log_structured(
        "error",
        f"{type(error).__name__}: {error}",
        error_type=type(error).__name__,
        **context
    )
    capture_exception(error, context)
