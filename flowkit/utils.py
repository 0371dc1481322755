import json
import logging
from datetime import datetime, UTC
from typing import Any, Dict, Optional


def log_with_context(
    logger: logging.Logger,
    log_level: int,
    msg: str,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """Helper function for structured logging with context

    Args:
        logger: Logger to write to
        log_level: The logging level to use
        msg: The message to log
        context: Optional dictionary of contextual information
    """
    context = dict(context or {})

    # Add timestamp in ISO format using timezone-aware UTC
    context["timestamp"] = datetime.now(UTC).isoformat()

    structured_msg = f"{msg} | Context: {json.dumps(context, default=str)}"
    logger.log(log_level, structured_msg)


def truncate(text: str, max_length: int = 60) -> str:
    """Shorten text for log output"""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."
