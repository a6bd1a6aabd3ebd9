"""
Common helpers for the recipes engine: logging setup and JSON encoding of
contract-call payloads.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional, Union


# Logging utilities
def get_logger(
    name: str,
    level: Union[str, int] = logging.INFO,
    extra: Optional[Dict[str, Any]] = None,
) -> logging.Logger:
    """
    Get a structured logger with consistent formatting and extra context.

    Args:
        name: Logger name (typically __name__)
        level: Logging level
        extra: Additional context fields to include in all log messages

    Returns:
        Configured logger with structured output
    """
    logger = logging.getLogger(name)

    if logger.level == logging.NOTSET:
        logger.setLevel(level)

    if extra:
        return logging.LoggerAdapter(logger, extra)

    return logger


def setup_logging(level: Union[str, int] = logging.INFO) -> None:
    """
    Configure the root logger for command line use.

    Uses a short timestamp and keeps aiohttp's access chatter at WARNING.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(console)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("near_recipes").setLevel(level)


# JSON utilities
def compact_json(data: Any) -> str:
    """Serialize a contract payload the way NEAR contracts expect it (no spaces)."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def json_bytes(data: Any) -> bytes:
    """UTF-8 encoded compact JSON, used for function-call args."""
    return compact_json(data).encode("utf-8")
