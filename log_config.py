"""Loguru setup.

Development gets colored human-readable lines, production gets one JSON
object per line so the output can be shipped to a log collector as is.
"""

import json
import sys
import traceback
from typing import Any

from loguru import logger


def serialize(record: dict[str, Any]) -> str:
    subset = {
        "time": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "module": record["module"],
        "function": record["function"],
        "line": record["line"],
    }
    subset.update(record["extra"])

    if exc := record["exception"]:
        subset["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value),
            "traceback": traceback.format_exception(exc.type, exc.value, exc.traceback),
        }

    return json.dumps(subset, default=str)


def patching(record: dict[str, Any]) -> None:
    record["extra"]["serialized"] = serialize(record)


def json_formatter(record: dict[str, Any]) -> str:
    # Callable formats stop loguru from appending the traceback a second time.
    return "{extra[serialized]}\n"


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Replace loguru's default handler with a single stdout sink."""
    logger.remove()

    if json_logs:
        logger.configure(patcher=patching)
        logger.add(sys.stdout, level=level, format=json_formatter)
    else:
        logger.add(
            sys.stdout,
            level=level,
            format=(
                "<green>{time:HH:mm:ss.SSS}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level>"
            ),
            colorize=True,
        )
