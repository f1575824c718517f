"""
cachebench Logging Configuration
================================
Centralized logging configuration using loguru.

Provides:
  - configure_logging(): Setup function called at application startup
  - JSON log format when LOG_FORMAT=json environment variable is set
  - Optional file sink (the CLI writes <output_dir>/benchmark.log)
  - Redirection of stdlib logging (redis, pymemcache) into loguru
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

HUMAN_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

JSON_FORMAT = (
    '{{"timestamp": "{time:YYYY-MM-DDTHH:mm:ss.SSSZ}", '
    '"level": "{level}", '
    '"logger": "{name}", '
    '"function": "{function}", '
    '"line": {line}, '
    '"message": "{message}"}}'
)


def configure_logging(
    level: Optional[str] = "INFO",
    json_format: Optional[bool] = None,
    *,
    sink: Optional[Union[str, Path]] = None,
) -> None:
    """
    Configure loguru logging for cachebench.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, use JSON format. If None, check LOG_FORMAT env var.
        sink: Optional file path; receives DEBUG and above in addition to stderr.

    Environment:
        LOG_FORMAT: Set to "json" to enable JSON formatted logs.
        LOG_LEVEL: Used when level is None.
    """
    if json_format is None:
        json_format = os.environ.get("LOG_FORMAT", "").lower() == "json"

    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")

    logger.remove()

    format_str = JSON_FORMAT if json_format else HUMAN_FORMAT
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=format_str,
        colorize=not json_format,
        backtrace=True,
        diagnose=False,
    )

    if sink is not None:
        Path(sink).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(sink),
            level="DEBUG",
            format=format_str,
            colorize=False,
            enqueue=True,  # worker threads log too
        )

    _intercept_standard_logging(level)
    logger.debug(f"Logging configured: level={level}, json_format={json_format}, sink={sink}")


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            log_level = logger.level(record.levelname).name
        except ValueError:
            log_level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            log_level, record.getMessage()
        )


def _intercept_standard_logging(level: str) -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for logger_name in ("redis", "pymemcache"):
        logging.getLogger(logger_name).setLevel(level.upper())


__all__ = ["configure_logging", "InterceptHandler", "logger"]
