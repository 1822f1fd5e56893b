"""Logging configuration for the server, the chat client and the CLI."""

import logging
import os
import sys

from pydantic import BaseModel, Field

# SDK and transport loggers that report every request at INFO
QUIET_LOGGERS = ("anthropic", "openai", "httpx", "httpcore", "uvicorn.access")


class LogConfig(BaseModel):
    """Logging configuration, read from LOG_LEVEL, LOG_FORMAT and LOG_DATE_FORMAT."""

    level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = Field(
        default_factory=lambda: os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    date_format: str = Field(default_factory=lambda: os.getenv("LOG_DATE_FORMAT", "%Y-%m-%d %H:%M:%S"))
    quiet_loggers: tuple[str, ...] = QUIET_LOGGERS


def setup_logging(config: LogConfig | None = None) -> None:
    """Configure the root logger and quiet third-party request logging."""
    config = config or LogConfig()

    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        format=config.format,
        datefmt=config.date_format,
        stream=sys.stdout,
        force=True,
    )

    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Get a module logger.

    Args:
        name: Module name (typically __name__)
        level: Explicit level; LOG_LEVEL is used when omitted

    Returns:
        Logger with its level applied
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())
    return logger
