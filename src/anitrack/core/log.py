"""Logging setup for stdlib logging and structlog."""

import logging
from logging.handlers import RotatingFileHandler

import structlog

from anitrack.core.config import LoggingConfig

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(config: LoggingConfig) -> None:
    """Configure stdlib logging and route structlog events through it.

    Args:
        config: Logging section of the settings
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(
            RotatingFileHandler(
                config.file,
                maxBytes=config.max_size * 1024 * 1024,
                backupCount=config.backup_count,
            )
        )

    logging.basicConfig(
        level=level,
        format="%(message)s" if config.json_format else TEXT_FORMAT,
        handlers=handlers,
        force=True,
    )

    if config.json_format:
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Timestamp and level come from the stdlib format
        processors = [structlog.dev.ConsoleRenderer(colors=False)]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
