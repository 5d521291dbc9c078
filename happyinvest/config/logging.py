"""
Logging configuration.

Configures loguru sinks with rotation and retention policies.
"""

import sys

from loguru import logger

from happyinvest.config.settings import settings


def setup_logging(log_file: str = "logs/happyinvest.log") -> None:
    """Configure logger with console output and file rotation."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.add(
        log_file,
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
    )

    logger.info("HappyInvest engine logging configured")
