import logging
import sys
from typing import Optional

import structlog
from structlog.stdlib import LoggerFactory

from .config import Settings


def configure_logging(log_level: str = "INFO", log_format: str = "console", force: bool = False) -> None:
    """Configure structured logging"""
    # Check if already configured
    if structlog.is_configured() and not force:
        return

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
        stream=sys.stderr,
        force=True,  # Override any root logger config
    )
    renderer = structlog.processors.JSONRenderer() if log_format == "json" else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logger = structlog.get_logger()
    logger.debug("Logging configured", log_level=log_level, log_format=log_format)


def configure_from_settings(settings: Optional[Settings] = None) -> Settings:
    """Configure logging from Settings (read from the environment when omitted)."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level, settings.log_format)
    return settings
