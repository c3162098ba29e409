# app/core/logging_config.py

import logging
import sys

from loguru import logger

from app.config.settings import settings

# stdlib loggers used by the domain layer; they follow LOG_LEVEL
DOMAIN_LOGGERS = (
    "onboarding_dialogue",
    "intent_classifier",
    "help_responder",
    "media_text",
    "session_store",
    "vendor_directory",
    "vendor_api_client",
    "api.whatsapp",
    "api.deps",
)

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru, keeping the caller's frame."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging() -> None:
    """
    Configure loguru as the single sink for the API process and the arq worker.

    Local runs get coloured console lines; any other ENVIRONMENT gets one JSON
    object per line so the platform's log shipper can parse it.
    """
    logger.remove()

    level = settings.LOG_LEVEL.upper()
    if settings.ENVIRONMENT.lower() in ("local", "dev", "development"):
        logger.add(sys.stdout, format=CONSOLE_FORMAT, level=level, colorize=True, backtrace=False, diagnose=False)
    else:
        logger.add(sys.stdout, level=level, serialize=True, backtrace=False, diagnose=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "arq"):
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False
    for name in DOMAIN_LOGGERS:
        logging.getLogger(name).setLevel(level)

    # Quieten noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
