"""
Unified logging configuration using Loguru.

Intercepts standard library logging (uvicorn, watchdog, our own
``logging.getLogger`` callers) and routes it through Loguru.
Configures file rotation, retention, and compression.
"""

import logging
import sys
from pathlib import Path

from loguru import logger

from marquee.config import settings

# Third-party loggers that flood the log at DEBUG
QUIET_LOGGERS = {
    "watchdog": logging.INFO,
    "urllib3": logging.WARNING,
    "faster_whisper": logging.INFO,
    "uvicorn.access": logging.WARNING,
}


class InterceptHandler(logging.Handler):
    """
    Default handler from examples in loguru documentation.
    See https://loguru.readthedocs.io/en/stable/overview.html#entirely-compatible-with-standard-logging
    """

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(log_dir: Path | None = None) -> None:
    """Configure logging for the application."""

    logging.root.handlers = [InterceptHandler()]
    logging.root.setLevel(logging.DEBUG if settings.debug else logging.INFO)

    # Let every existing logger propagate to the root interceptor
    for name in list(logging.root.manager.loggerDict.keys()):
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logger.remove()

    # 1. Console handler (stderr)
    logger.add(
        sys.stderr,
        level="DEBUG" if settings.debug else "INFO",
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    )

    # 2. File handler
    log_file = Path(log_dir or settings.log_dir).expanduser() / "marquee.log"
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        str(log_file),
        rotation="10 MB",
        retention="1 week",
        compression="zip",
        level="DEBUG",  # Always log debug to file for troubleshooting
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        enqueue=True,  # Thread-safe: watcher and transcription log from worker threads
        backtrace=True,
        diagnose=True,
    )

    logger.info("Logging initialized via Loguru")
