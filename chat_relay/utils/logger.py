"""Loguru setup for the relay.

Every line carries the client address of the request being relayed:
the chat controller wraps each request in ``logger.contextualize(client=...)``
and lines logged outside a request show ``-``.  uvicorn and httpx log
through the standard ``logging`` module, which is routed into Loguru so
their lines share the same sinks and format.
"""

from __future__ import annotations

import sys
import logging
from pathlib import Path

from loguru import logger

from ..config.app_config import AppConfig, get_app_config

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "client=<magenta>{extra[client]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

# Standard-library loggers whose records are re-emitted through Loguru
ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx")


class LoguruHandler(logging.Handler):
    """Forward standard logging records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except (KeyError, ValueError):
            level = record.levelno

        # Skip logging's own frames so Loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _route_stdlib_logging() -> None:
    handler = LoguruHandler()
    logging.basicConfig(handlers=[handler], level=logging.WARNING, force=True)
    for name in ROUTED_LOGGERS:
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [handler]
        stdlib_logger.propagate = False


def setup_logging(app_config: AppConfig | None = None) -> "loguru.Logger":
    """Install the console sink and, when ``LOG_FILE`` is set, a rotating file sink.

    Safe to call more than once: existing sinks are removed first, so each
    app built by ``create_app`` reconfigures rather than duplicates output.
    """
    if app_config is None:
        app_config = get_app_config()

    logger.remove()
    logger.configure(extra={"client": "-"})

    logger.add(
        sys.stdout,
        level=app_config.log_level,
        format=LOG_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=app_config.app_debug,
    )

    if app_config.log_file:
        Path(app_config.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            app_config.log_file,
            level=app_config.log_level,
            format=LOG_FORMAT,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            backtrace=True,
            diagnose=app_config.app_debug,
        )

    _route_stdlib_logging()
    logger.debug("Logging configured at {} ({})", app_config.log_level, app_config.app_env)
    return logger
