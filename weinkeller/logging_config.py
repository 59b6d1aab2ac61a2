"""Logging setup for the server and the CLI."""

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


def get_environment() -> str:
    """Deployment environment from APP_ENV, falling back to NODE_ENV."""
    value = os.environ.get("APP_ENV") or os.environ.get("NODE_ENV") or "development"
    return value.strip().lower()


def get_log_level() -> int:
    """
    Resolve the log level from the environment.

    LOG_LEVEL wins when set to a known level name. Otherwise production
    (APP_ENV, or NODE_ENV when APP_ENV is unset) logs at INFO and
    everything else at DEBUG.
    """
    name = os.environ.get("LOG_LEVEL", "").strip().upper()
    level = logging.getLevelName(name) if name else None
    if isinstance(level, int):
        return level
    if get_environment() == "production":
        return logging.INFO
    return logging.DEBUG


def _log_uncaught(exc_type, exc_value, exc_tb) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_tb)
        return
    logging.getLogger("weinkeller").critical(
        "Uncaught exception", exc_info=(exc_type, exc_value, exc_tb)
    )


def configure_logging(level: int | None = None) -> None:
    """
    Configure root logging once and log uncaught exceptions.

    Args:
        level: Explicit level; defaults to get_log_level().
    """
    level = level if level is not None else get_log_level()
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logging.getLogger("weinkeller").setLevel(level)
    # SQL echo is controlled by Database(echo=...), not by the app level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    sys.excepthook = _log_uncaught
    logger.debug(f"Logging configured at {logging.getLevelName(level)}")
