"""
Centralized logging configuration for ApplyTrack.

Every module logs through ``logging.getLogger(__name__)``, so all of the
application's records sit under the ``applytrack`` logger and can be tuned
apart from the libraries underneath it.
"""
import logging
import sys
from typing import Optional

APP_LOGGER = "applytrack"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Libraries that are chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "multipart", "python_multipart", "google", "urllib3")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None,
                  library_level: str = "WARNING") -> logging.Logger:
    """
    Configure application-wide logging and return the ``applytrack`` logger.

    Args:
        level: Level for ApplyTrack's own loggers (DEBUG, INFO, ...)
        log_file: Optional file path for log output
        library_level: Level for the third-party loggers in ``QUIET_LOGGERS``
    """
    app_level = getattr(logging, level.upper(), logging.INFO)
    quiet_level = getattr(logging, library_level.upper(), logging.WARNING)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root_logger = logging.getLogger()
    # Replace whatever a previous call (or uvicorn --reload) installed
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    root_logger.setLevel(min(app_level, logging.INFO))

    logging.getLogger(APP_LOGGER).setLevel(app_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    return logging.getLogger(APP_LOGGER)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``applytrack`` namespace.

    Module names already start with ``applytrack.``; anything else is
    nested under it so it follows the application level.
    """
    if name != APP_LOGGER and not name.startswith(APP_LOGGER + "."):
        name = f"{APP_LOGGER}.{name}"
    return logging.getLogger(name)
