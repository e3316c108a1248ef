import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from config import LOG_PATH

API_LOGGER_NAME = "vacations.api"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _default_log_path() -> str:
    base = os.path.abspath(os.path.dirname(__file__))
    return os.path.join(base, "..", "logs", "api.log")


def setup_api_logger(log_path: Optional[str] = None) -> logging.Logger:
    """Return the `vacations.api` logger used by the exception handlers.

    Writes to a rotating file (5 MB x 5) at `log_path`, then ``LOG_PATH``,
    then ./logs/api.log. Calling it again does not add handlers.
    """
    logger = logging.getLogger(API_LOGGER_NAME)
    logger.setLevel(logging.INFO)
    if logger.handlers:
        return logger

    path = log_path or LOG_PATH or _default_log_path()
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

    handler = RotatingFileHandler(path, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
