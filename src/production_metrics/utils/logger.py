# utils/logger.py
import logging
from pathlib import Path

from production_metrics.utils.config import config

LOG_LEVEL = config.LOG_LEVEL

# Create formatter
formatter = logging.Formatter(
    fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

# Console handler (for local runs)
console_handler = logging.StreamHandler()
console_handler.setLevel("INFO")  # Always show INFO+ in console
console_handler.setFormatter(formatter)

_file_handler = None


def _get_file_handler():
    """File handler only when LOG_FILE is configured; built once."""
    global _file_handler
    if _file_handler is None and config.LOG_FILE:
        log_path = Path(config.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _file_handler = logging.FileHandler(log_path, encoding="utf-8")
        _file_handler.setLevel(LOG_LEVEL)
        _file_handler.setFormatter(formatter)
    return _file_handler


def get_logger(name: str = "production_metrics") -> logging.Logger:
    """Return a configured logger instance."""
    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVEL)

    # Avoid duplicate handlers if called multiple times
    if not logger.handlers:
        file_handler = _get_file_handler()
        if file_handler is not None:
            logger.addHandler(file_handler)
        logger.addHandler(console_handler)

    return logger
