"""
Logging setup for korea-law entry points.

Library modules only call ``logging.getLogger(__name__)``; the CLI and the
sync entry points call ``setup_logging("korea_law")`` once. Console output
goes to stderr because the CLI prints JSON results on stdout.

Environment:
    KOREA_LAW_LOG_LEVEL   level (falls back to LOG_LEVEL, then INFO)
    KOREA_LAW_LOG_FORMAT  logging format string
    KOREA_LAW_LOG_DIR     directory for the optional log file ("./logs")
    KOREA_LAW_LOG_FILE    log file name; unset means console only
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from korea_law.core.config import LOG_LEVEL

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_DIR = Path("logs")

ENV_LOG_LEVEL = "KOREA_LAW_LOG_LEVEL"
ENV_LOG_FORMAT = "KOREA_LAW_LOG_FORMAT"
ENV_LOG_DIR = "KOREA_LAW_LOG_DIR"
ENV_LOG_FILE = "KOREA_LAW_LOG_FILE"

# Chatty dependencies held at WARNING unless the package runs at DEBUG
NOISY_LOGGERS = ("urllib3", "sqlalchemy.engine")


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv(ENV_LOG_LEVEL) or LOG_LEVEL or "INFO").upper()
    return getattr(logging, name, logging.INFO)


def setup_logging(
    name: str = "korea_law",
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_dir: Optional[Path] = None,
    console: bool = True,
) -> logging.Logger:
    """
    Configure a logger tree for a run.

    Calling it again replaces the handlers instead of stacking them.

    Args:
        name: Logger name ("korea_law" configures the whole package)
        level: DEBUG, INFO, WARNING, ...; see module docstring for fallbacks
        log_file: File name inside log_dir (defaults to KOREA_LAW_LOG_FILE)
        log_dir: Directory for the log file (defaults to KOREA_LAW_LOG_DIR)
        console: Attach a stderr handler

    Returns:
        The configured logger

    Examples:
        >>> logger = setup_logging("korea_law", level="DEBUG")
        >>> logger = setup_logging("korea_law", log_file="sync.log")
    """
    numeric_level = _resolve_level(level)
    formatter = logging.Formatter(
        os.getenv(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT), datefmt=DEFAULT_DATE_FORMAT
    )

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    log_file = log_file or os.getenv(ENV_LOG_FILE)
    if log_file:
        directory = log_dir or Path(os.getenv(ENV_LOG_DIR) or DEFAULT_LOG_DIR)
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(directory / log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if numeric_level > logging.DEBUG:
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
