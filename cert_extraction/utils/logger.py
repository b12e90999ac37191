"""
Logging Configuration Module.

Centralized logging for the certificate extraction system. Every record
emitted under the ``cert_extraction`` namespace carries a ``certificate``
attribute naming the OCR dump being processed, so batch runs can be
followed file by file.

Usage:
    from cert_extraction.utils.logger import setup_logger, get_logger, certificate_context

    setup_logger()
    logger = get_logger(__name__)

    with certificate_context("cert_01.txt"):
        logger.info("Extracting certificate fields...")
"""

import contextvars
import logging
import logging.handlers
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, TextIO

import colorama
from colorama import Fore, Style

colorama.init()

ROOT_LOGGER_NAME = "cert_extraction"

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(certificate)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_current_certificate: contextvars.ContextVar = contextvars.ContextVar("certificate", default="-")


class CertificateContextFilter(logging.Filter):
    """Stamp each record with the certificate currently being processed."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'certificate'):
            record.certificate = _current_certificate.get()
        return True


@contextmanager
def certificate_context(source: Optional[str]) -> Iterator[None]:
    """
    Tag log records emitted inside the block with a certificate name.

    Args:
        source: Source file name (or any label); None resets to "-".
    """
    token = _current_certificate.set(source or "-")
    try:
        yield
    finally:
        _current_certificate.reset(token)


class ColoredFormatter(logging.Formatter):
    """
    Console formatter that colors the level name only.

    Colors:
        - DEBUG: Cyan
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Red (bold)
    """

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }
    RESET = Style.RESET_ALL

    def format(self, record: logging.LogRecord) -> str:
        # The record is shared with the file handler, so color a copy.
        colored = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelno, '')
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def setup_logger(
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,  # 10 MB
    backup_count: int = 5,
    colorize: bool = True,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Configure the root logger for the certificate extraction system.

    Call once at application startup. Loggers returned by get_logger()
    inherit this configuration. Calling it again replaces the handlers.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Custom log format string. May use %(certificate)s.
        date_format: Custom date format string.
        log_file: Path to log file. If None, file logging is disabled.
        max_bytes: Maximum log file size before rotation.
        backup_count: Number of backup files to keep.
        colorize: Whether to colorize console output.
        stream: Console stream. Defaults to stdout.

    Returns:
        Configured root logger.

    Example:
        >>> setup_logger(level="DEBUG", log_file="logs/extraction.log")
    """
    log_format = log_format or DEFAULT_LOG_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT
    numeric_level = getattr(logging, level.upper())

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(numeric_level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(numeric_level)
    formatter_class = ColoredFormatter if colorize else logging.Formatter
    console_handler.setFormatter(formatter_class(log_format, datefmt=date_format))
    console_handler.addFilter(CertificateContextFilter())
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        file_handler.addFilter(CertificateContextFilter())
        root_logger.addHandler(file_handler)

    root_logger.propagate = False

    root_logger.debug(f"Logging initialized at {level.upper()}")
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Name for the logger, typically __name__.

    Returns:
        Logger instance under the cert_extraction namespace.
    """
    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logger_from_config(level: Optional[str] = None) -> logging.Logger:
    """
    Initialize logging using settings from the configuration file.

    Args:
        level: Overrides ``logging.level`` (used by --debug and --quiet).

    Returns:
        Configured root logger.
    """
    from config import get_config

    log_file = None
    if get_config("logging.file.enabled", False):
        log_file = get_config("logging.file.path")

    return setup_logger(
        level=level or get_config("logging.level", "INFO"),
        log_format=get_config("logging.format"),
        date_format=get_config("logging.date_format"),
        log_file=log_file,
        max_bytes=get_config("logging.file.max_bytes", 10485760),
        backup_count=get_config("logging.file.backup_count", 5),
        colorize=get_config("logging.console.colorize", True)
    )
