"""
Utility Module for the Certificate Extraction System.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Custom exceptions
    - File and text helpers
"""

from .logger import setup_logger, get_logger
from .helpers import (
    ensure_directory,
    get_file_extension,
    generate_timestamp,
    split_lines,
    normalize_whitespace,
    clamp01,
)

__all__ = [
    'setup_logger',
    'get_logger',
    'ensure_directory',
    'get_file_extension',
    'generate_timestamp',
    'split_lines',
    'normalize_whitespace',
    'clamp01',
]
