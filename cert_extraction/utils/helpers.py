"""
Helper Utilities Module.

This module provides common utility functions used throughout the
certificate extraction system. Functions here are generic and reusable
across different modules.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - get_file_extension: Extract file extension safely
    - generate_timestamp: Generate formatted timestamps
    - read_text_file: Read an OCR text dump
    - write_jsonl: Write records as JSON Lines
    - split_lines: Split raw OCR text into non-empty stripped lines
    - normalize_whitespace: Collapse runs of whitespace
    - clamp01: Clamp a number into [0, 1]
"""

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.

    Example:
        >>> ensure_directory("outputs/reports")
        PosixPath('outputs/reports')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Extract the lowercase file extension, including the dot.

    Example:
        >>> get_file_extension("certificate.TXT")
        ".txt"
    """
    return Path(filepath).suffix.lower()


def generate_timestamp(format_str: str = "%Y%m%d_%H%M%S") -> str:
    """
    Generate a formatted timestamp string.

    Args:
        format_str: strftime format string.

    Returns:
        Formatted timestamp string.
    """
    return datetime.now().strftime(format_str)


def read_text_file(filepath: Union[str, Path]) -> str:
    """Read a UTF-8 OCR text dump, replacing undecodable bytes."""
    with open(filepath, 'r', encoding='utf-8', errors='replace') as f:
        return f.read()


def write_jsonl(path: Union[str, Path], rows: Iterable[Dict[str, Any]]) -> int:
    """
    Write records to a JSON Lines file.

    Args:
        path: Output file path. Parent directories are created.
        rows: Dictionaries to serialize, one per line.

    Returns:
        Number of records written.
    """
    out_path = Path(path)
    ensure_directory(out_path.parent)
    count = 0
    with open(out_path, 'w', encoding='utf-8') as f:
        for row in rows:
            f.write(json.dumps(row, ensure_ascii=False) + "\n")
            count += 1
    return count


def split_lines(text: str) -> List[str]:
    """
    Split raw OCR text into stripped, non-empty lines.

    Example:
        >>> split_lines("  COURSERA \\n\\n John Smith ")
        ['COURSERA', 'John Smith']
    """
    if not text:
        return []
    raw = text.replace("\r\n", "\n").replace("\r", "\n")
    return [line.strip() for line in raw.split("\n") if line.strip()]


def normalize_whitespace(text: str) -> str:
    """Collapse every run of whitespace (including newlines) to one space."""
    return re.sub(r"\s+", " ", text).strip()


def clamp01(value: float) -> float:
    """Clamp a number into the closed interval [0, 1]."""
    return max(0.0, min(1.0, value))
