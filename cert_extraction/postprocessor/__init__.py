"""
Post-Processing Module for the Certificate Extraction System.

This module provides functionality for:
    - Keyword vocabulary shared by every component
    - OCR text cleaning and date normalization
    - Field plausibility validation

Author: ML Engineering Team
"""

from .vocabulary import Vocabulary, DEFAULT_VOCABULARY, contains_keyword
from .normalizers import TextNormalizer, DateNormalizer, clean_text, normalize_date
from .validators import DateValidator, FieldValidator

__all__ = [
    'Vocabulary',
    'DEFAULT_VOCABULARY',
    'contains_keyword',
    'TextNormalizer',
    'DateNormalizer',
    'clean_text',
    'normalize_date',
    'DateValidator',
    'FieldValidator'
]
