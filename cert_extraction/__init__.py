"""
Certificate Extraction System - Source Package.

This package turns raw OCR text of certificates (course completions,
degrees, internships, workshops) into structured fields plus a
confidence score that decides whether a human should review the result.

Modules:
    - postprocessor: Vocabulary, text/date normalization, validation
    - extraction: Pattern, multi-strategy and LLM field extraction
    - scoring: Confidence scoring and review routing
    - evaluation: Accuracy metrics against a labelled set
    - utils: Logging, exceptions, helpers

Architecture:
    OCR text → Extraction (pattern | multi_strategy | llm) → Scoring → Result
                                                                  ↓
                                                             Evaluation
"""

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

__all__ = [
    'postprocessor',
    'extraction',
    'scoring',
    'evaluation',
    'utils'
]
