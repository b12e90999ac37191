"""
Extraction Module for the Certificate Extraction System.

This module turns raw certificate OCR text into structured fields.

Extraction paths:
    - PatternExtractor: ordered regexes per field (fast default)
    - MultiStrategyOrchestrator: pattern, context, keyword and structure
      strategies merged by CandidateSelector
    - LLMExtractor: one configured LLM backend with a deadline and
      rule-based fallback

Author: ML Engineering Team
"""

from .extraction_result import ExtractionResult, ExtractionMethod, FIELD_NAMES, REQUIRED_FIELDS
from .pattern_extractor import PatternExtractor
from .strategies import ContextStrategy, KeywordStrategy, StructureStrategy
from .candidate_selector import CandidateSelector
from .orchestrator import MultiStrategyOrchestrator
from .llm_extractor import LLMExtractor, select_backend

__all__ = [
    'ExtractionResult',
    'ExtractionMethod',
    'FIELD_NAMES',
    'REQUIRED_FIELDS',
    'PatternExtractor',
    'ContextStrategy',
    'KeywordStrategy',
    'StructureStrategy',
    'CandidateSelector',
    'MultiStrategyOrchestrator',
    'LLMExtractor',
    'select_backend'
]
