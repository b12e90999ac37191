"""
Certificate Extraction Pipeline.

Single entry point tying the extraction paths to the confidence scorer:

    raw OCR text → extractor (pattern | multi_strategy | llm) → scorer → ExtractionResult

``extract`` never raises for bad input: unintelligible or empty text
produces an all-null result with confidence 0.0.

Author: ML Engineering Team
"""

import time
from contextlib import nullcontext
from typing import Any, Dict, Iterable, List, Optional, Tuple

from config import get_config
from cert_extraction.extraction.extraction_result import ExtractionMethod, ExtractionResult
from cert_extraction.extraction.llm_extractor import LLMExtractor
from cert_extraction.extraction.orchestrator import MultiStrategyOrchestrator
from cert_extraction.extraction.pattern_extractor import PatternExtractor
from cert_extraction.postprocessor.vocabulary import Vocabulary
from cert_extraction.scoring.confidence import ConfidenceScorer
from cert_extraction.utils.logger import certificate_context, get_logger

# Initialize module logger
logger = get_logger(__name__)

MODES = ('pattern', 'multi_strategy', 'llm')


class CertificateExtractor:
    """
    Certificate field extraction with confidence scoring.

    Modes:
        - pattern: ordered regexes only
        - multi_strategy: four strategies merged by the candidate selector
        - llm: configured LLM backend, falling back to multi_strategy

    Attributes:
        mode: Active extraction mode
        vocabulary: Keyword configuration shared by all components
        scorer: Confidence scorer

    Example:
        >>> extractor = CertificateExtractor(mode="pattern")
        >>> result = extractor.extract(
        ...     "Certificate of Data Science issued by Coursera to John Smith on June 19, 2023"
        ... )
        >>> result.recipient
        'John Smith'
        >>> result.requires_review
        False
    """

    def __init__(
        self,
        mode: Optional[str] = None,
        vocabulary: Optional[Vocabulary] = None,
        scorer: Optional[ConfidenceScorer] = None,
        llm_extractor: Optional[LLMExtractor] = None
    ) -> None:
        """
        Initialize the extractor.

        Args:
            mode: Extraction mode. If None, uses config (extraction.mode).
            vocabulary: Keyword configuration. If None, loaded from config.
            scorer: Confidence scorer. Built from the vocabulary if None.
            llm_extractor: LLM extractor for llm mode. Built from config
                           if None.

        Raises:
            ValueError: If the mode is unknown.
        """
        self.mode = (mode or get_config("extraction.mode", "multi_strategy")).strip().lower()
        if self.mode not in MODES:
            raise ValueError(f"Unknown extraction mode '{self.mode}', expected one of {MODES}")

        self.vocabulary = vocabulary or Vocabulary.from_config()
        self.scorer = scorer or ConfidenceScorer(self.vocabulary)
        self.pattern_extractor = PatternExtractor(self.vocabulary)
        self.orchestrator = MultiStrategyOrchestrator(self.vocabulary)

        self.llm_extractor = llm_extractor
        if self.mode == 'llm' and self.llm_extractor is None:
            self.llm_extractor = LLMExtractor(fallback=self.orchestrator, vocabulary=self.vocabulary)

        logger.info(f"CertificateExtractor initialized (mode: {self.mode})")

    def extract_fields(self, raw_text: str) -> Tuple[Dict[str, Optional[str]], ExtractionMethod]:
        """
        Run the configured extraction path without scoring.

        Args:
            raw_text: Raw OCR text.

        Returns:
            Tuple of (fields, method).
        """
        if self.mode == 'pattern':
            return self.pattern_extractor.extract(raw_text), ExtractionMethod.PATTERN
        if self.mode == 'llm':
            return self.llm_extractor.extract(raw_text)
        return self.orchestrator.extract(raw_text), ExtractionMethod.MULTI_STRATEGY

    def extract(
        self,
        raw_text: Any,
        upstream_confidence: Optional[float] = None,
        source_file: Optional[str] = None
    ) -> ExtractionResult:
        """
        Extract certificate fields and score them.

        Args:
            raw_text: Raw OCR text. Non-string input is treated as empty.
            upstream_confidence: OCR-layer confidence, carried through
                                 untouched.
            source_file: Originating file, recorded on the result.

        Returns:
            Immutable ExtractionResult.
        """
        text = raw_text if isinstance(raw_text, str) else ""
        start_time = time.time()

        # Keep any caller's context when no source file is given
        context = certificate_context(source_file) if source_file else nullcontext()
        with context:
            fields, method = self.extract_fields(text)
            result = self.scorer.score(
                fields,
                method,
                raw_text=text,
                upstream_confidence=upstream_confidence,
            )
            if source_file:
                result = result.with_source(source_file)

            logger.info(
                f"Extracted {len(result.extracted_fields)}/6 fields via {method.value} "
                f"(confidence {result.confidence:.2f}, review: {result.requires_review}) "
                f"in {time.time() - start_time:.3f}s"
            )
        return result

    def extract_batch(
        self,
        texts: Iterable[Any],
        upstream_confidence: Optional[float] = None
    ) -> List[ExtractionResult]:
        """
        Extract several documents, one after another.

        Args:
            texts: Raw OCR texts.
            upstream_confidence: Confidence applied to every document.

        Returns:
            One result per input, in input order.
        """
        return [self.extract(text, upstream_confidence) for text in texts]


def extract(
    raw_text: Any,
    upstream_confidence: Optional[float] = None,
    mode: Optional[str] = None
) -> ExtractionResult:
    """
    Convenience function: extract one certificate with a fresh extractor.

    Example:
        >>> result = extract("This is to certify that Jane Doe has completed Python Basics")
        >>> result.recipient
        'Jane Doe'
    """
    return CertificateExtractor(mode=mode).extract(raw_text, upstream_confidence)
