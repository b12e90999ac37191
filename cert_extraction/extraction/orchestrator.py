"""
Multi-Strategy Orchestrator Module.

Runs every extraction strategy over the same raw text, collects the
partial field-sets they produce and merges them with the candidate
selector. A strategy that raises is logged and contributes nothing; the
others still run.

Author: ML Engineering Team
"""

from typing import Dict, List, Optional, Sequence

from cert_extraction.extraction.candidate_selector import CandidateSelector
from cert_extraction.extraction.extraction_result import Candidate
from cert_extraction.extraction.pattern_extractor import PatternExtractor
from cert_extraction.extraction.strategies import (
    ContextStrategy,
    KeywordStrategy,
    StructureStrategy,
)
from cert_extraction.postprocessor.normalizers import TextNormalizer
from cert_extraction.postprocessor.validators import FieldValidator
from cert_extraction.postprocessor.vocabulary import Vocabulary
from cert_extraction.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class MultiStrategyOrchestrator:
    """
    Runs pattern, context, keyword and structure strategies and merges them.

    Any object with a ``name`` attribute and an ``extract_candidates(text)``
    method can be passed as a strategy.

    Example:
        >>> orchestrator = MultiStrategyOrchestrator()
        >>> fields = orchestrator.extract(raw_text)
        >>> print(fields['title'])
    """

    def __init__(
        self,
        vocabulary: Optional[Vocabulary] = None,
        strategies: Optional[Sequence] = None,
        selector: Optional[CandidateSelector] = None
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            vocabulary: Keyword configuration shared by every strategy.
            strategies: Strategy objects, in priority order. Defaults to
                        pattern, context, keyword, structure.
            selector: Candidate selector used for merging.
        """
        self.vocabulary = vocabulary or Vocabulary.from_config()

        if strategies is None:
            normalizer = TextNormalizer(self.vocabulary)
            validator = FieldValidator(self.vocabulary)
            strategies = [
                PatternExtractor(self.vocabulary, normalizer=normalizer, validator=validator),
                ContextStrategy(self.vocabulary, normalizer, validator),
                KeywordStrategy(self.vocabulary, normalizer, validator),
                StructureStrategy(self.vocabulary, normalizer, validator),
            ]
        self.strategies = list(strategies)
        self.selector = selector or CandidateSelector(self.vocabulary)

        logger.debug(f"Orchestrator initialized with strategies: {[s.name for s in self.strategies]}")

    def collect(self, text: str) -> List[Candidate]:
        """
        Run every strategy and collect their candidates.

        Args:
            text: Raw OCR text.

        Returns:
            One candidate per strategy that produced anything, in
            strategy order.
        """
        candidates: List[Candidate] = []
        for strategy in self.strategies:
            try:
                candidate = strategy.extract_candidates(text)
            except Exception as e:
                logger.warning(f"Strategy '{strategy.name}' failed, skipping: {e}")
                continue

            if candidate:
                logger.debug(f"Strategy '{strategy.name}' proposed: {sorted(candidate)}")
                candidates.append(candidate)

        return candidates

    def extract(self, text: str) -> Dict[str, Optional[str]]:
        """
        Extract fields by merging all strategies.

        Args:
            text: Raw OCR text.

        Returns:
            Dictionary with every field name; missing fields are None.
        """
        if not text or not text.strip():
            return self.selector.merge([])
        return self.selector.merge(self.collect(text))
