"""
Candidate Selector Module.

Merges per-field candidates from several strategies into one value using
a field-specific heuristic score. Scores are additive; the highest one
wins and ties go to the candidate seen first.

Scoring (base score for every field is ``min(len / 10, 5)``):
    - title: +3 credential words, +2 degree words, +1 achievement words,
      -2 when longer than 50 chars, -3 when shorter than 5 chars
    - institution: +3 institution keywords, +2 known platforms/companies,
      -5 boilerplate phrases (and boilerplate is dropped outright whenever
      a non-boilerplate candidate exists)
    - recipient: +3 strict "Firstname Lastname[ Middle]" shape,
      -5 credential vocabulary, -2 more than 4 words
    - date_issued: +5 exact ISO shape, +2 four-digit year,
      +3 numeric separator pattern

Author: ML Engineering Team
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence

from cert_extraction.extraction.extraction_result import Candidate, FIELD_NAMES
from cert_extraction.postprocessor.vocabulary import Vocabulary, contains_keyword
from cert_extraction.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class CandidateSelector:
    """
    Picks the best value per field from strategy candidates.

    Example:
        >>> selector = CandidateSelector()
        >>> selector.select_best(
        ...     ["Given This Day Under The Seal Of The University", "Stanford University"],
        ...     "institution",
        ... )
        'Stanford University'
    """

    STRICT_NAME = re.compile(r"[A-Z][a-z]+ [A-Z][a-z]+(?: [A-Z][a-z]+)?")
    ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
    YEAR = re.compile(r"\b\d{4}\b")
    NUMERIC_DATE = re.compile(r"\d{1,2}[/\-]\d{1,2}[/\-]\d{4}")

    def __init__(self, vocabulary: Optional[Vocabulary] = None) -> None:
        """
        Initialize the selector.

        Args:
            vocabulary: Keyword configuration. If None, loaded from config.
        """
        self.vocabulary = vocabulary or Vocabulary.from_config()

    def select_best(self, candidates: Sequence[Optional[str]], field: str) -> Optional[str]:
        """
        Select the best candidate value for a field.

        Args:
            candidates: Candidate values in strategy order. Empty values
                        are ignored.
            field: Field name the values belong to.

        Returns:
            Winning value, or None when there are no candidates.
        """
        values = [c for c in candidates if c]
        if not values:
            return None
        if len(values) == 1:
            return values[0]

        # Boilerplate never beats a genuine institution, whatever its score
        if field == 'institution':
            genuine = [v for v in values if not self.vocabulary.contains_boilerplate(v)]
            if genuine:
                values = genuine

        best = values[0]
        best_score = self.score_field_candidate(best, field)
        for value in values[1:]:
            score = self.score_field_candidate(value, field)
            if score > best_score:
                best, best_score = value, score

        logger.debug(f"Selected {field}={best!r} (score {best_score:.1f}) from {len(values)} candidates")
        return best

    def merge(self, candidate_sets: Iterable[Candidate]) -> Dict[str, Optional[str]]:
        """
        Merge whole candidate field-sets into one field dictionary.

        Args:
            candidate_sets: Partial field-sets, one per strategy.

        Returns:
            Dictionary with every field name.
        """
        per_field: Dict[str, List[str]] = {name: [] for name in FIELD_NAMES}
        for candidate in candidate_sets:
            for name, value in candidate.items():
                if name in per_field and value:
                    per_field[name].append(value)
        return {name: self.select_best(values, name) for name, values in per_field.items()}

    def score_field_candidate(self, value: str, field: str) -> float:
        """
        Score one candidate value for a field.

        Args:
            value: Candidate value.
            field: Field name; unknown fields get the base score only.

        Returns:
            Heuristic score (higher is better, may be negative).
        """
        score = min(len(value) / 10, 5)
        vocab = self.vocabulary

        if field == 'title':
            if contains_keyword(value, vocab.credential_words):
                score += 3
            if contains_keyword(value, vocab.degree_words):
                score += 2
            if contains_keyword(value, vocab.achievement_words):
                score += 1
            if len(value) > 50:
                score -= 2
            if len(value) < 5:
                score -= 3

        elif field == 'institution':
            if contains_keyword(value, vocab.institution_keywords):
                score += 3
            if contains_keyword(value, vocab.platform_names):
                score += 2
            if vocab.contains_boilerplate(value):
                score -= 5

        elif field == 'recipient':
            if self.STRICT_NAME.fullmatch(value):
                score += 3
            if contains_keyword(value, vocab.credential_words + vocab.achievement_words):
                score -= 5
            if len(value.split()) > 4:
                score -= 2

        elif field == 'date_issued':
            if self.ISO_DATE.fullmatch(value):
                score += 5
            if self.YEAR.search(value):
                score += 2
            if self.NUMERIC_DATE.search(value):
                score += 3

        return score
