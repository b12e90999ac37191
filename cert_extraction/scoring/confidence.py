"""
Confidence Scoring Module.

Turns extracted fields plus the extraction method into an immutable
ExtractionResult carrying a 0-1 confidence and the review flag.

Composition (summed, then clamped to [0, 1]):
    - Base score for the extraction method
    - Completeness: share of title/institution/recipient/date present, x0.3
    - +0.2 when the institution names a trusted issuer
    - +0.1 for a valid, plausible issue date; -0.1 for a present but
      invalid one
    - +0.1 when the recipient looks like a person's name
    - +0.1 when the title passes the title validator

A result with no fields at all scores 0.0. ``requires_review`` is true
whenever confidence is below ``REVIEW_THRESHOLD``.

Author: ML Engineering Team
"""

from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Union

from config import get_config
from cert_extraction.extraction.extraction_result import (
    ExtractionMethod,
    ExtractionResult,
    FIELD_NAMES,
    REQUIRED_FIELDS,
)
from cert_extraction.postprocessor.validators import DateValidator, FieldValidator
from cert_extraction.postprocessor.vocabulary import Vocabulary, contains_keyword
from cert_extraction.utils.helpers import clamp01
from cert_extraction.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

# Results below this confidence go to a human reviewer
REVIEW_THRESHOLD = 0.7

# Results at or above this confidence are considered high confidence
HIGH_CONFIDENCE_THRESHOLD = 0.8

DEFAULT_METHOD_SCORES: Dict[str, float] = {
    'pattern': 0.9,
    'llm': 0.8,
    'multi_strategy': 0.7,
    'llm_fallback': 0.5,
}

DEFAULT_WEIGHTS: Dict[str, float] = {
    'completeness': 0.3,
    'known_issuer': 0.2,
    'valid_date': 0.1,
    'invalid_date_penalty': 0.1,
    'valid_recipient': 0.1,
    'valid_title': 0.1,
}


def requires_review(confidence: float, threshold: Optional[float] = None) -> bool:
    """
    Decide whether a result needs human review.

    Args:
        confidence: Confidence in [0, 1].
        threshold: Review threshold. Defaults to REVIEW_THRESHOLD.

    Returns:
        True when confidence is strictly below the threshold.
    """
    return confidence < (REVIEW_THRESHOLD if threshold is None else threshold)


def is_high_confidence(
    result: Union[ExtractionResult, float],
    threshold: Optional[float] = None
) -> bool:
    """
    Check whether a result (or a bare confidence) is high confidence.

    Args:
        result: ExtractionResult or a confidence in [0, 1].
        threshold: Defaults to ``confidence.high_confidence_threshold``
                   from config, then HIGH_CONFIDENCE_THRESHOLD.

    Example:
        >>> is_high_confidence(0.85)
        True
    """
    if threshold is None:
        threshold = get_config("confidence.high_confidence_threshold", HIGH_CONFIDENCE_THRESHOLD)
    confidence = result.confidence if isinstance(result, ExtractionResult) else result
    return confidence >= threshold


class ConfidenceScorer:
    """
    Deterministic confidence scorer.

    Weights, method scores and the review threshold are read from the
    ``confidence`` section of settings.yaml unless passed explicitly.

    Attributes:
        review_threshold: Confidence below which review is required
        method_scores: Base score per extraction method
        weights: Weight per scoring factor

    Example:
        >>> scorer = ConfidenceScorer()
        >>> result = scorer.score(
        ...     {"title": "Data Science", "institution": "Coursera",
        ...      "recipient": "John Smith", "date_issued": "2023-06-19"},
        ...     "pattern",
        ... )
        >>> result.requires_review
        False
    """

    def __init__(
        self,
        vocabulary: Optional[Vocabulary] = None,
        review_threshold: Optional[float] = None,
        method_scores: Optional[Mapping[str, float]] = None,
        weights: Optional[Mapping[str, float]] = None,
        date_validator: Optional[DateValidator] = None,
        today: Optional[date] = None
    ) -> None:
        """
        Initialize the scorer.

        Args:
            vocabulary: Keyword configuration (trusted issuers etc.).
            review_threshold: Review threshold. Defaults to config, then
                              REVIEW_THRESHOLD.
            method_scores: Base score per method name.
            weights: Weight per factor.
            date_validator: Validator deciding date plausibility.
            today: Fixed reference date for the plausibility window.
        """
        self.vocabulary = vocabulary or Vocabulary.from_config()
        self.review_threshold = (
            review_threshold if review_threshold is not None
            else get_config("confidence.review_threshold", REVIEW_THRESHOLD)
        )
        self.method_scores = dict(DEFAULT_METHOD_SCORES)
        self.method_scores.update(method_scores or get_config("confidence.method_scores", {}) or {})
        self.default_method_score = get_config("confidence.default_method_score", 0.3)
        self.weights = dict(DEFAULT_WEIGHTS)
        self.weights.update(weights or get_config("confidence.weights", {}) or {})
        self.date_validator = date_validator or DateValidator()
        self.field_validator = FieldValidator(self.vocabulary, self.date_validator)
        self.today = today

    def method_score(self, method: Union[ExtractionMethod, str]) -> float:
        """Base score for an extraction method; unknown methods get the default."""
        key = method.value if isinstance(method, ExtractionMethod) else str(method).strip().lower()
        return self.method_scores.get(key, self.default_method_score)

    def compute(
        self,
        fields: Mapping[str, Optional[str]],
        method: Union[ExtractionMethod, str]
    ) -> Dict[str, Any]:
        """
        Compute confidence and the factors behind it.

        Args:
            fields: Field name to value.
            method: Extraction method.

        Returns:
            Dictionary with ``confidence`` (clamped) and ``factors``.
        """
        cleaned = {k: _clean_value(v) for k, v in fields.items() if k in FIELD_NAMES}
        present = {k: v for k, v in cleaned.items() if v}
        if not present:
            return {'confidence': 0.0, 'factors': ["no fields extracted"]}

        factors: List[str] = []
        base = self.method_score(method)
        total = base
        factors.append(f"method {_method_name(method)}: {base:+.2f}")

        completeness = sum(1 for k in REQUIRED_FIELDS if present.get(k)) / len(REQUIRED_FIELDS)
        contribution = completeness * self.weights['completeness']
        total += contribution
        factors.append(f"completeness {completeness:.0%}: {contribution:+.2f}")

        institution = present.get('institution')
        if institution and contains_keyword(institution, self.vocabulary.trusted_issuers):
            total += self.weights['known_issuer']
            factors.append(f"known issuer: {self.weights['known_issuer']:+.2f}")

        date_issued = present.get('date_issued')
        if date_issued:
            if self.date_validator.is_plausible_issue_date(date_issued, self.today):
                total += self.weights['valid_date']
                factors.append(f"valid date: {self.weights['valid_date']:+.2f}")
            else:
                total -= self.weights['invalid_date_penalty']
                factors.append(f"invalid date: {-self.weights['invalid_date_penalty']:+.2f}")

        if self.field_validator.is_valid_person_name(present.get('recipient')):
            total += self.weights['valid_recipient']
            factors.append(f"valid recipient: {self.weights['valid_recipient']:+.2f}")

        if self.field_validator.is_valid_title(present.get('title')):
            total += self.weights['valid_title']
            factors.append(f"valid title: {self.weights['valid_title']:+.2f}")

        return {'confidence': clamp01(total), 'factors': factors}

    def score(
        self,
        fields: Mapping[str, Optional[str]],
        method: Union[ExtractionMethod, str],
        raw_text: str = "",
        upstream_confidence: Optional[float] = None
    ) -> ExtractionResult:
        """
        Score extracted fields and build the final result.

        Args:
            fields: Field name to value; unknown keys are ignored.
            method: Extraction method that produced the fields.
            raw_text: Verbatim OCR input, kept for audit.
            upstream_confidence: OCR-layer confidence, carried through.

        Returns:
            Immutable ExtractionResult.
        """
        values = {name: _clean_value(fields.get(name)) for name in FIELD_NAMES}
        computed = self.compute(values, method)
        confidence = round(computed['confidence'], 4)

        result = ExtractionResult(
            raw_text=raw_text,
            confidence=confidence,
            requires_review=requires_review(confidence, self.review_threshold),
            extraction_method=ExtractionMethod.parse(method),
            upstream_confidence=upstream_confidence,
            confidence_factors=tuple(computed['factors']),
            **values,
        )
        logger.debug(
            f"Scored {result.extraction_method.value} result: confidence={confidence:.2f}, "
            f"review={result.requires_review}"
        )
        return result


def _method_name(method: Union[ExtractionMethod, str]) -> str:
    return method.value if isinstance(method, ExtractionMethod) else str(method)


def _clean_value(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
