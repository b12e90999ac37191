"""
Metrics Calculator Module.

This module computes evaluation metrics for certificate extraction and
for the review routing driven by the confidence score.

Metrics Include:
    - Field-level accuracy (exact match)
    - Partial match scores (rapidfuzz token-set similarity)
    - Missing field rates
    - Overall extraction rate
    - Review routing: how often results were flagged, and how many
      wrong results slipped through unflagged

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz

from config import get_config
from cert_extraction.extraction.extraction_result import FIELD_NAMES, REQUIRED_FIELDS
from cert_extraction.postprocessor.normalizers import normalize_date
from cert_extraction.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


@dataclass
class FieldMetrics:
    """
    Metrics for a single field across all samples.

    Attributes:
        field_name: Name of the field
        total_samples: Total number of samples evaluated
        labelled_count: Number of samples where ground truth has a value
        extracted_count: Number of samples where field was extracted
        correct_count: Number of exact matches
        partial_match_count: Number of partial matches (exact included)
        missing_count: Number of missing values
        accuracy: Exact match accuracy over labelled samples (0-1)
        extraction_rate: Rate of successful extraction (0-1)
        partial_accuracy: Accuracy including partial matches (0-1)
    """
    field_name: str
    total_samples: int = 0
    labelled_count: int = 0
    extracted_count: int = 0
    correct_count: int = 0
    partial_match_count: int = 0
    missing_count: int = 0
    accuracy: float = 0.0
    extraction_rate: float = 0.0
    partial_accuracy: float = 0.0


@dataclass
class ReviewMetrics:
    """
    How well ``requires_review`` separated good results from bad ones.

    A result counts as wrong when any labelled required field was not at
    least a partial match.
    """
    flagged_count: int = 0
    flagged_wrong_count: int = 0
    unflagged_count: int = 0
    unflagged_wrong_count: int = 0
    review_rate: float = 0.0
    # Share of wrong results that were routed to review
    error_recall: float = 0.0
    # Share of auto-approved results that were actually correct
    auto_approve_precision: float = 0.0


@dataclass
class EvaluationResult:
    """
    Complete evaluation results.

    Attributes:
        field_metrics: Dictionary of field name to FieldMetrics
        review_metrics: Review routing statistics
        overall_accuracy: Mean exact match accuracy over fields
        overall_extraction_rate: Mean extraction rate over fields
        avg_confidence: Average result confidence
        total_samples: Total number of samples evaluated
        timestamp: Evaluation timestamp
    """
    field_metrics: Dict[str, FieldMetrics] = field(default_factory=dict)
    review_metrics: ReviewMetrics = field(default_factory=ReviewMetrics)
    overall_accuracy: float = 0.0
    overall_extraction_rate: float = 0.0
    avg_confidence: float = 0.0
    total_samples: int = 0
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        review = self.review_metrics
        return {
            'overall_accuracy': self.overall_accuracy,
            'overall_extraction_rate': self.overall_extraction_rate,
            'avg_confidence': self.avg_confidence,
            'total_samples': self.total_samples,
            'timestamp': self.timestamp,
            'review': {
                'flagged_count': review.flagged_count,
                'flagged_wrong_count': review.flagged_wrong_count,
                'unflagged_count': review.unflagged_count,
                'unflagged_wrong_count': review.unflagged_wrong_count,
                'review_rate': review.review_rate,
                'error_recall': review.error_recall,
                'auto_approve_precision': review.auto_approve_precision,
            },
            'field_metrics': {
                name: {
                    'accuracy': m.accuracy,
                    'extraction_rate': m.extraction_rate,
                    'partial_accuracy': m.partial_accuracy,
                    'labelled_count': m.labelled_count,
                    'extracted_count': m.extracted_count,
                    'correct_count': m.correct_count,
                    'missing_count': m.missing_count,
                }
                for name, m in self.field_metrics.items()
            }
        }

    def print_report(self) -> str:
        """Generate a formatted report string."""
        review = self.review_metrics
        lines = [
            "=" * 60,
            "CERTIFICATE EXTRACTION EVALUATION REPORT",
            "=" * 60,
            f"Timestamp: {self.timestamp}",
            f"Total Samples: {self.total_samples}",
            "-" * 60,
            "",
            "OVERALL METRICS:",
            f"  Accuracy:        {self.overall_accuracy * 100:.1f}%",
            f"  Extraction Rate: {self.overall_extraction_rate * 100:.1f}%",
            f"  Avg Confidence:  {self.avg_confidence:.2f}",
            "",
            "REVIEW ROUTING:",
            f"  Flagged:         {review.flagged_count} ({review.review_rate * 100:.1f}%)",
            f"  Flagged & Wrong: {review.flagged_wrong_count}",
            f"  Missed Errors:   {review.unflagged_wrong_count}/{review.unflagged_count}",
            f"  Error Recall:    {review.error_recall * 100:.1f}%",
            "",
            "-" * 60,
            "FIELD-LEVEL METRICS:",
            "",
        ]

        for name, m in self.field_metrics.items():
            lines.extend([
                f"  {name}:",
                f"    Accuracy:        {m.accuracy * 100:.1f}%",
                f"    Partial Match:   {m.partial_accuracy * 100:.1f}%",
                f"    Extraction Rate: {m.extraction_rate * 100:.1f}%",
                f"    Extracted/Total: {m.extracted_count}/{m.total_samples}",
                ""
            ])

        lines.append("=" * 60)
        return "\n".join(lines)


class MetricsCalculator:
    """
    Calculates evaluation metrics for certificate extraction.

    Predictions are ``ExtractionResult.to_dict()`` dictionaries, so each
    one carries its ``confidence`` and ``requires_review`` alongside the
    fields.

    Example:
        >>> calculator = MetricsCalculator()
        >>> result = calculator.evaluate(predictions, ground_truth)
        >>> print(result.print_report())
    """

    DEFAULT_FIELDS = list(FIELD_NAMES)

    def __init__(
        self,
        fields: Optional[Sequence[str]] = None,
        case_sensitive: bool = False,
        partial_match_threshold: Optional[float] = None
    ) -> None:
        """
        Initialize the metrics calculator.

        Args:
            fields: Field names to evaluate. Defaults to all six fields.
            case_sensitive: Whether string comparisons are case-sensitive.
            partial_match_threshold: Similarity (0-1) at which a value
                                     counts as a partial match. Defaults
                                     to ``evaluation.partial_match_threshold``.
        """
        self.fields = list(fields or self.DEFAULT_FIELDS)
        self.case_sensitive = case_sensitive
        self.partial_match_threshold = (
            partial_match_threshold if partial_match_threshold is not None
            else get_config("evaluation.partial_match_threshold", 0.8)
        )

        logger.debug(f"MetricsCalculator initialized (fields: {len(self.fields)})")

    def evaluate(
        self,
        predictions: Sequence[Dict[str, Any]],
        ground_truth: Sequence[Dict[str, Any]]
    ) -> EvaluationResult:
        """
        Evaluate predictions against ground truth.

        Args:
            predictions: Prediction dictionaries.
            ground_truth: Ground truth dictionaries, aligned with predictions.

        Returns:
            EvaluationResult with computed metrics.

        Raises:
            ValueError: If predictions and ground truth lengths don't match.
        """
        if len(predictions) != len(ground_truth):
            raise ValueError(
                f"Predictions ({len(predictions)}) and ground truth "
                f"({len(ground_truth)}) must have same length"
            )

        total_samples = len(predictions)
        if total_samples == 0:
            return EvaluationResult()

        field_metrics = {
            name: FieldMetrics(field_name=name, total_samples=total_samples)
            for name in self.fields
        }
        review = ReviewMetrics()
        confidences: List[float] = []

        for pred, gt in zip(predictions, ground_truth):
            sample_wrong = False

            for field_name in self.fields:
                metrics = field_metrics[field_name]
                pred_value = pred.get(field_name) or ''
                gt_value = gt.get(field_name) or ''

                if gt_value:
                    metrics.labelled_count += 1

                if pred_value:
                    metrics.extracted_count += 1
                else:
                    metrics.missing_count += 1

                is_exact, is_partial = self.compare_values(pred_value, gt_value, field_name)
                if is_exact:
                    metrics.correct_count += 1
                if is_partial:
                    metrics.partial_match_count += 1

                if field_name in REQUIRED_FIELDS and gt_value and not is_partial:
                    sample_wrong = True

            if pred.get('confidence') is not None:
                confidences.append(float(pred['confidence']))

            if pred.get('requires_review'):
                review.flagged_count += 1
                review.flagged_wrong_count += int(sample_wrong)
            else:
                review.unflagged_count += 1
                review.unflagged_wrong_count += int(sample_wrong)

        for metrics in field_metrics.values():
            metrics.extraction_rate = metrics.extracted_count / metrics.total_samples
            if metrics.labelled_count:
                metrics.accuracy = metrics.correct_count / metrics.labelled_count
                metrics.partial_accuracy = metrics.partial_match_count / metrics.labelled_count

        self._finalize_review(review, total_samples)

        num_fields = len(self.fields)
        return EvaluationResult(
            field_metrics=field_metrics,
            review_metrics=review,
            overall_accuracy=sum(m.accuracy for m in field_metrics.values()) / num_fields if num_fields else 0.0,
            overall_extraction_rate=(
                sum(m.extraction_rate for m in field_metrics.values()) / num_fields if num_fields else 0.0
            ),
            avg_confidence=sum(confidences) / len(confidences) if confidences else 0.0,
            total_samples=total_samples
        )

    @staticmethod
    def _finalize_review(review: ReviewMetrics, total_samples: int) -> None:
        review.review_rate = review.flagged_count / total_samples
        wrong = review.flagged_wrong_count + review.unflagged_wrong_count
        if wrong:
            review.error_recall = review.flagged_wrong_count / wrong
        if review.unflagged_count:
            review.auto_approve_precision = (
                (review.unflagged_count - review.unflagged_wrong_count) / review.unflagged_count
            )

    def compare_values(
        self,
        predicted: str,
        ground_truth: str,
        field_name: str
    ) -> Tuple[bool, bool]:
        """
        Compare predicted and ground truth values.

        Args:
            predicted: Predicted value.
            ground_truth: Ground truth value.
            field_name: Name of the field (for type-specific comparison).

        Returns:
            Tuple of (is_exact_match, is_partial_match). An exact match is
            also a partial match. Unlabelled ground truth never matches.
        """
        if not ground_truth or not predicted:
            return (False, False)

        pred_norm = self.normalize_value(predicted, field_name)
        gt_norm = self.normalize_value(ground_truth, field_name)

        if pred_norm == gt_norm:
            return (True, True)

        # Dates either agree or they don't
        if field_name == 'date_issued':
            return (False, False)

        return (False, self.similarity(pred_norm, gt_norm) >= self.partial_match_threshold)

    def normalize_value(self, value: Any, field_name: str) -> str:
        """
        Normalize a value for comparison.

        Dates are brought to ISO form so "June 19, 2023" equals
        "2023-06-19"; certificate IDs ignore separators.
        """
        if not value:
            return ''

        value = ' '.join(str(value).split())

        if field_name == 'date_issued':
            return normalize_date(value) or value

        if not self.case_sensitive:
            value = value.lower()

        if field_name == 'certificate_id':
            value = re.sub(r'[\s\-/]', '', value)

        return value

    @staticmethod
    def similarity(s1: str, s2: str) -> float:
        """
        Token-set similarity between two strings.

        Returns:
            Similarity score between 0 and 1.

        Example:
            >>> MetricsCalculator.similarity("data science", "data science specialization")
            1.0
        """
        if not s1 or not s2:
            return 0.0
        return fuzz.token_set_ratio(s1, s2) / 100.0

    def evaluate_single(
        self,
        prediction: Dict[str, Any],
        ground_truth: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Evaluate a single prediction against ground truth.

        Args:
            prediction: Prediction dictionary.
            ground_truth: Ground truth dictionary.

        Returns:
            Dictionary with per-field comparison results.
        """
        results = {}

        for field_name in self.fields:
            pred_value = prediction.get(field_name) or ''
            gt_value = ground_truth.get(field_name) or ''

            is_exact, is_partial = self.compare_values(pred_value, gt_value, field_name)

            results[field_name] = {
                'predicted': pred_value or None,
                'ground_truth': gt_value or None,
                'exact_match': is_exact,
                'partial_match': is_partial,
                'extracted': bool(pred_value)
            }

        return results
