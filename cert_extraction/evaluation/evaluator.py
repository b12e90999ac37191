"""
Main Evaluator Module.

This module provides the unified Evaluator class that matches extraction
results to ground truth by source file, computes metrics and writes
reports.

Author: ML Engineering Team
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from cert_extraction.evaluation.ground_truth import GroundTruthLoader
from cert_extraction.evaluation.metrics import EvaluationResult, MetricsCalculator
from cert_extraction.extraction.extraction_result import ExtractionResult
from cert_extraction.utils.helpers import ensure_directory
from cert_extraction.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

ResultLike = Union[ExtractionResult, Dict[str, Any]]


class Evaluator:
    """
    Evaluator for certificate extraction results.

    Attributes:
        metrics_calculator: MetricsCalculator instance
        ground_truth: GroundTruthLoader instance, or None

    Example:
        >>> evaluator = Evaluator("ground_truth.json")
        >>> result = evaluator.evaluate(extraction_results)
        >>> print(result.print_report())
    """

    def __init__(
        self,
        ground_truth_path: Optional[Union[str, Path]] = None,
        case_sensitive: bool = False,
        partial_match_threshold: Optional[float] = None
    ) -> None:
        """
        Initialize the evaluator.

        Args:
            ground_truth_path: Path to ground truth file.
            case_sensitive: Whether comparisons are case-sensitive.
            partial_match_threshold: Threshold for partial match scoring.
        """
        self.metrics_calculator = MetricsCalculator(
            case_sensitive=case_sensitive,
            partial_match_threshold=partial_match_threshold
        )

        self.ground_truth: Optional[GroundTruthLoader] = None
        if ground_truth_path:
            self.load_ground_truth(ground_truth_path)

        logger.debug("Evaluator initialized")

    def load_ground_truth(self, path: Union[str, Path]) -> None:
        """
        Load ground truth data from file.

        Args:
            path: Path to ground truth file.
        """
        self.ground_truth = GroundTruthLoader(path)
        validation = self.ground_truth.validate()

        if validation['invalid_records'] > 0:
            logger.warning(
                f"Ground truth has {validation['invalid_records']} incomplete records"
            )

    def _match_ground_truth(self, predictions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if self.ground_truth is None:
            raise ValueError(
                "No ground truth available. "
                "Load ground truth or provide it as argument."
            )

        matched = []
        for pred in predictions:
            source_file = pred.get('source_file')
            record = self.ground_truth.get_by_filename(source_file)
            if record is None:
                logger.warning(f"No ground truth for: {source_file}")
                record = {}
            matched.append(record)
        return matched

    def evaluate(
        self,
        results: Sequence[ResultLike],
        ground_truth: Optional[Sequence[Dict[str, Any]]] = None
    ) -> EvaluationResult:
        """
        Evaluate extraction results.

        Args:
            results: Extraction results (objects or their dictionaries).
            ground_truth: Optional ground truth aligned with results. If
                          None, records are matched by ``source_file``.

        Returns:
            EvaluationResult with computed metrics.
        """
        predictions = [_as_dict(r) for r in results]

        if ground_truth is None:
            ground_truth = self._match_ground_truth(predictions)

        result = self.metrics_calculator.evaluate(predictions, ground_truth)

        logger.info(
            f"Evaluation complete: {result.overall_accuracy * 100:.1f}% accuracy, "
            f"{result.review_metrics.flagged_count} flagged for review "
            f"on {result.total_samples} samples"
        )

        return result

    def evaluate_single(
        self,
        result: ResultLike,
        ground_truth: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Evaluate a single extraction result.

        Args:
            result: Single extraction result.
            ground_truth: Ground truth for this result. If None, looked up
                          by ``source_file``.

        Returns:
            Dictionary with per-field comparison results.
        """
        prediction = _as_dict(result)

        if ground_truth is None:
            ground_truth = self._match_ground_truth([prediction])[0]

        return self.metrics_calculator.evaluate_single(prediction, ground_truth)

    def generate_report(
        self,
        evaluation_result: EvaluationResult,
        output_path: Optional[Union[str, Path]] = None,
        format: str = 'txt'
    ) -> str:
        """
        Generate an evaluation report.

        Args:
            evaluation_result: Evaluation result to report.
            output_path: Path for report file. If None, returns string.
            format: Report format ('txt' or 'json').

        Returns:
            Report string or path to saved file.
        """
        if format == 'txt':
            report = evaluation_result.print_report()
        elif format == 'json':
            report = json.dumps(evaluation_result.to_dict(), indent=2)
        else:
            raise ValueError(f"Unsupported format: {format}")

        if output_path:
            ensure_directory(Path(output_path).parent)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(report)
            logger.info(f"Report saved to: {output_path}")
            return str(output_path)

        return report


def _as_dict(result: ResultLike) -> Dict[str, Any]:
    return result.to_dict() if isinstance(result, ExtractionResult) else dict(result)
