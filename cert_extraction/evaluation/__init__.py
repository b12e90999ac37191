"""
Evaluation Module for Certificate Extraction System.

This module provides evaluation and calibration functionality:
    - Field-level accuracy computation
    - Missing field rate calculation
    - Review routing statistics
    - Ground truth comparison

Author: ML Engineering Team
"""

from .evaluator import Evaluator
from .metrics import EvaluationResult, MetricsCalculator
from .ground_truth import GroundTruthLoader

__all__ = ['Evaluator', 'EvaluationResult', 'MetricsCalculator', 'GroundTruthLoader']
