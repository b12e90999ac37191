"""
Confidence Scoring Module for the Certificate Extraction System.

Computes a 0-1 confidence for every extraction result and decides
whether it must be routed to a human reviewer.

Author: ML Engineering Team
"""

from .confidence import (
    ConfidenceScorer,
    REVIEW_THRESHOLD,
    HIGH_CONFIDENCE_THRESHOLD,
    requires_review,
    is_high_confidence,
)

__all__ = [
    'ConfidenceScorer',
    'REVIEW_THRESHOLD',
    'HIGH_CONFIDENCE_THRESHOLD',
    'requires_review',
    'is_high_confidence'
]
