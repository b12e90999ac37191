"""
Extraction Result Data Class.

This module defines the data structure for certificate extraction results,
providing a standardized, immutable format for extracted fields plus the
confidence signal consumed by the review workflow.

Author: ML Engineering Team
"""

import json
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from cert_extraction.utils.exceptions import ValidationError

# Every field an extractor can produce, in output order
FIELD_NAMES: Tuple[str, ...] = (
    'title',
    'institution',
    'recipient',
    'date_issued',
    'description',
    'certificate_id',
)

# Fields counted for completeness scoring
REQUIRED_FIELDS: Tuple[str, ...] = ('title', 'institution', 'recipient', 'date_issued')

# A partial field-set produced by one strategy; no confidence attached
Candidate = Dict[str, str]


def empty_fields() -> Dict[str, Optional[str]]:
    """Return a field dictionary with every field set to None."""
    return {name: None for name in FIELD_NAMES}


class ExtractionMethod(str, Enum):
    """Provenance tag recording which code path produced a result."""

    PATTERN = "pattern"
    LLM = "llm"
    LLM_FALLBACK = "llm_fallback"
    MULTI_STRATEGY = "multi_strategy"

    @classmethod
    def parse(cls, value: Any) -> 'ExtractionMethod':
        """
        Convert a string (or an existing member) to an ExtractionMethod.

        Raises:
            ValueError: If the value names no known method.
        """
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


@dataclass(frozen=True)
class ExtractionResult:
    """
    Represents the result of certificate field extraction.

    Created once per extraction call and never mutated afterwards.

    Attributes:
        title: Course/program/credential name
        institution: Issuing organization
        recipient: Person's full name
        date_issued: Canonical YYYY-MM-DD date
        description: Best free-text summary line
        certificate_id: Serial/credential identifier
        raw_text: Verbatim OCR input
        confidence: Trust score in [0, 1]
        requires_review: True when confidence is below the review threshold
        extraction_method: Code path that produced the fields
        upstream_confidence: OCR-layer confidence, carried through untouched
        confidence_factors: Human-readable audit trail of scoring factors
        source_file: Originating file, when known

    Example:
        >>> result = ExtractionResult(
        ...     title="Data Science",
        ...     institution="Coursera",
        ...     raw_text="...",
        ...     confidence=0.95,
        ...     requires_review=False,
        ...     extraction_method=ExtractionMethod.PATTERN,
        ... )
        >>> print(result.to_json())
    """
    # Certificate fields
    title: Optional[str] = None
    institution: Optional[str] = None
    recipient: Optional[str] = None
    date_issued: Optional[str] = None
    description: Optional[str] = None
    certificate_id: Optional[str] = None

    # Audit and scoring
    raw_text: str = ""
    confidence: float = 0.0
    requires_review: bool = True
    extraction_method: ExtractionMethod = ExtractionMethod.MULTI_STRATEGY
    upstream_confidence: Optional[float] = None
    confidence_factors: Tuple[str, ...] = field(default_factory=tuple)

    # Metadata
    source_file: Optional[str] = None

    def __post_init__(self):
        """Check the confidence invariant and coerce the method tag."""
        if not isinstance(self.extraction_method, ExtractionMethod):
            object.__setattr__(
                self, 'extraction_method', ExtractionMethod.parse(self.extraction_method)
            )
        if (
            not isinstance(self.confidence, (int, float))
            or math.isnan(self.confidence)
            or not 0.0 <= self.confidence <= 1.0
        ):
            raise ValidationError('confidence', self.confidence, "must be within [0, 1]")
        for name in FIELD_NAMES:
            value = getattr(self, name)
            if value is not None and (not isinstance(value, str) or not value.strip()):
                raise ValidationError(name, value, "must be None or a non-empty string")

    @property
    def fields(self) -> Dict[str, Optional[str]]:
        """
        Get all certificate fields as a dictionary.

        Returns:
            Dictionary of field names to values.
        """
        return {name: getattr(self, name) for name in FIELD_NAMES}

    @property
    def missing_fields(self) -> List[str]:
        """Fields that were not extracted."""
        return [k for k, v in self.fields.items() if v is None]

    @property
    def extracted_fields(self) -> Dict[str, str]:
        """Only the fields that have values."""
        return {k: v for k, v in self.fields.items() if v is not None}

    @property
    def extraction_rate(self) -> float:
        """
        Calculate the percentage of fields successfully extracted.

        Returns:
            Extraction rate as a percentage (0-100).
        """
        return len(self.extracted_fields) / len(FIELD_NAMES) * 100

    def with_source(self, source_file: str) -> 'ExtractionResult':
        """Return a copy tagged with its originating file."""
        return replace(self, source_file=source_file)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary format.

        Returns:
            Dictionary representation of the extraction result.
        """
        data: Dict[str, Any] = dict(self.fields)
        data.update({
            'raw_text': self.raw_text,
            'confidence': round(self.confidence, 4),
            'requires_review': self.requires_review,
            'extraction_method': self.extraction_method.value,
            'upstream_confidence': self.upstream_confidence,
            'confidence_factors': list(self.confidence_factors),
            'source_file': self.source_file,
        })
        return data

    def to_json(self, indent: Optional[int] = 2) -> str:
        """
        Convert to JSON string.

        Args:
            indent: JSON indentation level.

        Returns:
            JSON string representation.
        """
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExtractionResult':
        """
        Create ExtractionResult from dictionary.

        Args:
            data: Dictionary produced by ``to_dict`` (extra keys ignored).

        Returns:
            ExtractionResult instance.
        """
        kwargs: Dict[str, Any] = {name: data.get(name) or None for name in FIELD_NAMES}
        return cls(
            raw_text=data.get('raw_text', ""),
            confidence=float(data.get('confidence', 0.0)),
            requires_review=bool(data.get('requires_review', True)),
            extraction_method=data.get('extraction_method', ExtractionMethod.MULTI_STRATEGY),
            upstream_confidence=data.get('upstream_confidence'),
            confidence_factors=tuple(data.get('confidence_factors') or ()),
            source_file=data.get('source_file'),
            **kwargs,
        )

    def __str__(self) -> str:
        """Return human-readable summary."""
        lines = [
            "Certificate Extraction Result",
            "=" * 40,
            f"Title:          {self.title or 'N/A'}",
            f"Institution:    {self.institution or 'N/A'}",
            f"Recipient:      {self.recipient or 'N/A'}",
            f"Date Issued:    {self.date_issued or 'N/A'}",
            f"Certificate ID: {self.certificate_id or 'N/A'}",
            "-" * 40,
            f"Method:         {self.extraction_method.value}",
            f"Confidence:     {self.confidence:.2f}",
            f"Needs Review:   {'yes' if self.requires_review else 'no'}",
        ]
        return "\n".join(lines)
