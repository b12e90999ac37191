"""
Data Validators Module.

This module provides validation functions for:
    - Certificate titles
    - Issuing institutions
    - Recipient names
    - Certificate identifiers
    - Issue dates (calendar validity and plausibility window)

Every ``validate_*`` method returns a ``(is_valid, message)`` tuple; the
``is_valid_*`` variants return just the boolean. None of them raise.

Author: ML Engineering Team
"""

import re
from datetime import date, datetime
from typing import Callable, Dict, Optional, Tuple

from dateutil.relativedelta import relativedelta

from config import get_config
from cert_extraction.postprocessor.vocabulary import (
    Vocabulary,
    DEFAULT_VOCABULARY,
    contains_keyword,
)
from cert_extraction.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class DateValidator:
    """
    Validates ISO issue dates.

    Checks for:
        - Valid YYYY-MM-DD calendar date
        - Plausible issue date: between January 1st ``years_past`` years
          ago and December 31st ``years_future`` years ahead

    Example:
        >>> validator = DateValidator(years_past=10, years_future=1)
        >>> validator.validate("2023-02-30")
        (False, "Invalid calendar date: 2023-02-30")
    """

    DATE_FORMAT = "%Y-%m-%d"

    def __init__(
        self,
        years_past: Optional[int] = None,
        years_future: Optional[int] = None
    ) -> None:
        """
        Initialize the date validator.

        Args:
            years_past: Years before the current year still plausible.
            years_future: Years after the current year still plausible.
        """
        self.years_past = years_past if years_past is not None else get_config(
            "confidence.date_window.years_past", 10
        )
        self.years_future = years_future if years_future is not None else get_config(
            "confidence.date_window.years_future", 1
        )

    def parse(self, date_str: Optional[str]) -> Optional[date]:
        """Parse an ISO date string, or return None."""
        if not date_str:
            return None
        try:
            return datetime.strptime(date_str, self.DATE_FORMAT).date()
        except ValueError:
            return None

    def validate(self, date_str: Optional[str]) -> Tuple[bool, str]:
        """
        Validate an ISO date string with detailed feedback.

        Args:
            date_str: Date string to validate.

        Returns:
            Tuple of (is_valid, message).
        """
        if not date_str:
            return False, "Date is empty"
        if self.parse(date_str) is None:
            return False, f"Invalid calendar date: {date_str}"
        return True, "Valid date"

    def is_valid(self, date_str: Optional[str]) -> bool:
        """Check if a string is a valid ISO calendar date."""
        valid, _ = self.validate(date_str)
        return valid

    def plausibility_window(self, today: Optional[date] = None) -> Tuple[date, date]:
        """
        Compute the plausible issue-date window.

        Args:
            today: Reference date. Defaults to the current date.

        Returns:
            Tuple of (earliest, latest) dates, both inclusive.
        """
        today = today or date.today()
        earliest = date(today.year, 1, 1) - relativedelta(years=self.years_past)
        latest = date(today.year, 12, 31) + relativedelta(years=self.years_future)
        return earliest, latest

    def is_plausible_issue_date(
        self,
        date_str: Optional[str],
        today: Optional[date] = None
    ) -> bool:
        """
        Check if a date is a plausible certificate issue date.

        Args:
            date_str: ISO date string.
            today: Reference date. Defaults to the current date.

        Returns:
            True if the date parses and falls inside the window.
        """
        parsed = self.parse(date_str)
        if parsed is None:
            return False
        earliest, latest = self.plausibility_window(today)
        return earliest <= parsed <= latest


class FieldValidator:
    """
    Plausibility checks for the extracted text fields.

    Example:
        >>> validator = FieldValidator()
        >>> validator.is_valid_person_name("Sankesh Vithal Shetty")
        True
        >>> validator.is_valid_person_name("Certificate Completion Program")
        False
    """

    TITLE_LENGTH = (3, 100)
    INSTITUTION_LENGTH = (5, 100)
    NAME_TOKENS = (2, 4)
    CERTIFICATE_ID_PATTERN = re.compile(r"[A-Za-z0-9\-/]{4,40}")
    DATE_SHAPED = re.compile(r"\d{1,4}[/\-]\d{1,2}[/\-]\d{1,4}")

    def __init__(
        self,
        vocabulary: Optional[Vocabulary] = None,
        date_validator: Optional[DateValidator] = None
    ) -> None:
        """
        Initialize the field validator.

        Args:
            vocabulary: Keyword configuration. Defaults to the built-in one.
            date_validator: Validator used for the date_issued field.
        """
        self.vocabulary = vocabulary or DEFAULT_VOCABULARY
        self.date_validator = date_validator or DateValidator()

    def validate_title(self, value: Optional[str]) -> Tuple[bool, str]:
        """
        Validate a certificate title.

        Args:
            value: Candidate title.

        Returns:
            Tuple of (is_valid, message).
        """
        if not value:
            return False, "Title is empty"

        text = value.strip()
        low, high = self.TITLE_LENGTH
        if not low <= len(text) <= high:
            return False, f"Title length {len(text)} outside {low}-{high}"

        alpha = sum(1 for c in text if c.isalpha())
        if alpha / len(text) < 0.5:
            return False, "Title is mostly non-alphabetic"

        if self.vocabulary.contains_boilerplate(text):
            return False, "Title is certificate boilerplate"

        return True, "Valid title"

    def validate_institution(self, value: Optional[str]) -> Tuple[bool, str]:
        """
        Validate an issuing institution name.

        Args:
            value: Candidate institution.

        Returns:
            Tuple of (is_valid, message).
        """
        if not value:
            return False, "Institution is empty"

        text = value.strip()
        low, high = self.INSTITUTION_LENGTH
        if not low <= len(text) <= high:
            return False, f"Institution length {len(text)} outside {low}-{high}"

        if not contains_keyword(text, self.vocabulary.institution_vocabulary):
            return False, "Institution has no institution keyword"

        if self.vocabulary.contains_boilerplate(text):
            return False, "Institution is certificate boilerplate"

        return True, "Valid institution"

    def validate_person_name(self, value: Optional[str]) -> Tuple[bool, str]:
        """
        Validate a recipient name.

        A name has 2-4 capitalized, letters-only tokens, none of which is
        credential or institution vocabulary.

        Args:
            value: Candidate name.

        Returns:
            Tuple of (is_valid, message).
        """
        if not value:
            return False, "Name is empty"

        tokens = value.split()
        low, high = self.NAME_TOKENS
        if not low <= len(tokens) <= high:
            return False, f"Name has {len(tokens)} tokens, expected {low}-{high}"

        for token in tokens:
            if not token.isalpha() or not token[0].isupper():
                return False, f"Token is not a capitalized word: {token}"

        if contains_keyword(value, self.vocabulary.not_a_name_vocabulary):
            return False, "Name contains credential or institution vocabulary"

        return True, "Valid name"

    def validate_certificate_id(self, value: Optional[str]) -> Tuple[bool, str]:
        """
        Validate a certificate/credential identifier.

        Args:
            value: Candidate identifier.

        Returns:
            Tuple of (is_valid, message).
        """
        if not value:
            return False, "Certificate ID is empty"

        text = value.strip()
        if not self.CERTIFICATE_ID_PATTERN.fullmatch(text):
            return False, "Certificate ID must be 4-40 letters, digits, '-' or '/'"
        if not any(c.isdigit() for c in text):
            return False, "Certificate ID has no digits"
        if self.DATE_SHAPED.fullmatch(text):
            return False, "Certificate ID looks like a date"

        return True, "Valid certificate ID"

    def is_valid_title(self, value: Optional[str]) -> bool:
        return self.validate_title(value)[0]

    def is_valid_institution(self, value: Optional[str]) -> bool:
        return self.validate_institution(value)[0]

    def is_valid_person_name(self, value: Optional[str]) -> bool:
        return self.validate_person_name(value)[0]

    def is_valid_certificate_id(self, value: Optional[str]) -> bool:
        return self.validate_certificate_id(value)[0]

    def validate_field(self, field_name: str, value: Optional[str]) -> Tuple[bool, str]:
        """
        Validate a specific field by name.

        Args:
            field_name: One of title, institution, recipient, date_issued,
                        description, certificate_id.
            value: Field value to validate.

        Returns:
            Tuple of (is_valid, message).
        """
        validators: Dict[str, Callable[[Optional[str]], Tuple[bool, str]]] = {
            'title': self.validate_title,
            'institution': self.validate_institution,
            'recipient': self.validate_person_name,
            'date_issued': self.date_validator.validate,
            'certificate_id': self.validate_certificate_id,
        }

        validator = validators.get(field_name)
        if validator:
            return validator(value)

        # Default validation: just check not empty
        if value and value.strip():
            return True, "Field has value"
        return False, "Field is empty"


_default_validator: Optional[FieldValidator] = None


def _validator() -> FieldValidator:
    global _default_validator
    if _default_validator is None:
        _default_validator = FieldValidator(DEFAULT_VOCABULARY, DateValidator(10, 1))
    return _default_validator


def is_valid_title(value: Optional[str]) -> bool:
    """Title plausibility check with the default vocabulary."""
    return _validator().is_valid_title(value)


def is_valid_institution(value: Optional[str]) -> bool:
    """Institution plausibility check with the default vocabulary."""
    return _validator().is_valid_institution(value)


def is_valid_person_name(value: Optional[str]) -> bool:
    """Recipient-name plausibility check with the default vocabulary."""
    return _validator().is_valid_person_name(value)


def is_valid_certificate_id(value: Optional[str]) -> bool:
    """Certificate identifier check."""
    return _validator().is_valid_certificate_id(value)
