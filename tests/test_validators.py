"""
Unit tests for field validators and the keyword vocabulary.
"""

from datetime import date

import pytest

from cert_extraction.postprocessor.validators import (
    DateValidator,
    FieldValidator,
    is_valid_certificate_id,
    is_valid_institution,
    is_valid_person_name,
    is_valid_title,
)
from cert_extraction.postprocessor.vocabulary import (
    DEFAULT_VOCABULARY,
    Vocabulary,
    contains_keyword,
)


class TestPersonNameValidation:
    """Test recipient name plausibility."""

    def test_three_part_name(self):
        """Test a three-token name is accepted."""
        assert is_valid_person_name("Sankesh Vithal Shetty") is True

    def test_credential_words_rejected(self):
        """Test credential vocabulary is not a name."""
        assert is_valid_person_name("Certificate Completion Program") is False

    @pytest.mark.parametrize("name", ["John Smith", "Jane Mary Ann Doe", "Li Na"])
    def test_valid_names(self, name):
        """Test ordinary names."""
        assert is_valid_person_name(name) is True

    @pytest.mark.parametrize("name", [
        "", None, "Madonna", "One Two Three Four Five", "john smith",
        "John Sm1th", "O'Brien Kelly", "Stanford University", "Coursera Team",
    ])
    def test_invalid_names(self, name):
        """Test single tokens, too many tokens, lowercase, digits and vocabulary."""
        assert is_valid_person_name(name) is False

    def test_validate_returns_reason(self):
        """Test the tuple form explains the rejection."""
        valid, message = FieldValidator().validate_person_name("Madonna")
        assert valid is False
        assert "tokens" in message


class TestTitleValidation:
    """Test certificate title plausibility."""

    @pytest.mark.parametrize("title", [
        "Data Science", "Machine Learning Specialization", "IIT Bombay Research Internship 2023-24",
    ])
    def test_valid_titles(self, title):
        assert is_valid_title(title) is True

    @pytest.mark.parametrize("title", [
        "", None, "AI", "x" * 101, "2023-06-19 #42", "The Following Sponsored Project",
        "This Certificate Is Presented",
    ])
    def test_invalid_titles(self, title):
        """Test length, alphabetic ratio and boilerplate rules."""
        assert is_valid_title(title) is False


class TestInstitutionValidation:
    """Test issuing institution plausibility."""

    @pytest.mark.parametrize("institution", [
        "Stanford University", "Coursera", "IIT Bombay", "Indian Institute of Science", "Google",
    ])
    def test_valid_institutions(self, institution):
        assert is_valid_institution(institution) is True

    @pytest.mark.parametrize("institution", [
        "", None, "Acme", "Smith Consulting Ltd",
        "Given This Day Under The Seal Of The University",
    ])
    def test_invalid_institutions(self, institution):
        """Test length, missing keyword and boilerplate rules."""
        assert is_valid_institution(institution) is False


class TestCertificateIdValidation:
    """Test certificate identifier plausibility."""

    @pytest.mark.parametrize("value", ["ABC123XYZ", "UC-1234-ABCD", "NPTEL23CS01", "2023/CS/0042"])
    def test_valid_ids(self, value):
        assert is_valid_certificate_id(value) is True

    @pytest.mark.parametrize("value", ["", None, "ABCDEF", "A1", "12/06/2023", "2023-06-19", "ID 1234"])
    def test_invalid_ids(self, value):
        """Test digit requirement, length, date shapes and spaces."""
        assert is_valid_certificate_id(value) is False


class TestDateValidator:
    """Test ISO date validity and plausibility window."""

    def setup_method(self):
        self.validator = DateValidator(years_past=10, years_future=1)

    def test_calendar_validity(self):
        assert self.validator.is_valid("2023-06-19") is True
        assert self.validator.is_valid("2023-02-30") is False
        assert self.validator.is_valid("June 19, 2023") is False
        assert self.validator.validate(None) == (False, "Date is empty")

    def test_window_bounds(self, today):
        """Test the window runs from Jan 1 ten years back to Dec 31 next year."""
        earliest, latest = self.validator.plausibility_window(today)
        assert earliest == date(2014, 1, 1)
        assert latest == date(2025, 12, 31)

    def test_plausible_issue_dates(self, today):
        assert self.validator.is_plausible_issue_date("2023-06-19", today) is True
        assert self.validator.is_plausible_issue_date("2014-01-01", today) is True
        assert self.validator.is_plausible_issue_date("2025-12-31", today) is True

    def test_implausible_issue_dates(self, today):
        assert self.validator.is_plausible_issue_date("2013-12-31", today) is False
        assert self.validator.is_plausible_issue_date("2026-01-01", today) is False
        assert self.validator.is_plausible_issue_date("not-a-date", today) is False

    def test_window_from_config(self):
        """Test defaults come from the confidence.date_window settings."""
        validator = DateValidator()
        assert validator.years_past == 10
        assert validator.years_future == 1


class TestValidateField:
    """Test the by-name dispatcher."""

    def test_dispatches_to_field_validators(self):
        validator = FieldValidator()
        assert validator.validate_field('recipient', "John Smith")[0] is True
        assert validator.validate_field('date_issued', "2023-06-19")[0] is True
        assert validator.validate_field('certificate_id', "ABCDEF")[0] is False

    def test_description_only_needs_a_value(self):
        validator = FieldValidator()
        assert validator.validate_field('description', "Anything at all") == (True, "Field has value")
        assert validator.validate_field('description', "  ") == (False, "Field is empty")


class TestVocabulary:
    """Test the immutable keyword configuration."""

    def test_is_frozen(self):
        """Test vocabulary lists cannot be reassigned."""
        with pytest.raises(Exception):
            DEFAULT_VOCABULARY.trusted_issuers = ('acme',)

    def test_with_overrides_returns_copy(self):
        """Test overrides produce a new value and leave the default alone."""
        custom = DEFAULT_VOCABULARY.with_overrides({'trusted_issuers': ['ACME']})
        assert custom.trusted_issuers == ('acme',)
        assert 'coursera' in DEFAULT_VOCABULARY.trusted_issuers

    def test_unknown_override_ignored(self):
        custom = DEFAULT_VOCABULARY.with_overrides({'no_such_list': ['x']})
        assert custom == DEFAULT_VOCABULARY

    def test_from_config_without_overrides_is_default(self):
        assert Vocabulary.from_config() is DEFAULT_VOCABULARY

    def test_contains_keyword_whole_words(self):
        """Test keywords match whole words and simple plurals only."""
        assert contains_keyword("Online Courses", ('course',)) is True
        assert contains_keyword("Coursera", ('course',)) is False
        assert contains_keyword(None, ('course',)) is False

    def test_custom_vocabulary_changes_validation(self):
        """Test a substituted vocabulary drives the validators."""
        validator = FieldValidator(Vocabulary(institution_keywords=('guild',), platform_names=()))
        assert validator.is_valid_institution("Bakers Guild") is True
        assert validator.is_valid_institution("Stanford University") is False
