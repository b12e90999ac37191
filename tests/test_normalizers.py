"""
Unit tests for text and date normalization.
"""

import logging

import pytest

from cert_extraction.postprocessor.normalizers import (
    DateNormalizer,
    TextNormalizer,
    clean_text,
    normalize_date,
)
from cert_extraction.postprocessor.vocabulary import Vocabulary


class TestTextNormalizer:
    """Test OCR fragment cleanup."""

    def setup_method(self):
        self.normalizer = TextNormalizer()

    def test_strips_artifacts_and_title_cases(self):
        """Test bullets and shouting are cleaned up."""
        assert self.normalizer.clean("  • MACHINE LEARNING  ") == "Machine Learning"

    def test_collapses_whitespace_across_lines(self):
        """Test newlines and runs of spaces collapse to one space."""
        assert self.normalizer.clean("data\n   science\t101") == "Data Science 101"

    def test_connectors_stay_lowercase(self):
        """Test connector words are lowercase except at the start."""
        assert self.normalizer.clean("MASTER OF SCIENCE IN DATA ANALYTICS") == \
            "Master of Science in Data Analytics"
        assert self.normalizer.clean("the art of war") == "The Art of War"

    def test_acronyms_restored(self):
        """Test acronyms survive title-casing."""
        assert self.normalizer.clean("lBM data science in AI") == "IBM Data Science in AI"
        assert self.normalizer.clean("ui ux design") == "UI UX Design"

    def test_word_acronym_needs_capitals_in_source(self):
        """Test 'it' stays a word unless the source wrote IT."""
        assert self.normalizer.clean("make it happen") == "Make It Happen"
        assert self.normalizer.clean("Diploma in IT Infrastructure") == "Diploma in IT Infrastructure"
        assert self.normalizer.clean("IT ESSENTIALS") == "IT Essentials"

    def test_mixed_case_words_keep_inner_capitals(self):
        """Test words like DevOps are not flattened."""
        assert self.normalizer.clean("DevOps foundations") == "DevOps Foundations"

    def test_ocr_zero_for_letter_o(self):
        """Test a digit zero next to letters becomes the letter O."""
        assert self.normalizer.clean("0racle Cloud") == "Oracle Cloud"
        assert self.normalizer.clean("C0mputer Networks") == "Computer Networks"

    def test_ocr_rn_for_m(self):
        """Test 'rn' misread for 'm'."""
        assert self.normalizer.clean("Project Managernent") == "Project Management"

    def test_truncated_internship(self):
        """Test the truncated 'nership' is repaired."""
        assert self.normalizer.clean("Research Inership") == "Research Internship"
        assert self.normalizer.clean("summer nership") == "Summer Internship"

    def test_lowercase_l_before_capital(self):
        """Test lowercase l read for capital I."""
        assert self.normalizer.clean("lIT Bombay") == "IIT Bombay"

    def test_empty_input(self):
        """Test None, empty and artifact-only input."""
        assert self.normalizer.clean(None) == ""
        assert self.normalizer.clean("") == ""
        assert self.normalizer.clean(" - • ") == ""

    @pytest.mark.parametrize("raw", [
        "  • MACHINE LEARNING  ",
        "lBM data science in AI",
        "MASTER OF SCIENCE IN DATA ANALYTICS",
        "Research Inership 2023-24",
        "DevOps foundations",
        "make it happen",
        "IT ESSENTIALS",
    ])
    def test_idempotent(self, raw):
        """Test cleaning already clean text changes nothing."""
        once = self.normalizer.clean(raw)
        assert self.normalizer.clean(once) == once

    def test_custom_vocabulary_acronyms(self):
        """Test acronyms come from the vocabulary passed in."""
        normalizer = TextNormalizer(Vocabulary(acronyms=('GCP',)))
        assert normalizer.clean("gcp associate engineer") == "GCP Associate Engineer"
        assert normalizer.clean("ai basics") == "Ai Basics"

    def test_module_level_helper(self):
        """Test clean_text uses the default vocabulary."""
        assert clean_text("NLP WITH PYTHON") == "NLP With Python"


class TestDateNormalizer:
    """Test date normalization to ISO format."""

    def setup_method(self):
        self.normalizer = DateNormalizer()

    @pytest.mark.parametrize("raw, expected", [
        ("2023-06-19", "2023-06-19"),
        ("2023-6-9", "2023-06-09"),
        ("2023/06/19", "2023-06-19"),
        ("06/19/2023", "2023-06-19"),
        ("19/06/2023", "2023-06-19"),
        ("19-06-2023", "2023-06-19"),
        ("June 19, 2023", "2023-06-19"),
        ("June 19 2023", "2023-06-19"),
        ("Jun. 19, 2023", "2023-06-19"),
        ("June 19th, 2023", "2023-06-19"),
        ("19 June 2023", "2023-06-19"),
        ("19th June 2023", "2023-06-19"),
        ("19th of June, 2023", "2023-06-19"),
        ("Sept 5, 2023", "2023-09-05"),
        ("Issued on: 12 March 2024", "2024-03-12"),
        ("Dated 1 Jan 2022", "2022-01-01"),
        ("19-Jun-2023", "2023-06-19"),
        ("19/Sep/2023", "2023-09-19"),
        ("June-19-2023", "2023-06-19"),
    ])
    def test_supported_formats(self, raw, expected):
        """Test each supported format normalizes to YYYY-MM-DD."""
        assert self.normalizer.normalize(raw) == expected

    def test_ambiguous_numeric_date_is_month_first(self):
        """Test both components <= 12 reads month first."""
        assert self.normalizer.normalize("03/04/2023") == "2023-03-04"

    def test_first_component_over_twelve_is_day(self):
        """Test a first component > 12 is read as the day."""
        assert self.normalizer.normalize("25/12/2022") == "2022-12-25"

    @pytest.mark.parametrize("raw", [
        "", None, "not a date", "2023-02-30", "32/01/2023", "Sep 2023", "23-Sep-2025x",
        "19-Smarch-2023", "31-Jun-2023", "19 and 2023",
    ])
    def test_unparseable_returns_none(self, raw):
        """Test unrecognized or impossible dates give None."""
        assert self.normalizer.normalize(raw) is None

    def test_iso_round_trip(self):
        """Test an ISO date normalizes to itself."""
        for iso in ("2020-01-01", "2023-12-31", "2024-02-29"):
            assert self.normalizer.normalize(iso) == iso

    def test_unparseable_is_logged(self, caplog, monkeypatch):
        """Test an unparseable date is logged, not raised."""
        monkeypatch.setattr(logging.getLogger("cert_extraction"), "propagate", True)
        with caplog.at_level(logging.DEBUG, logger="cert_extraction"):
            assert normalize_date("sometime last year") is None
        assert "Unparseable date" in caplog.text

    def test_is_valid_date(self):
        """Test the boolean wrapper."""
        assert self.normalizer.is_valid_date("June 19, 2023") is True
        assert self.normalizer.is_valid_date("June 31, 2023") is False
