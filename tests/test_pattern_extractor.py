"""
Unit tests for the pattern-based extractor.
"""

import pytest

from cert_extraction.extraction.extraction_result import FIELD_NAMES
from cert_extraction.extraction.pattern_extractor import PatternExtractor


@pytest.fixture
def extractor():
    return PatternExtractor()


class TestPatternExtraction:
    """Test full-document extraction."""

    def test_single_line_certificate(self, extractor, simple_text):
        """Test the canonical one-line certificate."""
        fields = extractor.extract(simple_text)
        assert "Data Science" in fields['title']
        assert fields['institution'] == "Coursera"
        assert fields['recipient'] == "John Smith"
        assert fields['date_issued'] == "2023-06-19"
        assert fields['certificate_id'] is None

    def test_multi_line_certificate(self, extractor, course_text):
        fields = extractor.extract(course_text)
        assert fields['title'] == "Machine Learning Specialization"
        assert fields['institution'] == "Stanford University"
        assert fields['recipient'] == "Jane Doe"
        assert fields['date_issued'] == "2024-03-12"
        assert fields['certificate_id'] == "ABC123XYZ"
        assert fields['description'] == "has successfully completed the Machine Learning Specialization"

    def test_research_internship(self, extractor, internship_text):
        """Test the research internship title and OCR-truncated 'Inership'."""
        fields = extractor.extract(internship_text)
        assert fields['title'] == "IIT Bombay Research Internship 2023-24"
        assert fields['recipient'] == "Sankesh Vithal Shetty"
        assert fields['institution'] == "IIT Bombay"

    def test_always_returns_every_field(self, extractor):
        fields = extractor.extract("nothing useful here")
        assert set(fields) == set(FIELD_NAMES)
        assert all(v is None for v in fields.values())

    @pytest.mark.parametrize("text", ["", "   \n\t "])
    def test_empty_text(self, extractor, text):
        assert extractor.extract(text) == {name: None for name in FIELD_NAMES}

    def test_candidates_drop_missing_fields(self, extractor, simple_text):
        """Test the strategy form only carries found fields."""
        candidate = extractor.extract_candidates(simple_text)
        assert 'certificate_id' not in candidate
        assert candidate['recipient'] == "John Smith"


class TestTitlePatterns:
    """Test title extraction rules."""

    def test_generic_award_type_is_skipped(self, extractor):
        """Test 'Certificate of Completion' falls through to the course name."""
        text = "Certificate of Completion\nThis certifies that Ann Lee has completed Python for Everybody"
        assert extractor.extract_title(text) == "Python for Everybody"

    def test_certificate_in(self, extractor):
        assert extractor.extract_title("Professional Certificate in Cloud Architecture") == "Cloud Architecture"

    def test_quoted_fallback(self, extractor):
        text = 'for the project "Structural Health Monitoring of Bridges"'
        assert extractor.extract_title(text) == "Structural Health Monitoring of Bridges"

    def test_labelled_fallback(self, extractor):
        assert extractor.extract_title("Course: Advanced SQL") == "Advanced SQL"

    def test_degree_fallback(self, extractor):
        assert extractor.extract_title("conferred the degree\nBachelor of Technology") == \
            "Bachelor of Technology"

    def test_awarded_to_is_not_a_title(self, extractor):
        """Test 'awarded to <name>' does not produce the name as title."""
        assert extractor.extract_title("awarded to John Smith") is None


class TestInstitutionPatterns:
    """Test institution extraction rules."""

    def test_issued_by_keyword_phrase(self, extractor):
        text = "presented by Indian Institute of Technology Madras"
        assert extractor.extract_institution(text) == "Indian Institute of Technology Madras"

    def test_letterhead(self, extractor):
        text = "NATIONAL SKILLS ACADEMY\nCertificate of Participation"
        assert extractor.extract_institution(text) == "National Skills Academy"

    def test_university_of(self, extractor):
        assert extractor.extract_institution("University of Michigan") == "University of Michigan"

    def test_company(self, extractor):
        assert extractor.extract_institution("Microsoft Certified: Azure Fundamentals") == "Microsoft"

    def test_none_without_keyword(self, extractor):
        assert extractor.extract_institution("Issued by Acme Widgets") is None


class TestRecipientPatterns:
    """Test recipient extraction rules."""

    def test_present_to(self, extractor):
        text = "We proudly present this certificate to Maria Lopez for her work"
        assert extractor.extract_recipient(text) == "Maria Lopez"

    def test_certify_that_with_honorific(self, extractor):
        assert extractor.extract_recipient("This is to certify that Dr. Alan Turing") == "Alan Turing"

    def test_name_line(self, extractor):
        assert extractor.extract_recipient("CERTIFICATE\nPriya Sharma\nfor excellence") == "Priya Sharma"

    def test_institution_is_not_a_name(self, extractor):
        """Test institution keywords rule a capitalized sequence out."""
        assert extractor.extract_recipient("certify that Stanford University") is None

    def test_excluded_values_skipped(self, extractor):
        text = "Cloud Computing\nPriya Sharma"
        assert extractor.extract_recipient(text, exclude=["Cloud Computing"]) == "Priya Sharma"

    def test_trailing_word_trimmed(self, extractor):
        """Test a third token that is not a name is dropped."""
        assert extractor.best_name("John Smith Coursera") == "John Smith"


class TestOtherFields:
    """Test date, description and identifier extraction."""

    def test_first_recognized_date(self, extractor):
        assert extractor.extract_date("Date: 05/11/2022 Valid until 2025") == "2022-05-11"

    def test_unrecognized_date(self, extractor):
        assert extractor.extract_date("Issued in the spring") is None

    def test_description_needs_min_length(self, extractor):
        assert extractor.extract_description("short\nlines only") is None

    def test_description_longest_line(self, extractor):
        text = "a line that is long enough\nthis line is clearly the longest one here\nshort"
        assert extractor.extract_description(text) == "this line is clearly the longest one here"

    @pytest.mark.parametrize("text, expected", [
        ("Certificate No. UC-1234-ABCD", "UC-1234-ABCD"),
        ("Serial Number: 2023/CS/0042", "2023/CS/0042"),
        ("Verification code: NPTEL23CS01", "NPTEL23CS01"),
        ("Verify at https://coursera.org/verify/ABCD1234EF", "ABCD1234EF"),
    ])
    def test_certificate_ids(self, extractor, text, expected):
        assert extractor.extract_certificate_id(text) == expected

    def test_no_id_in_ordinary_words(self, extractor):
        """Test words like 'normally' are not read as 'no.'."""
        assert extractor.extract_certificate_id("Certificates normally expire 2030") is None
