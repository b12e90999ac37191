"""
Pattern-Based Extractor Module.

The default, fast extraction path: one ordered list of regular expressions
per field, tried most-specific-first. The first match that also passes the
field's validator wins; a rejected match just moves on to the next one.

Fields:
    - title: "certificate of/in ...", "successfully completed ...", then
      quoted, labelled and degree-name fallbacks
    - institution: "issued by/from/at ...", letterheads, named institutes,
      online platforms and technology companies
    - date_issued: ISO, numeric and month-name dates
    - recipient: "present this certificate to ...", "certify that ..."
    - description: the longest line of the text
    - certificate_id: "Certificate ID:", "Credential ID", verification URLs

Author: ML Engineering Team
"""

import re
from typing import Dict, Iterable, List, Optional, Pattern

from config import get_config
from cert_extraction.extraction.extraction_result import Candidate, empty_fields
from cert_extraction.postprocessor.normalizers import DateNormalizer, TextNormalizer
from cert_extraction.postprocessor.validators import FieldValidator
from cert_extraction.postprocessor.vocabulary import Vocabulary
from cert_extraction.utils.helpers import normalize_whitespace, split_lines
from cert_extraction.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

_I = re.IGNORECASE
_IM = re.IGNORECASE | re.MULTILINE

# Lookahead that ends a title capture
_TITLE_END = r"(?=\s+(?:in|from|issued|by|to|on|awarded|presented)\b|[\n.,]|$)"
_TITLE_END_KEEP_IN = r"(?=\s+(?:from|issued|by|to|on|awarded|presented)\b|[\n.,]|$)"
_COURSE_END = r"(?=\s+(?:course|program|programme|in|with|from|by|on|at)\b|[\n.,]|$)"
_EVENT_END = r"(?=\s+(?:program|programme|course|workshop|held|organi[sz]ed|from|by|on)\b|[\n.,]|$)"

# Two or three capitalized words, matched case-sensitively
_NAME = r"(?-i:([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+){1,2}))\b"

_INSTITUTION_WORDS = (
    r"University|College|Institute|School|Academy|Foundation|Organi[sz]ation|Corporation|Company"
)

_ID_TOKEN = r"([A-Za-z0-9][A-Za-z0-9\-/]{3,39})"


class PatternExtractor:
    """
    Ordered-regex field extractor.

    Attributes:
        name: Strategy name used in logs
        vocabulary: Keyword configuration
        normalizer: Text cleaner applied to every raw match
        date_normalizer: Date parser for date candidates
        validator: Field plausibility checks

    Example:
        >>> extractor = PatternExtractor()
        >>> fields = extractor.extract(
        ...     "Certificate of Data Science issued by Coursera to John Smith on June 19, 2023"
        ... )
        >>> fields['institution']
        'Coursera'
    """

    name = "pattern"

    TITLE_PATTERNS: List[Pattern] = [
        re.compile(
            r"completion\s+of\s+(?:the\s+)?((?:[\w&]+\s+){0,4}?Research\s+(?:Internship|Inership|nership)"
            r"(?:\s+\d{4}(?:-\d{2,4})?)?)",
            _I,
        ),
        re.compile(r"certificate\s+(?:of\s+[a-z]+\s+)?in\s+(.+?)" + _TITLE_END_KEEP_IN, _IM),
        re.compile(r"certificate\s+of\s+(.+?)" + _TITLE_END, _IM),
        re.compile(
            r"certif(?:y|ies)\s+that\s+[\s\S]{1,80}?\s+has\s+(?:successfully\s+)?completed\s+"
            r"(?:the\s+)?(.+?)" + _COURSE_END,
            _IM,
        ),
        re.compile(r"(?:award|diploma|degree)\s+(?:of|in)\s+(.+?)" + _TITLE_END_KEEP_IN, _IM),
        re.compile(r"completion\s+of\s+(?:the\s+)?(.+?)" + _COURSE_END, _IM),
        re.compile(r"(?:completed|finished|passed)\s+(?:the\s+)?(.+?)" + _COURSE_END, _IM),
        re.compile(r"participated\s+in\s+(?:the\s+)?(.+?)" + _EVENT_END, _IM),
        re.compile(r"attended\s+(?:the\s+)?(.+?)" + _EVENT_END, _IM),
        re.compile(r"(?:achieved|earned|awarded)\s+(?!to\b)(?:the\s+)?(.+?)" + _TITLE_END, _IM),
    ]

    TITLE_FALLBACK_PATTERNS: List[Pattern] = [
        re.compile(r"\"([^\"\n]{3,100})\""),
        re.compile(r"“([^”\n]{3,100})”"),
        re.compile(r"\*([^*\n]{3,100})\*"),
        re.compile(
            r"(?:course|program|programme|certification|training|workshop|subject|topic|field)"
            r"\s*:\s*((?-i:[A-Z])[^.\n]+)",
            _I,
        ),
        re.compile(r"((?:Bachelor|Master)\s+of\s+[^.,\n]+)", _I),
        re.compile(r"((?:Certificate|Diploma)\s+in\s+[^.,\n]+)", _I),
    ]

    INSTITUTION_PATTERNS: List[Pattern] = [
        re.compile(
            r"\b(?:from|by|at|issued\s+by)\s+((?-i:[A-Z])[^,\n.]{2,80}?\b(?:" + _INSTITUTION_WORDS + r")\b"
            r"(?:[ \t]+of[ \t]+(?-i:[A-Z])[A-Za-z]+(?:[ \t]+(?-i:[A-Z])[A-Za-z]+)?)?)",
            _I,
        ),
        # Letterhead: an all-caps line naming the institution
        re.compile(
            r"^[ \t]*((?:[A-Z][A-Z&\-. \t]{1,60}?)?\b(?:UNIVERSITY|COLLEGE|INSTITUTE|SCHOOL|ACADEMY|"
            r"FOUNDATION|ORGANI[SZ]ATION|CORPORATION)\b(?:[ \t]+[A-Z&\-]+){0,4})[ \t]*$",
            re.MULTILINE,
        ),
        re.compile(r"\b((?:Indian[ \t]+)?Institute[ \t]+of[ \t]+Technology(?:[ \t]+(?-i:[A-Z])[a-z]+)?)", _I),
        re.compile(r"\b((?-i:IIT)[ \t]+(?-i:[A-Z])[A-Za-z]+)", _I),
        re.compile(r"\b(National[ \t]+Institute[ \t]+of[ \t]+Technology(?:[ \t]+(?-i:[A-Z])[a-z]+)?)", _I),
        re.compile(r"\b(Indian[ \t]+Institute[ \t]+of[ \t]+Science)", _I),
        re.compile(r"\b(Indian[ \t]+Institute[ \t]+of[ \t]+Management(?:[ \t]+(?-i:[A-Z])[a-z]+)?)", _I),
        re.compile(r"\b(All[ \t]+India[ \t]+Institute[ \t]+of[ \t]+Medical[ \t]+Sciences)", _I),
        re.compile(r"\b(Massachusetts[ \t]+Institute[ \t]+of[ \t]+Technology)", _I),
        re.compile(r"\b((?:Stanford|Harvard)[ \t]+University)", _I),
        re.compile(r"\b(University[ \t]+of[ \t]+(?-i:[A-Z])[a-z]+(?:[ \t]+(?-i:[A-Z])[a-z]+)?)", _I),
        re.compile(
            r"\b(Coursera|edX|Udemy|NPTEL|Khan[ \t]+Academy|Udacity|LinkedIn[ \t]+Learning|Pluralsight)\b",
            _I,
        ),
        re.compile(
            r"\b(Amazon[ \t]+Web[ \t]+Services|Google|Microsoft|Amazon|IBM|Oracle|Cisco|Adobe|Meta)\b",
            _I,
        ),
        re.compile(
            r"((?-i:[A-Z])[^,\n.]{3,50}?\b(?:University|College|Institute|School|Academy)\b"
            r"(?:[ \t]+of[ \t]+(?-i:[A-Z])[^,\n.]{3,30})?)",
            _I,
        ),
    ]

    DATE_PATTERNS: List[Pattern] = [
        re.compile(r"\b(\d{4}-\d{1,2}-\d{1,2})\b"),
        re.compile(r"\b(\d{1,2}[/\-]\d{1,2}[/\-]\d{4})\b"),
        re.compile(r"\b(\d{4}/\d{1,2}/\d{1,2})\b"),
        re.compile(r"\b(\d{1,2}(?:st|nd|rd|th)?\s+(?:day\s+of\s+)?[A-Za-z]{3,9}\.?,?\s+\d{4})\b", _I),
        re.compile(r"\b([A-Za-z]{3,9}\.?\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4})\b", _I),
    ]

    RECIPIENT_PATTERNS: List[Pattern] = [
        re.compile(r"present\s+this\s+certificate\s+to\s+" + _NAME, _I),
        re.compile(r"certif(?:y|ies)\s+that\s+(?:(?:mr|ms|mrs|dr)\.?\s+)?" + _NAME, _I),
        re.compile(r"certificate\s+(?:is\s+)?(?:awarded\s+|presented\s+|granted\s+)?to\s+" + _NAME, _I),
        re.compile(r"\b(?:awarded|presented|granted|conferred|issued)\b[^\n]{0,60}?\bto\s+" + _NAME, _I),
        # A line holding nothing but the name
        re.compile(r"^[ \t]*" + _NAME + r"[ \t]*$", re.MULTILINE),
    ]

    CERTIFICATE_ID_PATTERNS: List[Pattern] = [
        re.compile(r"(?:certificate|credential|cert\.?)\s*(?:id\b|no\b\.?|number\b|#)\s*[:#.]?\s*" + _ID_TOKEN, _I),
        re.compile(
            r"(?:serial|registration|reg\.?|enrol?lment|roll)\s*(?:no\b\.?|number\b|#|id\b)\s*[:#.]?\s*" + _ID_TOKEN,
            _I,
        ),
        re.compile(r"verification\s*(?:code|id|number)\s*[:#.]?\s*" + _ID_TOKEN, _I),
        re.compile(r"https?://\S+?/(?:verify|certificates?|credentials?)/([A-Za-z0-9\-]{4,40})\b", _I),
    ]

    def __init__(
        self,
        vocabulary: Optional[Vocabulary] = None,
        normalizer: Optional[TextNormalizer] = None,
        date_normalizer: Optional[DateNormalizer] = None,
        validator: Optional[FieldValidator] = None
    ) -> None:
        """
        Initialize the pattern extractor.

        Args:
            vocabulary: Keyword configuration. If None, loaded from config.
            normalizer: Text cleaner. Built from the vocabulary if None.
            date_normalizer: Date parser.
            validator: Field validator. Built from the vocabulary if None.
        """
        self.vocabulary = vocabulary or Vocabulary.from_config()
        self.normalizer = normalizer or TextNormalizer(self.vocabulary)
        self.date_normalizer = date_normalizer or DateNormalizer()
        self.validator = validator or FieldValidator(self.vocabulary)
        self.description_min_length = get_config("extraction.description_min_length", 20)

    def extract(self, text: str) -> Dict[str, Optional[str]]:
        """
        Extract all fields from raw OCR text.

        Args:
            text: Raw OCR text.

        Returns:
            Dictionary with every field name; missing fields are None.
        """
        fields = empty_fields()
        if not text or not text.strip():
            return fields

        fields['title'] = self.extract_title(text)
        fields['institution'] = self.extract_institution(text)
        fields['date_issued'] = self.extract_date(text)
        fields['recipient'] = self.extract_recipient(
            text, exclude=[v for v in (fields['title'], fields['institution']) if v]
        )
        fields['description'] = self.extract_description(text)
        fields['certificate_id'] = self.extract_certificate_id(text)

        found = [k for k, v in fields.items() if v]
        logger.debug(f"Pattern extraction found {len(found)} fields: {found}")
        return fields

    def extract_candidates(self, text: str) -> Candidate:
        """Run the extractor as an orchestrator strategy."""
        return {k: v for k, v in self.extract(text).items() if v}

    def extract_title(self, text: str) -> Optional[str]:
        """
        Extract the certificate title.

        Generic award types ("Completion", "Achievement") are skipped so a
        bare "Certificate of Completion" falls through to the next pattern.
        """
        for pattern in self.TITLE_PATTERNS + self.TITLE_FALLBACK_PATTERNS:
            for match in pattern.finditer(text):
                title = self.normalizer.clean(match.group(1))
                if self._is_generic_award(title):
                    continue
                if self.validator.is_valid_title(title):
                    return title
        return None

    def extract_institution(self, text: str) -> Optional[str]:
        """Extract the issuing institution."""
        for pattern in self.INSTITUTION_PATTERNS:
            for match in pattern.finditer(text):
                institution = self.normalizer.clean(match.group(1))
                if self.validator.is_valid_institution(institution):
                    return institution
        return None

    def extract_date(self, text: str) -> Optional[str]:
        """Extract the issue date as an ISO string."""
        for pattern in self.DATE_PATTERNS:
            for match in pattern.finditer(text):
                normalized = self.date_normalizer.normalize(match.group(1))
                if normalized:
                    return normalized
        return None

    def extract_recipient(self, text: str, exclude: Iterable[str] = ()) -> Optional[str]:
        """
        Extract the recipient's name.

        Args:
            text: Raw OCR text.
            exclude: Values already taken by other fields.

        Returns:
            Name, or None.
        """
        taken = {value.lower() for value in exclude}
        for pattern in self.RECIPIENT_PATTERNS:
            for match in pattern.finditer(text):
                name = self.best_name(match.group(1))
                if name and name.lower() not in taken:
                    return name
        return None

    def best_name(self, raw: str) -> Optional[str]:
        """
        Validate a captured name, retrying without a trailing third word.

        "John Smith Coursera" is rejected as a whole but "John Smith" is not.
        """
        tokens = normalize_whitespace(raw).split(" ")
        for count in range(len(tokens), 1, -1):
            name = " ".join(tokens[:count])
            if self.validator.is_valid_person_name(name):
                return name
        return None

    def extract_description(self, text: str) -> Optional[str]:
        """Return the longest line above the minimum length."""
        best = None
        for line in split_lines(text):
            line = normalize_whitespace(line)
            if len(line) > self.description_min_length and (best is None or len(line) > len(best)):
                best = line
        return best

    def extract_certificate_id(self, text: str) -> Optional[str]:
        """Extract a certificate/credential identifier."""
        for pattern in self.CERTIFICATE_ID_PATTERNS:
            for match in pattern.finditer(text):
                candidate = match.group(1).strip("-/")
                if self.validator.is_valid_certificate_id(candidate):
                    return candidate
        return None

    def _is_generic_award(self, title: str) -> bool:
        words = [w for w in title.lower().split() if w not in self.vocabulary.connector_words]
        return bool(words) and all(w in self.vocabulary.generic_award_words for w in words)
