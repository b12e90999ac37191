"""
Data Normalizers Module.

This module provides normalization functions for:
    - Free-text fields (title, institution) read from noisy OCR output
    - Issue dates in the common certificate date formats

Both normalizers are pure: same input, same output, no I/O.

Author: ML Engineering Team
"""

import re
from datetime import datetime
from typing import List, Optional, Tuple

from dateutil import parser as date_parser

from cert_extraction.postprocessor.vocabulary import Vocabulary, DEFAULT_VOCABULARY
from cert_extraction.utils.helpers import normalize_whitespace
from cert_extraction.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


def _fix_interior_zero(match: re.Match) -> str:
    """Pick the letter case of a misread 0 from the letter after it."""
    return match.group(1) + ("o" if match.group(2).islower() else "O")


class TextNormalizer:
    """
    Cleans OCR text fragments into display-ready field values.

    Steps, in order:
        1. Collapse whitespace and strip bullet/punctuation artifacts
        2. Repair common OCR character confusions
        3. Title-case words, keeping connectors lowercase
        4. Restore known acronyms

    Example:
        >>> normalizer = TextNormalizer()
        >>> normalizer.clean("  • MACHINE LEARNING  ")
        "Machine Learning"
        >>> normalizer.clean("lBM data science in AI")
        "IBM Data Science in AI"
    """

    LEADING_ARTIFACTS = re.compile(r"^[\s\-•·*–—:;,.|]+")
    TRAILING_ARTIFACTS = re.compile(r"[\s\-•·*–—:;,.|]+$")

    # Character confusions that are safe to repair anywhere they occur
    OCR_CONFUSIONS: List[Tuple[re.Pattern, object]] = [
        (re.compile(r"\b0(?=[A-Za-z])"), "O"),
        (re.compile(r"([A-Za-z])0(?=([A-Za-z]))"), _fix_interior_zero),
        (re.compile(r"\bl(?=[A-Z])"), "I"),
        (re.compile(r"\b[Il]?nership\b", re.IGNORECASE), "Internship"),
        (re.compile(r"rnrn"), "mm"),
        (re.compile(r"\brn(?=[a-z])"), "m"),
        (re.compile(r"rn(?=ent)"), "m"),
    ]

    def __init__(self, vocabulary: Optional[Vocabulary] = None) -> None:
        """
        Initialize the text normalizer.

        Args:
            vocabulary: Keyword configuration. Defaults to the built-in one.
        """
        self.vocabulary = vocabulary or DEFAULT_VOCABULARY
        self._connectors = set(self.vocabulary.connector_words)
        acronyms = {a.lower(): a for a in self.vocabulary.acronyms}
        self._acronyms = acronyms
        self._word_acronyms = set(self.vocabulary.word_acronyms)
        if acronyms:
            alternation = "|".join(re.escape(a) for a in sorted(acronyms, key=len, reverse=True))
            self._acronym_pattern = re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)
        else:
            self._acronym_pattern = None

    def clean(self, raw: Optional[str]) -> str:
        """
        Clean a raw OCR fragment.

        Args:
            raw: Raw text; may span lines or be None.

        Returns:
            Cleaned text, or an empty string when nothing is left.
        """
        if not raw:
            return ""

        text = normalize_whitespace(raw)
        text = self.LEADING_ARTIFACTS.sub("", text)
        text = self.TRAILING_ARTIFACTS.sub("", text)
        if not text:
            return ""

        source = self.repair_confusions(text)
        return self.restore_acronyms(self.title_case(source), source)

    def repair_confusions(self, text: str) -> str:
        """Apply the OCR character-confusion table."""
        for pattern, replacement in self.OCR_CONFUSIONS:
            text = pattern.sub(replacement, text)
        return text

    def title_case(self, text: str) -> str:
        """
        Capitalize each word, keeping connector words lowercase.

        Words in mixed case ("DevOps") keep their inner capitals.
        """
        words = text.split(" ")
        result = []
        for position, word in enumerate(words):
            if position > 0 and word.lower() in self._connectors:
                result.append(word.lower())
            else:
                result.append(self._capitalize(word))
        return " ".join(result)

    def restore_acronyms(self, text: str, source: Optional[str] = None) -> str:
        """
        Put known acronyms back into their canonical casing.

        Args:
            text: Title-cased text.
            source: The same text before title-casing (same length). Word
                    acronyms such as "IT" are only restored where the
                    source has them in capitals, so "make it" stays "Make It".
        """
        if self._acronym_pattern is None:
            return text
        # Case mapping can change length ("ß" -> "SS"); offsets must line up
        if source is None or len(source) != len(text):
            source = text

        def _restore(match: re.Match) -> str:
            key = match.group(0).lower()
            if key in self._word_acronyms and not source[match.start():match.end()].isupper():
                return match.group(0)
            return self._acronyms[key]

        return self._acronym_pattern.sub(_restore, text)

    @staticmethod
    def _capitalize(word: str) -> str:
        for index, char in enumerate(word):
            if char.isalpha():
                head, rest = word[:index], word[index + 1:]
                letters = [c for c in rest if c.isalpha()]
                if all(c.isupper() for c in letters) or all(c.islower() for c in letters):
                    rest = rest.lower()
                return head + char.upper() + rest
        return word


class DateNormalizer:
    """
    Normalizes certificate date strings to ISO format (YYYY-MM-DD).

    Recognized inputs:
        - 2023-06-19, 2023/06/19
        - 06/19/2023, 19/06/2023, 06-19-2023 (first number > 12 means day first)
        - June 19, 2023 / Jun. 19 2023 / June 19th, 2023
        - 19 June 2023 / 19th of June, 2023
        - 19-Jun-2023 / 19/Sep/2023 / June-19-2023 (via dateutil)

    Anything else normalizes to None. Impossible dates such as
    2023-02-30 are rejected rather than rolled over.

    Example:
        >>> normalizer = DateNormalizer()
        >>> normalizer.normalize("June 19, 2023")
        "2023-06-19"
        >>> normalizer.normalize("25/12/2022")
        "2022-12-25"
    """

    # Order matters: month-first numeric formats are tried before day-first
    INPUT_FORMATS = [
        "%Y-%m-%d",
        "%Y/%m/%d",
        "%m/%d/%Y",
        "%d/%m/%Y",
        "%m-%d-%Y",
        "%d-%m-%Y",
        "%B %d, %Y",
        "%B %d %Y",
        "%b %d, %Y",
        "%b %d %Y",
        "%d %B %Y",
        "%d %B, %Y",
        "%d %b %Y",
        "%d %b, %Y",
    ]

    # Day and month name in either order, then a four-digit year
    TEXTUAL_DATE = re.compile(
        r"^(?:\d{1,2}[\s\-/]+(?P<month>[A-Za-z]{3,9})"
        r"|(?P<month_first>[A-Za-z]{3,9})[\s\-/]+\d{1,2})"
        r"[\s,\-/]+\d{4}$"
    )

    PREFIXES = ('dated', 'date', 'issued on', 'on')

    _parser_info = date_parser.parserinfo()

    def normalize(self, date_str: Optional[str]) -> Optional[str]:
        """
        Normalize a date string.

        Args:
            date_str: Raw date text.

        Returns:
            ISO date string, or None when the text is not a recognized date.
        """
        if not date_str:
            return None

        cleaned = self._clean_date_string(date_str)
        parsed = self._try_explicit_formats(cleaned) or self._try_dateutil_parser(cleaned)
        if parsed is not None:
            return parsed.date().isoformat()

        logger.debug(f"Unparseable date: {date_str!r}")
        return None

    def _try_explicit_formats(self, date_str: str) -> Optional[datetime]:
        """Try the strptime format list in order."""
        for fmt in self.INPUT_FORMATS:
            try:
                return datetime.strptime(date_str, fmt)
            except ValueError:
                continue
        return None

    def _try_dateutil_parser(self, date_str: str) -> Optional[datetime]:
        """
        Parse day / month-name / year with other separators ("19-Jun-2023").

        Only strings with exactly those three parts and a real month name
        reach dateutil, and fuzzy matching stays off, so free text still
        normalizes to None.
        """
        match = self.TEXTUAL_DATE.match(date_str)
        if not match:
            return None
        month = match.group('month') or match.group('month_first')
        if self._parser_info.month(month) is None:
            return None
        try:
            return date_parser.parse(date_str, dayfirst=False, fuzzy=False)
        except (ValueError, OverflowError):
            return None

    def _clean_date_string(self, date_str: str) -> str:
        """
        Prepare a date string for strptime.

        Args:
            date_str: Raw date string.

        Returns:
            Cleaned date string.
        """
        text = normalize_whitespace(date_str).strip(" .,;:")

        lowered = text.lower()
        for prefix in self.PREFIXES:
            if lowered.startswith(prefix + " ") or lowered.startswith(prefix + ":"):
                text = text[len(prefix):].lstrip(" :")
                break

        # "19th of June" -> "19 June"; "June 19th" -> "June 19"
        text = re.sub(r"(\d{1,2})(?:st|nd|rd|th)\b", r"\1", text, flags=re.IGNORECASE)
        text = re.sub(r"\b(?:day\s+)?of\s+", "", text, flags=re.IGNORECASE)
        # "Sept" and "Jun." are not strptime month spellings
        text = re.sub(r"\bsept\b", "Sep", text, flags=re.IGNORECASE)
        text = re.sub(r"\b([A-Za-z]{3,9})\.", r"\1", text)
        return text.strip()

    def is_valid_date(self, date_str: str) -> bool:
        """Check if a string normalizes to a real calendar date."""
        return self.normalize(date_str) is not None


_default_text_normalizer = TextNormalizer()
_default_date_normalizer = DateNormalizer()


def clean_text(raw: Optional[str]) -> str:
    """Clean a fragment with the default vocabulary."""
    return _default_text_normalizer.clean(raw)


def normalize_date(raw: Optional[str]) -> Optional[str]:
    """Normalize a date string to ISO format, or None."""
    return _default_date_normalizer.normalize(raw)
