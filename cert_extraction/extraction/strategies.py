"""
Extraction Strategies Module.

Independent heuristic passes run by the multi-strategy orchestrator next to
the pattern extractor. Each strategy reads the raw text and returns a
``Candidate``: a partial ``{field: value}`` dictionary holding only what it
found. Strategies never see each other's output.

Strategies:
    - ContextStrategy: letterhead lines and standalone capitalized names
    - KeywordStrategy: text following trigger words like "completed"
    - StructureStrategy: standalone title-cased lines

Author: ML Engineering Team
"""

import re
from abc import ABC, abstractmethod
from typing import Optional

from config import get_config
from cert_extraction.extraction.extraction_result import Candidate
from cert_extraction.postprocessor.normalizers import TextNormalizer
from cert_extraction.postprocessor.validators import FieldValidator
from cert_extraction.postprocessor.vocabulary import Vocabulary, contains_keyword
from cert_extraction.utils.helpers import split_lines
from cert_extraction.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class ExtractionStrategy(ABC):
    """
    Base class for a single extraction pass.

    Subclasses implement ``extract_candidates``; the shared constructor
    wires in the vocabulary, normalizer and validator.
    """

    name = "base"

    def __init__(
        self,
        vocabulary: Optional[Vocabulary] = None,
        normalizer: Optional[TextNormalizer] = None,
        validator: Optional[FieldValidator] = None
    ) -> None:
        self.vocabulary = vocabulary or Vocabulary.from_config()
        self.normalizer = normalizer or TextNormalizer(self.vocabulary)
        self.validator = validator or FieldValidator(self.vocabulary)

    @abstractmethod
    def extract_candidates(self, text: str) -> Candidate:
        """
        Produce candidate field values from raw text.

        Args:
            text: Raw OCR text.

        Returns:
            Partial field dictionary; empty when nothing was found.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class ContextStrategy(ExtractionStrategy):
    """
    Uses position and surrounding words.

    The first few lines of a certificate are its letterhead, so a line
    there that names an institution is taken as the issuer. Anywhere in
    the text, a capitalized two/three-word sequence that is not introduced
    by "of"/"in"/"by"... is taken as the recipient's name.

    Example:
        >>> ContextStrategy().extract_candidates("STANFORD UNIVERSITY\\nJane Doe")
        {'institution': 'Stanford University', 'recipient': 'Jane Doe'}
    """

    name = "context"

    NAME_SEQUENCE = re.compile(r"\b([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+){1,2})\b")
    # Words that introduce a subject or an organization rather than a person
    NON_NAME_LEADS = frozenset({
        'of', 'in', 'on', 'for', 'by', 'from', 'at', 'and', 'the', 'with', 'under',
    })

    def __init__(self, *args, letterhead_lines: Optional[int] = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.letterhead_lines = letterhead_lines or get_config("extraction.letterhead_lines", 3)

    def extract_candidates(self, text: str) -> Candidate:
        candidate: Candidate = {}
        lines = split_lines(text)

        institution = self._letterhead_institution(lines)
        if institution:
            candidate['institution'] = institution

        recipient = self._recipient(lines)
        if recipient:
            candidate['recipient'] = recipient

        return candidate

    def _letterhead_institution(self, lines) -> Optional[str]:
        for line in lines[:self.letterhead_lines]:
            if contains_keyword(line, self.vocabulary.credential_words):
                continue
            cleaned = self.normalizer.clean(line)
            if self.validator.is_valid_institution(cleaned):
                return cleaned
        return None

    def _recipient(self, lines) -> Optional[str]:
        for line in lines:
            for match in self.NAME_SEQUENCE.finditer(line):
                preceding = line[:match.start()].split()
                if preceding and preceding[-1].lower() in self.NON_NAME_LEADS:
                    continue
                following = line[match.end():].split()
                if following and contains_keyword(following[0], self.vocabulary.credential_words):
                    continue
                if self.validator.is_valid_person_name(match.group(1)):
                    return match.group(1)
        return None


class KeywordStrategy(ExtractionStrategy):
    """
    Takes the text right after a trigger word as the title.

    Triggers come from ``Vocabulary.title_trigger_keywords`` and are tried
    in order; the first one producing a valid title wins.

    Example:
        >>> KeywordStrategy().extract_candidates("has completed Advanced Python Programming")
        {'title': 'Advanced Python Programming'}
    """

    name = "keyword"

    # Words that end the phrase following a trigger
    PHRASE_END = re.compile(
        r"\s+(?:course|program|programme|from|by|on|at|issued|with|to|in|offered)\b.*$",
        re.IGNORECASE,
    )
    LEADING_ARTICLE = re.compile(r"^(?:the|a|an)\s+", re.IGNORECASE)

    def extract_candidates(self, text: str) -> Candidate:
        for keyword in self.vocabulary.title_trigger_keywords:
            pattern = re.compile(rf"\b{re.escape(keyword)}\b[\s:]*([^\n.]{{10,80}})", re.IGNORECASE)
            match = pattern.search(text)
            if not match:
                continue
            phrase = self.PHRASE_END.sub("", match.group(1)).strip()
            phrase = self.LEADING_ARTICLE.sub("", phrase)
            title = self.normalizer.clean(phrase)
            if self.validator.is_valid_title(title):
                return {'title': title}
        return {}


class StructureStrategy(ExtractionStrategy):
    """
    Treats a standalone title-cased line as a possible title.

    A line qualifies when it is 10-80 characters long, holds at least two
    capitalized words, and is neither boilerplate nor an institution line.
    Lines that could also be a person's name are used only when nothing
    else qualifies.

    Example:
        >>> StructureStrategy().extract_candidates("CERTIFICATE\\nJohn Smith\\nFundamentals of Cloud Computing")
        {'title': 'Fundamentals of Cloud Computing'}
    """

    name = "structure"

    MIN_LENGTH = 10
    MAX_LENGTH = 80
    TITLE_CASE = re.compile(r"[A-Z][a-z]+.*[A-Z][a-z]+")
    BOILERPLATE = re.compile(
        r"certificate\s+of|certif(?:y|ies)|present|awarded|signature|\bdate\b|issued|"
        r"has\s+(?:successfully\s+)?completed|in\s+recognition|congratulat",
        re.IGNORECASE,
    )

    def extract_candidates(self, text: str) -> Candidate:
        name_like = None
        for line in split_lines(text):
            if not self.MIN_LENGTH <= len(line) <= self.MAX_LENGTH:
                continue
            if self.BOILERPLATE.search(line) or self.vocabulary.contains_boilerplate(line):
                continue
            if not self.TITLE_CASE.search(line):
                continue
            if contains_keyword(line, self.vocabulary.institution_vocabulary):
                continue
            title = self.normalizer.clean(line)
            if not self.validator.is_valid_title(title):
                continue
            # A line that could be the recipient's name is only a last resort
            if self.validator.is_valid_person_name(line):
                name_like = name_like or title
                continue
            return {'title': title}
        return {'title': name_like} if name_like else {}
