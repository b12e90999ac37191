"""
Keyword Vocabulary Module.

Every keyword list used by the validators, extractors, candidate selector
and confidence scorer lives in one immutable ``Vocabulary`` value. Components
receive it as a constructor argument, so a caller (or a test) can swap in a
custom vocabulary without touching module state.

Lists can be overridden from the ``vocabulary`` section of settings.yaml;
any key present there replaces the built-in default of the same name.
"""

import re
from dataclasses import dataclass, fields, replace
from functools import lru_cache
from typing import Any, Dict, Iterable, Optional, Pattern, Tuple

from cert_extraction.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Vocabulary:
    """
    Immutable keyword configuration.

    All word lists are lowercase except ``acronyms``, which holds the
    canonical spelling to restore after title-casing.
    """

    # Phrases that mark certificate boilerplate rather than a field value
    boilerplate_phrases: Tuple[str, ...] = (
        'the following', 'sponsored project', 'given this day', 'under the seal',
        'republic of', 'state of', 'city of', 'principal investigator',
        'hereby present', 'upon recommendation', 'this certificate',
        'to certify that',
    )
    institution_keywords: Tuple[str, ...] = (
        'university', 'college', 'institute', 'school', 'academy', 'foundation',
        'organization', 'corporation', 'company', 'iit', 'nit', 'iim', 'iisc',
    )
    # Online-learning platforms and technology companies that issue certificates
    platform_names: Tuple[str, ...] = (
        'coursera', 'edx', 'udemy', 'nptel', 'udacity', 'khan academy',
        'linkedin learning', 'pluralsight', 'google', 'microsoft', 'amazon',
        'ibm', 'oracle', 'cisco', 'adobe', 'meta',
    )
    credential_words: Tuple[str, ...] = (
        'certificate', 'diploma', 'degree', 'course', 'program', 'programme',
        'training', 'workshop', 'specialization', 'certification', 'internship',
        'bootcamp',
    )
    degree_words: Tuple[str, ...] = ('bachelor', 'master', 'phd', 'doctorate')
    achievement_words: Tuple[str, ...] = ('completion', 'achievement', 'award')
    # Award types that say what kind of certificate it is, not what was completed
    generic_award_words: Tuple[str, ...] = (
        'completion', 'achievement', 'participation', 'appreciation',
        'excellence', 'merit', 'attendance', 'recognition', 'accomplishment',
    )
    # Words that rule out a capitalized sequence as a person's name
    non_name_words: Tuple[str, ...] = (
        'technology', 'project', 'research', 'department', 'certify',
        'presented', 'awarded', 'issued', 'date', 'signature', 'director',
        'president', 'dean', 'registrar', 'instructor',
    )
    trusted_issuers: Tuple[str, ...] = (
        'coursera', 'edx', 'udemy', 'google', 'microsoft', 'amazon', 'ibm',
        'stanford', 'mit', 'harvard', 'iit', 'university', 'college', 'institute',
    )
    acronyms: Tuple[str, ...] = (
        'IT', 'AI', 'ML', 'UI', 'UX', 'IIT', 'IBM', 'NPTEL', 'AWS', 'SQL',
        'API', 'NLP', 'edX',
    )
    # Acronyms that are also ordinary words; restored only when the
    # source already wrote them in capitals
    word_acronyms: Tuple[str, ...] = ('it',)
    title_trigger_keywords: Tuple[str, ...] = (
        'completed', 'certification', 'course', 'program', 'specialization',
        'training',
    )
    connector_words: Tuple[str, ...] = ('of', 'in', 'and', 'the', 'for', 'at', 'by')

    @property
    def institution_vocabulary(self) -> Tuple[str, ...]:
        """Keywords that qualify a string as an institution name."""
        return self.institution_keywords + self.platform_names

    @property
    def not_a_name_vocabulary(self) -> Tuple[str, ...]:
        """Keywords that disqualify a string as a person's name."""
        return (
            self.institution_keywords + self.platform_names + self.credential_words
            + self.achievement_words + self.generic_award_words + self.non_name_words
        )

    def contains_boilerplate(self, text: str) -> bool:
        """True when text contains any boilerplate phrase."""
        lowered = text.lower()
        return any(phrase in lowered for phrase in self.boilerplate_phrases)

    def with_overrides(self, overrides: Dict[str, Iterable[str]]) -> 'Vocabulary':
        """
        Return a copy with some lists replaced.

        Args:
            overrides: Mapping of field name to replacement word list.
                      Unknown names are ignored with a warning.

        Returns:
            New Vocabulary instance.
        """
        known = {f.name for f in fields(self)}
        changes: Dict[str, Any] = {}
        for name, words in (overrides or {}).items():
            if name not in known:
                logger.warning(f"Ignoring unknown vocabulary list: {name}")
                continue
            if name == 'acronyms':
                changes[name] = tuple(str(w) for w in words)
            else:
                changes[name] = tuple(str(w).lower() for w in words)
        return replace(self, **changes)

    @classmethod
    def from_config(cls) -> 'Vocabulary':
        """Build the vocabulary from defaults plus settings.yaml overrides."""
        from config import get_config

        overrides = get_config("vocabulary", {}) or {}
        if not overrides:
            return DEFAULT_VOCABULARY
        return DEFAULT_VOCABULARY.with_overrides(overrides)


DEFAULT_VOCABULARY = Vocabulary()


@lru_cache(maxsize=128)
def keyword_pattern(words: Tuple[str, ...]) -> Pattern:
    """
    Compile a case-insensitive whole-word pattern for a keyword tuple.

    Simple plurals ("institutes", "schools") also match.
    """
    if not words:
        return re.compile(r"(?!x)x")
    alternation = "|".join(
        re.escape(w).replace(r"\ ", r"\s+") for w in sorted(words, key=len, reverse=True)
    )
    return re.compile(rf"\b(?:{alternation})(?:s|es)?\b", re.IGNORECASE)


def contains_keyword(text: Optional[str], words: Tuple[str, ...]) -> bool:
    """True when text contains any of the keywords as a whole word."""
    if not text:
        return False
    return keyword_pattern(words).search(text) is not None
