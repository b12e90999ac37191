"""
Global Test Configuration and Fixtures.

Shared pytest fixtures for the certificate extraction test suite: a fresh
configuration singleton per test, no LLM credentials in the environment,
and sample certificate OCR texts.
"""

import logging
from datetime import date

import pytest

from config import ConfigurationManager
from cert_extraction.utils.logger import ROOT_LOGGER_NAME

LLM_KEY_VARIABLES = ('GEMINI_API_KEY', 'OPENAI_API_KEY', 'ANTHROPIC_API_KEY')


# ============================================================================
# Sample OCR Texts
# ============================================================================

SIMPLE_TEXT = "Certificate of Data Science issued by Coursera to John Smith on June 19, 2023"

COURSE_TEXT = """COURSERA
Certificate of Completion
This is to certify that Jane Doe
has successfully completed the Machine Learning Specialization
offered by Stanford University
Issued on: 12 March 2024
Credential ID: ABC123XYZ
"""

INTERNSHIP_TEXT = (
    "This certificate is awarded to Sankesh Vithal Shetty for his/her successful "
    "completion of IIT Bombay Research Inership 2023-24 in the sponsored project."
)

GIBBERISH_TEXT = "~~ ## 1234 !! ~~"


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Reset the configuration singleton and remove LLM credentials."""
    for name in LLM_KEY_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def simple_text() -> str:
    return SIMPLE_TEXT


@pytest.fixture
def course_text() -> str:
    return COURSE_TEXT


@pytest.fixture
def internship_text() -> str:
    return INTERNSHIP_TEXT


@pytest.fixture
def today() -> date:
    """Fixed reference date for date plausibility checks."""
    return date(2024, 6, 1)


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo handlers and levels installed by setup_logger during a test."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
