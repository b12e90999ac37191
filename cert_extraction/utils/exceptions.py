"""
Custom Exceptions Module.

This module defines all custom exceptions used throughout the certificate
extraction system. Most of them never reach the caller of
``CertificateExtractor.extract``: strategy and LLM failures are caught inside
the pipeline and turned into "no contribution" or a rule-based fallback.

Exception Hierarchy:
    CertificateExtractionError (base)
    ├── ConfigurationError
    ├── InputError
    │   ├── InputNotFoundError
    │   └── UnsupportedInputError
    ├── ExtractionError
    │   └── StrategyError
    ├── LLMError
    │   ├── LLMNotConfiguredError
    │   ├── LLMRequestError
    │   ├── LLMTimeoutError
    │   └── LLMResponseError
    └── ValidationError
"""


class CertificateExtractionError(Exception):
    """
    Base exception for all certificate extraction errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CertificateExtractionError):
    """Raised when configuration is missing or malformed."""
    pass


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(CertificateExtractionError):
    """Base exception for input handling errors."""
    pass


class InputNotFoundError(InputError):
    """Raised when an input text file or directory cannot be found."""

    def __init__(self, filepath: str):
        message = f"Input not found: {filepath}"
        details = {"filepath": filepath}
        super().__init__(message, details)


class UnsupportedInputError(InputError):
    """
    Raised when an input file is not an OCR text dump.

    Example:
        >>> raise UnsupportedInputError(".pdf", [".txt"])
    """

    def __init__(self, file_type: str, supported_types: list):
        message = f"Unsupported input type: '{file_type}'"
        details = {"file_type": file_type, "supported_types": supported_types}
        super().__init__(message, details)


# =============================================================================
# EXTRACTION ERRORS
# =============================================================================

class ExtractionError(CertificateExtractionError):
    """Base exception for rule-based extraction errors."""
    pass


class StrategyError(ExtractionError):
    """Raised when a single extraction strategy cannot produce candidates."""

    def __init__(self, strategy: str, reason: str = None):
        message = f"Extraction strategy failed: {strategy}"
        details = {"strategy": strategy, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# LLM ERRORS
# =============================================================================

class LLMError(CertificateExtractionError):
    """Base exception for LLM backend errors. Always triggers fallback."""
    pass


class LLMNotConfiguredError(LLMError):
    """Raised when no LLM backend credential is configured."""

    def __init__(self, provider: str = None):
        message = "No LLM backend configured"
        details = {"provider": provider}
        super().__init__(message, details)


class LLMRequestError(LLMError):
    """Raised on network errors and non-2xx responses."""

    def __init__(self, provider: str, reason: str = None, status_code: int = None):
        message = f"LLM request failed: {provider}"
        details = {"provider": provider, "reason": reason, "status_code": status_code}
        super().__init__(message, details)


class LLMTimeoutError(LLMError):
    """Raised when the LLM call does not finish within the deadline."""

    def __init__(self, provider: str, timeout_seconds: float):
        message = f"LLM call timed out after {timeout_seconds}s: {provider}"
        details = {"provider": provider, "timeout_seconds": timeout_seconds}
        super().__init__(message, details)


class LLMResponseError(LLMError):
    """Raised when the LLM response is not a JSON object matching the schema."""

    def __init__(self, provider: str, reason: str = None):
        message = f"Malformed LLM response: {provider}"
        details = {"provider": provider, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# RESULT ERRORS
# =============================================================================

class ValidationError(CertificateExtractionError):
    """Raised when an extraction result violates its invariants."""

    def __init__(self, field: str, value, reason: str = None):
        message = f"Validation failed for field '{field}'"
        details = {"field": field, "value": value, "reason": reason}
        super().__init__(message, details)


__all__ = [
    'CertificateExtractionError',
    'ConfigurationError',
    'InputError',
    'InputNotFoundError',
    'UnsupportedInputError',
    'ExtractionError',
    'StrategyError',
    'LLMError',
    'LLMNotConfiguredError',
    'LLMRequestError',
    'LLMTimeoutError',
    'LLMResponseError',
    'ValidationError',
]
