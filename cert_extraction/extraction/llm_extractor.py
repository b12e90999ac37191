"""
LLM-Backed Extractor Module.

Optional higher-accuracy path: the raw OCR text is sent to one configured
large-language-model backend with a fixed prompt that asks for a JSON object
holding exactly the six certificate fields.

Control flow:
    - No backend configured, or empty text: defer to the rule-based
      pipeline immediately, without any network call
    - Otherwise: one request, raced against a deadline. Any failure
      (network error, non-2xx status, malformed JSON, schema mismatch,
      timeout) falls back to the rule-based pipeline. There is no retry.

Supported backends:
    - gemini: Google Generative Language API
    - openai: Chat Completions API
    - anthropic: Messages API
    - ollama: local Ollama server (/api/generate)

Author: ML Engineering Team
"""

import concurrent.futures
import contextvars
import json
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import requests

from config import get_config, get_secret
from cert_extraction.extraction.extraction_result import (
    ExtractionMethod,
    FIELD_NAMES,
    empty_fields,
)
from cert_extraction.postprocessor.normalizers import DateNormalizer, TextNormalizer
from cert_extraction.postprocessor.validators import FieldValidator
from cert_extraction.postprocessor.vocabulary import Vocabulary
from cert_extraction.utils.exceptions import (
    LLMError,
    LLMNotConfiguredError,
    LLMRequestError,
    LLMResponseError,
    LLMTimeoutError,
)
from cert_extraction.utils.helpers import normalize_whitespace
from cert_extraction.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


SYSTEM_PROMPT = (
    "You extract structured fields from the OCR text of certificates "
    "(course completions, degrees, internships, workshops). "
    "Reply with a single JSON object and nothing else."
)

USER_PROMPT_TEMPLATE = """Read the certificate OCR text below and return a JSON object with exactly these keys:

{{
  "title": "the course, program or credential name",
  "institution": "the organization, university or company that issued it",
  "recipient": "the full name of the person who received it",
  "date_issued": "the issue date as YYYY-MM-DD",
  "certificate_id": "any certificate ID, credential ID or serial number",
  "description": "a one or two line summary of the achievement"
}}

Rules:
- Output only the JSON object: no markdown, no commentary, no extra keys.
- "title" is the name of the program, never the person's name.
- "recipient" is the person's name, never the program name.
- Write every date as YYYY-MM-DD (for example "June 19, 2023" becomes "2023-06-19").
- Use null for any field that is not present in the text.
- Correct obvious OCR errors such as "IT Bombay" for "IIT Bombay" or "nership" for "Internship".

OCR text:
<<<
{raw_text}
>>>"""

CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def build_prompt(raw_text: str) -> str:
    """Build the user prompt for one certificate."""
    return USER_PROMPT_TEMPLATE.format(raw_text=raw_text.strip())


def strip_code_fences(text: str) -> str:
    """
    Remove a markdown code-fence wrapper, if present.

    Example:
        >>> strip_code_fences('```json\\n{"title": null}\\n```')
        '{"title": null}'
    """
    stripped = text.strip()
    match = CODE_FENCE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def parse_llm_response(text: str, provider: str = "llm") -> Dict[str, Optional[str]]:
    """
    Parse and schema-check a model reply.

    Args:
        text: Raw reply text, optionally wrapped in a code fence.
        provider: Backend name, used in error details.

    Returns:
        Dictionary with exactly the six field names. Empty strings
        become None.

    Raises:
        LLMResponseError: If the reply is not JSON or does not match the
                          schema.
    """
    if not isinstance(text, str):
        raise LLMResponseError(provider, f"expected reply text, got {type(text).__name__}")
    if not text.strip():
        raise LLMResponseError(provider, "empty response")

    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise LLMResponseError(provider, f"invalid JSON: {e}")

    if not isinstance(data, dict):
        raise LLMResponseError(provider, f"expected a JSON object, got {type(data).__name__}")

    keys = set(data)
    expected = set(FIELD_NAMES)
    if keys != expected:
        missing = sorted(expected - keys)
        extra = sorted(keys - expected)
        raise LLMResponseError(provider, f"schema mismatch (missing={missing}, extra={extra})")

    fields: Dict[str, Optional[str]] = {}
    for name in FIELD_NAMES:
        value = data[name]
        if value is not None and not isinstance(value, str):
            raise LLMResponseError(provider, f"field '{name}' is {type(value).__name__}, not string/null")
        if isinstance(value, str):
            value = value.strip() or None
        fields[name] = value
    return fields


# =============================================================================
# BACKENDS
# =============================================================================

class LLMBackend(ABC):
    """
    One HTTP-based model provider.

    Attributes:
        name: Provider key (gemini, openai, anthropic, ollama)
        model: Model identifier sent to the provider
        endpoint: Base URL of the provider API
        api_key: Credential, if the provider needs one
    """

    name = "base"

    def __init__(
        self,
        model: str,
        endpoint: str,
        api_key: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 500,
        request_timeout: float = 15
    ) -> None:
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.request_timeout = request_timeout

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """
        Send one prompt and return the model's reply text.

        Raises:
            LLMRequestError: On network errors and non-2xx responses.
            LLMResponseError: If the reply body has an unexpected shape.
        """
        url, payload, headers, params = self.build_request(system_prompt, user_prompt)
        try:
            response = requests.post(
                url, json=payload, headers=headers, params=params, timeout=self.request_timeout
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise LLMRequestError(self.name, str(e), status_code=status)
        except requests.RequestException as e:
            raise LLMRequestError(self.name, str(e))

        try:
            data = response.json()
        except ValueError as e:
            raise LLMResponseError(self.name, f"response body is not JSON: {e}")

        try:
            reply = self.parse_reply(data)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise LLMResponseError(self.name, f"unexpected response structure: {e!r}")

        if not isinstance(reply, str):
            raise LLMResponseError(self.name, f"expected reply text, got {type(reply).__name__}")
        return reply

    @abstractmethod
    def build_request(
        self,
        system_prompt: str,
        user_prompt: str
    ) -> Tuple[str, Dict[str, Any], Dict[str, str], Optional[Dict[str, str]]]:
        """Return (url, json payload, headers, query params)."""
        raise NotImplementedError

    @abstractmethod
    def parse_reply(self, data: Dict[str, Any]) -> str:
        """Pull the reply text out of the provider's response body."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r})"


class GeminiBackend(LLMBackend):
    """Google Generative Language API."""

    name = "gemini"

    def build_request(self, system_prompt, user_prompt):
        url = f"{self.endpoint}/{self.model}:generateContent"
        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
                "responseMimeType": "application/json",
            },
        }
        headers = {"Content-Type": "application/json"}
        return url, payload, headers, {"key": self.api_key}

    def parse_reply(self, data):
        if "error" in data:
            error = data["error"]
            message = error.get("message", "API error") if isinstance(error, dict) else str(error)
            raise LLMResponseError(self.name, message)
        return data["candidates"][0]["content"]["parts"][0]["text"]


class OpenAIBackend(LLMBackend):
    """OpenAI Chat Completions API."""

    name = "openai"

    def build_request(self, system_prompt, user_prompt):
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "response_format": {"type": "json_object"},
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        return self.endpoint, payload, headers, None

    def parse_reply(self, data):
        return data["choices"][0]["message"]["content"]


class AnthropicBackend(LLMBackend):
    """Anthropic Messages API."""

    name = "anthropic"

    def __init__(self, *args, api_version: str = "2023-06-01", **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.api_version = api_version

    def build_request(self, system_prompt, user_prompt):
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        headers = {
            "x-api-key": self.api_key or "",
            "anthropic-version": self.api_version,
            "Content-Type": "application/json",
        }
        return self.endpoint, payload, headers, None

    def parse_reply(self, data):
        return data["content"][0]["text"]


class OllamaBackend(LLMBackend):
    """Local Ollama server; needs no API key."""

    name = "ollama"

    def build_request(self, system_prompt, user_prompt):
        payload = {
            "model": self.model,
            "system": system_prompt,
            "prompt": user_prompt,
            "stream": False,
            "format": "json",
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }
        return f"{self.endpoint}/api/generate", payload, {"Content-Type": "application/json"}, None

    def parse_reply(self, data):
        return data["response"]


BACKENDS = {
    'gemini': GeminiBackend,
    'openai': OpenAIBackend,
    'anthropic': AnthropicBackend,
    'ollama': OllamaBackend,
}

# Auto-detection order when no provider is named in the configuration
KEYED_PROVIDERS = ('gemini', 'openai', 'anthropic')


def create_backend(provider: str, api_key: Optional[str] = None) -> LLMBackend:
    """
    Build a backend from the ``llm`` configuration section.

    Args:
        provider: Provider key.
        api_key: Credential; read from the provider's environment
                 variable when None.

    Returns:
        Configured backend.

    Raises:
        LLMNotConfiguredError: If the provider is unknown or its
                               credential is missing.
    """
    provider = provider.strip().lower()
    backend_cls = BACKENDS.get(provider)
    if backend_cls is None:
        raise LLMNotConfiguredError(provider)

    if api_key is None and provider != 'ollama':
        api_key = get_secret(get_config(f"llm.api_key_env.{provider}", ""))
        if not api_key:
            raise LLMNotConfiguredError(provider)

    kwargs: Dict[str, Any] = dict(
        model=get_config(f"llm.models.{provider}", ""),
        endpoint=get_config(f"llm.endpoints.{provider}", ""),
        api_key=api_key,
        temperature=get_config("llm.temperature", 0.1),
        max_tokens=get_config("llm.max_tokens", 500),
        request_timeout=get_config("llm.timeout_seconds", 15),
    )
    if provider == 'anthropic':
        kwargs['api_version'] = get_config("llm.anthropic_version", "2023-06-01")
    return backend_cls(**kwargs)


def select_backend() -> Optional[LLMBackend]:
    """
    Select the single configured backend.

    ``llm.provider`` wins when set; otherwise the first provider whose
    API key environment variable is set. Returns None when nothing is
    configured.
    """
    provider = (get_config("llm.provider", "") or "").strip().lower()
    if provider:
        try:
            return create_backend(provider)
        except LLMNotConfiguredError as e:
            logger.warning(f"LLM provider '{provider}' is not usable: {e}")
            return None

    for candidate in KEYED_PROVIDERS:
        env_var = get_config(f"llm.api_key_env.{candidate}", "")
        if env_var and get_secret(env_var):
            return create_backend(candidate)
    return None


# =============================================================================
# EXTRACTOR
# =============================================================================

class LLMExtractor:
    """
    LLM extraction with a deadline and rule-based fallback.

    Attributes:
        backend: Selected backend, or None when none is configured
        fallback: Rule-based extractor used whenever the LLM path fails
        timeout_seconds: Deadline for the single LLM call

    Example:
        >>> extractor = LLMExtractor(fallback=MultiStrategyOrchestrator())
        >>> fields, method = extractor.extract(raw_text)
        >>> method
        <ExtractionMethod.LLM: 'llm'>
    """

    def __init__(
        self,
        fallback,
        backend: Optional[LLMBackend] = None,
        timeout_seconds: Optional[float] = None,
        vocabulary: Optional[Vocabulary] = None,
        auto_select: bool = True
    ) -> None:
        """
        Initialize the LLM extractor.

        Args:
            fallback: Object with ``extract(text) -> dict`` used on failure.
            backend: Backend to call. If None and ``auto_select`` is set,
                     one is selected from configuration.
            timeout_seconds: Deadline for the call. Defaults to config.
            vocabulary: Keyword configuration for post-validation.
            auto_select: Whether to look up a backend when none is given.
        """
        self.fallback = fallback
        if backend is None and auto_select:
            backend = select_backend()
        self.backend = backend
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None
            else get_config("llm.timeout_seconds", 15)
        )

        self.vocabulary = vocabulary or Vocabulary.from_config()
        self.normalizer = TextNormalizer(self.vocabulary)
        self.date_normalizer = DateNormalizer()
        self.validator = FieldValidator(self.vocabulary)

        if self.backend is None:
            logger.info("No LLM backend configured; LLM mode will use rule-based extraction")
        else:
            logger.info(f"LLM backend: {self.backend.name} ({self.backend.model})")

    @property
    def is_configured(self) -> bool:
        return self.backend is not None

    def extract(self, raw_text: str) -> Tuple[Dict[str, Optional[str]], ExtractionMethod]:
        """
        Extract fields, preferring the LLM.

        Args:
            raw_text: Raw OCR text.

        Returns:
            Tuple of (fields, method). Method is LLM on success and
            LLM_FALLBACK whenever the rule-based pipeline produced the
            fields.
        """
        if self.backend is None or not raw_text or not raw_text.strip():
            return self._fallback(raw_text or ""), ExtractionMethod.LLM_FALLBACK

        try:
            reply = self._complete_with_deadline(build_prompt(raw_text))
            fields = self.postprocess(parse_llm_response(reply, self.backend.name))
        except LLMError as e:
            logger.warning(f"LLM extraction failed, falling back to rules: {e}")
            return self._fallback(raw_text), ExtractionMethod.LLM_FALLBACK

        logger.debug(f"LLM extracted fields: {[k for k, v in fields.items() if v]}")
        return fields, ExtractionMethod.LLM

    def _complete_with_deadline(self, user_prompt: str) -> str:
        """
        Run the backend call, giving up after ``timeout_seconds``.

        Raises:
            LLMTimeoutError: If the deadline passes first.
            LLMError: Whatever the backend raised.
        """
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        # Carry the logging context (current certificate) into the worker
        context = contextvars.copy_context()
        future = executor.submit(context.run, self.backend.complete, SYSTEM_PROMPT, user_prompt)
        try:
            return future.result(timeout=self.timeout_seconds)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise LLMTimeoutError(self.backend.name, self.timeout_seconds)
        finally:
            # Do not wait for a stuck request; its own socket timeout ends it
            executor.shutdown(wait=False)

    def postprocess(self, fields: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
        """
        Run model output through the same cleanup and validators as the
        rule-based extractors. Values that fail are dropped.
        """
        result = empty_fields()

        title = self.normalizer.clean(fields.get('title'))
        result['title'] = title if self.validator.is_valid_title(title) else None

        institution = self.normalizer.clean(fields.get('institution'))
        result['institution'] = institution if self.validator.is_valid_institution(institution) else None

        recipient = normalize_whitespace(fields.get('recipient') or "")
        result['recipient'] = recipient if self.validator.is_valid_person_name(recipient) else None

        result['date_issued'] = self.date_normalizer.normalize(fields.get('date_issued'))

        description = normalize_whitespace(fields.get('description') or "")
        result['description'] = description or None

        certificate_id = (fields.get('certificate_id') or "").strip()
        result['certificate_id'] = (
            certificate_id if self.validator.is_valid_certificate_id(certificate_id) else None
        )

        dropped = [k for k in FIELD_NAMES if fields.get(k) and not result[k]]
        if dropped:
            logger.debug(f"Dropped LLM values that failed validation: {dropped}")
        return result

    def _fallback(self, raw_text: str) -> Dict[str, Optional[str]]:
        return self.fallback.extract(raw_text)
