"""Gemini generateContent client with web-grounded search.

Builds the request body (prompt, system instruction with an optional
language directive, Google Search grounding tool), posts it with a
per-attempt timeout, retries with a short backoff, and normalizes every
failure into a GeminiError subclass carrying an ErrorKind.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from cloudwhisper import config

logger = logging.getLogger(__name__)


DEFAULT_SOURCE_TITLE = "External Source"

_LANGUAGE_DIRECTIVES: dict[str, str] = {
    "ja-JP": (
        "\n\nAlways answer ONLY in Japanese (日本語) regardless of input language. "
        "Use natural, friendly Japanese."
    ),
    "en-US": (
        "\n\nAlways answer ONLY in English regardless of input language. "
        "Use natural, friendly English."
    ),
}


class ErrorKind(enum.Enum):
    """Classification of a Gemini call failure."""

    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    UPSTREAM = "upstream"
    TIMEOUT = "timeout"
    PARSE = "parse"
    UNKNOWN = "unknown"


class GeminiError(Exception):
    """Raised when a Gemini call fails.

    Attributes:
        message: Human-readable error message.
        status: HTTP status code, when one applies.
        details: Opaque payload describing the failure (e.g. the error body).
    """

    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str, status: int | None = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details


class GeminiConfigurationError(GeminiError):
    """Raised when no Gemini API key is configured."""

    kind = ErrorKind.CONFIGURATION


class GeminiValidationError(GeminiError):
    """Raised when the prompt is empty."""

    kind = ErrorKind.VALIDATION


class GeminiUpstreamError(GeminiError):
    """Raised when Gemini answers with a non-success HTTP status."""

    kind = ErrorKind.UPSTREAM


class GeminiTimeoutError(GeminiError):
    """Raised when an attempt exceeds its deadline."""

    kind = ErrorKind.TIMEOUT


class GeminiParseError(GeminiError):
    """Raised when a successful response carries no answer text."""

    kind = ErrorKind.PARSE


@dataclass(frozen=True)
class Source:
    """A web citation returned by Gemini's search grounding."""

    uri: str
    title: str = DEFAULT_SOURCE_TITLE


@dataclass(frozen=True)
class GeminiResult:
    """Answer text plus the sources Gemini grounded it on."""

    text: str
    sources: list[Source] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "sources": [{"uri": s.uri, "title": s.title} for s in self.sources],
        }


def build_system_instruction(system_instruction: str = "", language: str | None = None) -> str:
    """Append the answer-language directive for ja-JP and en-US.

    Any other language value leaves the instruction unchanged.
    """
    return (system_instruction or "") + _LANGUAGE_DIRECTIVES.get(language or "", "")


def build_payload(
    prompt_text: str,
    system_instruction: str = "",
    language: str | None = None,
) -> dict:
    """Build the generateContent request body."""
    return {
        "contents": [{"parts": [{"text": prompt_text}]}],
        "systemInstruction": {
            "role": "system",
            "parts": [{"text": build_system_instruction(system_instruction, language)}],
        },
        "tools": [{"googleSearch": {}}],
    }


def _endpoint_url() -> str:
    return f"{config.GEMINI_API_BASE_URL}/models/{config.GEMINI_MODEL}:generateContent"


def _error_details(response: httpx.Response) -> Any:
    """Return the structured `error` object if the body has one, else the raw text."""
    text = response.text
    try:
        body = response.json()
    except ValueError:
        return text
    if isinstance(body, dict) and body.get("error"):
        return body["error"]
    return text


def _parse_sources(candidate: dict) -> list[Source]:
    """Extract citations from a candidate's grounding attributions.

    Malformed attributions become default sources rather than errors.
    """
    grounding = candidate.get("groundingMetadata")
    if not isinstance(grounding, dict):
        return []
    attributions = grounding.get("groundingAttributions")
    if not isinstance(attributions, list):
        return []

    sources = []
    for attribution in attributions:
        web = attribution.get("web") if isinstance(attribution, dict) else None
        if not isinstance(web, dict):
            web = {}
        uri = web.get("uri")
        title = web.get("title")
        sources.append(
            Source(
                uri=uri if isinstance(uri, str) else "",
                title=title if isinstance(title, str) and title else DEFAULT_SOURCE_TITLE,
            )
        )
    return sources


def _first_text(candidate: dict) -> str | None:
    content = candidate.get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    if not isinstance(text, str) or not text:
        return None
    return text


def _parse_result(body: Any) -> GeminiResult:
    """Parse the first candidate's text and sources.

    Raises:
        GeminiParseError: If the first candidate has no non-empty text part.
    """
    candidate: dict = {}
    if isinstance(body, dict):
        candidates = body.get("candidates")
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            candidate = candidates[0]

    text = _first_text(candidate)
    if text is None:
        raise GeminiParseError(
            "Could not parse response from Gemini API.", status=500, details=body
        )
    return GeminiResult(text=text, sources=_parse_sources(candidate))


def _post_once(api_key: str, payload: dict, timeout: float) -> Any:
    """Make one generateContent request and return the decoded JSON body.

    Raises:
        GeminiUpstreamError: On a non-success HTTP status.
        httpx.HTTPError: On network errors and timeouts.
        ValueError: On an undecodable body.
    """
    with httpx.Client(timeout=timeout) as client:
        response = client.post(
            _endpoint_url(),
            params={"key": api_key},
            headers={"Content-Type": "application/json"},
            json=payload,
        )
        if not response.is_success:
            raise GeminiUpstreamError(
                f"Gemini API Error: {response.status_code}",
                status=response.status_code,
                details=_error_details(response),
            )
        return response.json()


def _normalize(exc: Exception) -> GeminiError:
    """Wrap an unclassified failure of the final attempt."""
    if isinstance(exc, httpx.TimeoutException):
        return GeminiTimeoutError("Request to Gemini timed out")
    return GeminiError(str(exc) or "Unknown error calling Gemini")


def call_gemini(
    prompt_text: str,
    system_instruction: str = "",
    language: str | None = None,
) -> GeminiResult:
    """Ask Gemini a question with Google Search grounding enabled.

    Each attempt N gets a timeout of N x GEMINI_BASE_TIMEOUT. This is an
    httpx per-operation timeout (connect, read, write, pool), not a total
    deadline: a server that keeps trickling bytes can hold one attempt
    longer. A failed attempt is followed by a sleep of
    N x GEMINI_BACKOFF_SECONDS while attempts remain.

    Args:
        prompt_text: The user prompt (must not be blank).
        system_instruction: Base system instruction.
        language: Optional answer language tag ("ja-JP" or "en-US").

    Returns:
        GeminiResult with non-empty text and any grounding sources.

    Raises:
        GeminiConfigurationError: If GEMINI_API_KEY is not set.
        GeminiValidationError: If the prompt is blank.
        GeminiParseError: If a successful response has no answer text.
        GeminiUpstreamError: If the final attempt got a non-success status.
        GeminiTimeoutError: If the final attempt timed out.
        GeminiError: For any other failure of the final attempt.
    """
    api_key = config.get_gemini_api_key()
    if not api_key:
        raise GeminiConfigurationError("Server-side Gemini API key not configured.")
    if not prompt_text or not prompt_text.strip():
        raise GeminiValidationError("promptText is required")

    payload = build_payload(prompt_text, system_instruction, language)
    max_attempts = config.GEMINI_MAX_ATTEMPTS

    for attempt in range(1, max_attempts + 1):
        try:
            body = _post_once(api_key, payload, config.GEMINI_BASE_TIMEOUT * attempt)
        except Exception as exc:
            if attempt < max_attempts:
                logger.warning(
                    "Gemini attempt %d/%d failed: %s", attempt, max_attempts, exc
                )
                time.sleep(config.GEMINI_BACKOFF_SECONDS * attempt)
                continue
            if isinstance(exc, GeminiError):
                raise
            raise _normalize(exc) from exc

        return _parse_result(body)

    raise GeminiError("Unexpected error in call_gemini")  # pragma: no cover
