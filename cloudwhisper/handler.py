"""Request handling for the Gemini prompt endpoint.

Framework-free: takes the decoded JSON body, returns a status code and a
JSON-serializable body. The FastAPI route in cloudwhisper.api is a thin
wrapper around handle_prompt_request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cloudwhisper import gemini_client
from cloudwhisper.gemini_client import ErrorKind, GeminiError

logger = logging.getLogger(__name__)


class PromptRequest(BaseModel):
    """Inbound prompt payload.

    Unknown fields and non-string values are rejected.
    """

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    prompt_text: str = Field("", alias="promptText")
    system_instruction: str = Field("", alias="systemInstruction")
    language: Optional[str] = None


@dataclass(frozen=True)
class HandlerResponse:
    """Status code plus JSON body for the caller."""

    status_code: int
    body: dict


def _status_for(error: GeminiError) -> int:
    return 502 if error.kind is ErrorKind.UPSTREAM else 500


def handle_prompt_request(payload: Any) -> HandlerResponse:
    """Validate an inbound prompt payload and ask Gemini.

    Returns:
        200 with {"text", "sources"} on success; 400 for an invalid payload
        or a blank promptText; 502 for upstream API errors; 500 otherwise.
    """
    try:
        try:
            request = PromptRequest.model_validate(payload)
        except ValidationError as exc:
            return HandlerResponse(
                400,
                {
                    "error": "Invalid request",
                    "details": exc.errors(include_url=False, include_context=False, include_input=False),
                },
            )

        if not request.prompt_text.strip():
            return HandlerResponse(400, {"error": "Missing promptText"})

        try:
            result = gemini_client.call_gemini(
                request.prompt_text,
                request.system_instruction,
                request.language,
            )
        except GeminiError as exc:
            logger.error("Gemini service error (%s): %s", exc.kind.value, exc.message)
            return HandlerResponse(
                _status_for(exc),
                {"error": exc.message or "Gemini service error", "details": exc.details},
            )

        return HandlerResponse(200, result.to_dict())
    except Exception:
        logger.exception("Unexpected error handling prompt request")
        return HandlerResponse(500, {"error": "Internal server error"})
