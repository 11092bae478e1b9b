"""Tests for the Gemini client module."""

import json
from unittest.mock import patch

import httpx
import pytest
import respx

from cloudwhisper import config
from cloudwhisper.gemini_client import (
    ErrorKind,
    GeminiConfigurationError,
    GeminiError,
    GeminiParseError,
    GeminiResult,
    GeminiTimeoutError,
    GeminiUpstreamError,
    GeminiValidationError,
    Source,
    build_payload,
    build_system_instruction,
    call_gemini,
)


GEMINI_URL = f"{config.GEMINI_API_BASE_URL}/models/{config.GEMINI_MODEL}:generateContent"

JA_DIRECTIVE = (
    "\n\nAlways answer ONLY in Japanese (日本語) regardless of input language. "
    "Use natural, friendly Japanese."
)
EN_DIRECTIVE = (
    "\n\nAlways answer ONLY in English regardless of input language. "
    "Use natural, friendly English."
)


class TestBuildSystemInstruction:
    """Test the language directive appended to the system instruction."""

    def test_japanese_directive(self):
        result = build_system_instruction("Be helpful.", "ja-JP")
        assert result == "Be helpful." + JA_DIRECTIVE

    def test_english_directive(self):
        result = build_system_instruction("Be helpful.", "en-US")
        assert result.endswith(EN_DIRECTIVE)

    @pytest.mark.parametrize("language", [None, "", "fr-FR", "ja", "EN-us", "en-GB"])
    def test_other_languages_leave_instruction_unchanged(self, language):
        assert build_system_instruction("Be helpful.\n", language) == "Be helpful.\n"

    def test_empty_instruction_defaults(self):
        assert build_system_instruction() == ""
        assert build_system_instruction("", "en-US") == EN_DIRECTIVE


class TestBuildPayload:
    """Test the generateContent request body."""

    def test_payload_shape(self):
        payload = build_payload("Will it rain?", "You are a weather bot.", "en-US")

        assert payload["contents"] == [{"parts": [{"text": "Will it rain?"}]}]
        assert payload["systemInstruction"]["role"] == "system"
        assert payload["systemInstruction"]["parts"] == [
            {"text": "You are a weather bot." + EN_DIRECTIVE}
        ]
        assert payload["tools"] == [{"googleSearch": {}}]

    def test_payload_without_language(self):
        payload = build_payload("Hi")
        assert payload["systemInstruction"]["parts"][0]["text"] == ""


class TestCallGeminiSuccess:
    """Test successful Gemini calls."""

    @respx.mock
    def test_returns_text_and_sources(self, gemini_api_key, no_sleep, gemini_response):
        route = respx.post(GEMINI_URL).mock(
            return_value=httpx.Response(200, json=gemini_response)
        )

        result = call_gemini("Will it rain in Tokyo?", "Be brief.", "en-US")

        assert isinstance(result, GeminiResult)
        assert result.text == "Light rain this afternoon. Take an umbrella."
        assert result.sources == [
            Source(uri="https://a.example", title="A"),
            Source(uri="", title="External Source"),
        ]
        assert route.call_count == 1
        no_sleep.assert_not_called()

    @respx.mock
    def test_no_grounding_metadata_gives_empty_sources(
        self, gemini_api_key, no_sleep, gemini_plain_response
    ):
        respx.post(GEMINI_URL).mock(
            return_value=httpx.Response(200, json=gemini_plain_response)
        )

        result = call_gemini("Weather?")

        assert result.text == "Sunny all day."
        assert result.sources == []

    @respx.mock
    def test_sends_key_and_payload(self, gemini_api_key, no_sleep, gemini_plain_response):
        route = respx.post(GEMINI_URL).mock(
            return_value=httpx.Response(200, json=gemini_plain_response)
        )

        call_gemini("Weather?", "Base.", "ja-JP")

        request = route.calls.last.request
        assert request.url.params["key"] == "test-gemini-key"
        body = json.loads(request.content)
        assert body == build_payload("Weather?", "Base.", "ja-JP")

    @respx.mock
    def test_retry_then_success(self, gemini_api_key, no_sleep, gemini_plain_response):
        route = respx.post(GEMINI_URL).mock(
            side_effect=[
                httpx.Response(503, json={"error": {"code": 503}}),
                httpx.Response(200, json=gemini_plain_response),
            ]
        )

        result = call_gemini("Weather?")

        assert result.text == "Sunny all day."
        assert route.call_count == 2
        no_sleep.assert_called_once_with(pytest.approx(0.2))

    def test_to_dict(self):
        result = GeminiResult(text="hi", sources=[Source(uri="https://x", title="X")])
        assert result.to_dict() == {
            "text": "hi",
            "sources": [{"uri": "https://x", "title": "X"}],
        }


class TestCallGeminiPreconditions:
    """Test checks that run before any network activity."""

    @respx.mock
    def test_missing_api_key_raises_configuration_error(self):
        with patch(
            "cloudwhisper.gemini_client.config.get_gemini_api_key", return_value=""
        ):
            with pytest.raises(GeminiConfigurationError, match="not configured") as exc_info:
                call_gemini("Will it rain?")

        assert exc_info.value.kind is ErrorKind.CONFIGURATION
        assert respx.calls.call_count == 0

    @respx.mock
    def test_missing_api_key_wins_over_empty_prompt(self):
        with patch(
            "cloudwhisper.gemini_client.config.get_gemini_api_key", return_value=""
        ):
            with pytest.raises(GeminiConfigurationError):
                call_gemini("   ")

    @respx.mock
    @pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
    def test_blank_prompt_raises_validation_error(self, gemini_api_key, prompt):
        with pytest.raises(GeminiValidationError, match="promptText is required"):
            call_gemini(prompt)

        assert respx.calls.call_count == 0


class TestCallGeminiErrors:
    """Test retry and error normalization."""

    @respx.mock
    def test_rate_limited_twice_raises_upstream_error(self, gemini_api_key, no_sleep):
        error_body = {"error": {"code": 429, "message": "Resource exhausted"}}
        route = respx.post(GEMINI_URL).mock(
            return_value=httpx.Response(429, json=error_body)
        )

        with pytest.raises(GeminiUpstreamError, match="Gemini API Error: 429") as exc_info:
            call_gemini("Weather?")

        assert route.call_count == 2
        no_sleep.assert_called_once_with(pytest.approx(0.2))
        assert exc_info.value.status == 429
        assert exc_info.value.details == error_body["error"]
        assert exc_info.value.kind is ErrorKind.UPSTREAM

    @respx.mock
    def test_non_json_error_body_kept_as_text(self, gemini_api_key, no_sleep):
        respx.post(GEMINI_URL).mock(
            return_value=httpx.Response(500, content=b"Internal failure")
        )

        with pytest.raises(GeminiUpstreamError) as exc_info:
            call_gemini("Weather?")

        assert exc_info.value.status == 500
        assert exc_info.value.details == "Internal failure"

    @respx.mock
    def test_missing_text_raises_parse_error_without_retry(self, gemini_api_key, no_sleep):
        body = {"candidates": [{"content": {"parts": [{}]}}]}
        route = respx.post(GEMINI_URL).mock(return_value=httpx.Response(200, json=body))

        with pytest.raises(GeminiParseError, match="Could not parse") as exc_info:
            call_gemini("Weather?")

        assert route.call_count == 1
        no_sleep.assert_not_called()
        assert exc_info.value.status == 500
        assert exc_info.value.details == body

    @respx.mock
    @pytest.mark.parametrize(
        "body",
        [
            {"candidates": "oops"},
            {"candidates": ["oops"]},
            {"candidates": [{"content": "oops"}]},
            {"candidates": [{"content": {"parts": {"0": {"text": "hi"}}}}]},
            {"candidates": [{"content": {"parts": ["hi"]}}]},
            {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
            {"candidates": [{"content": {"parts": [{"text": ["hi"]}]}}]},
            ["not", "an", "object"],
        ],
    )
    def test_malformed_body_raises_parse_error(self, gemini_api_key, no_sleep, body):
        route = respx.post(GEMINI_URL).mock(return_value=httpx.Response(200, json=body))

        with pytest.raises(GeminiParseError) as exc_info:
            call_gemini("Weather?")

        assert route.call_count == 1
        assert exc_info.value.status == 500
        assert exc_info.value.details == body

    @respx.mock
    @pytest.mark.parametrize(
        "grounding,expected",
        [
            ({"groundingAttributions": ["x"]}, [Source(uri="", title="External Source")]),
            ({"groundingAttributions": [{"web": "x"}]}, [Source(uri="", title="External Source")]),
            (
                {"groundingAttributions": [{"web": {"uri": 7, "title": None}}]},
                [Source(uri="", title="External Source")],
            ),
            ({"groundingAttributions": {"web": {}}}, []),
            ("oops", []),
        ],
    )
    def test_malformed_grounding_gives_default_sources(
        self, gemini_api_key, no_sleep, grounding, expected
    ):
        body = {
            "candidates": [
                {"content": {"parts": [{"text": "Sunny."}]}, "groundingMetadata": grounding}
            ]
        }
        respx.post(GEMINI_URL).mock(return_value=httpx.Response(200, json=body))

        result = call_gemini("Weather?")

        assert result.text == "Sunny."
        assert result.sources == expected

    @respx.mock
    def test_no_candidates_raises_parse_error(self, gemini_api_key, no_sleep):
        respx.post(GEMINI_URL).mock(return_value=httpx.Response(200, json={}))

        with pytest.raises(GeminiParseError):
            call_gemini("Weather?")

    @respx.mock
    def test_timeout_twice_raises_timeout_error(self, gemini_api_key, no_sleep):
        route = respx.post(GEMINI_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(GeminiTimeoutError, match="Request to Gemini timed out") as exc_info:
            call_gemini("Weather?")

        assert route.call_count == 2
        assert exc_info.value.status is None
        assert exc_info.value.kind is ErrorKind.TIMEOUT

    @respx.mock
    def test_network_error_is_wrapped(self, gemini_api_key, no_sleep):
        respx.post(GEMINI_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(GeminiError, match="connection refused") as exc_info:
            call_gemini("Weather?")

        assert exc_info.value.kind is ErrorKind.UNKNOWN
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @respx.mock
    def test_invalid_json_is_retried(self, gemini_api_key, no_sleep, gemini_plain_response):
        route = respx.post(GEMINI_URL).mock(
            side_effect=[
                httpx.Response(200, content=b"not json"),
                httpx.Response(200, json=gemini_plain_response),
            ]
        )

        result = call_gemini("Weather?")

        assert result.text == "Sunny all day."
        assert route.call_count == 2

    @respx.mock
    def test_exception_without_message_gets_generic_message(self, gemini_api_key, no_sleep):
        respx.post(GEMINI_URL).mock(side_effect=RuntimeError())

        with pytest.raises(GeminiError, match="Unknown error calling Gemini"):
            call_gemini("Weather?")

    @respx.mock
    def test_attempt_timeout_grows_with_attempt(self, gemini_api_key, no_sleep):
        respx.post(GEMINI_URL).mock(return_value=httpx.Response(500, json={}))

        with patch("cloudwhisper.gemini_client.httpx.Client", wraps=httpx.Client) as client_cls:
            with pytest.raises(GeminiUpstreamError):
                call_gemini("Weather?")

        timeouts = [c.kwargs["timeout"] for c in client_cls.call_args_list]
        assert timeouts == [config.GEMINI_BASE_TIMEOUT, config.GEMINI_BASE_TIMEOUT * 2]
