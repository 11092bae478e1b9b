"""Conversational weather Q&A powered by Gemini.

Takes the current OpenWeatherMap conditions as context and answers
questions about the weather and the user's plans in natural language
(e.g., "Do I need an umbrella?", "Is it a good day for a picnic?").
Gemini's Google Search grounding supplies source links when it uses
the web.
"""

from __future__ import annotations

from cloudwhisper.gemini_client import GeminiError, GeminiResult, call_gemini
from cloudwhisper.weather import WeatherData


class ChatError(Exception):
    """Raised when the chat API call fails."""


_SYSTEM_PROMPT = """\
You are CloudWhisper, a friendly weather assistant. You answer questions
about the weather and how it affects the user's day, using the current
conditions below and web search when the question needs more than that.

Rules:
- Base statements about current conditions on the data below. Do not invent numbers.
- Give practical advice (clothing, umbrella, sunscreen, hydration) when it fits the question.
- Keep answers concise and conversational. Use short bullet points for lists.
- If the data does not answer the question, say so honestly.

City: {city}
Condition: {condition} ({description})
Temperature: {temp:.1f}°C (feels like {feels_like:.1f}°C)
Humidity: {humidity}%
Wind: {wind_speed} m/s
"""

_BILINGUAL_INSTRUCTION = (
    "\n\nIMPORTANT: Please provide the response in two parts. First, write the "
    "complete response in Japanese. Then, immediately follow it with the full "
    "English translation enclosed in parentheses. \n"
    "Format:\n[Japanese Text]\n([English Translation])"
)


def build_weather_instruction(weather: WeatherData) -> str:
    """Format the system instruction with the current conditions."""
    return _SYSTEM_PROMPT.format(
        city=weather.city,
        condition=weather.condition,
        description=weather.description or weather.condition,
        temp=weather.temp,
        feels_like=weather.feels_like,
        humidity=weather.humidity,
        wind_speed=weather.wind_speed,
    )


def build_conversation_context(chat_history: list[dict] | None, limit: int = 5) -> str:
    """Render the last few messages as "User: ..." / "Assistant: ..." lines.

    Only the last `limit` messages are considered; system messages
    among them are dropped.
    """
    lines = []
    for msg in (chat_history or [])[-limit:]:
        if msg.get("role") == "system":
            continue
        speaker = "User" if msg.get("role") == "user" else "Assistant"
        lines.append(f"{speaker}: {msg.get('content', '')}")
    return "\n".join(lines)


def build_enhanced_query(
    question: str,
    chat_history: list[dict] | None = None,
    language: str | None = None,
) -> str:
    """Prefix recent conversation and, for Japanese, ask for a bilingual answer."""
    instruction = _BILINGUAL_INSTRUCTION if language == "ja-JP" else ""
    context = build_conversation_context(chat_history)
    if context:
        return (
            f"Previous conversation:\n{context}\n\n"
            f"Current question: {question}{instruction}"
        )
    return f"{question}{instruction}"


def ask_weather_question(
    question: str,
    weather: WeatherData,
    language: str | None = None,
    chat_history: list[dict] | None = None,
) -> GeminiResult:
    """Ask a natural-language question about the weather.

    Args:
        question: The user's question (e.g., "Will it rain tonight?").
        weather: Current conditions for the city being asked about.
        language: Answer language tag ("ja-JP" or "en-US").
        chat_history: Optional list of prior messages as
            [{"role": "user", "content": "..."}, {"role": "assistant", "content": "..."}].

    Returns:
        GeminiResult with the answer text and any web sources.

    Raises:
        ChatError: If the Gemini call fails for any reason.
    """
    try:
        return call_gemini(
            build_enhanced_query(question, chat_history, language),
            build_weather_instruction(weather),
            language,
        )
    except GeminiError as exc:
        raise ChatError(f"Weather chat request failed: {exc.message}") from exc
