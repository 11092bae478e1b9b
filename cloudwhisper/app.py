"""CloudWhisper: a Streamlit chat about the weather and your day.

Run with: streamlit run cloudwhisper/app.py

Each message is scanned for a city name; current conditions for that
city (or the one selected in the sidebar) are fetched from
OpenWeatherMap and passed to Gemini, which answers with web-grounded
sources.
"""

from __future__ import annotations

import time

import streamlit as st

from cloudwhisper import config
from cloudwhisper.chat import ChatError, ask_weather_question
from cloudwhisper.cities import detect_city
from cloudwhisper.formatting import escape_html, format_assistant_html, weather_icon
from cloudwhisper.weather import WeatherAPIError, WeatherData, get_current_weather


_WELCOME = "CloudWhisper is live. Ask anything about the weather and your day."

_LANGUAGES: dict[str, str] = {
    "ja-JP": "日本語",
    "en-US": "English",
}

_PLACEHOLDERS: dict[str, str] = {
    "ja-JP": "気になる天気や予定をどうぞ",
    "en-US": "Ask about weather, plans, clothes...",
}


# ---------------------------------------------------------------------------
# CSS injection
# ---------------------------------------------------------------------------

def _inject_css() -> None:
    """Inject chat bubble, weather card and source link styles."""
    st.markdown("""
    <style>
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
    .block-container {
        padding-top: 1rem !important;
        max-width: 720px !important;
    }

    .glass-card {
        background: rgba(255, 255, 255, 0.08);
        backdrop-filter: blur(20px);
        border-radius: 16px;
        border: 1px solid rgba(127, 127, 127, 0.25);
        padding: 14px 16px;
        margin-bottom: 12px;
    }
    .weather-card-head {
        display: flex;
        justify-content: space-between;
        align-items: center;
        font-size: 1.1rem;
    }
    .temp-chip {
        font-weight: 700;
        padding: 2px 10px;
        border-radius: 999px;
        background: rgba(99, 102, 241, 0.15);
    }
    .weather-stats {
        display: flex;
        gap: 16px;
        font-size: 0.85rem;
        opacity: 0.8;
        margin-top: 6px;
    }

    .chat-user, .chat-assistant, .chat-system {
        padding: 10px 14px;
        border-radius: 14px;
        margin: 6px 0;
    }
    .chat-user {
        background: rgba(14, 165, 233, 0.15);
        margin-left: 15%;
    }
    .chat-assistant {
        background: rgba(127, 127, 127, 0.10);
        margin-right: 10%;
    }
    .chat-assistant p { margin: 0 0 6px 0; }
    .chat-system {
        font-size: 0.85rem;
        opacity: 0.75;
        text-align: center;
    }
    .hl {
        background: rgba(250, 204, 21, 0.35);
        border-radius: 4px;
        padding: 0 2px;
    }
    .source-list { margin-top: 6px; font-size: 0.8rem; }
    .source-link { display: block; opacity: 0.8; }
    .msg-time { font-size: 0.65rem; opacity: 0.55; text-align: right; }
    </style>
    """, unsafe_allow_html=True)


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------

def _system_message(content: str) -> dict:
    return {"role": "system", "content": content, "time": time.strftime("%H:%M")}


def _init_state() -> None:
    """Initialize chat history, current city and answer language."""
    if "messages" not in st.session_state:
        st.session_state.messages = [_system_message(_WELCOME)]
    if "city" not in st.session_state:
        st.session_state.city = config.DEFAULT_CITY
    if "language" not in st.session_state:
        st.session_state.language = "ja-JP"


def _clear_chat() -> None:
    st.session_state.messages = [_system_message(_WELCOME)]


def _latest_weather() -> WeatherData | None:
    """Weather attached to the most recent assistant reply."""
    for msg in reversed(st.session_state.messages):
        if msg["role"] == "assistant" and msg.get("weather"):
            return msg["weather"]
    return None


# ---------------------------------------------------------------------------
# Chat submission
# ---------------------------------------------------------------------------

def _fetch_weather(city: str, fallback: str) -> tuple[WeatherData, str]:
    """Fetch weather for the detected city, falling back to the current one.

    Returns the weather and the city it was fetched for.
    """
    try:
        return get_current_weather(city), city
    except WeatherAPIError:
        if fallback and fallback != city:
            return get_current_weather(fallback), fallback
        raise


def _handle_message(user_input: str) -> None:
    """Detect a city, fetch its weather and append Gemini's answer."""
    text = user_input.strip()
    if not text:
        st.session_state.chat_error = "Please enter a message."
        return

    previous_city = st.session_state.city
    detected = detect_city(text)
    city_for_fetch = (detected or previous_city or "").strip()
    if not detected and len(city_for_fetch) < 2:
        st.session_state.chat_error = "Please provide a valid city."
        return

    history = list(st.session_state.messages)
    st.session_state.messages.append(
        {"role": "user", "content": text, "time": time.strftime("%H:%M")}
    )

    try:
        with st.spinner("生成中..." if st.session_state.language == "ja-JP" else "Generating..."):
            weather, fetched_city = _fetch_weather(city_for_fetch, previous_city)
            if detected and fetched_city == detected:
                st.session_state.city = detected
            result = ask_weather_question(
                question=text,
                weather=weather,
                language=st.session_state.language,
                chat_history=history,
            )
        st.session_state.messages.append(
            {
                "role": "assistant",
                "content": result.text,
                "time": time.strftime("%H:%M"),
                "weather": weather,
                "sources": result.sources,
            }
        )
    except (WeatherAPIError, ChatError) as exc:
        st.session_state.messages.append(_system_message(f"❌ Error: {exc}"))


# ---------------------------------------------------------------------------
# Render
# ---------------------------------------------------------------------------

def _render_weather_card(weather: WeatherData) -> None:
    """Render the latest weather preview card."""
    st.markdown(
        f'<div class="glass-card">'
        f'<div class="weather-card-head">'
        f'<span>{weather_icon(weather.condition)} {escape_html(weather.city)}</span>'
        f'<span class="temp-chip">{round(weather.temp)}°C</span>'
        f'</div>'
        f'<div class="weather-stats">'
        f'<span>Feels {round(weather.feels_like)}°C</span>'
        f'<span>Humidity {weather.humidity}%</span>'
        f'<span>Wind {weather.wind_speed} m/s</span>'
        f'</div>'
        f'</div>',
        unsafe_allow_html=True,
    )


def _render_sources(sources) -> str:
    if not sources:
        return ""
    links = "".join(
        f'<a class="source-link" href="{escape_html(s.uri)}" target="_blank" '
        f'rel="noreferrer">\U0001f517 {escape_html(s.title)}</a>'
        for s in sources
        if s.uri
    )
    return f'<div class="source-list">{links}</div>' if links else ""


def _render_messages() -> None:
    """Render the chat history."""
    for msg in st.session_state.messages:
        stamp = f'<div class="msg-time">{msg.get("time", "")}</div>'
        if msg["role"] == "user":
            st.markdown(
                f'<div class="chat-user">{escape_html(msg["content"])}{stamp}</div>',
                unsafe_allow_html=True,
            )
        elif msg["role"] == "assistant":
            st.markdown(
                f'<div class="chat-assistant">'
                f'{format_assistant_html(msg["content"])}'
                f'{_render_sources(msg.get("sources"))}{stamp}'
                f'</div>',
                unsafe_allow_html=True,
            )
        else:
            st.markdown(
                f'<div class="chat-system">{escape_html(msg["content"])}</div>',
                unsafe_allow_html=True,
            )


def _render_sidebar() -> None:
    with st.sidebar:
        st.markdown("### \U0001f324️ CloudWhisper")
        st.caption("Weather That Speaks")

        st.text_input("City", key="city")
        st.radio(
            "Answer language",
            options=list(_LANGUAGES),
            format_func=_LANGUAGES.get,
            key="language",
        )

        if st.button("Clear chat", use_container_width=True):
            _clear_chat()
            st.rerun()

        if not config.get_gemini_api_key():
            st.warning("Chat is not enabled. Add GEMINI_API_KEY in Settings → Secrets.")
        if not config.get_openweather_api_key():
            st.warning("Weather is not enabled. Add OPENWEATHER_API_KEY in Settings → Secrets.")

        st.caption("Gemini + OpenWeatherMap")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    """Main Streamlit application entry point."""
    st.set_page_config(
        page_title="CloudWhisper",
        page_icon="\U0001f324️",
        layout="centered",
    )
    _inject_css()
    _init_state()

    # Handled before the sidebar so a detected city can update its widget
    user_input = st.chat_input(_PLACEHOLDERS[st.session_state.language])
    if user_input is not None:
        st.session_state.chat_error = None
        _handle_message(user_input)

    _render_sidebar()

    weather = _latest_weather()
    if weather is not None:
        _render_weather_card(weather)

    _render_messages()

    if st.session_state.get("chat_error"):
        st.error(st.session_state.chat_error)


if __name__ == "__main__":
    main()
