"""Shared test fixtures for Gemini and OpenWeatherMap response data."""

from unittest.mock import patch

import pytest

from cloudwhisper.weather import WeatherData


@pytest.fixture()
def gemini_api_key():
    """Configure a Gemini API key without touching st.secrets."""
    with patch(
        "cloudwhisper.gemini_client.config.get_gemini_api_key",
        return_value="test-gemini-key",
    ):
        yield "test-gemini-key"


@pytest.fixture()
def openweather_api_key():
    """Configure an OpenWeatherMap API key without touching st.secrets."""
    with patch(
        "cloudwhisper.weather.config.get_openweather_api_key",
        return_value="test-owm-key",
    ):
        yield "test-owm-key"


@pytest.fixture()
def no_sleep():
    """Replace the retry backoff sleep with a mock."""
    with patch("cloudwhisper.gemini_client.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture()
def gemini_response():
    """Sample generateContent response with one grounded candidate."""
    return {
        "candidates": [
            {
                "content": {
                    "role": "model",
                    "parts": [{"text": "Light rain this afternoon. Take an umbrella."}],
                },
                "finishReason": "STOP",
                "groundingMetadata": {
                    "groundingAttributions": [
                        {"web": {"uri": "https://a.example", "title": "A"}},
                        {"web": {}},
                    ]
                },
            }
        ]
    }


@pytest.fixture()
def gemini_plain_response():
    """Sample generateContent response without grounding metadata."""
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": "Sunny all day."}]},
                "finishReason": "STOP",
            }
        ]
    }


@pytest.fixture()
def owm_response():
    """Sample OpenWeatherMap /weather response for Tokyo."""
    return {
        "coord": {"lon": 139.6917, "lat": 35.6895},
        "weather": [
            {"id": 500, "main": "Rain", "description": "light rain", "icon": "10d"}
        ],
        "main": {
            "temp": 18.4,
            "feels_like": 18.1,
            "temp_min": 17.2,
            "temp_max": 19.5,
            "pressure": 1012,
            "humidity": 82,
        },
        "wind": {"speed": 4.6, "deg": 170},
        "name": "Tokyo",
        "cod": 200,
    }


@pytest.fixture()
def sample_weather():
    return WeatherData(
        city="Tokyo",
        temp=18.4,
        feels_like=18.1,
        humidity=82,
        wind_speed=4.6,
        condition="Rain",
        description="light rain",
    )
