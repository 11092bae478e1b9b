"""Centralized configuration loaded from environment variables.

All settings are read from environment variables with sensible defaults.
API keys also check Streamlit secrets (st.secrets) for Streamlit Cloud
deployments, so the app works in any cloud environment without hardcoded keys.
"""

import os


def _get_secret(key: str) -> str:
    """Read a credential from st.secrets, falling back to the environment.

    Must be called at runtime (not import time) because Streamlit
    Cloud only makes st.secrets available after the app starts.
    """
    try:
        import streamlit as st
        if hasattr(st, "secrets") and key in st.secrets:
            return str(st.secrets[key])
    except Exception:
        pass
    return os.environ.get(key, "")


def get_gemini_api_key() -> str:
    """Get the Gemini API key lazily so st.secrets is ready."""
    return _get_secret("GEMINI_API_KEY")


def get_openweather_api_key() -> str:
    """Get the OpenWeatherMap API key lazily so st.secrets is ready."""
    return _get_secret("OPENWEATHER_API_KEY")


def _get_int(key: str, default: int) -> int:
    """Read an integer environment variable with a default."""
    return int(os.environ.get(key, str(default)))


def _get_float(key: str, default: float) -> float:
    """Read a float environment variable with a default."""
    return float(os.environ.get(key, str(default)))


# Gemini API
GEMINI_API_BASE_URL: str = os.environ.get(
    "GEMINI_API_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
GEMINI_MODEL: str = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_BASE_TIMEOUT: float = _get_float("GEMINI_BASE_TIMEOUT", 8.0)
GEMINI_MAX_ATTEMPTS: int = _get_int("GEMINI_MAX_ATTEMPTS", 2)
GEMINI_BACKOFF_SECONDS: float = _get_float("GEMINI_BACKOFF_SECONDS", 0.2)

# OpenWeatherMap API
OPENWEATHER_API_BASE_URL: str = os.environ.get(
    "OPENWEATHER_API_BASE_URL", "https://api.openweathermap.org/data/2.5"
)
OPENWEATHER_TIMEOUT: int = _get_int("OPENWEATHER_TIMEOUT", 10)

# App
DEFAULT_CITY: str = os.environ.get("DEFAULT_CITY", "Tokyo")
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
