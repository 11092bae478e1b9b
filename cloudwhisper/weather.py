"""OpenWeatherMap client for current conditions.

Fetches /weather?q={city}&units=metric and reduces the response to the
fields the chat assistant and the weather card need. Requires an
OPENWEATHER_API_KEY.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from cloudwhisper import config


class WeatherAPIError(Exception):
    """Raised when OpenWeatherMap returns an error or unexpected response."""


class CityNotFoundError(WeatherAPIError):
    """Raised when OpenWeatherMap does not know the requested city."""


@dataclass(frozen=True)
class WeatherData:
    """Current weather for a city, in metric units.

    Attributes:
        city: City name as reported by OpenWeatherMap.
        temp: Temperature in degrees Celsius.
        feels_like: Apparent temperature in degrees Celsius.
        humidity: Relative humidity in percent.
        wind_speed: Wind speed in m/s.
        condition: Short condition group (e.g., "Clouds", "Rain").
        description: Longer description (e.g., "broken clouds").
    """

    city: str
    temp: float
    feels_like: float
    humidity: int
    wind_speed: float
    condition: str
    description: str = ""


def _create_client() -> httpx.Client:
    """Create an httpx client configured for OpenWeatherMap."""
    return httpx.Client(
        base_url=config.OPENWEATHER_API_BASE_URL,
        timeout=config.OPENWEATHER_TIMEOUT,
    )


def _parse_weather(data: dict) -> WeatherData:
    """Parse the /weather response body."""
    try:
        main = data["main"]
        weather = (data.get("weather") or [{}])[0]
        return WeatherData(
            city=data.get("name", ""),
            temp=float(main["temp"]),
            feels_like=float(main.get("feels_like", main["temp"])),
            humidity=int(main.get("humidity", 0)),
            wind_speed=float(data.get("wind", {}).get("speed", 0.0)),
            condition=weather.get("main", ""),
            description=weather.get("description", ""),
        )
    except (KeyError, TypeError, ValueError, AttributeError):
        raise WeatherAPIError("Unexpected weather response format from OpenWeatherMap.")


def get_current_weather(city: str) -> WeatherData:
    """Fetch current weather for a city name.

    Args:
        city: City name (e.g., "Tokyo", "New York").

    Returns:
        WeatherData for the city.

    Raises:
        CityNotFoundError: If OpenWeatherMap does not know the city.
        WeatherAPIError: On a missing API key, communication errors,
            or an unexpected response.
    """
    city = city.strip()
    if not city:
        raise WeatherAPIError("Please provide a valid city.")

    api_key = config.get_openweather_api_key()
    if not api_key:
        raise WeatherAPIError(
            "OPENWEATHER_API_KEY is not set. "
            "Please set it in your environment to fetch weather."
        )

    client = _create_client()
    try:
        try:
            response = client.get(
                "/weather",
                params={"q": city, "units": "metric", "appid": api_key},
            )
        except httpx.TimeoutException:
            raise WeatherAPIError("Request to OpenWeatherMap timed out. Please try again.")
        except httpx.HTTPError as exc:
            raise WeatherAPIError(f"HTTP error communicating with OpenWeatherMap: {exc}")

        if response.status_code == 404:
            raise CityNotFoundError(f"Could not find weather for '{city}'.")

        if response.status_code != 200:
            raise WeatherAPIError(
                f"Unexpected response from OpenWeatherMap (HTTP {response.status_code})."
            )

        try:
            data = response.json()
        except ValueError:
            raise WeatherAPIError("Received invalid JSON from OpenWeatherMap.")

        return _parse_weather(data)
    finally:
        client.close()
