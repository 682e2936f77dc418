"""Current-conditions lookup against the OpenWeather API."""

from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from pydantic import ValidationError

from weather_advisor.core.config import settings
from weather_advisor.core.errors import (
    ConfigurationError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from weather_advisor.core.logging import get_logger
from weather_advisor.models.weather import WeatherSnapshot

logger = get_logger(__name__)


def _local_time(epoch: int | float, utc_offset: int) -> str:
    """Format an epoch timestamp as HH:MM in the place's own offset."""
    tz = timezone(timedelta(seconds=utc_offset))
    return datetime.fromtimestamp(epoch, tz=tz).strftime("%H:%M")


def map_current_conditions(payload: dict[str, Any]) -> WeatherSnapshot:
    """Map an OpenWeather current-weather payload to a snapshot.

    Every field except the UTC offset is required.

    Args:
        payload: Decoded provider response

    Returns:
        Weather snapshot

    Raises:
        UpstreamUnavailableError: If a required field is missing or invalid
    """
    try:
        main = payload["main"]
        condition = payload["weather"][0]
        wind = payload["wind"]
        sys = payload["sys"]
        utc_offset = int(payload.get("timezone", 0))

        return WeatherSnapshot(
            city=payload["name"],
            condition=condition["description"],
            main_weather=condition["main"],
            condition_code=condition["id"],
            temp=main["temp"],
            feels_like=main["feels_like"],
            temp_min=main["temp_min"],
            temp_max=main["temp_max"],
            pressure=main["pressure"],
            humidity=main["humidity"],
            visibility=payload["visibility"],
            clouds=payload["clouds"]["all"],
            wind_speed=wind["speed"],
            wind_deg=wind["deg"],
            sunrise=_local_time(sys["sunrise"], utc_offset),
            sunset=_local_time(sys["sunset"], utc_offset),
        )
    except (KeyError, IndexError, TypeError, ValueError, ValidationError) as e:
        raise UpstreamUnavailableError(f"Weather response is missing required fields: {e}") from e


class WeatherService:
    """Weather data service."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        """Initialize weather service with its own connection pool."""
        self.client = client or httpx.AsyncClient(
            timeout=settings.request_timeout,
            limits=httpx.Limits(
                max_keepalive_connections=20,
                max_connections=100,
                keepalive_expiry=30.0,
            ),
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    async def _fetch_weather_data(self, latitude: float, longitude: float, language: str) -> dict[str, Any]:
        """Fetch raw current conditions from the provider.

        Raises:
            UpstreamTimeoutError: If the request times out
            UpstreamUnavailableError: If API call fails
        """
        try:
            response = await self.client.get(
                settings.weather_api_url,
                params={
                    "lat": latitude,
                    "lon": longitude,
                    "units": "metric",
                    "lang": language,
                    "appid": settings.weather_api_key,
                },
                timeout=settings.request_timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("weather_api_timeout", latitude=latitude, longitude=longitude, error=str(e))
            raise UpstreamTimeoutError("Weather API timed out") from e
        except httpx.HTTPError as e:
            logger.error("weather_api_failed", latitude=latitude, longitude=longitude, error=str(e))
            raise UpstreamUnavailableError(f"Weather API failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                "weather_api_bad_status",
                latitude=latitude,
                longitude=longitude,
                status_code=response.status_code,
            )
            raise UpstreamUnavailableError(f"Weather API returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            logger.error("weather_api_malformed", error=str(e))
            raise UpstreamUnavailableError("Weather API returned malformed JSON") from e

        if not isinstance(data, dict):
            raise UpstreamUnavailableError("Weather API returned an unexpected payload")
        return data

    async def fetch_weather(self, latitude: float, longitude: float, language: str = "en") -> WeatherSnapshot:
        """Get current weather for a coordinate pair.

        Args:
            latitude: Latitude
            longitude: Longitude
            language: Language for the condition description

        Returns:
            Weather snapshot

        Raises:
            ConfigurationError: If WEATHER_API_KEY is not set
            UpstreamUnavailableError: If weather data cannot be retrieved
        """
        if not settings.weather_api_key:
            raise ConfigurationError("Missing WEATHER_API_KEY")

        logger.info("weather_request", latitude=latitude, longitude=longitude)
        data = await self._fetch_weather_data(latitude, longitude, language)

        try:
            snapshot = map_current_conditions(data)
        except UpstreamUnavailableError as e:
            logger.error("weather_mapping_failed", latitude=latitude, longitude=longitude, error=str(e))
            raise

        logger.info("weather_fetched", city=snapshot.city, temperature=snapshot.temp)
        return snapshot


# Global weather service instance
weather_service = WeatherService()
