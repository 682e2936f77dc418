"""Resolve place names to coordinates via Open-Meteo geocoding."""

import httpx

from weather_advisor.core.config import settings
from weather_advisor.core.errors import NotFoundError, UpstreamTimeoutError, UpstreamUnavailableError
from weather_advisor.core.logging import get_logger
from weather_advisor.models.weather import ResolvedLocation

logger = get_logger(__name__)


class Geocoder:
    """Place-name directory lookup."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        """Initialize geocoder with its own connection pool."""
        self.client = client or httpx.AsyncClient(timeout=settings.request_timeout)

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    async def geocode(self, city: str, language: str = "en") -> ResolvedLocation:
        """Get coordinates for city name.

        Args:
            city: City name
            language: Language hint for the returned place name

        Returns:
            The first matching location

        Raises:
            NotFoundError: If the directory has no match
            UpstreamUnavailableError: If the lookup itself fails
        """
        try:
            response = await self.client.get(
                settings.geocoding_api_url,
                params={"name": city, "count": 1, "language": language, "format": "json"},
                timeout=settings.request_timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.error("geocoding_timeout", city=city, error=str(e))
            raise UpstreamTimeoutError(f"Geocoding timed out for '{city}'") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("geocoding_failed", city=city, error=str(e))
            raise UpstreamUnavailableError(f"Geocoding failed: {e}") from e

        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            logger.info("geocoding_not_found", city=city)
            raise NotFoundError(city)

        result = results[0]
        try:
            location = ResolvedLocation(
                latitude=result["latitude"],
                longitude=result["longitude"],
                name=result.get("name") or city,
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error("geocoding_malformed_result", city=city, error=str(e))
            raise UpstreamUnavailableError("Geocoding returned a malformed result") from e

        logger.info(
            "geocoding_success",
            city=city,
            name=location.name,
            latitude=location.latitude,
            longitude=location.longitude,
        )
        return location


# Global geocoder instance
geocoder = Geocoder()
