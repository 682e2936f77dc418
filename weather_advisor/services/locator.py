"""Best-effort device location via IP geolocation."""

import httpx

from weather_advisor.core.config import settings
from weather_advisor.core.errors import LocationUnavailableError
from weather_advisor.core.logging import get_logger
from weather_advisor.models.weather import Coordinates

logger = get_logger(__name__)


async def locate_by_ip(client: httpx.AsyncClient | None = None) -> Coordinates:
    """Determine the current coordinates from the public IP address.

    Raises:
        LocationUnavailableError: If no coordinate fix could be obtained
    """
    own_client = client is None
    client = client or httpx.AsyncClient(timeout=settings.location_timeout)
    try:
        response = await client.get(settings.locator_api_url)
        if response.status_code != 200:
            raise LocationUnavailableError(f"Location lookup returned status {response.status_code}")
        data = response.json()
        coordinates = Coordinates(lat=data["latitude"], lon=data["longitude"])
    except LocationUnavailableError:
        raise
    except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
        logger.warning("location_lookup_failed", error=str(e))
        raise LocationUnavailableError(f"Location could not be determined: {e}") from e
    finally:
        if own_client:
            await client.aclose()

    logger.info("location_resolved", latitude=coordinates.lat, longitude=coordinates.lon)
    return coordinates
