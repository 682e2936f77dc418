"""Pydantic models for weather and location data."""

from pydantic import BaseModel, ConfigDict, Field


class WeatherSnapshot(BaseModel):
    """Current conditions at a single point in time."""

    model_config = ConfigDict(frozen=True)

    city: str = Field(..., description="Place name reported by the provider")
    condition: str = Field(..., description="Localized condition description")
    main_weather: str = Field(..., description="Primary condition group, e.g. Rain")
    condition_code: int = Field(..., description="Provider condition code")

    temp: float = Field(..., description="Temperature in Celsius")
    feels_like: float = Field(..., description="Feels-like temperature in Celsius")
    temp_min: float = Field(..., description="Minimum temperature in Celsius")
    temp_max: float = Field(..., description="Maximum temperature in Celsius")

    pressure: float = Field(..., description="Atmospheric pressure in hPa")
    humidity: float = Field(..., ge=0, le=100, description="Relative humidity in percent")
    visibility: float = Field(..., ge=0, description="Visibility in meters")
    clouds: float = Field(..., ge=0, le=100, description="Cloud cover in percent")

    wind_speed: float = Field(..., ge=0, description="Wind speed in m/s")
    wind_deg: float = Field(..., description="Wind direction in degrees")

    sunrise: str = Field(..., description="Local sunrise time (HH:MM)")
    sunset: str = Field(..., description="Local sunset time (HH:MM)")


class Coordinates(BaseModel):
    """A complete latitude/longitude pair supplied by the client."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lon: float = Field(..., ge=-180, le=180, description="Longitude")


class ResolvedLocation(BaseModel):
    """Coordinates ready for a weather lookup."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    name: str = Field(..., description="Display name for the location")

    @classmethod
    def from_coordinates(cls, coordinates: Coordinates, name: str) -> "ResolvedLocation":
        return cls(latitude=coordinates.lat, longitude=coordinates.lon, name=name)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    credentials_configured: bool = Field(..., description="Whether both provider credentials are set")
