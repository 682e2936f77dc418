"""Request, outcome and response models for the chat pipeline."""

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from weather_advisor.core.config import settings
from weather_advisor.core.errors import ErrorKind, MissingCoordinatesError
from weather_advisor.models.weather import Coordinates, WeatherSnapshot

Language = Literal["en", "ja"]


class ChatTurn(BaseModel):
    """A single rendered line of a conversation."""

    role: Literal["user", "assistant"]
    text: str
    timestamp: datetime | None = None


class RequestContext(BaseModel):
    """Immutable inputs to one pipeline invocation."""

    model_config = ConfigDict(frozen=True)

    utterance: str
    theme: str
    language: Language
    coordinates: Coordinates | None = None

    def with_coordinates(self, coordinates: Coordinates) -> "RequestContext":
        return self.model_copy(update={"coordinates": coordinates})


class ChatRequest(BaseModel):
    """Inbound chat request body."""

    message: str = Field(..., min_length=1, max_length=500, description="User utterance")
    theme: str = Field(default_factory=lambda: settings.default_theme, max_length=40)
    language: Language = Field(default_factory=lambda: settings.default_language)
    coordinates: Coordinates | None = None
    lat: float | None = Field(default=None, ge=-90, le=90, description="Legacy latitude field")
    lon: float | None = Field(default=None, ge=-180, le=180, description="Legacy longitude field")
    retry: bool = Field(default=False, description="Resubmission after a location request")

    def to_context(self) -> RequestContext:
        """Build the pipeline context.

        Raises:
            MissingCoordinatesError: If only one of ``lat``/``lon`` is set
        """
        coordinates = self.coordinates
        if coordinates is None and (self.lat is not None or self.lon is not None):
            if self.lat is None or self.lon is None:
                raise MissingCoordinatesError("Both lat and lon must be supplied together")
            coordinates = Coordinates(lat=self.lat, lon=self.lon)

        return RequestContext(
            utterance=self.message.strip(),
            theme=self.theme.strip() or settings.default_theme,
            language=self.language,
            coordinates=coordinates,
        )


class NeedsLocation(BaseModel):
    """The caller must supply coordinates and resubmit."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["needs_location"] = "needs_location"
    message: str
    unresolved_city: str | None = None


class Success(BaseModel):
    """A generated reply with the weather it was based on."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    reply: str
    weather: WeatherSnapshot
    city: str


class Failure(BaseModel):
    """A terminal failure, rendered as a user-facing message."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    error_kind: ErrorKind
    detail: str


PipelineOutcome = Annotated[Union[NeedsLocation, Success, Failure], Field(discriminator="kind")]


class NeedsLocationResponse(BaseModel):
    """Response asking the client for its location."""

    model_config = ConfigDict(populate_by_name=True)

    needs_location: bool = Field(True, alias="needsLocation")
    message: str


class ChatResponse(BaseModel):
    """Successful chat response."""

    reply: str
    weather: WeatherSnapshot
    city: str


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(..., description="User-facing error message")
    kind: str | None = Field(None, description="Error kind")


class CityRequest(BaseModel):
    """Inbound city-extraction request body."""

    message: str = Field(..., max_length=500, description="User utterance")


class CityResponse(BaseModel):
    """City named in a message, or an empty string."""

    city: str = Field(..., description="Extracted city name, empty when none was found")
