"""Error taxonomy for the resolution pipeline."""

from enum import Enum


class ErrorKind(str, Enum):
    """Stable identifiers for pipeline failures."""

    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    UPSTREAM_TIMEOUT = "upstream_timeout"
    EMPTY_RESPONSE = "empty_response"
    MISSING_COORDINATES = "missing_coordinates"
    LOCATION_UNAVAILABLE = "location_unavailable"
    LOCATION_TIMEOUT = "location_timeout"
    NEGOTIATION_EXHAUSTED = "negotiation_exhausted"


class AdvisorError(Exception):
    """Base class for pipeline errors."""

    kind: ErrorKind = ErrorKind.UPSTREAM_UNAVAILABLE


class ConfigurationError(AdvisorError):
    """A required credential or setting is missing."""

    kind = ErrorKind.CONFIGURATION


class NotFoundError(AdvisorError):
    """The geocoding directory returned no match."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, city: str):
        super().__init__(f"City '{city}' not found")
        self.city = city


class UpstreamUnavailableError(AdvisorError):
    """The weather or language-model provider failed."""

    kind = ErrorKind.UPSTREAM_UNAVAILABLE


class UpstreamTimeoutError(UpstreamUnavailableError):
    """An external call exceeded its timeout."""

    kind = ErrorKind.UPSTREAM_TIMEOUT


class EmptyResponseError(AdvisorError):
    """The language model returned no usable text."""

    kind = ErrorKind.EMPTY_RESPONSE


class MissingCoordinatesError(AdvisorError):
    """Only one half of a coordinate pair was supplied."""

    kind = ErrorKind.MISSING_COORDINATES


class LocationUnavailableError(AdvisorError):
    """The client could not obtain a coordinate fix."""

    kind = ErrorKind.LOCATION_UNAVAILABLE
