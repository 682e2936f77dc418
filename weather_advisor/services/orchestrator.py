"""End-to-end resolution of a chat utterance into weather advice.

The orchestrator walks a fixed state machine::

    start -> extracting_city -> geocoding | awaiting_client_coords
          -> fetching_weather -> generating -> done

with two terminal side exits, ``needs_location`` and ``failed``. It never
retries; each step is awaited in turn and every failure is mapped to a
``PipelineOutcome`` so callers never see raw exceptions.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable

from prometheus_client import Counter

from weather_advisor.core.config import settings
from weather_advisor.core.errors import (
    AdvisorError,
    ConfigurationError,
    EmptyResponseError,
    ErrorKind,
    LocationUnavailableError,
    NotFoundError,
)
from weather_advisor.core.locales import Locale, get_locale
from weather_advisor.core.logging import get_logger
from weather_advisor.models.chat import Failure, NeedsLocation, PipelineOutcome, RequestContext, Success
from weather_advisor.models.weather import Coordinates, ResolvedLocation
from weather_advisor.services.city_extractor import CityExtractor, city_extractor
from weather_advisor.services.generator import ResponseGenerator, response_generator
from weather_advisor.services.geocoder import Geocoder, geocoder
from weather_advisor.services.prompt_builder import build_prompt
from weather_advisor.services.weather import WeatherService, weather_service

logger = get_logger(__name__)

PIPELINE_OUTCOMES = Counter(
    "weather_advisor_pipeline_outcomes_total",
    "Pipeline outcomes by kind",
    ["outcome", "error_kind"],
)


class PipelineState(str, Enum):
    START = "start"
    EXTRACTING_CITY = "extracting_city"
    GEOCODING = "geocoding"
    AWAITING_CLIENT_COORDS = "awaiting_client_coords"
    FETCHING_WEATHER = "fetching_weather"
    GENERATING = "generating"
    DONE = "done"
    NEEDS_LOCATION = "needs_location"
    FAILED = "failed"


class ResolutionOrchestrator:
    """Sequences extraction, geocoding, weather lookup and generation."""

    def __init__(
        self,
        extractor: CityExtractor,
        geocoder: Geocoder,
        weather: WeatherService,
        generator: ResponseGenerator,
    ):
        self.extractor = extractor
        self.geocoder = geocoder
        self.weather = weather
        self.generator = generator

    @staticmethod
    def check_credentials() -> None:
        """Fail fast when a provider credential is missing.

        Raises:
            ConfigurationError: If either API key is not configured
        """
        missing = [
            name
            for name, value in (
                ("WEATHER_API_KEY", settings.weather_api_key),
                ("GEMINI_API_KEY", settings.gemini_api_key),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing {', '.join(missing)}")

    async def resolve(self, context: RequestContext, retried: bool = False) -> PipelineOutcome:
        """Run the pipeline for one request.

        Args:
            context: Request inputs
            retried: True when the client is resubmitting with coordinates
                after a location request

        Returns:
            Exactly one of NeedsLocation, Success or Failure
        """
        log = logger.bind(language=context.language, theme=context.theme, retried=retried)
        locale = get_locale(context.language)
        log.info("pipeline_state", state=PipelineState.START.value, has_coordinates=context.coordinates is not None)

        try:
            self.check_credentials()
        except ConfigurationError as e:
            return self._fail(log, e, str(e))

        log.info("pipeline_state", state=PipelineState.EXTRACTING_CITY.value)
        city = await self.extractor.extract_city(context.utterance)

        location: ResolvedLocation | None = None
        if city:
            log.info("pipeline_state", state=PipelineState.GEOCODING.value, city=city)
            try:
                location = await self.geocoder.geocode(city, context.language)
            except NotFoundError:
                log.warning("city_not_resolved", city=city)
            except AdvisorError as e:
                log.warning("city_not_resolved", city=city, kind=e.kind.value, error=str(e))

        if location is None:
            log.info("pipeline_state", state=PipelineState.AWAITING_CLIENT_COORDS.value)
            if context.coordinates is None:
                message = locale.city_not_found.format(city=city) if city else locale.needs_location
                return self._needs_location(log, locale, message, city or None, retried)
            location = ResolvedLocation.from_coordinates(context.coordinates, locale.current_location)
            log.info("using_client_coordinates", latitude=location.latitude, longitude=location.longitude)

        log.info("pipeline_state", state=PipelineState.FETCHING_WEATHER.value, location=location.name)
        try:
            weather = await self.weather.fetch_weather(location.latitude, location.longitude, context.language)
        except ConfigurationError as e:
            return self._fail(log, e, str(e))
        except AdvisorError as e:
            return self._fail(log, e, locale.try_again)

        log.info("pipeline_state", state=PipelineState.GENERATING.value)
        prompt = build_prompt(context, weather, city=location.name)
        try:
            reply = await self.generator.generate(prompt)
        except EmptyResponseError:
            reply = locale.fallback_reply
        except ConfigurationError as e:
            return self._fail(log, e, str(e))
        except AdvisorError as e:
            return self._fail(log, e, locale.try_again)

        log.info("pipeline_state", state=PipelineState.DONE.value, city=location.name)
        PIPELINE_OUTCOMES.labels(outcome="success", error_kind="").inc()
        return Success(reply=reply, weather=weather, city=location.name)

    def _needs_location(
        self,
        log,
        locale: Locale,
        message: str,
        unresolved_city: str | None,
        retried: bool,
    ) -> PipelineOutcome:
        if retried:
            log.warning("negotiation_exhausted", unresolved_city=unresolved_city)
            PIPELINE_OUTCOMES.labels(outcome="failure", error_kind=ErrorKind.NEGOTIATION_EXHAUSTED.value).inc()
            return Failure(error_kind=ErrorKind.NEGOTIATION_EXHAUSTED, detail=locale.negotiation_exhausted)

        log.info("pipeline_state", state=PipelineState.NEEDS_LOCATION.value, unresolved_city=unresolved_city)
        PIPELINE_OUTCOMES.labels(outcome="needs_location", error_kind="").inc()
        return NeedsLocation(message=message, unresolved_city=unresolved_city)

    def _fail(self, log, error: AdvisorError, detail: str) -> Failure:
        log.error("pipeline_state", state=PipelineState.FAILED.value, kind=error.kind.value, error=str(error))
        PIPELINE_OUTCOMES.labels(outcome="failure", error_kind=error.kind.value).inc()
        return Failure(error_kind=error.kind, detail=detail)


Resolver = Callable[..., Awaitable[PipelineOutcome]]
Locator = Callable[[], Awaitable[Coordinates]]


async def negotiate(
    resolve: Resolver,
    context: RequestContext,
    locate: Locator,
    timeout: float | None = None,
) -> PipelineOutcome:
    """Client side of the location negotiation.

    Submits the request; if the pipeline asks for a location, obtains one
    coordinate fix from ``locate`` and resubmits exactly once.

    Args:
        resolve: Pipeline entry point, e.g. ``orchestrator.resolve``
        context: Request inputs without coordinates
        locate: Coroutine factory returning the device coordinates
        timeout: Seconds to wait for the coordinate fix

    Returns:
        The final outcome. A NeedsLocation outcome is only returned when the
        client could not obtain coordinates at all.
    """
    outcome = await resolve(context)
    if not isinstance(outcome, NeedsLocation):
        return outcome

    locale = get_locale(context.language)
    if timeout is None:
        timeout = settings.location_timeout
    try:
        coordinates = await asyncio.wait_for(locate(), timeout)
    except asyncio.TimeoutError:
        logger.warning("location_fix_timeout", timeout=timeout)
        return Failure(error_kind=ErrorKind.LOCATION_TIMEOUT, detail=locale.location_timeout)
    except LocationUnavailableError as e:
        logger.warning("location_fix_unavailable", error=str(e))
        return outcome

    return await resolve(context.with_coordinates(coordinates), retried=True)


# Global orchestrator wired to the default services
orchestrator = ResolutionOrchestrator(
    extractor=city_extractor,
    geocoder=geocoder,
    weather=weather_service,
    generator=response_generator,
)
