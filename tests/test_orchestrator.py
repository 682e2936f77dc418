"""Tests for the resolution state machine and location negotiation."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from weather_advisor.core.config import settings
from weather_advisor.core.errors import (
    EmptyResponseError,
    ErrorKind,
    LocationUnavailableError,
    NotFoundError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from weather_advisor.core.locales import ENGLISH, JAPANESE
from weather_advisor.models.chat import Failure, NeedsLocation, RequestContext, Success
from weather_advisor.models.weather import Coordinates, ResolvedLocation
from weather_advisor.services.orchestrator import ResolutionOrchestrator, negotiate
from weather_advisor.services.weather import map_current_conditions

TOKYO = ResolvedLocation(latitude=35.6895, longitude=139.69171, name="Tokyo")
SHINJUKU = Coordinates(lat=35.6895, lon=139.6917)


@pytest.fixture
def weather_snapshot(mock_weather_response):
    return map_current_conditions(mock_weather_response)


@pytest.fixture
def components(weather_snapshot):
    extractor = AsyncMock()
    extractor.extract_city.return_value = ""
    geocoder = AsyncMock()
    geocoder.geocode.return_value = TOKYO
    weather = AsyncMock()
    weather.fetch_weather.return_value = weather_snapshot
    generator = AsyncMock()
    generator.generate.return_value = "今日は過ごしやすい一日です。"
    return extractor, geocoder, weather, generator


@pytest.fixture
def orchestrator(components):
    extractor, geocoder, weather, generator = components
    return ResolutionOrchestrator(extractor=extractor, geocoder=geocoder, weather=weather, generator=generator)


@pytest.mark.asyncio
async def test_city_in_utterance_is_geocoded(orchestrator, components, weather_snapshot):
    """Test a named city is geocoded and used."""
    extractor, geocoder, weather, generator = components
    extractor.extract_city.return_value = "東京"

    outcome = await orchestrator.resolve(RequestContext(utterance="東京の天気は？", theme="旅行", language="ja"))

    assert isinstance(outcome, Success)
    assert outcome.city == "Tokyo"
    assert outcome.weather == weather_snapshot
    assert outcome.reply == "今日は過ごしやすい一日です。"
    geocoder.geocode.assert_awaited_once_with("東京", "ja")
    weather.fetch_weather.assert_awaited_once_with(35.6895, 139.69171, "ja")
    prompt = generator.generate.call_args.args[0]
    assert "場所: Tokyo" in prompt
    assert JAPANESE.language_name in prompt


@pytest.mark.asyncio
async def test_no_city_no_coordinates_needs_location(orchestrator, components):
    """Test no city and no coordinates asks for a location."""
    _, geocoder, weather, generator = components

    outcome = await orchestrator.resolve(
        RequestContext(utterance="What should I wear today?", theme="fashion", language="en")
    )

    assert isinstance(outcome, NeedsLocation)
    assert outcome.message == ENGLISH.needs_location
    assert outcome.unresolved_city is None
    geocoder.geocode.assert_not_called()
    weather.fetch_weather.assert_not_called()
    generator.generate.assert_not_called()


@pytest.mark.asyncio
async def test_no_city_with_coordinates_goes_straight_to_weather(orchestrator, components):
    """Test client coordinates are used when no city is named."""
    _, geocoder, weather, _ = components

    outcome = await orchestrator.resolve(
        RequestContext(
            utterance="What should I wear today?",
            theme="fashion",
            language="en",
            coordinates=SHINJUKU,
        )
    )

    assert isinstance(outcome, Success)
    assert outcome.city == ENGLISH.current_location
    geocoder.geocode.assert_not_called()
    weather.fetch_weather.assert_awaited_once_with(35.6895, 139.6917, "en")


@pytest.mark.asyncio
async def test_unresolvable_city_without_coordinates(orchestrator, components):
    """Test an unknown city without coordinates asks for a location."""
    extractor, geocoder, weather, _ = components
    extractor.extract_city.return_value = "Zzqxlopolis"
    geocoder.geocode.side_effect = NotFoundError("Zzqxlopolis")

    outcome = await orchestrator.resolve(
        RequestContext(utterance="Weather in Zzqxlopolis?", theme="travel", language="en")
    )

    assert isinstance(outcome, NeedsLocation)
    assert "Zzqxlopolis" in outcome.message
    assert outcome.unresolved_city == "Zzqxlopolis"
    weather.fetch_weather.assert_not_called()


@pytest.mark.asyncio
async def test_unresolvable_city_falls_back_to_coordinates(orchestrator, components):
    """Test an unknown city falls back to client coordinates."""
    extractor, geocoder, weather, _ = components
    extractor.extract_city.return_value = "Zzqxlopolis"
    geocoder.geocode.side_effect = NotFoundError("Zzqxlopolis")

    outcome = await orchestrator.resolve(
        RequestContext(utterance="Zzqxlopolisの天気", theme="旅行", language="ja", coordinates=SHINJUKU)
    )

    assert isinstance(outcome, Success)
    assert outcome.city == JAPANESE.current_location
    weather.fetch_weather.assert_awaited_once_with(35.6895, 139.6917, "ja")


@pytest.mark.asyncio
async def test_geocoder_outage_is_treated_as_unresolved(orchestrator, components):
    """Test a geocoder outage is handled like an unknown city."""
    extractor, geocoder, _, _ = components
    extractor.extract_city.return_value = "Paris"
    geocoder.geocode.side_effect = UpstreamUnavailableError("geocoding down")

    outcome = await orchestrator.resolve(RequestContext(utterance="Paris weather", theme="travel", language="en"))

    assert isinstance(outcome, NeedsLocation)
    assert outcome.unresolved_city == "Paris"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, kind",
    [
        (UpstreamUnavailableError("503"), ErrorKind.UPSTREAM_UNAVAILABLE),
        (UpstreamTimeoutError("timed out"), ErrorKind.UPSTREAM_TIMEOUT),
    ],
)
async def test_weather_failure_is_terminal(orchestrator, components, error, kind):
    """Test weather fetch errors end the pipeline."""
    _, _, weather, generator = components
    weather.fetch_weather.side_effect = error

    outcome = await orchestrator.resolve(
        RequestContext(utterance="How is it?", theme="travel", language="en", coordinates=SHINJUKU)
    )

    assert isinstance(outcome, Failure)
    assert outcome.error_kind == kind
    assert outcome.detail == ENGLISH.try_again
    generator.generate.assert_not_called()


@pytest.mark.asyncio
async def test_empty_model_reply_uses_fallback(orchestrator, components):
    """Test a blank model reply is replaced by the fallback text."""
    _, _, _, generator = components
    generator.generate.side_effect = EmptyResponseError("no text")

    outcome = await orchestrator.resolve(
        RequestContext(utterance="今日の天気", theme="旅行", language="ja", coordinates=SHINJUKU)
    )

    assert isinstance(outcome, Success)
    assert outcome.reply == JAPANESE.fallback_reply


@pytest.mark.asyncio
async def test_generator_failure(orchestrator, components):
    """Test a generator outage is a failure."""
    _, _, _, generator = components
    generator.generate.side_effect = UpstreamUnavailableError("model down")

    outcome = await orchestrator.resolve(
        RequestContext(utterance="How is it?", theme="travel", language="en", coordinates=SHINJUKU)
    )

    assert isinstance(outcome, Failure)
    assert outcome.error_kind == ErrorKind.UPSTREAM_UNAVAILABLE


@pytest.mark.asyncio
@pytest.mark.parametrize("setting, name", [("weather_api_key", "WEATHER_API_KEY"), ("gemini_api_key", "GEMINI_API_KEY")])
async def test_missing_credential_fails_before_any_call(orchestrator, components, monkeypatch, setting, name):
    """Test a missing credential fails before any service call."""
    extractor, geocoder, weather, generator = components
    monkeypatch.setattr(settings, setting, None)

    outcome = await orchestrator.resolve(
        RequestContext(utterance="東京の天気は？", theme="旅行", language="ja", coordinates=SHINJUKU)
    )

    assert isinstance(outcome, Failure)
    assert outcome.error_kind == ErrorKind.CONFIGURATION
    assert name in outcome.detail
    extractor.extract_city.assert_not_called()
    geocoder.geocode.assert_not_called()
    weather.fetch_weather.assert_not_called()
    generator.generate.assert_not_called()


@pytest.mark.asyncio
async def test_needs_location_on_retry_is_a_failure(orchestrator):
    """Test a location request on a retry becomes a failure."""
    outcome = await orchestrator.resolve(
        RequestContext(utterance="What should I wear today?", theme="fashion", language="en"),
        retried=True,
    )

    assert isinstance(outcome, Failure)
    assert outcome.error_kind == ErrorKind.NEGOTIATION_EXHAUSTED


@pytest.mark.asyncio
async def test_identical_requests_are_independent(orchestrator, components, mock_weather_response):
    """Test identical requests produce independent outcomes."""
    _, _, weather, _ = components
    warmer = dict(mock_weather_response, main=dict(mock_weather_response["main"], temp=19.0))
    weather.fetch_weather.side_effect = [
        map_current_conditions(mock_weather_response),
        map_current_conditions(warmer),
    ]
    context = RequestContext(utterance="How is it?", theme="travel", language="en", coordinates=SHINJUKU)

    first = await orchestrator.resolve(context)
    second = await orchestrator.resolve(context)

    assert isinstance(first, Success) and isinstance(second, Success)
    assert weather.fetch_weather.await_count == 2
    assert first.weather.temp == 18.4
    assert second.weather.temp == 19.0
    assert first.weather.model_dump(exclude={"temp"}) == second.weather.model_dump(exclude={"temp"})
    assert context.coordinates == SHINJUKU


@pytest.mark.asyncio
async def test_negotiate_resubmits_once_with_coordinates(orchestrator, components):
    """Test negotiation resubmits once with the coordinates."""
    _, _, weather, _ = components
    locate = AsyncMock(return_value=SHINJUKU)
    context = RequestContext(utterance="What should I wear today?", theme="fashion", language="en")

    outcome = await negotiate(orchestrator.resolve, context, locate)

    assert isinstance(outcome, Success)
    locate.assert_awaited_once()
    weather.fetch_weather.assert_awaited_once_with(35.6895, 139.6917, "en")


@pytest.mark.asyncio
async def test_negotiate_skips_location_when_city_resolves(orchestrator, components):
    """Test no location is requested when the city resolves."""
    extractor, _, _, _ = components
    extractor.extract_city.return_value = "東京"
    locate = AsyncMock()

    outcome = await negotiate(
        orchestrator.resolve, RequestContext(utterance="東京の天気は？", theme="旅行", language="ja"), locate
    )

    assert isinstance(outcome, Success)
    locate.assert_not_called()


@pytest.mark.asyncio
async def test_negotiate_second_needs_location_fails():
    """Test a second location request after resubmission fails."""
    resolve = AsyncMock(
        side_effect=[
            NeedsLocation(message="need location"),
            Failure(error_kind=ErrorKind.NEGOTIATION_EXHAUSTED, detail="gave up"),
        ]
    )
    locate = AsyncMock(return_value=SHINJUKU)
    context = RequestContext(utterance="?", theme="travel", language="en")

    outcome = await negotiate(resolve, context, locate)

    assert isinstance(outcome, Failure)
    assert resolve.await_count == 2
    retry_context = resolve.call_args.args[0]
    assert retry_context.coordinates == SHINJUKU
    assert resolve.call_args.kwargs == {"retried": True}


@pytest.mark.asyncio
async def test_negotiate_location_denied_returns_request(orchestrator):
    """Test a denied location fix returns the original request."""
    locate = AsyncMock(side_effect=LocationUnavailableError("denied"))
    context = RequestContext(utterance="What should I wear today?", theme="fashion", language="en")

    outcome = await negotiate(orchestrator.resolve, context, locate)

    assert isinstance(outcome, NeedsLocation)


@pytest.mark.asyncio
async def test_negotiate_location_timeout(orchestrator):
    """Test a slow location fix times out."""
    async def slow_locate():
        await asyncio.sleep(1)
        return SHINJUKU

    context = RequestContext(utterance="What should I wear today?", theme="fashion", language="en")

    outcome = await negotiate(orchestrator.resolve, context, slow_locate, timeout=0.01)

    assert isinstance(outcome, Failure)
    assert outcome.error_kind == ErrorKind.LOCATION_TIMEOUT


@pytest.mark.asyncio
async def test_negotiate_zero_timeout_is_not_the_default(orchestrator, monkeypatch):
    """An explicit zero timeout is honoured rather than replaced by the setting."""
    monkeypatch.setattr(settings, "location_timeout", 5.0)

    async def slow_locate():
        await asyncio.sleep(0.5)
        return SHINJUKU

    context = RequestContext(utterance="What should I wear today?", theme="fashion", language="en")

    outcome = await negotiate(orchestrator.resolve, context, slow_locate, timeout=0)

    assert isinstance(outcome, Failure)
    assert outcome.error_kind == ErrorKind.LOCATION_TIMEOUT
