"""FastAPI application exposing the weather advice pipeline."""

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import Counter, Histogram, generate_latest

from weather_advisor.core.config import settings
from weather_advisor.core.errors import ConfigurationError, ErrorKind, MissingCoordinatesError
from weather_advisor.core.locales import get_locale
from weather_advisor.core.logging import configure_logging, get_logger
from weather_advisor.models.chat import (
    ChatRequest,
    ChatResponse,
    CityRequest,
    CityResponse,
    ErrorResponse,
    Failure,
    NeedsLocation,
    NeedsLocationResponse,
    PipelineOutcome,
)
from weather_advisor.models.weather import HealthResponse
from weather_advisor.services.city_extractor import city_extractor
from weather_advisor.services.geocoder import geocoder
from weather_advisor.services.llm import gemini_client
from weather_advisor.services.orchestrator import orchestrator
from weather_advisor.services.weather import weather_service

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "weather_advisor_requests_total",
    "Total number of requests",
    ["method", "endpoint", "status"],
)
REQUEST_DURATION = Histogram(
    "weather_advisor_request_duration_seconds",
    "Request duration in seconds",
    ["method", "endpoint"],
)

FAILURE_STATUS = {
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.UPSTREAM_UNAVAILABLE: 503,
    ErrorKind.UPSTREAM_TIMEOUT: 504,
    ErrorKind.MISSING_COORDINATES: 400,
    ErrorKind.NEGOTIATION_EXHAUSTED: 422,
    ErrorKind.LOCATION_TIMEOUT: 504,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown."""
    logger.info("application_starting", version=settings.app_version)

    try:
        orchestrator.check_credentials()
    except ConfigurationError as e:
        logger.warning("credentials_missing", error=str(e))

    logger.info("application_started")

    yield

    logger.info("application_shutting_down")
    await geocoder.close()
    await weather_service.close()
    await gemini_client.close()
    logger.info("application_stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Conversational weather advice: city extraction, geocoding, current conditions and LLM replies",
    lifespan=lifespan,
)


@app.middleware("http")
async def add_correlation_id(request: Request, call_next):
    """Add correlation ID to each request for tracing."""
    correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id

    return response


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Track request metrics."""
    method = request.method
    path = request.url.path

    with REQUEST_DURATION.labels(method=method, endpoint=path).time():
        response = await call_next(request)

    REQUEST_COUNT.labels(method=method, endpoint=path, status=response.status_code).inc()

    return response


def _credentials_configured() -> bool:
    try:
        orchestrator.check_credentials()
    except ConfigurationError:
        return False
    return True


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Combined health check",
    tags=["Health"],
)
async def health_check():
    """Report service health and whether provider credentials are present."""
    configured = _credentials_configured()

    logger.info("health_check", credentials_configured=configured)

    return HealthResponse(
        status="healthy" if configured else "degraded",
        version=settings.app_version,
        credentials_configured=configured,
    )


@app.get("/health/live", summary="Liveness probe", tags=["Health"], status_code=200)
async def liveness():
    """Liveness probe. Always 200 while the process is up."""
    return {"status": "alive"}


@app.get(
    "/health/ready",
    response_model=HealthResponse,
    summary="Readiness probe",
    tags=["Health"],
    responses={
        200: {"description": "Service is ready"},
        503: {"description": "Service is not ready"},
    },
)
async def readiness():
    """Readiness probe.

    Raises:
        HTTPException: 503 if a provider credential is missing
    """
    if not _credentials_configured():
        logger.warning("readiness_check_failed", credentials_configured=False)
        raise HTTPException(
            status_code=503,
            detail="Service not ready: provider credentials missing",
        )

    return HealthResponse(
        status="ready",
        version=settings.app_version,
        credentials_configured=True,
    )


def outcome_to_response(outcome: PipelineOutcome) -> JSONResponse:
    """Render a pipeline outcome as the public JSON contract."""
    if isinstance(outcome, NeedsLocation):
        body = NeedsLocationResponse(message=outcome.message)
        return JSONResponse(status_code=200, content=body.model_dump(by_alias=True))

    if isinstance(outcome, Failure):
        body = ErrorResponse(error=outcome.detail, kind=outcome.error_kind.value)
        return JSONResponse(
            status_code=FAILURE_STATUS.get(outcome.error_kind, 500),
            content=body.model_dump(),
        )

    body = ChatResponse(reply=outcome.reply, weather=outcome.weather, city=outcome.city)
    return JSONResponse(status_code=200, content=body.model_dump(mode="json"))


@app.post(
    "/api/chat",
    summary="Ask for weather advice",
    description="""Resolve a free-text message into a short weather recommendation.

    If the message names no resolvable city and no coordinates were sent, the
    response asks the client for its location (`needsLocation: true`). The
    client should obtain a coordinate fix and resubmit the same message once
    with `coordinates` and `retry: true`.
    """,
    tags=["Chat"],
    responses={
        200: {"description": "Reply or location request"},
        400: {"model": ErrorResponse, "description": "Incomplete coordinates"},
        422: {"model": ErrorResponse, "description": "Location negotiation exhausted"},
        500: {"model": ErrorResponse, "description": "Server misconfiguration"},
        503: {"model": ErrorResponse, "description": "Upstream provider unavailable"},
        504: {"model": ErrorResponse, "description": "Upstream provider timed out"},
    },
)
async def chat(payload: ChatRequest):
    """Run the resolution pipeline for one chat message."""
    try:
        context = payload.to_context()
    except MissingCoordinatesError as e:
        logger.warning("chat_request_rejected", error=str(e))
        outcome = Failure(
            error_kind=ErrorKind.MISSING_COORDINATES,
            detail=get_locale(payload.language).missing_coordinates,
        )
        return outcome_to_response(outcome)

    outcome = await orchestrator.resolve(context, retried=payload.retry)
    logger.info("chat_request_completed", outcome=outcome.kind)
    return outcome_to_response(outcome)


@app.post(
    "/api/city",
    response_model=CityResponse,
    summary="Extract a city name",
    description="Return the city named in a message, or an empty string when there is none or extraction fails.",
    tags=["Chat"],
)
async def extract_city(payload: CityRequest):
    """Run only the city extraction step."""
    city = await city_extractor.extract_city(payload.message)
    return CityResponse(city=city)


@app.get(
    "/metrics",
    response_class=PlainTextResponse,
    summary="Prometheus metrics",
    tags=["Monitoring"],
)
async def metrics():
    """Prometheus metrics endpoint."""
    return generate_latest()


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error("unhandled_exception", error=str(exc), path=request.url.path, exc_info=exc)

    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "weather_advisor.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
