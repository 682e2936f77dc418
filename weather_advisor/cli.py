"""Terminal front end for the weather advice pipeline."""

import asyncio
from datetime import datetime

import click
from pydantic import ValidationError

from weather_advisor.core.config import settings
from weather_advisor.core.errors import MissingCoordinatesError
from weather_advisor.core.locales import SUPPORTED_LANGUAGES
from weather_advisor.core.logging import configure_logging
from weather_advisor.models.chat import ChatRequest, ChatTurn, Failure, NeedsLocation, PipelineOutcome
from weather_advisor.services.geocoder import geocoder
from weather_advisor.services.llm import gemini_client
from weather_advisor.services.locator import locate_by_ip
from weather_advisor.services.orchestrator import negotiate, orchestrator
from weather_advisor.services.weather import weather_service


def render_turn(turn: ChatTurn) -> str:
    stamp = turn.timestamp.strftime("%H:%M") if turn.timestamp else "--:--"
    if turn.role == "user":
        return click.style(f"[{stamp}] you: ", fg="cyan", bold=True) + turn.text
    return click.style(f"[{stamp}] advisor: ", fg="green", bold=True) + turn.text


def outcome_text(outcome: PipelineOutcome) -> str:
    if isinstance(outcome, NeedsLocation):
        return outcome.message
    if isinstance(outcome, Failure):
        return outcome.detail
    return f"{outcome.reply}\n({outcome.city}: {outcome.weather.temp}°C, {outcome.weather.condition})"


async def _close_clients() -> None:
    await geocoder.close()
    await weather_service.close()
    await gemini_client.close()


async def run_ask(request: ChatRequest, locate: bool) -> PipelineOutcome:
    """Resolve one message, negotiating a location fix when allowed."""
    try:
        context = request.to_context()
        if locate and context.coordinates is None:
            return await negotiate(orchestrator.resolve, context, locate_by_ip)
        return await orchestrator.resolve(context)
    finally:
        await _close_clients()


@click.group()
def cli():
    """Weather advice from the command line."""
    configure_logging()


@cli.command()
@click.argument("message")
@click.option("--theme", default=lambda: settings.default_theme, show_default="settings", help="Persona for the reply")
@click.option(
    "--language",
    type=click.Choice(SUPPORTED_LANGUAGES),
    default=lambda: settings.default_language,
    help="Reply language",
)
@click.option("--lat", type=float, default=None, help="Latitude of the current location")
@click.option("--lon", type=float, default=None, help="Longitude of the current location")
@click.option("--locate/--no-locate", default=False, help="Allow an IP-based location fix if one is needed")
def ask(message, theme, language, lat, lon, locate):
    """Ask for advice about MESSAGE."""
    try:
        request = ChatRequest(message=message, theme=theme, language=language, lat=lat, lon=lon)
    except ValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first["loc"] else "message"
        hint = "MESSAGE" if field == "message" else f"--{field}"
        raise click.BadParameter(first["msg"], param_hint=hint)

    click.echo(render_turn(ChatTurn(role="user", text=message, timestamp=datetime.now())))

    try:
        outcome = asyncio.run(run_ask(request, locate))
    except MissingCoordinatesError as e:
        raise click.BadParameter(str(e), param_hint="--lat/--lon")

    click.echo(render_turn(ChatTurn(role="assistant", text=outcome_text(outcome), timestamp=datetime.now())))
    if isinstance(outcome, Failure):
        raise SystemExit(1)


@cli.command()
@click.option("--host", default=lambda: settings.host, help="Bind address")
@click.option("--port", type=int, default=lambda: settings.port, help="Bind port")
def serve(host, port):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("weather_advisor.main:app", host=host, port=port, reload=settings.debug)


if __name__ == "__main__":
    cli()
