"""Build the advice prompt from weather data and the request context."""

from dataclasses import dataclass

from weather_advisor.core.locales import get_locale
from weather_advisor.models.chat import RequestContext
from weather_advisor.models.weather import WeatherSnapshot

FEELS_LIKE_GAP = 3.0
WIND_MODERATE = 5.0
WIND_STRONG = 10.0
HUMIDITY_DRY = 30.0
HUMIDITY_HUMID = 70.0
LOW_VISIBILITY = 5000.0


@dataclass(frozen=True)
class Advisories:
    """Derived flags that decide what the reply should warn about."""

    feels_gap: bool
    wind: str
    humidity: str
    low_visibility: bool

    def active(self) -> list[str]:
        """Keys of the advisories worth mentioning, in display order."""
        keys = []
        if self.feels_gap:
            keys.append("feels_gap")
        if self.wind != "calm":
            keys.append(f"wind_{self.wind}")
        if self.humidity != "comfortable":
            keys.append(f"humidity_{self.humidity}")
        if self.low_visibility:
            keys.append("low_visibility")
        return keys


def wind_band(speed: float) -> str:
    if speed > WIND_STRONG:
        return "strong"
    if speed > WIND_MODERATE:
        return "moderate"
    return "calm"


def humidity_band(humidity: float) -> str:
    if humidity > HUMIDITY_HUMID:
        return "humid"
    if humidity < HUMIDITY_DRY:
        return "dry"
    return "comfortable"


def compute_advisories(weather: WeatherSnapshot) -> Advisories:
    return Advisories(
        feels_gap=abs(weather.feels_like - weather.temp) > FEELS_LIKE_GAP,
        wind=wind_band(weather.wind_speed),
        humidity=humidity_band(weather.humidity),
        low_visibility=weather.visibility < LOW_VISIBILITY,
    )


def build_prompt(context: RequestContext, weather: WeatherSnapshot, city: str | None = None) -> str:
    """Render the model prompt in the context's reply language.

    Args:
        context: Request inputs (utterance, theme, language)
        weather: Current conditions
        city: Display name to use instead of the provider's place name

    Returns:
        Prompt text
    """
    locale = get_locale(context.language)
    advisories = compute_advisories(weather)

    values = weather.model_dump()
    values["city"] = city or weather.city
    values["wind_band"] = locale.wind_bands[advisories.wind]
    values["humidity_band"] = locale.humidity_bands[advisories.humidity]

    active = [locale.advisories[key] for key in advisories.active()]

    sections = [
        locale.persona.format(theme=context.theme),
        "",
        locale.place.format(city=values["city"]),
        locale.question.format(utterance=context.utterance),
        "",
        locale.data_header,
        locale.temperature.format(**values),
        locale.atmosphere.format(**values),
        locale.sky.format(**values),
        locale.sun.format(**values),
        "",
        locale.advisories_header,
        *(active or [locale.no_advisories]),
        "",
        locale.instructions.format(theme=context.theme, language_name=locale.language_name),
    ]
    return "\n".join(sections)
