"""Localized phrase tables for prompts and user-facing messages.

Each supported reply language maps to one ``Locale``. The prompt builder and
the orchestrator only ever read from this table, so adding a language means
adding an entry to ``LOCALES``.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Locale:
    """Phrase templates for a single reply language."""

    code: str
    language_name: str

    # User-facing messages
    current_location: str
    needs_location: str
    city_not_found: str
    try_again: str
    fallback_reply: str
    location_timeout: str
    negotiation_exhausted: str
    missing_coordinates: str

    # Prompt sections
    persona: str
    place: str
    question: str
    data_header: str
    temperature: str
    atmosphere: str
    sky: str
    sun: str
    advisories_header: str
    no_advisories: str
    instructions: str

    wind_bands: dict[str, str] = field(default_factory=dict)
    humidity_bands: dict[str, str] = field(default_factory=dict)
    advisories: dict[str, str] = field(default_factory=dict)


ENGLISH = Locale(
    code="en",
    language_name="English",
    current_location="Current location",
    needs_location="Location is required. Please allow access to your current location.",
    city_not_found="Could not find \"{city}\". Please allow access to your current location.",
    try_again="Weather information is temporarily unavailable. Please try again in a moment.",
    fallback_reply="(No response from the AI)",
    location_timeout="Timed out while getting your location. Please tell me a city name instead.",
    negotiation_exhausted="Could not determine your location. Please tell me a city name.",
    missing_coordinates="Both latitude and longitude are required.",
    persona="You are a friendly weather advisor with a \"{theme}\" theme.",
    place="Location: {city}",
    question="User question: \"{utterance}\"",
    data_header="[Current weather data]",
    temperature=(
        "Temperature:\n"
        "  - Current: {temp}°C\n"
        "  - Feels like: {feels_like}°C\n"
        "  - Min/Max: {temp_min}°C / {temp_max}°C"
    ),
    atmosphere=(
        "Wind and atmosphere:\n"
        "  - Wind speed: {wind_speed} m/s ({wind_band})\n"
        "  - Wind direction: {wind_deg}°\n"
        "  - Pressure: {pressure} hPa\n"
        "  - Humidity: {humidity}% ({humidity_band})"
    ),
    sky=(
        "Sky and visibility:\n"
        "  - Weather: {main_weather} ({condition})\n"
        "  - Cloud cover: {clouds}%\n"
        "  - Visibility: {visibility} m"
    ),
    sun="Daylight:\n  - Sunrise: {sunrise}\n  - Sunset: {sunset}",
    advisories_header="[Active advisories]",
    no_advisories="- None. Conditions are unremarkable.",
    instructions=(
        "[Instructions]\n"
        "1. Use the weather data above and prioritize the active advisories.\n"
        "2. Let the \"{theme}\" character come through naturally without overdoing it.\n"
        "3. Mention only the advisories listed as active.\n"
        "4. Reply in {language_name} in exactly 2-3 friendly sentences."
    ),
    wind_bands={"calm": "calm", "moderate": "moderate", "strong": "strong"},
    humidity_bands={"dry": "dry", "comfortable": "comfortable", "humid": "humid"},
    advisories={
        "feels_gap": "- The feels-like temperature differs a lot from the actual temperature: give clothing advice.",
        "wind_moderate": "- The wind is fairly strong: mention it for time outdoors.",
        "wind_strong": "- Strong wind: warn about going outside.",
        "humidity_dry": "- The air is dry: suggest care for skin and throat.",
        "humidity_humid": "- It is humid: mention comfort and health.",
        "low_visibility": "- Poor visibility: include a safety warning.",
    },
)

JAPANESE = Locale(
    code="ja",
    language_name="日本語",
    current_location="現在地",
    needs_location="位置情報が必要です。現在地の使用を許可してください。",
    city_not_found="「{city}」が見つかりませんでした。位置情報の使用を許可してください。",
    try_again="天気情報を取得できませんでした。しばらくしてからもう一度お試しください。",
    fallback_reply="（AIからの応答がありません）",
    location_timeout="位置情報の取得がタイムアウトしました。都市名を教えてください。",
    negotiation_exhausted="位置情報を取得できませんでした。都市名を教えてください。",
    missing_coordinates="緯度と経度の両方が必要です。",
    persona="あなたは「{theme}」をテーマにした、親しみやすい天気アドバイザーです。",
    place="場所: {city}",
    question="ユーザーの質問: 「{utterance}」",
    data_header="【現在の気象データ】",
    temperature=(
        "温度情報:\n"
        "  • 現在気温: {temp}°C\n"
        "  • 体感温度: {feels_like}°C\n"
        "  • 最低/最高: {temp_min}°C / {temp_max}°C"
    ),
    atmosphere=(
        "風と大気:\n"
        "  • 風速: {wind_speed} m/s ({wind_band})\n"
        "  • 風向: {wind_deg}°\n"
        "  • 気圧: {pressure} hPa\n"
        "  • 湿度: {humidity}% ({humidity_band})"
    ),
    sky=(
        "視界と天候:\n"
        "  • 天気: {main_weather} ({condition})\n"
        "  • 雲量: {clouds}%\n"
        "  • 視界: {visibility}m"
    ),
    sun="日照時間:\n  • 日の出: {sunrise}\n  • 日の入り: {sunset}",
    advisories_header="【注意事項】",
    no_advisories="- 特になし",
    instructions=(
        "【指示】\n"
        "1. 上記の気象データを分析し、注意事項を優先的に考慮してください\n"
        "2. 「{theme}」のキャラクター性を自然に活かしてください\n"
        "3. 注意事項に挙げられた項目だけに触れてください\n"
        "4. {language_name}で、2-3文の自然で親しみやすい文章で回答してください"
    ),
    wind_bands={"calm": "穏やか", "moderate": "やや強い", "strong": "強風"},
    humidity_bands={"dry": "乾燥", "comfortable": "快適", "humid": "ジメジメ"},
    advisories={
        "feels_gap": "- 体感温度と実際の気温に大きな差があります: 服装のアドバイスをしてください",
        "wind_moderate": "- 風がやや強いです: 外出時に触れてください",
        "wind_strong": "- 強風です: 外出時の注意を促してください",
        "humidity_dry": "- 乾燥しています: 肌やのどのケアを提案してください",
        "humidity_humid": "- 湿度が高いです: 健康への配慮に触れてください",
        "low_visibility": "- 視界不良です: 安全への警告を含めてください",
    },
)

LOCALES: dict[str, Locale] = {
    ENGLISH.code: ENGLISH,
    JAPANESE.code: JAPANESE,
}

SUPPORTED_LANGUAGES = tuple(LOCALES)


def get_locale(language: str) -> Locale:
    """Return the locale for a language code, defaulting to English."""
    return LOCALES.get(language, ENGLISH)
