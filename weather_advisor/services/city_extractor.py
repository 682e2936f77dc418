"""Ask a language model whether an utterance names a city."""

from weather_advisor.core.errors import AdvisorError
from weather_advisor.core.logging import get_logger
from weather_advisor.services.llm import TextModel, gemini_client

logger = get_logger(__name__)

MAX_CITY_LENGTH = 50

EXTRACTION_PROMPT = """You extract city names from chat messages.

Rules:
1. If the message clearly contains a city name, reply with that city name only, exactly as written.
2. If it does not, reply with NONE.
3. Never add explanations or sentences.
4. Phrases such as "here", "my area", "current location", "ここ", "現在地" or "私の場所" are not city names: reply NONE.

Examples:
- "東京の天気は？" -> 東京
- "大阪は暑いですか" -> 大阪
- "Is it raining in London?" -> London
- "temperature of my area" -> NONE
- "今日の天気" -> NONE
- "ここの気温は？" -> NONE

Message: "{utterance}"

City:"""

NEGATIVE_SENTINELS = frozenset({"", "none", "null", "n/a", "no", "なし", "ない", '""', "''"})
NEGATIVE_MARKERS = ("空文字", "ありません", "含まれていない", "含まれていません", "見つかりません")
SELF_REFERENCES = frozenset(
    {
        "here",
        "my area",
        "my location",
        "current location",
        "near me",
        "ここ",
        "現在地",
        "私の場所",
        "この辺",
    }
)

_STRIP_CHARS = " \t\r\n\"'`「」『』.。,、!！?？:："


def normalize_city(raw: str) -> str:
    """Turn a raw model reply into a bare city name or an empty string."""
    if len(raw.strip()) > MAX_CITY_LENGTH:
        return ""

    city = raw.strip().splitlines()[0] if raw.strip() else ""
    city = city.strip(_STRIP_CHARS)
    lowered = city.lower()

    if lowered in NEGATIVE_SENTINELS or lowered in SELF_REFERENCES:
        return ""
    if any(marker in lowered for marker in NEGATIVE_MARKERS):
        return ""
    return city


class CityExtractor:
    """City-name classifier backed by a text model."""

    def __init__(self, model: TextModel):
        self.model = model

    async def extract_city(self, utterance: str) -> str:
        """Return the city named in the utterance, or "" when there is none.

        Model failures never propagate: the pipeline falls back to client
        coordinates instead.
        """
        if not utterance.strip():
            return ""

        try:
            raw = await self.model.complete(EXTRACTION_PROMPT.format(utterance=utterance))
        except AdvisorError as e:
            logger.warning("city_extraction_failed", kind=e.kind.value, error=str(e))
            return ""
        except Exception as e:
            logger.error("city_extraction_error", error=str(e))
            return ""

        city = normalize_city(raw)
        logger.info("city_extracted", city=city or None, raw=raw[:80])
        return city


# Global extractor using the Gemini client
city_extractor = CityExtractor(gemini_client)
