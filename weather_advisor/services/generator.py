"""Turn a built prompt into the assistant's reply."""

from weather_advisor.core.errors import EmptyResponseError
from weather_advisor.core.logging import get_logger
from weather_advisor.services.llm import TextModel, gemini_client

logger = get_logger(__name__)


def clean_reply(text: str) -> str:
    """Strip markdown fences and bold markers the model sometimes adds."""
    return text.replace("```", "").replace("**", "").strip()


class ResponseGenerator:
    """Reply generation on top of a text model."""

    def __init__(self, model: TextModel):
        self.model = model

    async def generate(self, prompt: str) -> str:
        """Generate the reply text.

        Raises:
            EmptyResponseError: If the model returns no usable text
            UpstreamUnavailableError: If the model call fails
        """
        reply = clean_reply(await self.model.complete(prompt))
        if not reply:
            logger.warning("llm_empty_response")
            raise EmptyResponseError("Language model returned no text")

        logger.info("reply_generated", length=len(reply))
        return reply


# Global generator using the Gemini client
response_generator = ResponseGenerator(gemini_client)
