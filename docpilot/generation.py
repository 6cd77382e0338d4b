"""
Generation capability - the single network boundary of the analysis core.

Anything that implements ``GenerationClient`` can back the pipeline; the
Gemini implementation uses the google-genai async client.
"""

from typing import Any, Optional, Protocol

from google import genai
from google.genai import types
from loguru import logger
from msgspec import Struct

from docpilot.error_handling import ConfigurationError
from docpilot.settings import GenerationSettings


class GenerationResponse(Struct):
    """Raw result of one generation call."""
    text: Optional[str] = None
    structured_output: Optional[Any] = None


class GenerationClient(Protocol):
    async def generate(
        self,
        prompt: str,
        expected_shape: Optional[type] = None
    ) -> GenerationResponse:
        ...


class GeminiGenerationClient:
    """Gemini-backed generation client."""

    def __init__(self, settings: GenerationSettings):
        """Initialize the client.

        Args:
            settings: Generation settings carrying credentials and model

        Raises:
            ConfigurationError: If no API key is configured
        """
        if not settings.api_key:
            raise ConfigurationError("No API key provided for the generation client")

        self.settings = settings
        self.client = genai.Client(api_key=settings.api_key)

        logger.info(
            "Gemini generation client initialized",
            model=settings.model_name,
            api_key=settings.masked_key()
        )

    async def generate(
        self,
        prompt: str,
        expected_shape: Optional[type] = None
    ) -> GenerationResponse:
        config = types.GenerateContentConfig(
            temperature=self.settings.temperature,
            max_output_tokens=self.settings.max_output_tokens,
            response_mime_type="application/json" if expected_shape is not None else "text/plain"
        )

        response = await self.client.aio.models.generate_content(
            model=self.settings.model_name,
            contents=[
                types.Content(
                    role="user",
                    parts=[types.Part(text=prompt)]
                )
            ],
            config=config
        )

        return GenerationResponse(text=response.text)
