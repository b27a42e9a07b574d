"""
CoNekt — Gemini text-generation client

Thin, explicitly constructed wrapper around the Gemini SDK exposing the one
contract the enrichment layer needs:

    request  = {prompt, max_output_tokens, temperature}
    response = {text}   or   GenerationError

Exactly one attempt is made per call; the caller bounds latency with its own
deadline.  Blocked, candidate-less or blank responses are reported as
``GenerationError`` so callers handle every failure the same way.
"""

from __future__ import annotations

from typing import Protocol

import google.generativeai as genai
import structlog
from pydantic import BaseModel, Field

from app.config import Settings, get_settings

logger = structlog.get_logger("conekt.gemini_service")


class GenerationError(RuntimeError):
    """The text-generation service failed or returned unusable output."""


class GenerationRequest(BaseModel):
    prompt: str
    max_output_tokens: int = Field(gt=0)
    temperature: float = Field(ge=0.0, le=2.0)


class GenerationResponse(BaseModel):
    text: str


class TextGenerationClient(Protocol):
    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        ...


class GeminiTextClient:
    """Single-attempt Gemini client implementing ``TextGenerationClient``."""

    def __init__(
        self,
        api_key: str,
        model_name: str,
    ) -> None:
        genai.configure(api_key=api_key)
        self._model_name = model_name
        self._model = genai.GenerativeModel(model_name)

        logger.info("gemini_client_initialised", model=model_name)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "GeminiTextClient":
        settings = settings or get_settings()
        return cls(api_key=settings.GEMINI_API_KEY, model_name=settings.GEMINI_MODEL)

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Send one prompt to Gemini and return the stripped text.

        Raises
        ------
        GenerationError
            On SDK errors, content-policy blocks or an empty response.
        """
        generation_config = genai.GenerationConfig(
            max_output_tokens=request.max_output_tokens,
            temperature=request.temperature,
        )

        try:
            response = await self._model.generate_content_async(
                request.prompt,
                generation_config=generation_config,
            )
        except Exception as exc:
            raise GenerationError(
                f"Gemini call failed for model {self._model_name}: {exc}"
            ) from exc

        if not response.candidates:
            raise GenerationError(
                f"Gemini returned no candidates for model {self._model_name}. "
                f"Prompt feedback: {response.prompt_feedback}"
            )

        try:
            text = response.text
        except ValueError as exc:
            # Raised by the SDK when the candidate was blocked by safety filters.
            raise GenerationError(
                f"Gemini response blocked for model {self._model_name}: {exc}"
            ) from exc

        if not text or not text.strip():
            raise GenerationError(
                f"Gemini returned empty text for model {self._model_name}"
            )

        return GenerationResponse(text=text.strip())
