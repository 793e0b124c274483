"""Generative model providers for task extraction."""

from __future__ import annotations

from typing import Any, Protocol

from google import genai
from google.genai import types

from taskmind.extraction.prompts import build_prompt
from taskmind.logging import get_logger

log = get_logger("taskmind.extraction.provider")

DEFAULT_MODEL = "gemini-2.5-flash"


class GenerativeModelProvider(Protocol):
    """Anything that can run one schema-constrained generation."""

    async def generate(self, *, corpus: str, policy: str, schema: dict[str, Any]) -> str:
        """Return the raw response text (expected to be JSON matching ``schema``)."""
        ...


class GeminiProvider:
    """Gemini via the google-genai SDK, with JSON schema-constrained output."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.2,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            api_key: Gemini API key.
            model: Model name.
            temperature: Sampling temperature; kept low for stable extraction.
        """
        self._client = genai.Client(api_key=api_key)
        self._model = model
        self._temperature = temperature
        log.debug("gemini_provider_initialized", model=self._model)

    async def generate(self, *, corpus: str, policy: str, schema: dict[str, Any]) -> str:
        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=build_prompt(corpus),
            config=types.GenerateContentConfig(
                system_instruction=policy,
                temperature=self._temperature,
                response_mime_type="application/json",
                response_schema=types.Schema.model_validate(schema),
            ),
        )
        return response.text or ""
