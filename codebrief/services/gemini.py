"""Shared Gemini API utilities.

Provides the client factory and the retry-wrapped text generation call used
by the digest assembler.
"""

from __future__ import annotations

import logging

from google import genai
from google.genai import types

from codebrief.config import Settings, get_settings
from codebrief.services.retry import RetryPolicy

logger = logging.getLogger(__name__)


def create_gemini_client(settings: Settings | None = None) -> genai.Client:
    """Create a Gemini client from application settings."""
    if settings is None:
        settings = get_settings()
    return genai.Client(api_key=settings.gemini_api_key)


def build_generation_config(settings: Settings) -> types.GenerateContentConfig:
    """Return the generation config for ranking requests (JSON output)."""
    return types.GenerateContentConfig(
        temperature=settings.gemini.temperature,
        max_output_tokens=settings.gemini.max_output_tokens,
        response_mime_type="application/json",
    )


async def call_gemini_with_retry(
    client: genai.Client,
    model: str,
    prompt: str,
    config: types.GenerateContentConfig | None = None,
    retry: RetryPolicy | None = None,
) -> str:
    """Call the Gemini API (async) through the fixed-delay retry policy.

    Args:
        client: Gemini API client.
        model: Model name (e.g., "gemini-2.5-flash").
        prompt: Prompt text.
        config: Generation config (e.g., JSON response mode).
        retry: Retry policy. Built from settings if None.

    Returns:
        Gemini response text ("" when the response carries no text).

    Raises:
        Exception: Last exception when all attempts are exhausted.
    """
    if retry is None:
        retry = RetryPolicy.from_settings()

    async def _generate() -> str:
        response = await client.aio.models.generate_content(
            model=model,
            contents=prompt,
            config=config,
        )
        return response.text or ""

    return await retry.call(_generate, description="Gemini API call")
