"""OpenAI chat-completions metadata generator."""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from ports.metadata_generator import MetadataGenerationError, MetadataGenerator

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You craft high converting YouTube metadata. "
    "Respond only with valid JSON following the user instructions."
)


class OpenAIMetadataGenerator(MetadataGenerator):
    """One-shot JSON metadata generation through the OpenAI API."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        timeout_seconds: float = 60,
        client: Optional[OpenAI] = None,
    ):
        """
        Initialize OpenAI metadata generator.

        Args:
            api_key: OpenAI API key.
            model: Chat model name.
            temperature: Sampling temperature.
            timeout_seconds: Request timeout.
            client: Preconfigured client (tests).

        Raises:
            MetadataGenerationError: If no API key and no client are given.
        """
        if client is None:
            if not api_key:
                raise MetadataGenerationError("OPENAI_API_KEY not configured")
            client = OpenAI(api_key=api_key, timeout=timeout_seconds)
        self.client = client
        self.model = model
        self.temperature = temperature

    def generate(self, prompt: str) -> dict[str, Any]:
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise MetadataGenerationError(f"Metadata generation failed: {e}") from e

        text = completion.choices[0].message.content if completion.choices else None
        if not text:
            raise MetadataGenerationError("Model response missing")

        try:
            payload = json.loads(text)
        except ValueError as e:
            logger.error(f"Failed to parse JSON from the model: {text[:200]}")
            raise MetadataGenerationError("Failed to parse JSON from the model") from e

        if not isinstance(payload, dict):
            raise MetadataGenerationError("Model returned JSON that is not an object")
        return payload
