"""Interface for one-shot AI metadata generation."""
from abc import ABC, abstractmethod
from typing import Any


class MetadataGenerator(ABC):
    """
    Text-generation backend that returns video metadata as JSON.

    Implementation examples: OpenAI chat completions, Gemini.
    """

    @abstractmethod
    def generate(self, prompt: str) -> dict[str, Any]:
        """
        Run one generation call.

        Args:
            prompt: Complete user prompt.

        Returns:
            Parsed JSON object produced by the model.

        Raises:
            MetadataGenerationError: If the call fails or the output is not a JSON object.
        """
        pass


class MetadataGenerationError(Exception):
    """Base exception for metadata generation errors."""
    pass
