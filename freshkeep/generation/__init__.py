"""Text generation providers, the retrying client, and structured tasks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import FreshkeepConfig


class TextProvider(ABC):
    """Abstract base for a single text-generation request."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the raw completion text.

        Any failure is raised; retrying is the caller's concern.
        """
        ...


def create_provider(config: FreshkeepConfig) -> TextProvider:
    """Create a text provider based on configuration."""
    backend_name = config.generation.backend

    match backend_name:
        case "claude":
            from .claude import ClaudeTextProvider

            return ClaudeTextProvider(
                api_key=config.generation.claude.api_key,
                model=config.generation.claude.model,
            )
        case "gemini":
            from .gemini import GeminiTextProvider

            return GeminiTextProvider(
                api_key=config.generation.gemini.api_key,
                model=config.generation.gemini.model,
            )
        case "openai":
            from .openai import OpenAITextProvider

            return OpenAITextProvider(
                api_key=config.generation.openai.api_key,
                model=config.generation.openai.model,
            )
        case _:
            raise ValueError(
                f"Unknown generation backend: {backend_name!r} "
                f"(choose one of claude / gemini / openai)"
            )


from .client import GenerationClient, seconds_until_next_minute  # noqa: E402
from .tasks import GroceryAI  # noqa: E402

__all__ = [
    "TextProvider",
    "create_provider",
    "GenerationClient",
    "GroceryAI",
    "seconds_until_next_minute",
]
