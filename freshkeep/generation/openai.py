"""OpenAI chat completions text provider."""

from __future__ import annotations

from . import TextProvider


class OpenAITextProvider(TextProvider):
    """Generate text using OpenAI chat completions."""

    def __init__(self, api_key: str = "", model: str = "gpt-4.1-nano") -> None:
        self._api_key = api_key
        self._model = model

    async def complete(self, prompt: str) -> str:
        if not self._api_key:
            raise ValueError(
                "OpenAI API key is not configured. "
                "Check the config file or the OPENAI_API_KEY environment variable."
            )

        try:
            import openai
        except ImportError:
            raise ImportError("openai SDK is required: pip install openai") from None

        client = openai.AsyncOpenAI(api_key=self._api_key)
        response = await client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.choices[0].message.content or ""
