import logging

import openai
from openai import AsyncOpenAI

from homerecs.ports.llm import LLMPort, LLMUnavailableError

logger = logging.getLogger(__name__)


class OpenAILLMAdapter(LLMPort):
    """LLM adapter using the OpenAI chat completions API (GPT-4o, GPT-4o-mini, etc.)."""

    def __init__(self, api_key: str | None, model: str, timeout: float = 30.0) -> None:
        self._model = model
        self._client = (
            AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
            if api_key
            else None
        )

    @property
    def available(self) -> bool:
        return self._client is not None

    async def complete(
        self,
        system: str,
        user: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Send a chat completion request to OpenAI."""
        if self._client is None:
            raise LLMUnavailableError("OpenAI API key not configured")

        logger.info(
            "OpenAI request: model=%s, max_tokens=%d, temperature=%.1f",
            self._model,
            max_tokens,
            temperature,
        )
        try:
            resp = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except openai.OpenAIError as exc:
            raise LLMUnavailableError(f"OpenAI request failed: {exc}") from exc

        result = resp.choices[0].message.content or ""
        logger.info("OpenAI response: %d chars", len(result))
        return result
