"""LLM collaborator: prompt text in, response text out."""

from abc import ABC, abstractmethod

from openai import AsyncOpenAI, OpenAIError

from kimp.config import StrategySettings
from kimp.exceptions import StrategyGenerationError
from kimp.logging import get_logger

logger = get_logger(__name__)


class LLMClient(ABC):
    """Abstract text completion client."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Return the model's reply to ``prompt``.

        The reply is free text; callers must tolerate non-JSON output.
        """
        ...


class OpenAIChatClient(LLMClient):
    """Chat completions via the openai AsyncOpenAI client."""

    def __init__(self, settings: StrategySettings, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        # Built on first use: AsyncOpenAI refuses to construct without a key
        if self._client is None:
            api_key = self._settings.api_key.get_secret_value() or None
            self._client = AsyncOpenAI(api_key=api_key)
        return self._client

    async def complete(self, prompt: str) -> str:
        logger.info("llm_request", model=self._settings.model, prompt_chars=len(prompt))
        try:
            response = await self._get_client().chat.completions.create(
                model=self._settings.model,
                messages=[
                    {"role": "system", "content": self._settings.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._settings.temperature,
                max_tokens=self._settings.max_tokens,
            )
        except OpenAIError as e:
            logger.error("llm_request_failed", model=self._settings.model, error=str(e))
            raise StrategyGenerationError(f"LLM request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        return content or ""
