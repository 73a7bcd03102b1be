"""Tests for OpenAIChatClient with a mocked AsyncOpenAI client."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from kimp.config import StrategySettings
from kimp.exceptions import StrategyGenerationError
from kimp.strategy.llm import OpenAIChatClient


def _client(create: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = create
    return client


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.mark.asyncio
async def test_complete_sends_system_and_user_messages() -> None:
    create = AsyncMock(return_value=_completion('{"buy_price": 1}'))
    settings = StrategySettings(model="gpt-4o-mini", system_prompt="analyst")

    reply = await OpenAIChatClient(settings, client=_client(create)).complete("prompt text")

    assert reply == '{"buy_price": 1}'
    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["messages"] == [
        {"role": "system", "content": "analyst"},
        {"role": "user", "content": "prompt text"},
    ]


@pytest.mark.asyncio
async def test_empty_content_returns_empty_string() -> None:
    create = AsyncMock(return_value=_completion(None))
    reply = await OpenAIChatClient(StrategySettings(), client=_client(create)).complete("p")
    assert reply == ""


@pytest.mark.asyncio
async def test_api_error_raises_generation_error() -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    create = AsyncMock(side_effect=openai.APIConnectionError(request=request))

    with pytest.raises(StrategyGenerationError):
        await OpenAIChatClient(StrategySettings(), client=_client(create)).complete("p")
