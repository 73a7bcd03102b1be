"""LLM strategy generation: client, prompt rendering and record builder."""

from kimp.strategy.builder import (
    ParsedStrategy,
    StrategyBuilder,
    UnparsedStrategy,
    dedup_by_date,
    is_current,
    parse_strategy_response,
    to_strategy_record,
)
from kimp.strategy.llm import LLMClient, OpenAIChatClient
from kimp.strategy.prompt import DEFAULT_PROMPT_TEMPLATE, render_prompt

__all__ = [
    "DEFAULT_PROMPT_TEMPLATE",
    "LLMClient",
    "OpenAIChatClient",
    "ParsedStrategy",
    "StrategyBuilder",
    "UnparsedStrategy",
    "dedup_by_date",
    "is_current",
    "parse_strategy_response",
    "render_prompt",
    "to_strategy_record",
]
