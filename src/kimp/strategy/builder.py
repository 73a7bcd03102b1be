"""Strategy record builder.

Turns one LLM reply into a StrategyRecord and folds it into the stored
history:

- the reply is parsed into a tagged result, ParsedStrategy or
  UnparsedStrategy; unparsed text becomes a summary-only record instead of
  failing the pass
- ``analysis_date`` is always overwritten with the canonical today
- the record is inserted at the head and the history is deduplicated by
  date, keeping the head-most (latest inserted) record
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from kimp.logging import get_logger
from kimp.series.models import StrategyRecord
from kimp.strategy.llm import LLMClient
from kimp.strategy.prompt import DEFAULT_PROMPT_TEMPLATE, render_prompt

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class ParsedStrategy:
    """LLM reply that decoded to a JSON object."""

    data: dict[str, Any]


@dataclass(frozen=True)
class UnparsedStrategy:
    """LLM reply that is not a JSON object, kept verbatim."""

    raw_text: str


StrategyParseResult = Union[ParsedStrategy, UnparsedStrategy]


def parse_strategy_response(text: str) -> StrategyParseResult:
    """Decode an LLM reply, tolerating a surrounding Markdown code fence."""
    candidate = text.strip()
    fenced = _FENCE_RE.match(candidate)
    if fenced:
        candidate = fenced.group(1)

    try:
        decoded = json.loads(candidate)
    except ValueError:
        return UnparsedStrategy(raw_text=text)

    if not isinstance(decoded, dict):
        return UnparsedStrategy(raw_text=text)
    return ParsedStrategy(data=decoded)


def to_strategy_record(result: StrategyParseResult, analysis_date: str) -> StrategyRecord:
    """Build the record to insert, stamping it with ``analysis_date``."""
    if isinstance(result, ParsedStrategy):
        record = StrategyRecord.from_dict(result.data)
        if record.analysis_date != analysis_date:
            logger.info(
                "strategy_date_corrected",
                returned=record.analysis_date,
                corrected=analysis_date,
            )
        record.analysis_date = analysis_date
        return record

    if isinstance(result, UnparsedStrategy):
        logger.warning("strategy_parse_failed", chars=len(result.raw_text))
        return StrategyRecord(analysis_date=analysis_date, summary=result.raw_text)

    raise TypeError(f"Unexpected strategy parse result: {result!r}")


def dedup_by_date(history: list[StrategyRecord]) -> list[StrategyRecord]:
    """Keep the first record seen for each ``analysis_date``.

    History is most-recent-first, so the first occurrence is the latest
    inserted. Records without a date are dropped.
    """
    seen: set[str] = set()
    result: list[StrategyRecord] = []
    for record in history:
        if not record.analysis_date or record.analysis_date in seen:
            continue
        seen.add(record.analysis_date)
        result.append(record)
    return result


def is_current(history: list[StrategyRecord], today: str) -> bool:
    """True when the head record already covers ``today``."""
    return bool(history) and history[0].analysis_date == today


class StrategyBuilder:
    """Generates today's strategy record through the LLM collaborator.

    Args:
        llm: Text completion client.
    """

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    async def build_and_append(
        self,
        history: list[StrategyRecord],
        inputs: Mapping[str, Any],
        today: str,
        force: bool = False,
        template: str | None = None,
    ) -> list[StrategyRecord]:
        """Prepend today's record to ``history`` and deduplicate by date.

        Returns ``history`` itself, unchanged, when its head already covers
        ``today`` and ``force`` is not set.

        Args:
            history: Stored records, most recent first.
            inputs: Placeholder name -> JSON-serializable value for the prompt.
            today: Canonical date of this pass.
            force: Regenerate even if today's record exists.
            template: Prompt template; the built-in default when None.

        Raises:
            StrategyGenerationError: The LLM could not be reached.
        """
        if not force and is_current(history, today):
            logger.info("strategy_already_current", analysis_date=today)
            return history

        prompt = render_prompt(template or DEFAULT_PROMPT_TEMPLATE, inputs)
        reply = await self._llm.complete(prompt)
        record = to_strategy_record(parse_strategy_response(reply), today)

        updated = dedup_by_date([record, *history])
        logger.info(
            "strategy_appended",
            analysis_date=today,
            buy_price=record.buy_price,
            sell_price=record.sell_price,
            total=len(updated),
        )
        return updated
