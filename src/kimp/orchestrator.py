"""Pass orchestrator: fetch -> merge -> premium -> thresholds -> strategy.

Each public method is one self-contained pass: it re-reads whatever it
needs from the store, computes, and writes the full objects back. Nothing
is cached between passes. The three upstream fetches of a premium pass run
concurrently and are joined before anything is merged or written, so a
failed fetch leaves the store untouched.

Concurrent passes race on the store with last-write-wins semantics.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from kimp.backtest.sweep import ParameterSweep
from kimp.config import AppSettings
from kimp.dates import canonical_today, days_ago
from kimp.exceptions import MissingStrategyError
from kimp.logging import get_logger, pass_context
from kimp.monitoring import MonitoringDecision, decide_action, latest_strategy
from kimp.series.merge import backfill_series, merge_series, slice_since
from kimp.series.models import StrategyRecord, ThresholdRecord, TimeSeries
from kimp.series.premium import compute_premium
from kimp.series.thresholds import compute_thresholds
from kimp.store.series_store import SeriesStore
from kimp.strategy.builder import StrategyBuilder, is_current

if TYPE_CHECKING:
    from kimp.backtest.models import SweepResult
    from kimp.sources.base import SeriesSource
    from kimp.sources.exchange import ExchangeCandleSource

logger = get_logger(__name__)

PriceSide = Literal["domestic", "international"]


@dataclass
class StrategyRunResult:
    """Outcome of a strategy generation pass."""

    history: list[StrategyRecord]
    record: StrategyRecord | None  # None when skipped
    skipped: bool


class Orchestrator:
    """Runs single computation passes against the store.

    Args:
        settings: Application settings.
        store: Typed series store.
        domestic: Domestic price source (also provides the live price).
        international: International price source.
        rate: Conversion rate source.
        builder: Strategy record builder.
    """

    def __init__(
        self,
        settings: AppSettings,
        store: SeriesStore,
        domestic: ExchangeCandleSource,
        international: SeriesSource,
        rate: SeriesSource,
        builder: StrategyBuilder,
    ) -> None:
        self._settings = settings
        self._store = store
        self._domestic = domestic
        self._international = international
        self._rate = rate
        self._builder = builder
        self._running = False
        self._cycle_lock = asyncio.Lock()

    def today(self) -> str:
        """Canonical date for the current pass."""
        return canonical_today(self._settings.timezone)

    def _price_source(self, side: PriceSide) -> SeriesSource:
        return self._domestic if side == "domestic" else self._international

    def _price_key(self, side: PriceSide) -> str:
        keys = self._settings.store
        return keys.domestic_key if side == "domestic" else keys.international_key

    # ──────────────────────────────────────────────
    # Raw series
    # ──────────────────────────────────────────────

    async def _merge_and_save(
        self,
        key: str,
        fetched: TimeSeries,
        since: str,
        today: str,
        backfill: bool = False,
    ) -> TimeSeries:
        """Merge a fetched window into the stored series and persist it.

        Only the conversion rate is back-filled (weekends and holidays have no
        quote). Price series keep their gaps so the premium skips those dates.
        """
        existing = await self._store.load_series(key)
        merged = merge_series(existing, fetched)
        if backfill:
            merged = backfill_series(merged, since, today)
        await self._store.save_series(key, merged)
        return merged

    async def update_rate_history(self, days: int) -> TimeSeries:
        """Refresh the conversion rate history and return the last ``days`` days."""
        today = self.today()
        since = days_ago(today, days)
        fetched = await self._rate.fetch(days)
        merged = await self._merge_and_save(
            self._settings.store.rate_key, fetched, since, today, backfill=True
        )
        return slice_since(merged, since)

    async def update_price_history(self, side: PriceSide, days: int) -> TimeSeries:
        """Refresh one price history and return the last ``days`` days."""
        today = self.today()
        since = days_ago(today, days)
        fetched = await self._price_source(side).fetch(days)
        merged = await self._merge_and_save(self._price_key(side), fetched, since, today)
        return slice_since(merged, since)

    # ──────────────────────────────────────────────
    # Premium and thresholds
    # ──────────────────────────────────────────────

    async def update_premium_history(self, days: int) -> TimeSeries:
        """Fetch all three inputs concurrently, refresh them, and extend the premium series.

        The rate is merged and back-filled; both price series are merged
        without back-fill. The premium window is computed over the refreshed
        inputs and merged into the stored premium series, so a date missing
        from either price series stays missing there.
        """
        today = self.today()
        since = days_ago(today, days)

        domestic, international, rate = await asyncio.gather(
            self._domestic.fetch(days),
            self._international.fetch(days),
            self._rate.fetch(days),
        )
        logger.info(
            "premium_inputs_fetched",
            domestic=len(domestic),
            international=len(international),
            rate=len(rate),
        )

        keys = self._settings.store
        domestic = await self._merge_and_save(keys.domestic_key, domestic, since, today)
        international = await self._merge_and_save(keys.international_key, international, since, today)
        rate = await self._merge_and_save(keys.rate_key, rate, since, today, backfill=True)

        window = compute_premium(
            slice_since(domestic, since),
            slice_since(international, since),
            slice_since(rate, since),
        )
        existing = await self._store.load_series(keys.premium_key)
        premium = merge_series(existing, window)
        await self._store.save_series(keys.premium_key, premium)

        logger.info("premium_updated", window=len(window), total=len(premium))
        return slice_since(premium, since)

    async def update_thresholds(self) -> dict[str, ThresholdRecord]:
        """Recompute the full threshold series from the stored premium series."""
        premium = await self._store.load_series(self._settings.store.premium_key)
        thresholds = compute_thresholds(premium, self._settings.threshold)
        await self._store.save_thresholds(self._settings.store.threshold_key, thresholds)
        return thresholds

    async def load_thresholds(self, days: int) -> dict[str, ThresholdRecord]:
        thresholds = await self._store.load_thresholds(self._settings.store.threshold_key)
        return slice_since(thresholds, days_ago(self.today(), days))

    # ──────────────────────────────────────────────
    # Strategy
    # ──────────────────────────────────────────────

    async def load_strategies(self) -> list[StrategyRecord]:
        return await self._store.load_strategies(self._settings.store.strategy_key)

    async def _prompt_inputs(self, today: str) -> dict:
        keys = self._settings.store
        since = days_ago(today, self._settings.strategy.history_days)

        domestic, international, rate, premium, thresholds = await asyncio.gather(
            self._store.load_series(keys.domestic_key),
            self._store.load_series(keys.international_key),
            self._store.load_series(keys.rate_key),
            self._store.load_series(keys.premium_key),
            self._store.load_thresholds(keys.threshold_key),
        )
        return {
            "domesticHistory": slice_since(domestic, since),
            "internationalHistory": slice_since(international, since),
            "rateHistory": slice_since(rate, since),
            "kimchiPremiumHistory": {k: round(v, 2) for k, v in slice_since(premium, since).items()},
            "thresholdHistory": {
                k: record.to_dict() for k, record in slice_since(thresholds, since).items()
            },
        }

    async def generate_strategy(self, force: bool = False) -> StrategyRunResult:
        """Produce today's strategy record unless one already exists.

        Raises:
            StrategyGenerationError: The LLM could not be reached.
            StoreReadError / StoreWriteError: Store failures.
        """
        today = self.today()
        keys = self._settings.store
        history = await self.load_strategies()

        if not force and is_current(history, today):
            logger.info("strategy_generation_skipped", analysis_date=today)
            return StrategyRunResult(history=history, record=None, skipped=True)

        inputs = await self._prompt_inputs(today)
        template = await self._store.load_text(keys.prompt_key)
        updated = await self._builder.build_and_append(
            history, inputs, today, force=force, template=template
        )
        await self._store.save_strategies(keys.strategy_key, updated)
        return StrategyRunResult(history=updated, record=updated[0], skipped=False)

    # ──────────────────────────────────────────────
    # Monitoring and optimization
    # ──────────────────────────────────────────────

    async def monitor(self) -> MonitoringDecision:
        """Compare the live domestic price with the latest strategy record."""
        keys = self._settings.store
        price = await self._domestic.fetch_last_price()
        strategy = latest_strategy(await self.load_strategies())
        if strategy is None:
            raise MissingStrategyError("No strategy record available")

        premium = await self._store.load_series(keys.premium_key)
        thresholds = await self._store.load_thresholds(keys.threshold_key)
        premium_date = max(premium) if premium else None

        decision = MonitoringDecision(
            price=price,
            action=decide_action(price, strategy),
            strategy_date=strategy.analysis_date,
            buy_price=strategy.buy_price,
            sell_price=strategy.sell_price,
            premium_date=premium_date,
            premium=premium[premium_date] if premium_date else None,
            threshold=thresholds[max(thresholds)] if thresholds else None,
        )
        logger.info(
            "monitoring_decision",
            price=price,
            action=decision.action.value,
            strategy_date=decision.strategy_date,
        )
        return decision

    async def optimize(self) -> SweepResult:
        """Grid-search threshold parameters over the stored history."""
        keys = self._settings.store
        prices = await self._store.load_series(keys.domestic_key)
        premium = await self._store.load_series(keys.premium_key)
        sweep = ParameterSweep(
            prices,
            premium,
            base_settings=self._settings.threshold,
            initial_capital=self._settings.backtest.initial_capital,
        )
        # CPU-bound; keep the event loop free
        return await asyncio.to_thread(
            sweep.run,
            None,
            self._settings.backtest.max_combinations,
            self._settings.backtest.top_results,
        )

    # ──────────────────────────────────────────────
    # Scheduled passes
    # ──────────────────────────────────────────────

    async def run_cycle(self) -> None:
        """Full daily pass: premium -> thresholds -> strategy."""
        with pass_context(self.today(), self._settings.timezone):
            await self.update_premium_history(self._settings.source.lookback_days)
            await self.update_thresholds()
            await self.generate_strategy()

    async def start(self) -> None:
        """Run ``run_cycle`` every ``schedule.interval_seconds`` until stopped."""
        logger.info("orchestrator_starting", interval=self._settings.schedule.interval_seconds)
        self._running = True
        while self._running:
            try:
                async with self._cycle_lock:
                    await self.run_cycle()
            except asyncio.CancelledError:
                break
            except Exception as e:
                # A failed pass is retried on the next tick
                logger.error("orchestrator_cycle_error", error=str(e), exc_info=True)
            await asyncio.sleep(self._settings.schedule.interval_seconds)
        logger.info("orchestrator_stopped")

    async def stop(self) -> None:
        logger.info("orchestrator_stopping")
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def close(self) -> None:
        """Release source connections."""
        for source in (self._domestic, self._international, self._rate):
            await source.close()
