"""Entry point for the premium tracker.

Wires all components together and serves the HTTP API with uvicorn.
When the scheduler is enabled the orchestrator also runs a full pass every
SCHEDULE_INTERVAL_SECONDS in the same event loop.

Component wiring order (in build_components):
1. Blob store (Supabase or in-memory) and the typed series store
2. Sources: domestic + international exchange candles, conversion rate page
3. LLM client and strategy builder
4. Orchestrator
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from kimp.config import AppSettings
from kimp.logging import get_logger, setup_logging
from kimp.orchestrator import Orchestrator
from kimp.sources.exchange import ExchangeCandleSource
from kimp.sources.fx import NaverRateSource
from kimp.store.blob import create_blob_store
from kimp.store.series_store import SeriesStore
from kimp.strategy.builder import StrategyBuilder
from kimp.strategy.llm import OpenAIChatClient


def build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all components from settings.

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("kimp.main")

    blob_store = create_blob_store(settings.store)
    if settings.store.backend == "memory":
        logger.warning("memory_store_configured", note="Nothing is persisted across restarts.")

    domestic = ExchangeCandleSource(
        settings.source.domestic_exchange,
        settings.source.domestic_symbol,
        settings.timezone,
    )
    international = ExchangeCandleSource(
        settings.source.international_exchange,
        settings.source.international_symbol,
        settings.timezone,
    )
    rate = NaverRateSource(
        settings.source.rate_url,
        settings.timezone,
        max_pages=settings.source.rate_max_pages,
        timeout=settings.source.timeout,
    )

    builder = StrategyBuilder(OpenAIChatClient(settings.strategy))

    orchestrator = Orchestrator(
        settings=settings,
        store=SeriesStore(blob_store),
        domestic=domestic,
        international=international,
        rate=rate,
        builder=builder,
    )

    return {
        "blob_store": blob_store,
        "orchestrator": orchestrator,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the scheduler (if enabled) and release connections on shutdown."""
    logger = get_logger("kimp.main")
    settings: AppSettings = app.state.settings
    components = app.state.components
    orchestrator: Orchestrator = components["orchestrator"]
    app.state.orchestrator = orchestrator

    schedule_task = None
    if settings.schedule.enabled:
        schedule_task = asyncio.create_task(orchestrator.start())

    logger.info("lifespan_started", scheduler=settings.schedule.enabled)

    yield

    if schedule_task is not None:
        await orchestrator.stop()
        schedule_task.cancel()
        try:
            await schedule_task
        except asyncio.CancelledError:
            pass

    await orchestrator.close()
    await components["blob_store"].close()
    logger.info("premium_tracker_stopped")


async def run() -> None:
    """Run the premium tracker.

    With the API enabled (API_ENABLED=true, the default) the scheduler and
    the HTTP server share one event loop. With the API disabled a single
    full pass runs and the process exits, for use from an external cron.
    """
    settings = AppSettings()
    setup_logging(settings.log_level)
    logger = get_logger("kimp.main")

    components = build_components(settings)

    if settings.api.enabled:
        from kimp.api.app import create_app

        app = create_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info("starting_api", host=settings.api.host, port=settings.api.port)
        config = uvicorn.Config(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level="warning",
        )
        await uvicorn.Server(config).serve()
    else:
        orchestrator: Orchestrator = components["orchestrator"]
        logger.info("running_single_pass")
        try:
            await orchestrator.run_cycle()
        finally:
            await orchestrator.close()
            await components["blob_store"].close()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
