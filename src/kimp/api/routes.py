"""JSON endpoints triggering or reading one computation pass each.

Every handler answers ``{"error": message}`` with status 500 when the pass
fails; no retry is scheduled here.
"""

from __future__ import annotations

from typing import Literal

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from kimp.exceptions import KimpError

log = structlog.get_logger(__name__)

router = APIRouter()

_DAYS = Query(1, ge=1, le=1000, description="Days of history to return")


def _error(event: str, e: Exception) -> JSONResponse:
    log.error(event, error=str(e), error_type=type(e).__name__)
    return JSONResponse(content={"error": str(e)}, status_code=500)


@router.get("/rate-history")
async def rate_history(request: Request, days: int = _DAYS) -> JSONResponse:
    """Refresh the conversion rate history and return the last ``days`` days."""
    try:
        series = await request.app.state.orchestrator.update_rate_history(days)
    except KimpError as e:
        return _error("rate_history_error", e)
    return JSONResponse(content=series)


@router.get("/price-history/{side}")
async def price_history(
    request: Request,
    side: Literal["domestic", "international"],
    days: int = _DAYS,
) -> JSONResponse:
    """Refresh one venue's price history and return the last ``days`` days."""
    try:
        series = await request.app.state.orchestrator.update_price_history(side, days)
    except KimpError as e:
        return _error("price_history_error", e)
    return JSONResponse(content=series)


@router.get("/kimchi-premium")
async def kimchi_premium(request: Request, days: int = _DAYS) -> JSONResponse:
    """Extend the premium series and return the last ``days`` days (2 decimals)."""
    try:
        series = await request.app.state.orchestrator.update_premium_history(days)
    except KimpError as e:
        return _error("kimchi_premium_error", e)
    return JSONResponse(content={k: round(v, 2) for k, v in series.items()})


@router.get("/thresholds")
async def thresholds(request: Request, days: int = Query(30, ge=1, le=1000)) -> JSONResponse:
    """Recompute the threshold series and return the last ``days`` days."""
    orchestrator = request.app.state.orchestrator
    try:
        await orchestrator.update_thresholds()
        records = await orchestrator.load_thresholds(days)
    except KimpError as e:
        return _error("thresholds_error", e)
    return JSONResponse(content={k: record.to_dict() for k, record in records.items()})


@router.get("/analyze-strategy")
async def analyze_strategy(request: Request) -> JSONResponse:
    """Stored strategy history, most recent first."""
    try:
        history = await request.app.state.orchestrator.load_strategies()
    except KimpError as e:
        return _error("analyze_strategy_error", e)
    return JSONResponse(content=[record.to_dict() for record in history])


@router.get("/analyze-strategy-cron")
async def analyze_strategy_cron(request: Request, force: bool = False) -> JSONResponse:
    """Generate today's strategy record unless it already exists."""
    orchestrator = request.app.state.orchestrator
    try:
        result = await orchestrator.generate_strategy(force=force)
    except KimpError as e:
        return _error("analyze_strategy_cron_error", e)

    if result.skipped:
        return JSONResponse(
            content={
                "message": "Today's strategy already exists",
                "latest_date": result.history[0].analysis_date,
                "today": orchestrator.today(),
            }
        )
    return JSONResponse(
        content={
            "message": "Strategy updated",
            "new_strategy": result.record.to_dict() if result.record else None,
            "total_strategies": len(result.history),
        }
    )


@router.get("/monitoring")
async def monitoring(request: Request) -> JSONResponse:
    """Buy/sell/hold decision for the live domestic price."""
    try:
        decision = await request.app.state.orchestrator.monitor()
    except KimpError as e:
        return _error("monitoring_error", e)
    return JSONResponse(content=decision.to_dict())


@router.get("/optimize-strategy")
async def optimize_strategy(request: Request) -> JSONResponse:
    """Grid-search threshold parameters over the stored history."""
    try:
        result = await request.app.state.orchestrator.optimize()
    except KimpError as e:
        return _error("optimize_strategy_error", e)
    return JSONResponse(content={"success": True, **result.to_dict()})
