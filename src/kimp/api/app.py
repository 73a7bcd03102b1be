"""FastAPI application factory."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from kimp.api import routes


def create_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the HTTP API application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.

    Returns:
        FastAPI application with the JSON routes registered under /api.
        Route handlers expect ``app.state.orchestrator`` to be set.
    """
    app = FastAPI(title="Premium Signal API", lifespan=lifespan)
    app.include_router(routes.router, prefix="/api")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
