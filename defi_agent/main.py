"""
FastAPI app exposing an Agent's tools over HTTP.

The host builds the Agent (wallet, plugins, providers) and hands it to
``create_app``; the app's lifespan runs the cache janitor over it.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import health, tools
from .config import settings
from .core.agent.agent import Agent
from .core.janitor import CacheJanitor
from .logging_config import setup_logging


def create_app(agent: Agent, janitor_interval_seconds: Optional[float] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        janitor = CacheJanitor([agent], interval_seconds=janitor_interval_seconds)
        app.state.janitor = janitor
        await janitor.start()
        try:
            yield
        finally:
            await janitor.stop()
            agent.cleanup()

    app = FastAPI(
        title="DeFi Agent API",
        description="Swap, staking and bridge tools for an LLM agent",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.agent = agent

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(tools.router, tags=["Tools"])

    @app.get("/")
    async def root():
        """Root endpoint with basic info"""
        return {
            "name": "DeFi Agent API",
            "version": "0.1.0",
            "tools": agent.tool_registry.names(),
            "health": "/healthz",
        }

    return app


def run(agent: Agent) -> None:
    """Serve ``agent`` with uvicorn using host/port/log level from settings."""
    import uvicorn

    setup_logging()
    uvicorn.run(
        create_app(agent),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )
