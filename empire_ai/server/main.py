"""
Main Application Entry Point.

This module builds the FastAPI application: it wires the A2A platform
(agent registry, execution tracker, invoker), configures middleware (CORS)
and exception handlers, and includes all API routers.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from empire_ai.agent_core.factory import A2APlatform, build_platform
from empire_ai.core.logging_config import get_logger, setup_logging
from empire_ai.core.monitoring import initialize_logfire

from .api.v1 import agents, health
from .core import constant
from .core.config import Settings
from .core.config import settings as default_settings
from .exception_handlers import setup_exception_handlers
from .services.rate_limit import FixedWindowRateLimiter

# Initialize logging
setup_logging()
logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, platform: Optional[A2APlatform] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (the module-level settings if omitted).
        platform: Prebuilt platform; tests pass one with a stub agent builder.
            Built from ``settings`` with the default agents if omitted.
    """
    settings = settings or default_settings
    platform = platform or build_platform(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifespan events.

        Starts the execution retention sweep on startup and stops it on shutdown.
        """
        logger.info("Starting up Empire-AI A2A Server...")
        initialize_logfire(app)
        await platform.start()

        yield

        logger.info("Shutting down Empire-AI A2A Server...")
        await platform.stop()

    app = FastAPI(
        title=constant.PROJECT_NAME,
        description="""
        Empire-AI A2A Server API

        Exposes registered agents over the agent-to-agent protocol: invoke, stream
        and cancel agent executions and inspect their status and audit logs.
        """,
        version="0.1.0",
        openapi_url=f"{constant.API_PREFIX}/openapi.json",
        docs_url=f"{constant.API_PREFIX}/docs",
        redoc_url=f"{constant.API_PREFIX}/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.platform = platform
    rate_limit = settings.rate_limit
    app.state.rate_limiter = (
        FixedWindowRateLimiter(rate_limit.max_requests, rate_limit.window_seconds) if rate_limit.enabled else None
    )

    cors = settings.cors
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
    )

    setup_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(agents.router, prefix=constant.AGENTS_PREFIX, tags=["agents"])
    return app


app = create_app()


def run() -> None:
    """Run the server with uvicorn using the configured host and port."""
    import uvicorn

    uvicorn.run(app, host=default_settings.server_host, port=default_settings.server_port)
