from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from perplexity_gateway.api.routes import router
from perplexity_gateway.api.routes_mcp import router as mcp_router
from perplexity_gateway.config import LOG_FORMAT, Settings, get_settings
from perplexity_gateway.mcp_server.server import ToolDispatcher
from perplexity_gateway.notifications.broadcaster import EventBroadcaster
from perplexity_gateway.services.gateway_service import GatewayService

logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
)
logger = logging.getLogger(__name__)


def _log_endpoints(port: int) -> None:
    base = f"http://localhost:{port}"
    logger.info("Perplexity MCP server running on HTTP port %s", port)
    logger.info("SSE endpoint: %s/mcp/events", base)
    logger.info("Health check: %s/health", base)
    logger.info("Tools endpoint: %s/mcp/tools", base)
    logger.info("Call endpoint: %s/mcp/call", base)
    logger.info("Request endpoint: %s/mcp/request", base)


def create_app(
    settings: Settings | None = None,
    dispatcher: ToolDispatcher | None = None,
    broadcaster: EventBroadcaster | None = None,
) -> FastAPI:
    current = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        _log_endpoints(current.http_port)
        yield
        broadcaster = app.state.gateway_service.broadcaster
        logger.info("HTTP transport stopped", extra={"subscribers": broadcaster.subscriber_count})

    app = FastAPI(
        title=current.app_name,
        description="MCP gateway exposing Perplexity chat tools over stdio and HTTP/SSE",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = current
    app.state.gateway_service = GatewayService(
        dispatcher=dispatcher or ToolDispatcher.from_settings(current),
        broadcaster=broadcaster or EventBroadcaster(),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    app.include_router(mcp_router)
    return app


app = create_app()
