from __future__ import annotations

import asyncio
import logging
import sys

import uvicorn

from perplexity_gateway.config import LOG_FORMAT, Settings, get_settings, require_api_key
from perplexity_gateway.errors import ConfigurationError
from perplexity_gateway.mcp_server.server import ToolDispatcher
from perplexity_gateway.mcp_server.stdio import StdioAdapter

logger = logging.getLogger("perplexity_gateway")


def run_http(settings: Settings) -> None:
    from perplexity_gateway.app import create_app

    uvicorn.run(
        create_app(settings),
        host=settings.http_host,
        port=settings.http_port,
        log_level=settings.log_level.lower(),
    )


def run_stdio(settings: Settings) -> None:
    adapter = StdioAdapter(ToolDispatcher.from_settings(settings))
    asyncio.run(adapter.run())


def main() -> None:
    # stdout carries the protocol in stdio mode, so logs go to stderr.
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stderr)

    try:
        settings = get_settings()
        require_api_key(settings)
    except ConfigurationError as exc:
        logger.error("Error: %s", exc)
        sys.exit(1)
    logging.getLogger().setLevel(settings.log_level)

    try:
        if settings.transport_mode == "http":
            run_http(settings)
        else:
            run_stdio(settings)
    except Exception:
        logger.exception("Fatal error running server")
        sys.exit(1)


if __name__ == "__main__":
    main()
