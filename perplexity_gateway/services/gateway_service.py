from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from perplexity_gateway.mcp_server.schemas import InvocationResult
from perplexity_gateway.mcp_server.server import ToolDispatcher
from perplexity_gateway.notifications.broadcaster import EventBroadcaster

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
DEFAULT_REQUEST_ID = "1"


def rpc_result(request_id: Any, result: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def rpc_error(request_id: Any, error: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def _request_id(raw: Any) -> Any:
    return DEFAULT_REQUEST_ID if raw is None else raw


@dataclass
class RpcOutcome:
    ok: bool
    envelope: dict[str, Any]


class GatewayService:
    """Envelope building and fan-out shared by the HTTP endpoints."""

    def __init__(self, dispatcher: ToolDispatcher, broadcaster: EventBroadcaster) -> None:
        self.dispatcher = dispatcher
        self.broadcaster = broadcaster

    def list_tools(self) -> dict[str, Any]:
        return {"tools": self.dispatcher.registry.to_mcp()}

    def tools_envelope(self, request_id: Any = None) -> dict[str, Any]:
        return rpc_result(_request_id(request_id), self.list_tools())

    async def call_tool(self, name: Any, arguments: Any, request_id: Any = None) -> RpcOutcome:
        tool_name = "" if name is None else str(name)
        outcome = await self.dispatcher.call(tool_name, arguments)
        return self._publish(self._envelope(_request_id(request_id), outcome), outcome.success)

    async def handle_request(self, method: Any, params: Any, request_id: Any = None) -> RpcOutcome:
        if method == "tools/list":
            return self._publish(self.tools_envelope(request_id), True)

        if method == "tools/call":
            params = params if isinstance(params, Mapping) else {}
            return await self.call_tool(params.get("name"), params.get("arguments"), request_id)

        logger.warning("Unknown MCP method", extra={"method": method})
        failure = InvocationResult.failed(f"Unknown method: {method}")
        return self._publish(self._envelope(_request_id(request_id), failure), False)

    @staticmethod
    def _envelope(request_id: Any, outcome: InvocationResult) -> dict[str, Any]:
        if outcome.success:
            return rpc_result(request_id, outcome.to_call_result())
        return rpc_error(request_id, outcome.to_call_result())

    def _publish(self, envelope: dict[str, Any], ok: bool) -> RpcOutcome:
        delivered = self.broadcaster.publish(envelope)
        logger.debug("Broadcast event", extra={"listeners": delivered, "ok": ok})
        return RpcOutcome(ok=ok, envelope=envelope)
