from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from pydantic import ValidationError

from perplexity_gateway.config import Settings
from perplexity_gateway.errors import BackendError, ToolValidationError
from perplexity_gateway.integrations.perplexity_client import PerplexityClient
from perplexity_gateway.mcp_server.registry import ToolRegistry, default_registry
from perplexity_gateway.mcp_server.schemas import (
    InvocationRequest,
    InvocationResult,
    Message,
    ToolArguments,
    ToolCall,
)

logger = logging.getLogger(__name__)


class CompletionBackend(Protocol):
    async def complete(self, messages: Sequence[Message], model: str) -> str: ...


class ToolDispatcher:
    """
    Single entry point for tool calls from every transport.

    ``dispatch`` always returns an ``InvocationResult``: validation problems,
    backend failures and unexpected faults all come back as failures.
    """

    def __init__(self, backend: CompletionBackend, registry: ToolRegistry = default_registry) -> None:
        self.backend = backend
        self.registry = registry

    @classmethod
    def from_settings(cls, settings: Settings) -> "ToolDispatcher":
        client = PerplexityClient(
            api_key=settings.perplexity_api_key,
            api_url=settings.perplexity_api_url,
            timeout_seconds=settings.perplexity_timeout_seconds,
        )
        return cls(client)

    def validate(self, request: InvocationRequest) -> ToolCall:
        arguments = request.arguments
        if not arguments:
            raise ToolValidationError("No arguments provided")

        tool = self.registry.resolve(request.tool_name)
        if tool is None:
            raise ToolValidationError(f"Unknown tool: {request.tool_name}")

        messages = arguments.get("messages") if isinstance(arguments, Mapping) else None
        if not isinstance(messages, list):
            raise ToolValidationError(f"Invalid arguments for {tool.name}: 'messages' must be an array")

        try:
            parsed = ToolArguments.model_validate({"messages": messages})
        except ValidationError as exc:
            raise ToolValidationError(
                f"Invalid arguments for {tool.name}: each message needs string 'role' and 'content'"
            ) from exc
        return ToolCall(tool=tool, messages=parsed.messages)

    async def dispatch(self, request: InvocationRequest) -> InvocationResult:
        try:
            call = self.validate(request)
        except ToolValidationError as exc:
            logger.warning("Rejected tool call", extra={"tool": request.tool_name, "error": str(exc)})
            return InvocationResult.failed(str(exc))

        try:
            text = await self.backend.complete(call.messages, call.tool.backend_operation)
        except BackendError as exc:
            logger.warning(
                "Tool call failed",
                extra={"tool": call.tool.name, "model": call.tool.backend_operation, "error": str(exc)},
            )
            return InvocationResult.failed(str(exc))
        except Exception as exc:
            logger.exception("Unexpected error during tool call", extra={"tool": call.tool.name})
            return InvocationResult.failed(str(exc) or exc.__class__.__name__)

        logger.info("Tool call completed", extra={"tool": call.tool.name, "chars": len(text)})
        return InvocationResult.succeeded(text)

    async def call(self, tool_name: str, arguments: Any) -> InvocationResult:
        return await self.dispatch(InvocationRequest(tool_name=tool_name, arguments=arguments))
