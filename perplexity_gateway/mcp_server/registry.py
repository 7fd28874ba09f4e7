from __future__ import annotations

from collections.abc import Iterable

from perplexity_gateway.mcp_server.schemas import ToolDescriptor
from perplexity_gateway.mcp_server.tools.perplexity_tools import PERPLEXITY_TOOLS


class ToolRegistry:
    """Read-only catalog of tools, kept in registration order."""

    def __init__(self, tools: Iterable[ToolDescriptor]) -> None:
        ordered: dict[str, ToolDescriptor] = {}
        for tool in tools:
            if tool.name in ordered:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            ordered[tool.name] = tool
        self._tools = ordered
        self._listing = tuple(ordered.values())

    def resolve(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name)

    def list(self) -> tuple[ToolDescriptor, ...]:
        return self._listing

    def names(self) -> list[str]:
        return list(self._tools)

    def to_mcp(self) -> list[dict]:
        return [tool.to_mcp() for tool in self._listing]


default_registry = ToolRegistry(PERPLEXITY_TOOLS)
