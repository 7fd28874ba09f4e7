from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class Message(BaseModel):
    # Unknown keys ride along so the backend sees the message as sent.
    model_config = ConfigDict(extra="allow")

    role: str
    content: str


class ToolArguments(BaseModel):
    messages: list[Message]


class ToolDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    input_schema: dict[str, Any]
    backend_operation: str

    def to_mcp(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}


class InvocationRequest(BaseModel):
    tool_name: str
    arguments: Any = None


class ToolCall(BaseModel):
    """A request that passed validation: resolved tool plus typed messages."""

    tool: ToolDescriptor
    messages: list[Message]


class InvocationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    text: str | None = None
    message: str | None = None

    @classmethod
    def succeeded(cls, text: str) -> "InvocationResult":
        return cls(success=True, text=text)

    @classmethod
    def failed(cls, message: str) -> "InvocationResult":
        return cls(success=False, message=message)

    def to_call_result(self) -> dict[str, Any]:
        if self.success:
            return {"content": [{"type": "text", "text": self.text}], "isError": False}
        return {"content": [{"type": "text", "text": f"Error: {self.message}"}], "isError": True}
