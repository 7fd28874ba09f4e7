from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    transport: str
    port: int


# Loosely typed so malformed calls still get a failure envelope instead of a 422.
class ToolCallBody(BaseModel):
    name: Any = None
    arguments: Any = None
    id: Any = None


class RpcRequestBody(BaseModel):
    method: Any = None
    params: Any = None
    id: Any = None
