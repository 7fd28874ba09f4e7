from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from perplexity_gateway.api.deps import get_gateway_service
from perplexity_gateway.models.schemas import RpcRequestBody, ToolCallBody
from perplexity_gateway.services.gateway_service import GatewayService

router = APIRouter(prefix="/mcp", tags=["mcp"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


@router.get("/events")
async def events(service: GatewayService = Depends(get_gateway_service)):
    return StreamingResponse(
        service.broadcaster.stream(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/tools")
def list_tools(service: GatewayService = Depends(get_gateway_service)):
    return service.tools_envelope()


@router.post("/call")
async def call_tool(payload: ToolCallBody, service: GatewayService = Depends(get_gateway_service)):
    outcome = await service.call_tool(payload.name, payload.arguments, payload.id)
    return JSONResponse(status_code=200 if outcome.ok else 500, content=outcome.envelope)


@router.post("/request")
async def send_request(payload: RpcRequestBody, service: GatewayService = Depends(get_gateway_service)):
    outcome = await service.handle_request(payload.method, payload.params, payload.id)
    if not outcome.ok:
        return JSONResponse(status_code=500, content={"status": "error", "result": outcome.envelope})
    return {"status": "sent", "result": outcome.envelope}
