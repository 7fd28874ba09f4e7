from __future__ import annotations

from fastapi import APIRouter, Depends

from perplexity_gateway.api.deps import get_app_settings
from perplexity_gateway.config import Settings
from perplexity_gateway.models.schemas import HealthResponse

router = APIRouter(tags=["perplexity-gateway"])


@router.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(get_app_settings)):
    return HealthResponse(status="ok", transport="http", port=settings.http_port)
