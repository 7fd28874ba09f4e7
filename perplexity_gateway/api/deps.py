from __future__ import annotations

from fastapi import Request

from perplexity_gateway.config import Settings
from perplexity_gateway.services.gateway_service import GatewayService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway_service(request: Request) -> GatewayService:
    return request.app.state.gateway_service
