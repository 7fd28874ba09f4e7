from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from perplexity_gateway.errors import ConfigurationError


SUPPORTED_TRANSPORT_MODES = {"stdio", "http"}
DEFAULT_PERPLEXITY_API_URL = "https://api.perplexity.ai/chat/completions"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _current_transport_mode() -> str:
    raw = os.getenv("MCP_TRANSPORT_MODE", "stdio").strip().lower()
    if not raw:
        return "stdio"
    if raw not in SUPPORTED_TRANSPORT_MODES:
        raise ConfigurationError(
            f"Invalid MCP_TRANSPORT_MODE: {raw}. Supported values: {sorted(SUPPORTED_TRANSPORT_MODES)}"
        )
    return raw


def _http_port() -> int:
    raw = os.getenv("MCP_HTTP_PORT", "3000").strip()
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid MCP_HTTP_PORT: {raw!r}") from exc


def _optional_float(env_name: str) -> float | None:
    raw = os.getenv(env_name, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid {env_name}: {raw!r}") from exc


# Environment is read when Settings() is built, not at import.
@dataclass(frozen=True)
class Settings:
    app_name: str = field(default_factory=lambda: os.getenv("APP_NAME", "perplexity-gateway"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO")

    perplexity_api_key: str = field(default_factory=lambda: os.getenv("PERPLEXITY_API_KEY", "").strip())
    perplexity_api_url: str = field(
        default_factory=lambda: os.getenv("PERPLEXITY_API_URL", DEFAULT_PERPLEXITY_API_URL).strip()
    )
    # None leaves in-flight calls unbounded.
    perplexity_timeout_seconds: float | None = field(
        default_factory=lambda: _optional_float("PERPLEXITY_TIMEOUT_SECONDS")
    )

    transport_mode: str = field(default_factory=_current_transport_mode)
    http_host: str = field(default_factory=lambda: os.getenv("MCP_HTTP_HOST", "0.0.0.0"))
    http_port: int = field(default_factory=_http_port)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def require_api_key(current: Settings) -> str:
    if not current.perplexity_api_key:
        raise ConfigurationError("PERPLEXITY_API_KEY environment variable is required")
    return current.perplexity_api_key
