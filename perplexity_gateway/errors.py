"""
Error types raised inside the gateway.

Every per-invocation error is a `GatewayError` whose message is the exact text a
caller sees in a failure envelope. The dispatcher is the only place these are
caught; nothing below it swallows them.
"""

from __future__ import annotations

__all__ = (
    "GatewayError",
    "ConfigurationError",
    "ToolValidationError",
    "BackendError",
    "BackendNetworkError",
    "BackendStatusError",
    "MalformedResponseError",
)


class GatewayError(RuntimeError):
    """Base class for gateway errors."""


class ConfigurationError(GatewayError):
    """Raised when required configuration is missing. Fatal at startup."""


class ToolValidationError(GatewayError):
    """Raised when a tool call is missing arguments or names an unknown tool."""


class BackendError(GatewayError):
    """Raised when the completion backend call fails."""


class BackendNetworkError(BackendError):
    """The request never produced an HTTP response.

    Attributes:
        cause: The underlying transport exception.
    """

    cause: Exception

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Network error while calling Perplexity API: {cause}")
        self.cause = cause
        self.__cause__ = cause


class BackendStatusError(BackendError):
    """The backend answered with a non-success status."""

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        super().__init__(f"Perplexity API error: {status_code} {reason}\n{body}")
        self.status_code = status_code
        self.reason = reason
        self.body = body


class MalformedResponseError(BackendError):
    """A success response whose body could not be decoded into a completion."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Failed to parse JSON response from Perplexity API: {cause}")
        self.cause = cause
        self.__cause__ = cause
