from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from perplexity_gateway.config import DEFAULT_PERPLEXITY_API_URL
from perplexity_gateway.errors import BackendNetworkError, BackendStatusError, MalformedResponseError
from perplexity_gateway.mcp_server.schemas import Message

logger = logging.getLogger(__name__)

UNREADABLE_ERROR_BODY = "Unable to parse error response"


def append_citations(text: str, citations: Any) -> str:
    """Append a numbered ``Citations:`` block when the backend returned any."""
    if not isinstance(citations, list) or not citations:
        return text
    lines = "".join(f"[{index}] {citation}\n" for index, citation in enumerate(citations, start=1))
    return f"{text}\n\nCitations:\n{lines}"


class PerplexityClient:
    """
    Chat-completions client for the Perplexity API.

    One POST per call, no retries. Failures surface as ``BackendError`` subclasses
    whose messages are shown to the caller as-is.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_PERPLEXITY_API_URL,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport

    def build_body(self, messages: Sequence[Message], model: str) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [message.model_dump() for message in messages],
        }

    async def complete(self, messages: Sequence[Message], model: str) -> str:
        body = self.build_body(messages, model)
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        logger.info("Calling Perplexity API", extra={"model": model, "message_count": len(body["messages"])})

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            request = client.build_request("POST", self.api_url, json=body, headers=headers)
            try:
                response = await client.send(request, stream=True)
            except httpx.HTTPError as exc:
                logger.warning("Perplexity API unreachable", extra={"model": model, "error": str(exc)})
                raise BackendNetworkError(exc) from exc

            try:
                if not response.is_success:
                    error_text = await self._read_error_body(response)
                    logger.warning(
                        "Perplexity API returned an error status",
                        extra={"model": model, "status_code": response.status_code},
                    )
                    raise BackendStatusError(response.status_code, response.reason_phrase, error_text)

                try:
                    await response.aread()
                except httpx.HTTPError as exc:
                    raise BackendNetworkError(exc) from exc
                data = self._decode(response)
            finally:
                await response.aclose()

        return append_citations(self._first_message_content(data), data.get("citations"))

    @staticmethod
    async def _read_error_body(response: httpx.Response) -> str:
        try:
            await response.aread()
            return response.text
        except (httpx.HTTPError, UnicodeDecodeError):
            return UNREADABLE_ERROR_BODY

    @staticmethod
    def _decode(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError(exc) from exc
        if not isinstance(data, dict):
            raise MalformedResponseError(TypeError(f"expected a JSON object, got {type(data).__name__}"))
        return data

    @staticmethod
    def _first_message_content(data: dict[str, Any]) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedResponseError(exc) from exc
        if not isinstance(content, str):
            raise MalformedResponseError(TypeError("choices[0].message.content is not a string"))
        return content
