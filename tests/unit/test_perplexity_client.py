from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from perplexity_gateway.errors import BackendNetworkError, BackendStatusError, MalformedResponseError
from perplexity_gateway.integrations.perplexity_client import (
    UNREADABLE_ERROR_BODY,
    PerplexityClient,
    append_citations,
)
from perplexity_gateway.mcp_server.schemas import Message

API_URL = "https://api.perplexity.test/chat/completions"


def _client(handler) -> PerplexityClient:
    return PerplexityClient(api_key="test-key", api_url=API_URL, transport=httpx.MockTransport(handler))


def _messages(*pairs: tuple[str, str]) -> list[Message]:
    return [Message(role=role, content=content) for role, content in pairs]


class FailingStream(httpx.AsyncByteStream):
    async def __aiter__(self):
        raise httpx.ReadError("connection dropped")
        yield b""


def test_complete_posts_model_and_messages() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"content": "hello"}}]})

    messages = _messages(("system", "be brief"), ("user", "hi"), ("assistant", "hey"), ("user", "again"))
    text = asyncio.run(_client(handler).complete(messages, "sonar-pro"))

    assert text == "hello"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == API_URL
    assert request.headers["Authorization"] == "Bearer test-key"
    assert request.headers["Content-Type"] == "application/json"
    body = json.loads(request.content)
    assert body["model"] == "sonar-pro"
    assert [m["role"] for m in body["messages"]] == ["system", "user", "assistant", "user"]
    assert body["messages"][3]["content"] == "again"


def test_complete_keeps_extra_message_fields() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    message = Message.model_validate({"role": "user", "content": "hi", "name": "alice"})
    asyncio.run(_client(handler).complete([message], "sonar-pro"))

    assert seen[0]["messages"] == [{"role": "user", "content": "hi", "name": "alice"}]


def test_complete_appends_citations() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "choices": [{"message": {"content": "answer"}}],
                "citations": ["https://a.example", "https://b.example"],
            },
        )

    text = asyncio.run(_client(handler).complete(_messages(("user", "q")), "sonar-pro"))

    assert text == "answer\n\nCitations:\n[1] https://a.example\n[2] https://b.example\n"
    assert text.endswith("\n\nCitations:\n[1] https://a.example\n[2] https://b.example\n")


def test_append_citations_ignores_empty_or_missing_lists() -> None:
    assert append_citations("answer", []) == "answer"
    assert append_citations("answer", None) == "answer"
    assert append_citations("answer", "not-a-list") == "answer"


def test_error_status_carries_code_and_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="server error")

    with pytest.raises(BackendStatusError) as excinfo:
        asyncio.run(_client(handler).complete(_messages(("user", "q")), "sonar-pro"))

    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "server error"
    assert "500" in str(excinfo.value)
    assert "server error" in str(excinfo.value)


def test_unreadable_error_body_uses_placeholder() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, stream=FailingStream())

    with pytest.raises(BackendStatusError) as excinfo:
        asyncio.run(_client(handler).complete(_messages(("user", "q")), "sonar-pro"))

    assert excinfo.value.status_code == 502
    assert excinfo.value.body == UNREADABLE_ERROR_BODY


def test_network_failure_is_classified() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendNetworkError) as excinfo:
        asyncio.run(_client(handler).complete(_messages(("user", "q")), "sonar-pro"))

    assert isinstance(excinfo.value.cause, httpx.ConnectError)
    assert "Network error while calling Perplexity API" in str(excinfo.value)


def test_invalid_json_is_malformed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>not json</html>")

    with pytest.raises(MalformedResponseError, match="Failed to parse JSON response"):
        asyncio.run(_client(handler).complete(_messages(("user", "q")), "sonar-pro"))


def test_missing_choices_is_malformed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"choices": []})

    with pytest.raises(MalformedResponseError):
        asyncio.run(_client(handler).complete(_messages(("user", "q")), "sonar-pro"))
