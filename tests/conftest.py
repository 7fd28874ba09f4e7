from __future__ import annotations

from collections.abc import Generator, Sequence

import pytest
from fastapi.testclient import TestClient

from perplexity_gateway.config import Settings
from perplexity_gateway.mcp_server.schemas import Message
from perplexity_gateway.mcp_server.server import ToolDispatcher
from perplexity_gateway.notifications.broadcaster import EventBroadcaster


class StubBackend:
    def __init__(self, text: str = "hello") -> None:
        self.text = text
        self.error: Exception | None = None
        self.calls: list[tuple[list[dict], str]] = []

    async def complete(self, messages: Sequence[Message], model: str) -> str:
        self.calls.append(([message.model_dump() for message in messages], model))
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def stub_backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
def dispatcher(stub_backend) -> ToolDispatcher:
    return ToolDispatcher(stub_backend)


@pytest.fixture
def user_messages() -> list[dict]:
    return [{"role": "user", "content": "hi"}]


@pytest.fixture
def test_ctx(stub_backend, monkeypatch) -> Generator[dict, None, None]:
    from perplexity_gateway.app import create_app

    settings = Settings(perplexity_api_key="test-key", http_port=3000)
    broadcaster = EventBroadcaster()
    published: list[dict] = []
    original_publish = broadcaster.publish

    def record(event: dict) -> int:
        published.append(event)
        return original_publish(event)

    monkeypatch.setattr(broadcaster, "publish", record)

    app = create_app(settings, dispatcher=ToolDispatcher(stub_backend), broadcaster=broadcaster)
    with TestClient(app) as client:
        yield {
            "client": client,
            "backend": stub_backend,
            "broadcaster": broadcaster,
            "published": published,
        }
