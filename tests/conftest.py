"""Pytest configuration and fixtures."""

import json
from collections.abc import Callable

import httpx
import pytest

from abl_chat.config import ClientConfig
from abl_chat.session import SessionState
from abl_chat.transport import ChatClient

ENDPOINT = "https://example.test/v1/chat/completions"


def event_line(
    content: str | None = None, id: str = "r1", finish_reason: str | None = None
) -> bytes:
    """Build one ``data: {...}\\n`` record."""
    choice: dict = {"delta": {}}
    if content is not None:
        choice["delta"]["content"] = content
    if finish_reason is not None:
        choice["finish_reason"] = finish_reason
    return b"data: " + json.dumps({"id": id, "choices": [choice]}).encode() + b"\n"


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(api_key="test-key", endpoint=ENDPOINT, timeout=5)


@pytest.fixture
def session(config: ClientConfig) -> SessionState:
    return SessionState.create(config)


@pytest.fixture
def make_client(config: ClientConfig) -> Callable[..., ChatClient]:
    """Build a ChatClient whose HTTP calls go to ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> ChatClient:
        http = httpx.Client(transport=httpx.MockTransport(handler))
        return ChatClient(config, http_client=http)

    return factory


@pytest.fixture
def stream_response() -> Callable[..., Callable[[httpx.Request], httpx.Response]]:
    """Handler factory returning a 200 response with the given body."""

    def factory(*lines: bytes, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, content=b"".join(lines))

        return handler

    return factory
