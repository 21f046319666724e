"""Shared fixtures for chat relay tests."""

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from relay.config import AppConfig, BingSettings, CohereSettings
from relay.gateway import ChatRelay
from relay.providers.registry import ProviderRegistry
from relay.translator.registry import TranslatorRegistry
from relay.utils.http_client import HTTPClient

COHERE_URL = "https://cohere.test"
BING_URL = "https://bing.test"


class TrackedStream(httpx.AsyncByteStream):
    """Newline-delimited JSON body that records whether it was closed."""

    def __init__(self, events: List[Any]):
        self.events = events
        self.closed = False
        self.sent = 0

    async def __aiter__(self):
        for event in self.events:
            self.sent += 1
            line = event if isinstance(event, str) else json.dumps(event)
            yield (line + "\n").encode("utf-8")

    async def aclose(self) -> None:
        self.closed = True


class FakeUpstream:
    """Records upstream requests and answers them by URL path."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.handlers: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def on(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handlers[path] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.handlers.get(request.url.path)
        if handler is None:
            return httpx.Response(404, json={"message": "not found"})
        return handler(request)

    def json_bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


def parse_sse(text: str) -> List[Any]:
    """Split an SSE body into decoded data payloads."""
    frames = []
    for block in text.split("\n\n"):
        block = block.strip()
        if not block:
            continue
        assert block.startswith("data: ")
        data = block[len("data: "):]
        frames.append(data if data == "[DONE]" else json.loads(data))
    return frames


@pytest.fixture
def config():
    """Config pointing both providers at fake hosts."""
    return AppConfig(
        cohere=CohereSettings(base_url=COHERE_URL),
        bing=BingSettings(base_url=BING_URL),
    )


@pytest.fixture
def upstream():
    """Fake upstream for both providers."""
    return FakeUpstream()


@pytest.fixture
def http_client(config, upstream):
    """HTTP client routed to the fake upstream."""
    return HTTPClient(config, timeout=5.0, transport=httpx.MockTransport(upstream))


@pytest.fixture
def relay(config, http_client):
    """ChatRelay wired to the fake upstream."""
    return ChatRelay(
        config,
        ProviderRegistry(config, http_client),
        TranslatorRegistry(config.cohere.web_connector_id),
    )
