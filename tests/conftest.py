"""
Shared pytest fixtures.

The Pinecone backend is simulated with ``httpx.MockTransport``: each test
configures a ``FakeBackend`` (status, body, or a transport error to raise) and
inspects the requests it recorded. No network access happens.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Iterator

import httpx
import pytest

from assistant_mcp.config import Config
from assistant_mcp.pinecone import PineconeClient
from assistant_mcp.router import PineconeAssistantRouter

TEST_HOST = "https://assistant.pinecone.test"
TEST_API_KEY = "test-api-key"


class FakeBackend:
    def __init__(self) -> None:
        self.status = 200
        self.body: Any = {"snippets": [], "usage": {}}
        self.raw_body: str | None = None
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def respond(self, status: int = 200, body: Any = None, raw_body: str | None = None) -> None:
        self.status = status
        self.body = body
        self.raw_body = raw_body

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.raw_body is not None:
            return httpx.Response(self.status, text=self.raw_body)
        return httpx.Response(self.status, json=self.body)

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "backend was never called"
        return self.requests[-1]

    def last_body(self) -> dict[str, Any]:
        return json.loads(self.last_request.content)


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def config() -> Config:
    return Config(pinecone_api_key=TEST_API_KEY, pinecone_assistant_host=TEST_HOST)


@pytest.fixture()
def client(backend: FakeBackend) -> Iterator[PineconeClient]:
    client = PineconeClient(TEST_API_KEY, TEST_HOST, transport=httpx.MockTransport(backend.handle))
    yield client
    asyncio.run(client.aclose())


@pytest.fixture()
def router(config: Config, client: PineconeClient) -> PineconeAssistantRouter:
    return PineconeAssistantRouter(config, client=client)
