from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any
from urllib.parse import quote

import httpx

API_VERSION = "2025-04"

_DEFAULT_CONNECT_TIMEOUT = 10.0
_DEFAULT_READ_TIMEOUT = 30.0


class PineconeError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PineconeRequestError(PineconeError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"HTTP request error: {detail}")


class PineconeApiError(PineconeError):
    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"API error: {status} - {body}")
        self.status = status
        self.body = body


class PineconeNotFoundError(PineconeError):
    def __init__(self, resource: str) -> None:
        super().__init__(f"API error: {resource} not found")
        self.resource = resource


class PineconeDecodeError(PineconeError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"JSON deserialization error: {detail}")


@dataclass(frozen=True)
class AssistantContext:
    query: str
    top_k: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": self.query}
        if self.top_k is not None:
            payload["top_k"] = self.top_k
        return payload


@dataclass(frozen=True)
class AssistantContextResponse:
    snippets: list[Any]
    usage: Any

    @classmethod
    def from_payload(cls, payload: Any) -> "AssistantContextResponse":
        if not isinstance(payload, dict):
            raise PineconeDecodeError(
                f"expected a JSON object, got {type(payload).__name__}"
            )
        for key in ("snippets", "usage"):
            if key not in payload:
                raise PineconeDecodeError(f"missing field `{key}`")
        snippets = payload["snippets"]
        if not isinstance(snippets, list):
            raise PineconeDecodeError(
                f"`snippets` must be an array, got {type(snippets).__name__}"
            )
        return cls(snippets=list(snippets), usage=payload["usage"])


class PineconeClient:
    """Async client for the Pinecone Assistant context endpoint.

    One instance wraps a single ``httpx.AsyncClient`` and may be shared by any
    number of concurrent callers; it holds no per-call state.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        read_timeout = timeout if timeout is not None else _DEFAULT_READ_TIMEOUT
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                read_timeout, connect=min(read_timeout, _DEFAULT_CONNECT_TIMEOUT)
            ),
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "PineconeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def assistant_context(
        self,
        assistant_name: str,
        query: str,
        top_k: int | None = None,
    ) -> AssistantContextResponse:
        url = f"{self._base_url}/assistant/chat/{quote(assistant_name, safe='')}/context"
        body = AssistantContext(query=query, top_k=top_k).to_payload()

        try:
            response = await self._client.post(
                url, json=body, headers=self._build_headers()
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise PineconeRequestError(str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            if response.status_code == 404:
                raise PineconeNotFoundError(f'assistant "{assistant_name}"')
            raise PineconeApiError(response.status_code, response.text)

        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise PineconeDecodeError(str(exc)) from exc
        return AssistantContextResponse.from_payload(payload)

    def _build_headers(self) -> dict[str, str]:
        return {
            "Api-Key": self._api_key,
            "accept": "application/json",
            "Content-Type": "application/json",
            "X-Pinecone-API-Version": API_VERSION,
        }
