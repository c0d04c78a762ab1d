"""Tests for the stdio JSON-RPC server."""

from __future__ import annotations

import asyncio
import io
import json

import pytest

from assistant_mcp import __version__
from assistant_mcp.protocol import PROTOCOL_VERSION
from assistant_mcp.server import AssistantMcpServer


@pytest.fixture()
def server(router) -> AssistantMcpServer:
    return AssistantMcpServer(router)


def _request(server, method, params=None, request_id=1):
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return asyncio.run(server.handle_request(message))


def _serve(server, messages: list) -> list[dict]:
    lines = [m if isinstance(m, str) else json.dumps(m) for m in messages]
    reader = io.StringIO("\n".join(lines) + "\n")
    writer = io.StringIO()
    asyncio.run(server.serve(reader, writer))
    return [json.loads(line) for line in writer.getvalue().splitlines()]


class TestInitialize:
    def test_reports_tools_capability_only(self, server):
        result = _request(server, "initialize", {"protocolVersion": PROTOCOL_VERSION})["result"]
        assert result["protocolVersion"] == PROTOCOL_VERSION
        assert set(result["capabilities"]) == {"tools"}
        assert result["serverInfo"] == {"name": "pinecone-assistant", "version": __version__}
        assert "assistant_context" in result["instructions"]

    def test_ping(self, server):
        assert _request(server, "ping")["result"] == {}


class TestMethods:
    def test_tools_list(self, server):
        tools = _request(server, "tools/list")["result"]["tools"]
        assert [tool["name"] for tool in tools] == ["assistant_context"]
        assert "inputSchema" in tools[0]

    def test_resources_and_prompts_lists_empty(self, server):
        assert _request(server, "resources/list")["result"] == {"resources": []}
        assert _request(server, "prompts/list")["result"] == {"prompts": []}

    def test_read_resource_is_error(self, server):
        response = _request(server, "resources/read", {"uri": "pinecone://x"})
        assert response["error"]["code"] == -32002
        assert "pinecone://x" in response["error"]["message"]

    def test_get_prompt_is_error(self, server):
        response = _request(server, "prompts/get", {"name": "intro"})
        assert response["error"]["code"] == -32602
        assert "intro" in response["error"]["message"]

    def test_unknown_method(self, server):
        response = _request(server, "sampling/createMessage", request_id=9)
        assert response["id"] == 9
        assert response["error"]["code"] == -32601

    def test_non_object_params(self, server):
        response = _request(server, "tools/call", params=["assistant_context"])
        assert response["error"]["code"] == -32602


class TestToolsCall:
    def test_success(self, server, backend):
        backend.respond(200, {"snippets": [{"text": "a"}, {"text": "b"}], "usage": {}})
        result = _request(server, "tools/call", {
            "name": "assistant_context",
            "arguments": {"assistant_name": "docs", "query": "refund policy"},
        })["result"]
        assert result == {
            "content": [
                {"type": "text", "text": '{"text":"a"}'},
                {"type": "text", "text": '{"text":"b"}'},
            ],
            "isError": False,
        }

    def test_unknown_tool(self, server, backend):
        result = _request(server, "tools/call", {"name": "nope", "arguments": {}})["result"]
        assert result["isError"] is True
        assert result["content"][0]["text"] == "Tool not found: Tool nope not found"
        assert backend.requests == []

    def test_invalid_parameters_distinct_from_backend_failure(self, server, backend):
        invalid = _request(server, "tools/call", {"name": "assistant_context", "arguments": {"query": "q"}})
        backend.respond(500, raw_body="kaput")
        failed = _request(server, "tools/call", {
            "name": "assistant_context",
            "arguments": {"assistant_name": "docs", "query": "q"},
        })
        assert invalid["result"]["content"][0]["text"] == "Invalid parameters: assistant_name must be a string"
        assert failed["result"]["content"][0]["text"] == "Execution failed: API error: 500 - kaput"

    def test_missing_arguments_treated_as_empty(self, server):
        result = _request(server, "tools/call", {"name": "assistant_context"})["result"]
        assert result["isError"] is True
        assert "assistant_name" in result["content"][0]["text"]

    def test_missing_name(self, server):
        response = _request(server, "tools/call", {"arguments": {}})
        assert response["error"]["code"] == -32602


class TestServeLoop:
    def test_one_response_per_request(self, server):
        responses = _serve(server, [
            {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}},
            {"jsonrpc": "2.0", "method": "notifications/initialized"},
            {"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
        ])
        assert sorted(response["id"] for response in responses) == [1, 2]

    def test_skips_blank_and_malformed_lines(self, server):
        responses = _serve(server, [
            "",
            "{not json",
            "[1, 2]",
            {"jsonrpc": "2.0", "id": "abc", "method": "ping"},
        ])
        assert responses == [{"jsonrpc": "2.0", "id": "abc", "result": {}}]

    def test_waits_for_in_flight_calls_at_eof(self, server, backend):
        backend.respond(200, {"snippets": [{"text": "a"}], "usage": {}})
        responses = _serve(server, [
            {
                "jsonrpc": "2.0",
                "id": 7,
                "method": "tools/call",
                "params": {"name": "assistant_context", "arguments": {"assistant_name": "d", "query": "q"}},
            },
        ])
        assert responses[0]["id"] == 7
        assert responses[0]["result"]["content"] == [{"type": "text", "text": '{"text":"a"}'}]
