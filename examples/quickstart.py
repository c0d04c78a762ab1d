from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import httpx

ROOT = Path(__file__).resolve().parents[1]
PYTHON_SRC = ROOT / "python"
if str(PYTHON_SRC) not in sys.path:
  sys.path.insert(0, str(PYTHON_SRC))

from assistant_mcp import Config, PineconeAssistantRouter, PineconeClient  # noqa: E402
from assistant_mcp.protocol import ToolError  # noqa: E402


def mock_pinecone(request: httpx.Request) -> httpx.Response:
  if not request.url.path.startswith("/assistant/chat/docs/"):
    return httpx.Response(404, json={"error": "assistant not found"})
  body = json.loads(request.content)
  top_k = body.get("top_k", 15)
  snippets = [
    {"type": "text", "content": "Refunds are issued within 14 days.", "score": 0.91},
    {"type": "text", "content": "Store credit never expires.", "score": 0.84},
    {"type": "text", "content": "Shipping is non-refundable.", "score": 0.77},
  ]
  return httpx.Response(200, json={"snippets": snippets[:top_k], "usage": {"total_tokens": 312}})


async def run() -> None:
  config = Config(pinecone_api_key="demo-key", pinecone_assistant_host="https://pinecone.mock")
  client = PineconeClient(
    config.pinecone_api_key,
    config.pinecone_assistant_host,
    transport=httpx.MockTransport(mock_pinecone),
  )
  router = PineconeAssistantRouter(config, client=client)
  try:
    print("Tools:", [tool.name for tool in router.list_tools()])

    content = await router.call_tool(
      "assistant_context",
      {"assistant_name": "docs", "query": "refund policy", "top_k": 2},
    )
    print("Snippets:")
    for item in content:
      print(" ", item.text)

    for name, arguments in [
      ("assistant_context", {"assistant_name": "missing", "query": "refund policy"}),
      ("assistant_context", {"query": "refund policy"}),
      ("delete_index", {}),
    ]:
      try:
        await router.call_tool(name, arguments)
      except ToolError as exc:
        print("Error:", exc.describe())
  finally:
    await router.aclose()


def main() -> int:
  asyncio.run(run())
  return 0


if __name__ == "__main__":
  raise SystemExit(main())
