from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import IO, Any

from . import __version__
from .config import Config, ConfigError, configure_logging
from .protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PROTOCOL_VERSION,
    McpError,
    ToolError,
)
from .router import PineconeAssistantRouter

logger = logging.getLogger(__name__)


class RpcError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class AssistantMcpServer:
    """Newline-delimited JSON-RPC 2.0 server carrying MCP over stdio.

    Every request runs as its own task, so slow backend calls do not hold up
    other requests; responses are written in completion order.
    """

    def __init__(self, router: PineconeAssistantRouter) -> None:
        self._router = router
        self._pending: set[asyncio.Task[None]] = set()

    async def serve(self, reader: IO[str] | None = None, writer: IO[str] | None = None) -> None:
        reader = reader if reader is not None else sys.stdin
        writer = writer if writer is not None else sys.stdout
        logger.info("Server initialized and ready to handle requests")
        while True:
            raw = await asyncio.to_thread(reader.readline)
            if not raw:
                break
            line = raw.strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Skipping malformed JSON-RPC line: %.200s", line)
                continue
            if not isinstance(message, dict):
                logger.warning("Skipping non-object JSON-RPC message")
                continue
            if "id" not in message:
                self._handle_notification(message)
                continue
            task = asyncio.create_task(self._respond(message, writer))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        if self._pending:
            await asyncio.gather(*self._pending)
        logger.info("Input closed, server stopping")

    async def handle_request(self, message: dict[str, Any]) -> dict[str, Any]:
        request_id = message.get("id")
        try:
            result = await self._dispatch(message.get("method"), message.get("params") or {})
            return {"jsonrpc": "2.0", "id": request_id, "result": result}
        except RpcError as exc:
            return _error_response(request_id, exc.code, exc.message)
        except McpError as exc:
            return _error_response(request_id, exc.code, exc.message)
        except Exception as exc:
            logger.exception("Unhandled error while processing request %r", request_id)
            return _error_response(request_id, INTERNAL_ERROR, str(exc))

    async def _respond(self, message: dict[str, Any], writer: IO[str]) -> None:
        response = await self.handle_request(message)
        self._write_response(writer, response)

    def _handle_notification(self, message: dict[str, Any]) -> None:
        logger.debug("Received notification: %s", message.get("method"))

    async def _dispatch(self, method: str | None, params: Any) -> Any:
        if not isinstance(params, dict):
            raise RpcError(INVALID_PARAMS, "params must be an object.")
        if method == "initialize":
            return self._handle_initialize(params)
        if method == "ping":
            return {}
        if method == "tools/list":
            return {"tools": [tool.to_dict() for tool in self._router.list_tools()]}
        if method == "tools/call":
            return await self._handle_tools_call(params)
        if method == "resources/list":
            return {"resources": self._router.list_resources()}
        if method == "resources/read":
            uri = str(params.get("uri") or "")
            text = await self._router.read_resource(uri)
            return {"contents": [{"uri": uri, "text": text}]}
        if method == "prompts/list":
            return {"prompts": self._router.list_prompts()}
        if method == "prompts/get":
            name = str(params.get("name") or "")
            text = await self._router.get_prompt(name)
            return {"messages": [{"role": "user", "content": {"type": "text", "text": text}}]}
        raise RpcError(METHOD_NOT_FOUND, f"Unknown method '{method}'.")

    def _handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client_info = params.get("clientInfo") or {}
        logger.info(
            "Initializing session for client %s (protocol %s)",
            client_info.get("name", "unknown"),
            params.get("protocolVersion", "unspecified"),
        )
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": self._router.capabilities().to_dict(),
            "serverInfo": {"name": self._router.name(), "version": __version__},
            "instructions": self._router.instructions(),
        }

    async def _handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise RpcError(INVALID_PARAMS, "tools/call requires 'name'.")
        arguments = params.get("arguments") or {}
        try:
            content = await self._router.call_tool(name, arguments)
        except ToolError as exc:
            return {
                "content": [{"type": "text", "text": exc.describe()}],
                "isError": True,
            }
        return {"content": [item.to_dict() for item in content], "isError": False}

    def _write_response(self, writer: IO[str], payload: dict[str, Any]) -> None:
        line = json.dumps(payload, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
        writer.write(line + "\n")
        writer.flush()


def _error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": code, "message": message},
    }


async def run(config: Config) -> None:
    router = PineconeAssistantRouter(config)
    server = AssistantMcpServer(router)
    try:
        await server.serve()
    finally:
        await router.aclose()


def main() -> int:
    try:
        config = Config.load()
    except ConfigError as exc:
        configure_logging()
        logger.error("Failed to load configuration: %s", exc)
        return 1
    configure_logging(config.log_level)
    logger.info("Starting Pinecone MCP server")
    logger.info("Configuration loaded successfully")
    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
