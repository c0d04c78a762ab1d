from __future__ import annotations

import logging
from typing import Any, Iterable

from .config import Config
from .pinecone import PineconeClient, PineconeError
from .protocol import (
    PromptNotFoundError,
    ResourceNotFoundError,
    ServerCapabilities,
    TextContent,
    ToolExecutionError,
    ToolNotFoundError,
    ToolSpec,
)
from .tools import TOOL_ASSISTANT_CONTEXT, AssistantContextTool, ToolHandler

logger = logging.getLogger(__name__)

SERVER_NAME = "pinecone-assistant"


class PineconeAssistantRouter:
    """Routes MCP tool calls to the Pinecone Assistant context API.

    The router keeps no per-call state. Handlers are fixed at construction,
    each listing hands out fresh descriptor copies, and the backend client is
    shared by every call.
    """

    def __init__(
        self,
        config: Config,
        client: PineconeClient | None = None,
        handlers: Iterable[ToolHandler] | None = None,
    ) -> None:
        logger.info(
            "Creating new PineconeAssistantRouter [Host: %s]",
            config.pinecone_assistant_host,
        )
        if client is None:
            client = PineconeClient(
                config.pinecone_api_key,
                config.pinecone_assistant_host,
                timeout=config.request_timeout,
            )
        self._client = client
        logger.info("Successfully initialized Pinecone client")
        if handlers is None:
            handlers = [AssistantContextTool()]
        self._handlers: dict[str, ToolHandler] = {}
        for handler in handlers:
            if handler.name in self._handlers:
                raise ValueError(f"Duplicate tool name '{handler.name}'.")
            self._handlers[handler.name] = handler

    @property
    def client(self) -> PineconeClient:
        return self._client

    def name(self) -> str:
        return SERVER_NAME

    def instructions(self) -> str:
        return (
            "This server connects to an existing Pinecone Assistant, "
            "a RAG system for retrieving relevant document snippets. "
            f"Use the {TOOL_ASSISTANT_CONTEXT} tool to access contextual "
            "information from its knowledge base"
        )

    def capabilities(self) -> ServerCapabilities:
        logger.debug("Building server capabilities")
        return ServerCapabilities(tools=True)

    def list_tools(self) -> tuple[ToolSpec, ...]:
        logger.debug("Listing available tools")
        return tuple(handler.spec() for handler in self._handlers.values())

    async def call_tool(self, tool_name: str, arguments: Any) -> list[TextContent]:
        logger.info("Calling tool: %s", tool_name)
        handler = self._handlers.get(tool_name)
        if handler is None:
            logger.error("Tool not found: %s", tool_name)
            raise ToolNotFoundError(f"Tool {tool_name} not found")

        logger.debug("Processing %s arguments", tool_name)
        request = handler.parse(arguments)
        try:
            return await handler.run(self._client, request)
        except PineconeError as exc:
            logger.error("Tool %s failed: %s", tool_name, exc.message)
            raise ToolExecutionError(exc.message) from exc

    def list_resources(self) -> list[dict[str, Any]]:
        return []

    async def read_resource(self, uri: str) -> str:
        raise ResourceNotFoundError(f"Resource {uri} not found")

    def list_prompts(self) -> list[dict[str, Any]]:
        return []

    async def get_prompt(self, prompt_name: str) -> str:
        raise PromptNotFoundError(f"Prompt {prompt_name} not found")

    async def aclose(self) -> None:
        await self._client.aclose()
