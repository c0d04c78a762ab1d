from __future__ import annotations

import copy
from dataclasses import dataclass
import json
import logging
from typing import Any, Mapping

from .pinecone import PineconeClient
from .protocol import InvalidParametersError, TextContent, ToolSpec

logger = logging.getLogger(__name__)

TOOL_ASSISTANT_CONTEXT = "assistant_context"

PARAM_ASSISTANT_NAME = "assistant_name"
PARAM_QUERY = "query"
PARAM_TOP_K = "top_k"

_MAX_TOP_K = 2**32 - 1


class ToolHandler:
    """A single dispatchable tool: its descriptor, argument decoding and execution."""

    name: str = ""
    description: str = ""
    input_schema: dict[str, Any] | None = None

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name=self.name,
            description=self.description,
            input_schema=copy.deepcopy(self.input_schema or {}),
        )

    def parse(self, arguments: Any) -> Any:
        raise NotImplementedError

    async def run(self, client: PineconeClient, request: Any) -> list[TextContent]:
        raise NotImplementedError


@dataclass(frozen=True)
class AssistantContextRequest:
    assistant_name: str
    query: str
    top_k: int | None = None


class AssistantContextTool(ToolHandler):
    name = TOOL_ASSISTANT_CONTEXT
    description = (
        "Retrieves relevant document snippets from your Pinecone Assistant knowledge base. "
        "Returns an array of text snippets from the most relevant documents. "
        "You can use the 'top_k' parameter to control result count (default: 15). "
        "Recommended top_k: a few (5-8) for simple/narrow queries, 10-20 for complex/broad topics."
    )
    input_schema = {
        "type": "object",
        "properties": {
            PARAM_ASSISTANT_NAME: {
                "type": "string",
                "description": "Name of an existing Pinecone assistant",
            },
            PARAM_QUERY: {
                "type": "string",
                "description": "The query to retrieve context for.",
            },
            PARAM_TOP_K: {
                "type": "integer",
                "description": "The number of context snippets to retrieve. Defaults to 15.",
            },
        },
        "required": [PARAM_ASSISTANT_NAME, PARAM_QUERY],
    }

    def parse(self, arguments: Any) -> AssistantContextRequest:
        if not isinstance(arguments, Mapping):
            arguments = {}
        return AssistantContextRequest(
            assistant_name=_require_string(arguments, PARAM_ASSISTANT_NAME),
            query=_require_string(arguments, PARAM_QUERY),
            top_k=_optional_top_k(arguments),
        )

    async def run(
        self, client: PineconeClient, request: AssistantContextRequest
    ) -> list[TextContent]:
        logger.info(
            "Making request to Pinecone API for assistant: %s with top_k: %s",
            request.assistant_name,
            request.top_k,
        )
        response = await client.assistant_context(
            request.assistant_name, request.query, request.top_k
        )
        logger.info(
            "Successfully received response from Pinecone API (%d snippets)",
            len(response.snippets),
        )
        return [TextContent(text=_serialize(snippet)) for snippet in response.snippets]


def _require_string(arguments: Mapping[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str):
        raise InvalidParametersError(f"{key} must be a string")
    return value


def _optional_top_k(arguments: Mapping[str, Any]) -> int | None:
    if PARAM_TOP_K not in arguments or arguments[PARAM_TOP_K] is None:
        return None
    value = arguments[PARAM_TOP_K]
    if isinstance(value, bool) or not isinstance(value, int):
        logger.warning("Ignoring non-integer %s: %r", PARAM_TOP_K, value)
        return None
    if value < 0 or value > _MAX_TOP_K:
        logger.warning("Ignoring out-of-range %s: %d", PARAM_TOP_K, value)
        return None
    return value


def _serialize(snippet: Any) -> str:
    return json.dumps(snippet, separators=(",", ":"), ensure_ascii=False)
