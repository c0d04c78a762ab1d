from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

PROTOCOL_VERSION = "2024-11-05"

INVALID_PARAMS = -32602
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603
RESOURCE_NOT_FOUND = -32002


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_schema: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(frozen=True)
class TextContent:
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ServerCapabilities:
    tools: bool = False
    resources: bool = False
    prompts: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.tools:
            payload["tools"] = {"listChanged": False}
        if self.resources:
            payload["resources"] = {"subscribe": False, "listChanged": False}
        if self.prompts:
            payload["prompts"] = {"listChanged": False}
        return payload


class McpError(Exception):
    code = INTERNAL_ERROR
    kind = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def describe(self) -> str:
        return f"{self.kind}: {self.message}"


class ToolError(McpError):
    pass


class ToolNotFoundError(ToolError):
    code = INVALID_PARAMS
    kind = "Tool not found"


class InvalidParametersError(ToolError):
    code = INVALID_PARAMS
    kind = "Invalid parameters"


class ToolExecutionError(ToolError):
    kind = "Execution failed"


class ResourceNotFoundError(McpError):
    code = RESOURCE_NOT_FOUND
    kind = "Resource not found"


class PromptNotFoundError(McpError):
    code = INVALID_PARAMS
    kind = "Prompt not found"
