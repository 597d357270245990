"""Chat-completion data types shared by the LLM clients and the agent loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class LLMError(Exception):
    """Raised when a model call or a model payload fails."""


@dataclass
class FunctionCall:
    """The function named by a tool call and its JSON-encoded arguments."""

    name: str = ""
    arguments: str = ""


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""

    id: str = ""
    type: str = ""
    function: FunctionCall = field(default_factory=FunctionCall)

    def to_dict(self) -> dict[str, Any]:
        """The wire representation of the call."""
        return {
            "id": self.id,
            "type": self.type,
            "function": {"name": self.function.name, "arguments": self.function.arguments},
        }


@dataclass
class Message:
    """A chat message; empty optional fields are left out of the wire form."""

    role: str = ""
    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: str = ""
    name: str = ""

    def to_dict(self) -> dict[str, Any]:
        """The wire representation of the message."""
        out: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            out["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        if self.tool_call_id:
            out["tool_call_id"] = self.tool_call_id
        if self.name:
            out["name"] = self.name
        return out


@dataclass
class ToolFunc:
    """A tool's function definition: name, description and JSON-schema parameters."""

    name: str = ""
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass
class Tool:
    """A tool definition offered to the model."""

    type: str = "function"
    function: ToolFunc = field(default_factory=ToolFunc)

    def to_dict(self) -> dict[str, Any]:
        """The wire representation of the tool."""
        return {
            "type": self.type,
            "function": {
                "name": self.function.name,
                "description": self.function.description,
                "parameters": self.function.parameters,
            },
        }


@dataclass
class CompletionRequest:
    """Parameters of a completion request."""

    messages: list[Message] = field(default_factory=list)
    tools: list[Tool] = field(default_factory=list)
    temperature: float = 0.0
    max_tokens: int = 0


@dataclass
class CompletionResponse:
    """The result of a completion: text and any requested tool calls."""

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)


def _string(data: dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise LLMError(f"{where}.{key}: expected a string")
    return value


def _object(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise LLMError(f"{where}: expected an object")
    return value


def _tool_call_from_dict(data: Any, where: str) -> ToolCall:
    data = _object(data, where)
    function = _object(data.get("function"), f"{where}.function")
    return ToolCall(
        id=_string(data, "id", where),
        type=_string(data, "type", where),
        function=FunctionCall(
            name=_string(function, "name", f"{where}.function"),
            arguments=_string(function, "arguments", f"{where}.function"),
        ),
    )


def message_from_dict(data: Any) -> Message:
    """Build a :class:`Message` from its decoded wire representation."""
    if not isinstance(data, dict):
        raise LLMError("message: expected an object")
    raw_calls = data.get("tool_calls") or []
    if not isinstance(raw_calls, list):
        raise LLMError("message.tool_calls: expected an array")
    return Message(
        role=_string(data, "role", "message"),
        content=_string(data, "content", "message"),
        tool_calls=[
            _tool_call_from_dict(item, f"message.tool_calls[{position}]")
            for position, item in enumerate(raw_calls)
        ],
        tool_call_id=_string(data, "tool_call_id", "message"),
        name=_string(data, "name", "message"),
    )