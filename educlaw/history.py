"""Cleaning up conversation history and summarising tool activity."""

from __future__ import annotations

from itertools import takewhile
from typing import Any, Mapping, Sequence

from educlaw.llm_types import Message

ARG_SUMMARY_LIMIT = 60
RESULT_SUMMARY_LIMIT = 120


def sanitize_history(messages: Sequence[Message]) -> list[Message]:
    """Drop message sequences that a chat endpoint would reject.

    Tool results without a preceding assistant tool call are removed, and so is
    any assistant turn whose tool calls are not all answered by the tool
    messages directly after it.
    """
    result: list[Message] = []
    seen_call_ids: set[str] = set()

    for position, message in enumerate(messages):
        if message.role == "tool":
            if not message.tool_call_id or message.tool_call_id not in seen_call_ids:
                continue
        elif message.role == "assistant" and message.tool_calls:
            expected = {call.id for call in message.tool_calls if call.id}
            following = takewhile(lambda m: m.role == "tool", messages[position + 1:])
            found = {m.tool_call_id for m in following if m.tool_call_id in expected}
            if len(found) < len(expected):
                continue
            seen_call_ids |= expected
        result.append(message)
    return result


def truncate_history(messages: Sequence[Message], max_pairs: int) -> list[Message]:
    """Keep the history from the ``max_pairs``-th last user message onward."""
    if max_pairs <= 0 or not messages:
        return list(messages)
    user_positions = [i for i, message in enumerate(messages) if message.role == "user"]
    if len(user_positions) <= max_pairs:
        return list(messages)
    return list(messages[user_positions[-max_pairs]:])


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_format_value(item) for item in value) + "]"
    if isinstance(value, Mapping):
        items = " ".join(f"{key}:{_format_value(value[key])}" for key in sorted(value))
        return f"map[{items}]"
    return str(value)


def _clip(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def tool_args_summary(args: Mapping[str, Any]) -> str:
    """A short ``key=value, ...`` summary of tool arguments, long values clipped."""
    return ", ".join(
        f"{key}={_clip(_format_value(value), ARG_SUMMARY_LIMIT)}" for key, value in args.items()
    )


def summarize_result(result: str) -> str:
    """A tool result clipped for display in the activity log."""
    return _clip(result, RESULT_SUMMARY_LIMIT)