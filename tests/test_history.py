from educlaw.history import (
    sanitize_history,
    summarize_result,
    tool_args_summary,
    truncate_history,
)
from educlaw.llm_types import FunctionCall, Message, ToolCall


def user(text):
    return Message(role="user", content=text)


def assistant(text, *call_ids):
    return Message(
        role="assistant",
        content=text,
        tool_calls=[ToolCall(id=cid, type="function", function=FunctionCall(name="f")) for cid in call_ids],
    )


def tool(call_id, text="ok"):
    return Message(role="tool", content=text, tool_call_id=call_id, name="f")


def test_sanitize_empty():
    assert sanitize_history([]) == []


def test_sanitize_keeps_valid_sequence():
    history = [user("q"), assistant("", "a", "b"), tool("a"), tool("b"), assistant("done")]
    assert sanitize_history(history) == history


def test_sanitize_drops_orphan_tool_messages():
    history = [user("q"), tool("x"), tool(""), assistant("hi")]
    assert sanitize_history(history) == [user("q"), assistant("hi")]


def test_sanitize_drops_incomplete_assistant_turn_and_its_results():
    history = [user("q"), assistant("", "a", "b"), tool("a"), user("next")]
    assert sanitize_history(history) == [user("q"), user("next")]


def test_sanitize_requires_results_directly_after():
    history = [user("q"), assistant("", "a"), user("interrupt"), tool("a")]
    assert sanitize_history(history) == [user("q"), user("interrupt")]


def test_sanitize_result_never_has_unmatched_tool():
    history = [
        tool("z"),
        assistant("", "a"),
        tool("a"),
        assistant("", "b"),
        user("u"),
        tool("b"),
    ]
    cleaned = sanitize_history(history)
    announced = set()
    for message in cleaned:
        if message.role == "assistant":
            announced |= {c.id for c in message.tool_calls}
        if message.role == "tool":
            assert message.tool_call_id in announced


def test_truncate_keeps_last_pairs():
    history = [user("1"), assistant("a1"), user("2"), assistant("a2"), user("3"), assistant("a3")]
    assert truncate_history(history, 2) == history[2:]


def test_truncate_short_history_unchanged():
    history = [user("1"), assistant("a1")]
    assert truncate_history(history, 20) == history


def test_truncate_non_positive_limit_unchanged():
    history = [user("1"), user("2"), user("3")]
    assert truncate_history(history, 0) == history
    assert truncate_history(history, -1) == history


def test_truncate_starts_with_user():
    history = [assistant("pre"), user("1"), tool("x"), user("2"), assistant("a")]
    out = truncate_history(history, 1)
    assert out[0] == user("2")
    assert sum(1 for m in out if m.role == "user") == 1


def test_tool_args_summary_empty():
    assert tool_args_summary({}) == ""


def test_tool_args_summary_joins_pairs():
    assert tool_args_summary({"skill_name": "game-generator", "flag": True}) == (
        "skill_name=game-generator, flag=true"
    )


def test_tool_args_summary_clips_long_values():
    summary = tool_args_summary({"content": "x" * 100})
    assert summary == "content=" + "x" * 60 + "..."


def test_tool_args_summary_keeps_value_at_limit():
    assert tool_args_summary({"k": "y" * 60}) == "k=" + "y" * 60


def test_summarize_result_short_unchanged():
    assert summarize_result("fine") == "fine"


def test_summarize_result_clips():
    out = summarize_result("r" * 200)
    assert out == "r" * 120 + "..."
    assert summarize_result("r" * 120) == "r" * 120