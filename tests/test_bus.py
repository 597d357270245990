import json
import queue

import pytest

from educlaw.bus import MessageBus, OutboundMessage, ToolEvent


def test_publish_reaches_subscriber_of_session():
    bus = MessageBus()
    q = bus.subscribe("s1")
    msg = OutboundMessage(session_id="s1", actor_id="a", content="hi", content_type="text")
    bus.publish(msg)
    assert q.get_nowait() == msg


def test_publish_ignores_other_sessions():
    bus = MessageBus()
    q = bus.subscribe("s1")
    bus.publish(OutboundMessage(session_id="s2", content="x"))
    with pytest.raises(queue.Empty):
        q.get_nowait()


def test_all_subscribers_receive():
    bus = MessageBus()
    q1 = bus.subscribe("s")
    q2 = bus.subscribe("s")
    msg = OutboundMessage(session_id="s", content="tok")
    bus.publish(msg)
    assert q1.get_nowait() == msg
    assert q2.get_nowait() == msg


def test_full_queue_drops_messages():
    bus = MessageBus()
    q = bus.subscribe("s")
    for n in range(150):
        bus.publish(OutboundMessage(session_id="s", content=str(n)))
    assert q.qsize() == 100
    assert q.get_nowait().content == "0"


def test_unsubscribe_removes_subscription():
    bus = MessageBus()
    q1 = bus.subscribe("s")
    q2 = bus.subscribe("s")
    bus.unsubscribe("s", q1)
    assert bus.has_subscribers("s")
    bus.publish(OutboundMessage(session_id="s", content="x"))
    assert q1.empty()
    assert q2.qsize() == 1
    bus.unsubscribe("s", q2)
    assert not bus.has_subscribers("s")


def test_has_subscribers_false_for_unknown():
    bus = MessageBus()
    assert bus.has_subscribers("nobody") is False


def test_tool_event_json_round_trip():
    ev = ToolEvent(phase="call", tool="read_skill", summary="错误: x")
    assert json.loads(ev.to_json()) == {
        "phase": "call",
        "tool": "read_skill",
        "summary": "错误: x",
    }