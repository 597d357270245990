"""In-process publish/subscribe bus carrying messages between components."""

from __future__ import annotations

import json
import queue
import threading
from dataclasses import asdict, dataclass

SUBSCRIBER_BUFFER = 100


@dataclass
class InboundMessage:
    """A message coming into the system from a user."""

    channel: str = ""
    actor_id: str = ""
    actor_type: str = ""
    session_id: str = ""
    content: str = ""


@dataclass
class OutboundMessage:
    """A message going out to a user session.

    ``content_type`` is one of "text", "rendered", "error" or "tool_call".
    """

    session_id: str = ""
    actor_id: str = ""
    content: str = ""
    content_type: str = ""
    done: bool = False


@dataclass
class ToolEvent:
    """A tool-call or tool-result event for the frontend log panel."""

    phase: str = ""  # "call" | "result"
    tool: str = ""
    summary: str = ""

    def to_json(self) -> str:
        """Serialise the event as a compact JSON object."""
        return json.dumps(asdict(self), ensure_ascii=False, separators=(",", ":"))


@dataclass
class RenderedContent:
    """Interactive HTML content to be rendered in the browser."""

    id: str = ""
    type: str = ""  # game, quiz, visual, embed, video, report
    title: str = ""
    content: str = ""


class MessageBus:
    """Routes outbound messages to the subscribers of each session."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._subscribers: dict[str, list[queue.Queue[OutboundMessage]]] = {}

    def subscribe(self, session_id: str) -> queue.Queue[OutboundMessage]:
        """Create a bounded queue receiving messages for ``session_id``."""
        q: queue.Queue[OutboundMessage] = queue.Queue(maxsize=SUBSCRIBER_BUFFER)
        with self._lock:
            self._subscribers.setdefault(session_id, []).append(q)
        return q

    def unsubscribe(self, session_id: str, queue: queue.Queue[OutboundMessage]) -> None:
        """Remove a subscription queue from ``session_id``."""
        with self._lock:
            subs = self._subscribers.get(session_id, [])
            for position, sub in enumerate(subs):
                if sub is queue:
                    del subs[position]
                    break
            if not subs:
                self._subscribers.pop(session_id, None)

    def publish(self, msg: OutboundMessage) -> None:
        """Deliver ``msg`` to every subscriber of its session; full queues drop it."""
        with self._lock:
            subs = list(self._subscribers.get(msg.session_id, []))
        for sub in subs:
            try:
                sub.put_nowait(msg)
            except queue.Full:
                pass

    def has_subscribers(self, session_id: str) -> bool:
        """Return True if the session has at least one subscriber."""
        with self._lock:
            return bool(self._subscribers.get(session_id))