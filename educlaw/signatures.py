"""Round-tripping of thought signatures that some thinking models attach to tool calls.

Signatures seen in responses are stored by tool call id and injected back into
the assistant messages of later requests.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Iterable, Optional

log = logging.getLogger(__name__)

_SIG_KEY = "thought_signature"
_DATA_PREFIX = b"data: "


class ThoughtSignatureStore:
    """Thread-safe map of tool call id to thought signature."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sigs: dict[str, str] = {}

    def store(self, call_id: str, signature: str) -> None:
        """Remember ``signature`` for the tool call ``call_id``."""
        with self._lock:
            self._sigs[call_id] = signature
        log.debug("[thought_signature] stored sig for id=%s (len=%d)", call_id, len(signature))

    def get(self, call_id: str) -> Optional[str]:
        """The stored signature for ``call_id``, or ``None``."""
        with self._lock:
            return self._sigs.get(call_id)

    def has_all(self, call_ids: Iterable[str]) -> bool:
        """True if every non-empty id has a signature; False while nothing is stored."""
        with self._lock:
            if not self._sigs:
                return False
            for call_id in call_ids:
                if call_id and call_id not in self._sigs:
                    log.debug("[thought_signature] missing sig for id=%s", call_id)
                    return False
            return True

    def inject_signatures(self, body: bytes) -> bytes:
        """Add stored signatures to assistant tool calls in a request body.

        The body is returned unchanged when it is not a JSON object with a
        messages array, or when no signature was added.
        """
        try:
            doc = json.loads(body)
        except ValueError:
            return body
        if not isinstance(doc, dict):
            return body
        messages = doc.get("messages")
        if not isinstance(messages, list):
            return body

        modified = False
        for message in messages:
            if not isinstance(message, dict) or message.get("role") != "assistant":
                continue
            tool_calls = message.get("tool_calls")
            if not isinstance(tool_calls, list):
                continue
            for call in tool_calls:
                if not isinstance(call, dict) or _SIG_KEY in call:
                    continue
                call_id = call.get("id")
                if not isinstance(call_id, str) or not call_id:
                    continue
                signature = self.get(call_id)
                if signature is None:
                    log.debug("[thought_signature] inject: no sig found for id=%s", call_id)
                    continue
                call[_SIG_KEY] = signature
                modified = True
                log.debug("[thought_signature] inject: injected sig for id=%s", call_id)

        if not modified:
            return body
        return json.dumps(doc, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def _dicts(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _nonempty_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


class SignatureCapture:
    """Collects thought signatures from a response body as it is read.

    Feed raw bytes with :meth:`feed`; call :meth:`finish` once the body is
    complete. Streaming (SSE) bodies are scanned line by line; a plain JSON
    body is parsed as a whole when finished.
    """

    def __init__(self, store: ThoughtSignatureStore) -> None:
        self._store = store
        self._all = bytearray()
        self._pending = bytearray()
        self._index_to_id: dict[int, str] = {}

    def feed(self, chunk: bytes) -> None:
        """Consume the next piece of the response body."""
        if not chunk:
            return
        self._all.extend(chunk)
        self._pending.extend(chunk)
        while True:
            newline = self._pending.find(b"\n")
            if newline < 0:
                return
            line = bytes(self._pending[:newline])
            del self._pending[: newline + 1]
            self._handle_line(line)

    def finish(self) -> None:
        """Scan the complete body once more for signatures."""
        data = bytes(self._all)
        trimmed = data.strip()
        if not trimmed:
            return
        if trimmed.startswith(b"{"):
            self._extract_from_json(data)
            return
        for line in data.split(b"\n"):
            self._handle_line(line)

    def _handle_line(self, line: bytes) -> None:
        line = line.rstrip(b"\r")
        if not line.startswith(_DATA_PREFIX):
            return
        payload = line[len(_DATA_PREFIX):].strip()
        if not payload or payload == b"[DONE]":
            return
        self._extract_from_sse_chunk(payload)

    def _extract_from_sse_chunk(self, data: bytes) -> None:
        try:
            chunk = json.loads(data)
        except ValueError:
            return
        if not isinstance(chunk, dict):
            return
        for choice in _dicts(chunk.get("choices")):
            delta = choice.get("delta")
            if not isinstance(delta, dict):
                continue
            tool_calls = _dicts(delta.get("tool_calls"))
            for call in tool_calls:
                index = call.get("index")
                if isinstance(index, bool) or not isinstance(index, int):
                    index = None
                call_id = _nonempty_str(call.get("id"))
                signature = _nonempty_str(call.get(_SIG_KEY))
                if index is not None and call_id:
                    self._index_to_id[index] = call_id
                if signature:
                    if not call_id and index is not None:
                        call_id = self._index_to_id.get(index, "")
                    if call_id:
                        self._store.store(call_id, signature)
                    else:
                        log.debug("[thought_signature] SSE chunk: sig present but no id (index=%s)", index)
                elif call_id:
                    log.debug("[thought_signature] SSE chunk: tool_call id=%s index=%s no sig", call_id, index)
            if _nonempty_str(delta.get(_SIG_KEY)) and not tool_calls:
                log.debug("[thought_signature] SSE chunk: delta-level sig (no tool_calls in this chunk)")

    def _extract_from_json(self, data: bytes) -> None:
        try:
            response = json.loads(data)
        except ValueError:
            return
        if not isinstance(response, dict):
            return
        for choice in _dicts(response.get("choices")):
            message = choice.get("message")
            if not isinstance(message, dict):
                continue
            for call in _dicts(message.get("tool_calls")):
                call_id = _nonempty_str(call.get("id"))
                signature = _nonempty_str(call.get(_SIG_KEY))
                if call_id and signature:
                    self._store.store(call_id, signature)
                elif call_id:
                    log.debug("[thought_signature] JSON body: tool_call id=%s has NO thought_signature", call_id)