"""Liveness and readiness tracking for the running process."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

CheckFunc = Callable[[], "tuple[bool, str]"]


@dataclass
class Check:
    """The latest evaluation of a readiness check."""

    name: str
    status: str
    message: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class StatusResponse:
    """Payload returned by the health endpoints."""

    status: str
    uptime: str
    checks: dict[str, Check] = field(default_factory=dict)


def _status_string(ok: bool) -> str:
    return "ok" if ok else "fail"


class HealthManager:
    """Tracks readiness and named runtime checks."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._ready = False
        self._checks: dict[str, CheckFunc] = {}
        self._start = time.monotonic()

    def _uptime(self) -> str:
        return str(timedelta(seconds=time.monotonic() - self._start))

    def set_ready(self, ready: bool) -> None:
        """Update the readiness flag."""
        with self._lock:
            self._ready = ready

    def register_check(self, name: str, fn: Optional[CheckFunc]) -> None:
        """Add or replace a named readiness check; ``None`` is ignored."""
        if fn is None:
            return
        with self._lock:
            self._checks[name] = fn

    def health_status(self) -> StatusResponse:
        """Return the liveness payload, which never fails on checks."""
        return StatusResponse(status="ok", uptime=self._uptime())

    def ready_status(self) -> tuple[StatusResponse, bool]:
        """Run every check and return the readiness payload and overall result."""
        with self._lock:
            all_ok = self._ready
            check_fns = dict(self._checks)

        now = datetime.now(timezone.utc)
        checks: dict[str, Check] = {}
        for name, fn in check_fns.items():
            ok, message = fn()
            checks[name] = Check(name=name, status=_status_string(ok), message=message, timestamp=now)
            if not ok:
                all_ok = False

        status = "ready" if all_ok else "not ready"
        return StatusResponse(status=status, uptime=self._uptime(), checks=checks), all_ok