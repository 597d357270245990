"""Persistent job scheduler delivering reminder payloads to a handler."""

from __future__ import annotations

import contextlib
import copy
import json
import logging
import os
import secrets
import tempfile
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Union

from educlaw.cronexpr import CronExpressionError, next_tick_after

log = logging.getLogger(__name__)

KIND_AT = "at"  # one-time, fires at at_ms
KIND_EVERY = "every"  # repeating interval of every_ms milliseconds
KIND_CRON = "cron"  # cron expression in expr

STORE_VERSION = 1


@dataclass
class Schedule:
    """When a job runs."""

    kind: str = ""
    at_ms: Optional[int] = None
    every_ms: Optional[int] = None
    expr: str = ""


@dataclass
class Payload:
    """The message delivered when a job fires."""

    message: str = ""
    actor_id: str = ""
    actor_type: str = ""


@dataclass
class JobState:
    """Execution state of a job."""

    next_run_at_ms: Optional[int] = None
    last_run_at_ms: Optional[int] = None
    last_status: str = ""
    last_error: str = ""


@dataclass
class Job:
    """A single scheduled task."""

    id: str = ""
    name: str = ""
    enabled: bool = False
    schedule: Schedule = field(default_factory=Schedule)
    payload: Payload = field(default_factory=Payload)
    state: JobState = field(default_factory=JobState)
    created_at_ms: int = 0
    updated_at_ms: int = 0
    delete_after_run: bool = False


JobHandler = Callable[[Job], None]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _generate_id() -> str:
    return secrets.token_hex(8)


def compute_next(schedule: Schedule, now_ms: int) -> Optional[int]:
    """The next run time in unix milliseconds, or ``None`` if the job will not run."""
    if schedule.kind == KIND_AT:
        if schedule.at_ms is not None and schedule.at_ms > now_ms:
            return schedule.at_ms
        return None
    if schedule.kind == KIND_EVERY:
        if schedule.every_ms is None or schedule.every_ms <= 0:
            return None
        return now_ms + schedule.every_ms
    if schedule.kind == KIND_CRON:
        if not schedule.expr:
            return None
        now = datetime.fromtimestamp(now_ms / 1000)
        try:
            moment = next_tick_after(schedule.expr, now, False)
        except CronExpressionError as exc:
            log.warning("[cron] invalid cron expr '%s': %s", schedule.expr, exc)
            return None
        return round(moment.timestamp() * 1000)
    return None


def _drop_empty(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value not in (None, "")}


def _job_to_dict(job: Job) -> dict[str, Any]:
    return {
        "id": job.id,
        "name": job.name,
        "enabled": job.enabled,
        "schedule": _drop_empty(
            {
                "kind": job.schedule.kind,
                "atMs": job.schedule.at_ms,
                "everyMs": job.schedule.every_ms,
                "expr": job.schedule.expr,
            }
        )
        | {"kind": job.schedule.kind},
        "payload": {
            "message": job.payload.message,
            "actor_id": job.payload.actor_id,
            "actor_type": job.payload.actor_type,
        },
        "state": _drop_empty(
            {
                "nextRunAtMs": job.state.next_run_at_ms,
                "lastRunAtMs": job.state.last_run_at_ms,
                "lastStatus": job.state.last_status,
                "lastError": job.state.last_error,
            }
        ),
        "createdAtMs": job.created_at_ms,
        "updatedAtMs": job.updated_at_ms,
        "deleteAfterRun": job.delete_after_run,
    }


def _object(data: Any) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def _job_from_dict(data: Any) -> Job:
    data = _object(data)
    schedule = _object(data.get("schedule"))
    payload = _object(data.get("payload"))
    state = _object(data.get("state"))
    return Job(
        id=data.get("id", ""),
        name=data.get("name", ""),
        enabled=bool(data.get("enabled", False)),
        schedule=Schedule(
            kind=schedule.get("kind", ""),
            at_ms=schedule.get("atMs"),
            every_ms=schedule.get("everyMs"),
            expr=schedule.get("expr", ""),
        ),
        payload=Payload(
            message=payload.get("message", ""),
            actor_id=payload.get("actor_id", ""),
            actor_type=payload.get("actor_type", ""),
        ),
        state=JobState(
            next_run_at_ms=state.get("nextRunAtMs"),
            last_run_at_ms=state.get("lastRunAtMs"),
            last_status=state.get("lastStatus", ""),
            last_error=state.get("lastError", ""),
        ),
        created_at_ms=data.get("createdAtMs", 0),
        updated_at_ms=data.get("updatedAtMs", 0),
        delete_after_run=bool(data.get("deleteAfterRun", False)),
    )


def _read_store(path: Path) -> tuple[int, list[Job]]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return STORE_VERSION, []
    data = _object(json.loads(text))
    jobs = data.get("jobs") or []
    if not isinstance(jobs, list):
        raise ValueError("jobs must be a JSON array")
    return data.get("version", STORE_VERSION), [_job_from_dict(item) for item in jobs]


def _atomic_write(path: Path, text: str) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=".cron-tmp-", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)


class CronService:
    """Manages scheduled jobs persisted as JSON at ``store_path``."""

    def __init__(
        self,
        store_path: Union[str, os.PathLike],
        *,
        clock: Optional[Callable[[], int]] = None,
        interval: float = 1.0,
    ) -> None:
        self._path = Path(store_path)
        self._clock = clock or _now_ms
        self._interval = interval
        self._lock = threading.RLock()
        self._handler: Optional[JobHandler] = None
        self._running = False
        self._stop_event: Optional[threading.Event] = None
        self._version = STORE_VERSION
        self._jobs: list[Job] = []
        try:
            self._version, self._jobs = _read_store(self._path)
        except (OSError, ValueError, TypeError) as exc:
            log.warning("[cron] could not load store %s: %s", self._path, exc)

    def set_handler(self, handler: Optional[JobHandler]) -> None:
        """Set the function called when a job fires."""
        with self._lock:
            self._handler = handler

    def start(self) -> None:
        """Load the store and begin the scheduler loop; repeated calls are harmless."""
        with self._lock:
            if self._running:
                return
            self._jobs = []
            try:
                self._version, self._jobs = _read_store(self._path)
            except (OSError, ValueError, TypeError) as exc:
                raise RuntimeError(f"loading cron store: {exc}") from exc
            now = self._clock()
            for job in self._jobs:
                if job.enabled:
                    job.state.next_run_at_ms = compute_next(job.schedule, now)
            self._save_quietly()

            self._stop_event = threading.Event()
            self._running = True
            threading.Thread(
                target=self._run_loop, args=(self._stop_event,), daemon=True, name="cron"
            ).start()
            log.info("[cron] started (%d jobs)", len(self._jobs))

    def stop(self) -> None:
        """Stop the scheduler loop."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            if self._stop_event is not None:
                self._stop_event.set()
            self._stop_event = None

    def _run_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._interval):
            self.check_jobs()

    def check_jobs(self) -> None:
        """Run every enabled job whose next run time has come."""
        with self._lock:
            if not self._running:
                return
            now = self._clock()
            due: list[str] = []
            for job in self._jobs:
                next_run = job.state.next_run_at_ms
                if job.enabled and next_run is not None and next_run <= now:
                    due.append(job.id)
                    job.state.next_run_at_ms = None  # prevents a double fire
            if due:
                self._save_quietly()
        for job_id in due:
            self._execute(job_id)

    def _find(self, job_id: str) -> Optional[Job]:
        return next((job for job in self._jobs if job.id == job_id), None)

    def _execute(self, job_id: str) -> None:
        with self._lock:
            found = self._find(job_id)
            job = copy.deepcopy(found) if found is not None else None
            handler = self._handler
        if job is None:
            return

        start = self._clock()
        log.info("[cron] ▶ job '%s' (%s) actor=%s", job.name, job.schedule.kind, job.payload.actor_id)
        error: Optional[Exception] = None
        if handler is not None:
            try:
                handler(job)
            except Exception as exc:  # a failing job is recorded, not raised
                error = exc
        elapsed = self._clock() - start

        with self._lock:
            target = self._find(job_id)
            if target is None:
                return
            target.state.last_run_at_ms = start
            target.updated_at_ms = self._clock()
            if error is not None:
                target.state.last_status = "error"
                target.state.last_error = str(error)
                log.warning("[cron] ✗ job '%s' failed in %dms: %s", target.name, elapsed, error)
            else:
                target.state.last_status = "ok"
                target.state.last_error = ""
                log.info("[cron] ✓ job '%s' done in %dms", target.name, elapsed)

            if target.schedule.kind == KIND_AT:
                if target.delete_after_run:
                    self._remove(job_id)
                else:
                    target.enabled = False
            else:
                target.state.next_run_at_ms = compute_next(target.schedule, self._clock())
            self._save_quietly()

    def add_job(self, name: str, schedule: Schedule, payload: Payload) -> Job:
        """Create and persist a new enabled job; one-time jobs are deleted after they run."""
        with self._lock:
            now = self._clock()
            job = Job(
                id=_generate_id(),
                name=name,
                enabled=True,
                schedule=copy.deepcopy(schedule),
                payload=copy.deepcopy(payload),
                created_at_ms=now,
                updated_at_ms=now,
                delete_after_run=schedule.kind == KIND_AT,
            )
            job.state.next_run_at_ms = compute_next(schedule, now)
            self._jobs.append(job)
            self._save()
            log.info("[cron] added job '%s' (id=%s, kind=%s)", name, job.id, schedule.kind)
            return copy.deepcopy(job)

    def remove_job(self, job_id: str) -> bool:
        """Delete a job; returns True if it existed."""
        with self._lock:
            removed = self._remove(job_id)
            if removed:
                self._save_quietly()
            return removed

    def _remove(self, job_id: str) -> bool:
        before = len(self._jobs)
        self._jobs = [job for job in self._jobs if job.id != job_id]
        return len(self._jobs) < before

    def list_jobs(self, include_disabled: bool) -> list[Job]:
        """Copies of all jobs, or only the enabled ones."""
        with self._lock:
            return [copy.deepcopy(job) for job in self._jobs if include_disabled or job.enabled]

    def list_jobs_for_actor(self, actor_id: str) -> list[Job]:
        """Copies of the jobs whose payload targets ``actor_id``."""
        with self._lock:
            return [copy.deepcopy(job) for job in self._jobs if job.payload.actor_id == actor_id]

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(
            {"version": self._version, "jobs": [_job_to_dict(job) for job in self._jobs]},
            indent=2,
            ensure_ascii=False,
        )
        _atomic_write(self._path, text)

    def _save_quietly(self) -> None:
        try:
            self._save()
        except OSError as exc:
            log.warning("[cron] could not save store %s: %s", self._path, exc)