import json

import pytest

from educlaw.cron import (
    KIND_AT,
    KIND_CRON,
    KIND_EVERY,
    CronService,
    Payload,
    Schedule,
    compute_next,
)

NOW = 1_700_000_000_000


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "cron" / "jobs.json"


@pytest.fixture
def clock():
    return FakeClock(NOW)


@pytest.fixture
def service(store_path, clock):
    svc = CronService(store_path, clock=clock, interval=3600)
    yield svc
    svc.stop()


def write_store(path, jobs):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"version": 1, "jobs": jobs}), encoding="utf-8")


def stored_job(job_id, **overrides):
    data = {
        "id": job_id,
        "name": job_id,
        "enabled": True,
        "schedule": {"kind": "every", "everyMs": 60000},
        "payload": {"message": "hi", "actor_id": "a1", "actor_type": "student"},
        "state": {},
        "createdAtMs": NOW,
        "updatedAtMs": NOW,
        "deleteAfterRun": False,
    }
    data.update(overrides)
    return data


def test_compute_next_at_future():
    assert compute_next(Schedule(KIND_AT, at_ms=NOW + 5000), NOW) == NOW + 5000


@pytest.mark.parametrize("at_ms", [NOW, NOW - 1, None])
def test_compute_next_at_not_in_future(at_ms):
    assert compute_next(Schedule(KIND_AT, at_ms=at_ms), NOW) is None


def test_compute_next_every():
    assert compute_next(Schedule(KIND_EVERY, every_ms=60000), NOW) == NOW + 60000


@pytest.mark.parametrize("every_ms", [0, -5, None])
def test_compute_next_every_non_positive(every_ms):
    assert compute_next(Schedule(KIND_EVERY, every_ms=every_ms), NOW) is None


@pytest.mark.parametrize(
    "schedule",
    [Schedule(KIND_CRON, expr=""), Schedule(KIND_CRON, expr="bad expr"), Schedule("weekly")],
)
def test_compute_next_none_cases(schedule):
    assert compute_next(schedule, NOW) is None


def test_compute_next_cron_within_a_minute():
    result = compute_next(Schedule(KIND_CRON, expr="* * * * *"), NOW)
    assert NOW < result <= NOW + 60000
    assert result % 1000 == 0


def test_add_job_round_trips_through_store(service, store_path):
    job = service.add_job("reminder", Schedule(KIND_AT, at_ms=NOW + 1000), Payload("hi", "a1", "student"))
    assert job.enabled
    assert job.delete_after_run
    assert job.state.next_run_at_ms == NOW + 1000
    assert job.created_at_ms == NOW
    assert CronService(store_path).list_jobs(True) == [job]


def test_store_uses_json_field_names(service, store_path):
    service.add_job("r", Schedule(KIND_AT, at_ms=NOW + 1000), Payload("hi", "a1", "student"))
    data = json.loads(store_path.read_text(encoding="utf-8"))
    assert data["version"] == 1
    (job,) = data["jobs"]
    assert job["schedule"]["atMs"] == NOW + 1000
    assert "everyMs" not in job["schedule"]
    assert job["state"]["nextRunAtMs"] == NOW + 1000
    assert job["payload"]["actor_id"] == "a1"
    assert job["deleteAfterRun"] is True


def test_job_ids_are_unique(service):
    ids = {service.add_job(str(n), Schedule(KIND_EVERY, every_ms=1000), Payload()).id for n in range(5)}
    assert len(ids) == 5


def test_remove_job(service):
    job = service.add_job("r", Schedule(KIND_EVERY, every_ms=1000), Payload())
    assert service.remove_job(job.id) is True
    assert service.remove_job(job.id) is False
    assert service.list_jobs(True) == []


def test_list_jobs_filters_disabled(store_path, clock):
    write_store(store_path, [stored_job("on"), stored_job("off", enabled=False)])
    svc = CronService(store_path, clock=clock)
    assert [job.id for job in svc.list_jobs(False)] == ["on"]
    assert [job.id for job in svc.list_jobs(True)] == ["on", "off"]


def test_list_jobs_for_actor(service):
    service.add_job("a", Schedule(KIND_EVERY, every_ms=1000), Payload("x", "a1", "student"))
    service.add_job("b", Schedule(KIND_EVERY, every_ms=1000), Payload("y", "a2", "student"))
    assert [job.name for job in service.list_jobs_for_actor("a2")] == ["b"]


def test_list_jobs_returns_copies(service):
    service.add_job("a", Schedule(KIND_EVERY, every_ms=1000), Payload())
    service.list_jobs(True)[0].name = "changed"
    assert service.list_jobs(True)[0].name == "a"


def test_check_jobs_does_nothing_when_stopped(service, clock):
    calls = []
    service.set_handler(calls.append)
    service.add_job("a", Schedule(KIND_EVERY, every_ms=1000), Payload())
    clock.now += 5000
    service.check_jobs()
    assert calls == []


def test_one_time_job_fires_and_is_deleted(service, clock):
    calls = []
    service.set_handler(calls.append)
    service.start()
    service.add_job("once", Schedule(KIND_AT, at_ms=NOW + 1000), Payload("hi", "a1", "student"))
    clock.now += 1000
    service.check_jobs()
    assert [job.name for job in calls] == ["once"]
    assert calls[0].payload.message == "hi"
    assert service.list_jobs(True) == []


def test_job_not_yet_due_does_not_fire(service, clock):
    calls = []
    service.set_handler(calls.append)
    service.start()
    service.add_job("later", Schedule(KIND_AT, at_ms=NOW + 1000), Payload())
    clock.now += 999
    service.check_jobs()
    assert calls == []


def test_repeating_job_is_rescheduled(service, clock):
    service.set_handler(lambda job: None)
    service.start()
    service.add_job("every", Schedule(KIND_EVERY, every_ms=60000), Payload())
    clock.now += 60000
    service.check_jobs()
    (job,) = service.list_jobs(True)
    assert job.state.last_status == "ok"
    assert job.state.last_run_at_ms == clock.now
    assert job.state.next_run_at_ms == clock.now + 60000


def test_handler_error_is_recorded(service, clock):
    def fail(job):
        raise RuntimeError("boom")

    service.set_handler(fail)
    service.start()
    service.add_job("every", Schedule(KIND_EVERY, every_ms=1000), Payload())
    clock.now += 1000
    service.check_jobs()
    (job,) = service.list_jobs(True)
    assert job.state.last_status == "error"
    assert job.state.last_error == "boom"


def test_one_time_job_kept_disabled_when_not_deleted(store_path, clock):
    write_store(
        store_path,
        [stored_job("keep", schedule={"kind": "at", "atMs": NOW + 1000}, deleteAfterRun=False)],
    )
    svc = CronService(store_path, clock=clock, interval=3600)
    try:
        svc.start()
        clock.now += 1000
        svc.check_jobs()
        (job,) = svc.list_jobs(True)
        assert job.enabled is False
        assert job.state.last_status == "ok"
    finally:
        svc.stop()


def test_start_recomputes_next_runs(store_path, clock):
    write_store(store_path, [stored_job("every")])
    svc = CronService(store_path, clock=clock, interval=3600)
    try:
        svc.start()
        assert svc.list_jobs(True)[0].state.next_run_at_ms == NOW + 60000
    finally:
        svc.stop()


def test_start_with_corrupt_store_raises(store_path, clock):
    store_path.parent.mkdir(parents=True)
    store_path.write_text("{not json", encoding="utf-8")
    svc = CronService(store_path, clock=clock, interval=3600)
    with pytest.raises(RuntimeError, match="loading cron store"):
        svc.start()