"""
Tests for DailyScheduler: once-per-day firing, retry after failure, and
background thread lifecycle.
"""

import threading

import pytest

from pdc_batch.services.scheduler import DailyScheduler
from tests.conftest import TODAY


class RecordingJob:
    def __init__(self, fail_times: int = 0):
        self.calls = []
        self._fail_times = fail_times
        self.fired = threading.Event()

    def __call__(self, session, today):
        self.calls.append(today)
        if len(self.calls) <= self._fail_times:
            raise RuntimeError("database unavailable")
        self.fired.set()
        return len(self.calls)


@pytest.fixture
def job():
    return RecordingJob()


@pytest.fixture
def scheduler(session_factory, job, clock):
    s = DailyScheduler(
        session_factory=session_factory,
        job=job,
        clock=clock,
        job_name="test_job",
        tick_interval_seconds=1,
    )
    yield s
    s.stop(timeout=5)


class TestTick:

    def test_fires_once_per_day(self, scheduler, job, clock):
        assert scheduler.tick() is True
        assert scheduler.tick() is False
        assert job.calls == [TODAY]
        assert scheduler.last_run_date == TODAY

        clock.advance_days(1)
        assert scheduler.tick() is True
        assert len(job.calls) == 2
        assert scheduler.last_run_date == clock.today()

    def test_failure_is_retried_next_tick(self, session_factory, clock, captured_logs):
        job = RecordingJob(fail_times=1)
        scheduler = DailyScheduler(session_factory, job, clock=clock, job_name="flaky")

        assert scheduler.tick() is False
        assert scheduler.last_run_date is None
        failure = next(r for r in captured_logs() if r["message"] == "scheduled_job_failed")
        assert failure["job_name"] == "flaky"
        assert failure["exc_type"] == "RuntimeError"

        assert scheduler.tick() is True
        assert job.calls == [TODAY, TODAY]

    def test_logs_fired(self, scheduler, captured_logs):
        scheduler.tick()
        record = next(r for r in captured_logs() if r["message"] == "scheduled_job_fired")
        assert record["job_name"] == "test_job"
        assert record["run_date"] == TODAY.isoformat()
        assert record["result"] == 1


@pytest.mark.slow
class TestLifecycle:

    def test_start_runs_first_tick_and_stop_joins(self, scheduler, job):
        scheduler.start()
        assert job.fired.wait(timeout=5)
        assert scheduler.is_running

        scheduler.stop(timeout=5)
        assert not scheduler.is_running
        assert job.calls == [TODAY]

    def test_start_is_idempotent(self, scheduler, job):
        scheduler.start()
        thread = scheduler._thread
        scheduler.start()
        assert scheduler._thread is thread
