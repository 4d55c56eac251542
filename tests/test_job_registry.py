"""
Job registry tests.
"""
from pathlib import Path

from app.models.job import JobSpec, JobStatus
from app.services.job_registry import JobRegistry


def spec(script='Hello world') -> JobSpec:
    return JobSpec(script=script, voice_id='voice-1')


def finish(job):
    job.start_synthesis()
    job.start_mixing()
    job.complete(Path(f'/out/{job.id}.mp3'))


class TestJobRegistry:
    """Tests for create/get/list."""

    def test_create_assigns_id_and_pending(self):
        registry = JobRegistry()

        job = registry.create(spec())

        assert job.id
        assert job.status == JobStatus.pending
        assert job.script == 'Hello world'
        assert job.id in registry

    def test_ids_are_unique(self):
        registry = JobRegistry()

        ids = {registry.create(spec()).id for _ in range(20)}

        assert len(ids) == 20
        assert len(registry) == 20

    def test_get_returns_same_record(self):
        registry = JobRegistry()
        job = registry.create(spec())

        assert registry.get(job.id) is job

    def test_get_unknown_returns_none(self):
        registry = JobRegistry()

        assert registry.get('nonexistent-id') is None

    def test_list_newest_first(self):
        registry = JobRegistry()
        first = registry.create(spec('First'))
        second = registry.create(spec('Second'))

        assert registry.list() == [second, first]

    def test_active_count(self):
        registry = JobRegistry()
        running = registry.create(spec())
        done = registry.create(spec())
        running.start_synthesis()
        finish(done)

        assert registry.active_count() == 1

    def test_clear(self):
        registry = JobRegistry()
        registry.create(spec())

        registry.clear()

        assert len(registry) == 0


class TestJobRetention:
    """Tests for the retention cap."""

    def test_oldest_finished_jobs_are_evicted(self):
        registry = JobRegistry(max_jobs=3)
        old = registry.create(spec())
        newer = registry.create(spec())
        finish(old)
        finish(newer)
        registry.create(spec())

        latest = registry.create(spec())

        assert len(registry) == 3
        assert registry.get(old.id) is None
        assert registry.get(newer.id) is newer
        assert registry.get(latest.id) is latest

    def test_in_flight_jobs_are_never_evicted(self):
        registry = JobRegistry(max_jobs=2)
        a = registry.create(spec())
        b = registry.create(spec())

        c = registry.create(spec())

        assert len(registry) == 3
        assert registry.get(a.id) is a
        assert registry.get(b.id) is b
        assert registry.get(c.id) is c
