"""
In-memory registry of podcast jobs.
"""
import logging
import threading
import uuid
from collections import OrderedDict
from typing import List, Optional

from app.config import MAX_RETAINED_JOBS
from app.models.job import Job, JobSpec

logger = logging.getLogger(__name__)


class JobRegistry:
    """
    Owns every job record for the lifetime of the process.

    Jobs are kept in creation order. When a new job would push the registry
    past ``max_jobs``, the oldest finished jobs are evicted; jobs that are
    still in flight are never evicted, so the cap is soft while every
    retained job is running.
    """

    def __init__(self, max_jobs: int = MAX_RETAINED_JOBS):
        self.max_jobs = max_jobs
        self._jobs: 'OrderedDict[str, Job]' = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    def create(self, spec: JobSpec) -> Job:
        """Assign an id, store the job as pending and return it."""
        job = Job(id=str(uuid.uuid4()), spec=spec)
        with self._lock:
            self._evict_finished(room_for=1)
            self._jobs[job.id] = job
        logger.info('Created job %s for voice %s', job.id, spec.voice_id)
        return job

    def get(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def list(self) -> List[Job]:
        """All retained jobs, newest first."""
        with self._lock:
            return list(reversed(self._jobs.values()))

    def active_count(self) -> int:
        """Number of jobs not yet in a terminal state."""
        with self._lock:
            return sum(1 for job in self._jobs.values() if not job.is_terminal)

    def clear(self):
        with self._lock:
            self._jobs.clear()

    def _evict_finished(self, room_for: int):
        # Caller holds self._lock.
        excess = len(self._jobs) + room_for - self.max_jobs
        if excess <= 0:
            return
        evicted = [job_id for job_id, job in self._jobs.items() if job.is_terminal][:excess]
        for job_id in evicted:
            del self._jobs[job_id]
        if evicted:
            logger.debug('Evicted %d finished jobs', len(evicted))
