"""
Job model for podcast generation tasks.
"""
import enum
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, FrozenSet, Optional

from app.config import DEFAULT_BGM_VOLUME
from app.errors import InvalidTransitionError


class JobStatus(str, enum.Enum):
    """Status states for podcast jobs."""
    pending = 'pending'
    synthesizing = 'synthesizing'
    mixing = 'mixing'
    completed = 'completed'
    failed = 'failed'

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({JobStatus.completed, JobStatus.failed})

# pending -> failed only happens when the server shuts down before a run starts.
_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.pending: frozenset({JobStatus.synthesizing, JobStatus.failed}),
    JobStatus.synthesizing: frozenset({JobStatus.mixing, JobStatus.failed}),
    JobStatus.mixing: frozenset({JobStatus.completed, JobStatus.failed}),
    JobStatus.completed: frozenset(),
    JobStatus.failed: frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class JobSpec:
    """Validated request to create a podcast job."""
    script: str
    voice_id: str
    style_instruction: Optional[str] = None
    bgm_path: Optional[Path] = None
    bgm_volume: float = DEFAULT_BGM_VOLUME


@dataclass(frozen=True)
class JobSnapshot:
    """Consistent read-only copy of a job taken under its lock."""
    id: str
    status: JobStatus
    created_at: datetime
    completed_at: Optional[datetime]
    output_path: Optional[Path]
    error_message: Optional[str]


@dataclass(eq=False)
class Job:
    """
    Represents a podcast generation job.

    Attributes:
        id: Unique job identifier (UUID)
        spec: The immutable creation request
        status: Current job status
        created_at: Job creation timestamp
        completed_at: When the job reached a terminal state
        output_path: Path to the final MP3 (completed jobs only)
        error_message: Error details (failed jobs only)

    Status and its dependent field are only changed through the transition
    methods, which hold the job's lock for the whole assignment.
    """
    id: str
    spec: JobSpec
    status: JobStatus = JobStatus.pending
    created_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None
    output_path: Optional[Path] = None
    error_message: Optional[str] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def script(self) -> str:
        return self.spec.script

    @property
    def voice_id(self) -> str:
        return self.spec.voice_id

    @property
    def style_instruction(self) -> Optional[str]:
        return self.spec.style_instruction

    @property
    def bgm_path(self) -> Optional[Path]:
        return self.spec.bgm_path

    @property
    def bgm_volume(self) -> float:
        return self.spec.bgm_volume

    @property
    def is_terminal(self) -> bool:
        with self._lock:
            return self.status.is_terminal

    def _advance(self, target: JobStatus):
        # Caller holds self._lock.
        if target not in _TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f'Job {self.id} cannot move from {self.status.value} to {target.value}'
            )
        self.status = target

    def start_synthesis(self):
        with self._lock:
            self._advance(JobStatus.synthesizing)

    def start_mixing(self):
        with self._lock:
            self._advance(JobStatus.mixing)

    def complete(self, output_path: Path):
        with self._lock:
            self._advance(JobStatus.completed)
            self.output_path = output_path
            self.completed_at = _utcnow()

    def fail(self, message: str):
        with self._lock:
            self._advance(JobStatus.failed)
            self.error_message = message
            self.completed_at = _utcnow()

    def snapshot(self) -> JobSnapshot:
        with self._lock:
            return JobSnapshot(
                id=self.id,
                status=self.status,
                created_at=self.created_at,
                completed_at=self.completed_at,
                output_path=self.output_path,
                error_message=self.error_message,
            )

    def __repr__(self):
        return f'<Job {self.id} status={self.status.value}>'
