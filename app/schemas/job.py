"""
Pydantic schemas for podcast job API operations.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.models.job import JobSnapshot, JobStatus


class JobCreatedResponse(BaseModel):
    """Schema returned when a job has been accepted."""
    id: str
    status: JobStatus


class JobStatusResponse(BaseModel):
    """
    Status projection polled by clients.

    ``error`` is only present for failed jobs.
    """
    id: str
    status: JobStatus
    created_at: datetime
    error: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snapshot: JobSnapshot) -> 'JobStatusResponse':
        return cls(
            id=snapshot.id,
            status=snapshot.status,
            created_at=snapshot.created_at,
            error=snapshot.error_message if snapshot.status == JobStatus.failed else None,
        )
