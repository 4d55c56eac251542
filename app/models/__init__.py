"""
Domain models.
"""
from app.models.job import Job, JobSnapshot, JobSpec, JobStatus, TERMINAL_STATUSES
from app.models.voice import Voice

__all__ = ['Job', 'JobSnapshot', 'JobSpec', 'JobStatus', 'TERMINAL_STATUSES', 'Voice']
