"""
Pydantic schemas for API request/response validation.
"""
from app.schemas.job import JobCreatedResponse, JobStatusResponse
from app.schemas.voice import VoiceResponse, VoiceListResponse

__all__ = [
    'JobCreatedResponse',
    'JobStatusResponse',
    'VoiceResponse',
    'VoiceListResponse',
]
