"""
Pydantic schemas for Voice API operations.
"""
from typing import List

from pydantic import BaseModel, ConfigDict


class VoiceResponse(BaseModel):
    """Schema for voice response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    label: str
    file_name: str
    mime_type: str
    created_at: str


class VoiceListResponse(BaseModel):
    """Schema for voice list response."""
    voices: List[VoiceResponse]
