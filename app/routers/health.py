"""
Health check endpoint.
"""
from pydantic import BaseModel
from fastapi import APIRouter, Depends

from app.config import APP_VERSION
from app.dependencies import get_audio_mixer, get_job_registry, get_synthesizer, get_voice_store
from app.services.audio_mixer import AudioMixer
from app.services.job_registry import JobRegistry
from app.services.tts_service import SpeechSynthesizer
from app.services.voice_store import VoiceStore


router = APIRouter(tags=['health'])


class HealthResponse(BaseModel):
    """Health check response schema."""
    status: str
    version: str
    ffmpeg_available: bool
    tts_configured: bool
    voice_count: int
    active_jobs: int


@router.get('/health', response_model=HealthResponse)
async def health_check(
    mixer: AudioMixer = Depends(get_audio_mixer),
    synthesizer: SpeechSynthesizer = Depends(get_synthesizer),
    voices: VoiceStore = Depends(get_voice_store),
    registry: JobRegistry = Depends(get_job_registry),
) -> HealthResponse:
    """
    Check server health status.

    Reports whether the external collaborators are usable and how many jobs
    are still in flight.
    """
    return HealthResponse(
        status='ok',
        version=APP_VERSION,
        ffmpeg_available=mixer.is_available(),
        tts_configured=synthesizer.is_configured,
        voice_count=len(voices.list()),
        active_jobs=registry.active_count(),
    )
