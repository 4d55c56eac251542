"""
FastAPI dependencies resolving the services built in the application lifespan.

Usage:
    @router.get('/api/podcasts/{job_id}')
    async def get_job(job_id: str, registry: JobRegistry = Depends(get_job_registry)):
        ...
"""
from fastapi import Request

from app.services.audio_mixer import AudioMixer
from app.services.job_processor import JobProcessor
from app.services.job_registry import JobRegistry
from app.services.tts_service import SpeechSynthesizer
from app.services.voice_store import VoiceStore


def get_job_registry(request: Request) -> JobRegistry:
    return request.app.state.job_registry


def get_job_processor(request: Request) -> JobProcessor:
    return request.app.state.job_processor


def get_voice_store(request: Request) -> VoiceStore:
    return request.app.state.voice_store


def get_synthesizer(request: Request) -> SpeechSynthesizer:
    return request.app.state.synthesizer


def get_audio_mixer(request: Request) -> AudioMixer:
    return request.app.state.audio_mixer
