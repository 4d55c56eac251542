#!/usr/bin/env python3
"""
CloneCast FastAPI Server

Clones a voice from a short recording, reads a script in that voice through a
remote TTS model, optionally mixes in background music, and serves the MP3.
Podcast jobs run asynchronously; clients poll their status and download the
result.
"""
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import APP_NAME, APP_VERSION, SERVER_HOST, SERVER_PORT, ensure_directories
from app.errors import ConflictError, NotFoundError, ValidationError
from app.routers import health_router, voices_router, podcasts_router
from app.services.audio_mixer import AudioMixer
from app.services.job_processor import JobProcessor
from app.services.job_registry import JobRegistry
from app.services.tts_service import SpeechSynthesizer
from app.services.voice_store import VoiceStore



@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup:
        - Create data directories
        - Build the voice store, TTS client and mixer
        - Create the job registry and job processor

    Shutdown:
        - Let running jobs finish (cancel after a grace period)
        - Release the mixer's worker threads
        - Drop all job records
    """
    print(f'Starting {APP_NAME} v{APP_VERSION}...')

    ensure_directories()

    voice_store = VoiceStore()
    voice_store.ensure_data_dir()
    synthesizer = SpeechSynthesizer()
    audio_mixer = AudioMixer()
    job_registry = JobRegistry()
    job_processor = JobProcessor(voice_store, synthesizer, audio_mixer)

    if not synthesizer.is_configured:
        print('REPLICATE_API_TOKEN is not set; podcast jobs will fail at synthesis')
    if not audio_mixer.is_available():
        print(f'{audio_mixer.ffmpeg_binary} not found on PATH; podcast jobs will fail at mixing')

    app.state.voice_store = voice_store
    app.state.synthesizer = synthesizer
    app.state.audio_mixer = audio_mixer
    app.state.job_registry = job_registry
    app.state.job_processor = job_processor

    print(f'Server ready at http://{SERVER_HOST}:{SERVER_PORT}')
    print('API documentation available at /docs')

    yield

    print('Shutting down...')

    await job_processor.stop()
    audio_mixer.cleanup()
    job_registry.clear()

    print('Shutdown complete.')


# Create FastAPI application
app = FastAPI(
    title=APP_NAME,
    description='Voice-cloned podcast generation with optional background music.',
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={'detail': str(exc), 'field': exc.field})


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={'detail': str(exc)})


@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={'detail': str(exc)})


# Register routers
app.include_router(health_router)
app.include_router(voices_router)
app.include_router(podcasts_router)


if __name__ == '__main__':
    uvicorn.run(
        app,
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=False,
        log_level='info',
    )
