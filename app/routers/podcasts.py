"""
Podcast job endpoints: create, poll status, download.
"""
import uuid
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse

from app.config import BGM_DIR, DEFAULT_BGM_VOLUME, MAX_BGM_FILE_SIZE
from app.dependencies import get_job_processor, get_job_registry, get_voice_store
from app.errors import ConflictError, NotFoundError, ValidationError
from app.models.job import JobSpec, JobStatus
from app.schemas.job import JobCreatedResponse, JobStatusResponse
from app.services.job_processor import SHUTDOWN_FAILURE_MESSAGE, JobProcessor
from app.services.job_registry import JobRegistry
from app.services.voice_store import VoiceStore


router = APIRouter(prefix='/api/podcasts', tags=['podcasts'])

SHUTTING_DOWN_DETAIL = 'Server is shutting down; try again later'


def parse_bgm_volume(raw: Optional[str]) -> float:
    """Parse the optional volume field; blank means the default."""
    if raw is None or not raw.strip():
        return DEFAULT_BGM_VOLUME
    try:
        volume = float(raw)
    except ValueError:
        volume = None
    if volume is None or not 0.0 <= volume <= 1.0:
        raise ValidationError('BGM volume must be between 0.0 and 1.0', 'bgm_volume', raw)
    return volume


async def store_bgm_upload(bgm: UploadFile) -> Optional[Path]:
    """Persist an uploaded BGM file under a random name. Empty uploads are ignored."""
    data = await bgm.read()
    if not data:
        return None
    if len(data) > MAX_BGM_FILE_SIZE:
        raise ValidationError(
            f'BGM file exceeds the {MAX_BGM_FILE_SIZE // (1024 * 1024)}MB limit',
            'bgm',
            len(data),
        )

    suffix = Path(bgm.filename or '').suffix or '.mp3'
    BGM_DIR.mkdir(parents=True, exist_ok=True)
    path = BGM_DIR / f'{uuid.uuid4()}{suffix}'
    path.write_bytes(data)
    return path


@router.post('', response_model=JobCreatedResponse, status_code=202)
async def create_podcast(
    script: str = Form(''),
    voice_id: str = Form(''),
    style_instruction: Optional[str] = Form(None),
    bgm_volume: Optional[str] = Form(None),
    bgm: Optional[UploadFile] = File(None),
    registry: JobRegistry = Depends(get_job_registry),
    processor: JobProcessor = Depends(get_job_processor),
    voices: VoiceStore = Depends(get_voice_store),
) -> JobCreatedResponse:
    """
    Create a podcast generation job.

    Returns immediately with the job id and pending status.
    The job is processed asynchronously in the background.

    Raises:
        422: Script or voice id missing, volume out of range, BGM too large
        404: Voice not found
        503: Server is shutting down
    """
    script = script.strip()
    if not script:
        raise ValidationError('Script must not be empty', 'script', script)

    voice_id = voice_id.strip()
    if not voice_id:
        raise ValidationError('Voice id is required', 'voice_id', voice_id)

    if voices.find_by_id(voice_id) is None:
        raise NotFoundError('Voice', voice_id)

    volume = parse_bgm_volume(bgm_volume)
    style = style_instruction.strip() if style_instruction else ''

    if not processor.accepting:
        raise HTTPException(status_code=503, detail=SHUTTING_DOWN_DETAIL)

    bgm_path = await store_bgm_upload(bgm) if bgm is not None else None

    job = registry.create(JobSpec(
        script=script,
        voice_id=voice_id,
        style_instruction=style or None,
        bgm_path=bgm_path,
        bgm_volume=volume,
    ))
    snapshot = job.snapshot()
    try:
        processor.submit(job)
    except RuntimeError:
        # Shutdown began while the BGM upload was being stored.
        job.fail(SHUTDOWN_FAILURE_MESSAGE)
        raise HTTPException(status_code=503, detail=SHUTTING_DOWN_DETAIL)

    return JobCreatedResponse(id=snapshot.id, status=snapshot.status)


@router.get('/{job_id}', response_model=JobStatusResponse, response_model_exclude_none=True)
async def get_podcast(
    job_id: str,
    registry: JobRegistry = Depends(get_job_registry),
) -> JobStatusResponse:
    """
    Get the status of a podcast job.

    Raises:
        404: Job not found
    """
    job = registry.get(job_id)
    if job is None:
        raise NotFoundError('Podcast job', job_id)

    return JobStatusResponse.from_snapshot(job.snapshot())


@router.get('/{job_id}/download')
async def download_podcast(
    job_id: str,
    registry: JobRegistry = Depends(get_job_registry),
):
    """
    Download the finished podcast MP3.

    Raises:
        404: Job not found, or its audio file is missing
        409: Job has not completed yet
    """
    job = registry.get(job_id)
    if job is None:
        raise NotFoundError('Podcast job', job_id)

    snapshot = job.snapshot()
    if snapshot.status != JobStatus.completed:
        raise ConflictError(f'Podcast is not ready. Job status: {snapshot.status.value}')

    if snapshot.output_path is None or not snapshot.output_path.exists():
        raise HTTPException(status_code=404, detail='Podcast audio file not found')

    return FileResponse(
        path=str(snapshot.output_path),
        media_type='audio/mpeg',
        filename=f'{job_id}.mp3',
    )
