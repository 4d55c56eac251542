"""
Voice endpoints.
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse

from app.config import MAX_LABEL_LENGTH, MAX_VOICE_FILE_SIZE
from app.dependencies import get_voice_store
from app.errors import NotFoundError, ValidationError
from app.schemas.voice import VoiceResponse, VoiceListResponse
from app.services.voice_store import VoiceStore


router = APIRouter(prefix='/api/voices', tags=['voices'])


@router.get('', response_model=VoiceListResponse)
async def list_voices(store: VoiceStore = Depends(get_voice_store)) -> VoiceListResponse:
    """List all registered voices."""
    return VoiceListResponse(
        voices=[VoiceResponse.model_validate(v) for v in store.list()]
    )


@router.post('', response_model=VoiceResponse, status_code=201)
async def create_voice(
    label: str = Form(''),
    audio: UploadFile = File(...),
    store: VoiceStore = Depends(get_voice_store),
) -> VoiceResponse:
    """
    Register a voice from a short recording.

    Raises:
        422: Label empty or too long, or audio file too large
    """
    label = label.strip()
    if not label:
        raise ValidationError('Label must not be empty', 'label', label)
    if len(label) > MAX_LABEL_LENGTH:
        raise ValidationError(
            f'Label must be at most {MAX_LABEL_LENGTH} characters', 'label', label
        )

    data = await audio.read()
    if len(data) > MAX_VOICE_FILE_SIZE:
        raise ValidationError(
            f'Audio file exceeds the {MAX_VOICE_FILE_SIZE // (1024 * 1024)}MB limit',
            'audio',
            len(data),
        )

    voice = store.save(label, data, audio.content_type or 'audio/webm')
    return VoiceResponse.model_validate(voice)


@router.get('/{voice_id}/file')
async def get_voice_file(
    voice_id: str,
    store: VoiceStore = Depends(get_voice_store),
):
    """
    Stream a voice's reference recording.

    Raises:
        404: Voice not found, or its audio file is missing
    """
    voice = store.find_by_id(voice_id)
    if voice is None:
        raise NotFoundError('Voice', voice_id)

    path = store.get_file_path(voice)
    if not path.exists():
        raise HTTPException(status_code=404, detail='Voice audio file not found')

    return FileResponse(path=str(path), media_type=voice.mime_type)


@router.delete('/{voice_id}', status_code=204)
async def delete_voice(
    voice_id: str,
    store: VoiceStore = Depends(get_voice_store),
):
    """Delete a voice and its recording."""
    store.delete(voice_id)
