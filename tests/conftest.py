"""
Pytest fixtures for testing.
"""
import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.dependencies import (
    get_audio_mixer,
    get_job_processor,
    get_job_registry,
    get_synthesizer,
    get_voice_store,
)
from app.models.job import JobStatus
from app.services.audio_mixer import AudioMixer
from app.services.job_processor import JobProcessor
from app.services.job_registry import JobRegistry
from app.services.tts_service import SpeechSynthesizer
from app.services.voice_store import VoiceStore


FAKE_WAV = b'RIFF' + b'\x00' * 40
FAKE_MP3 = b'ID3' + b'\x00' * 64


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Temporary data root with the same layout as the real one."""
    for name in ('voices', 'bgm', 'temp', 'output'):
        (tmp_path / name).mkdir()
    return tmp_path


@pytest.fixture
def voice_store(data_dir) -> VoiceStore:
    store = VoiceStore(data_dir / 'voices')
    store.ensure_data_dir()
    return store


@pytest.fixture
def voice(voice_store):
    """A registered voice with a dummy WAV recording."""
    return voice_store.save('Narrator', FAKE_WAV, 'audio/wav')


@pytest.fixture
def job_registry() -> JobRegistry:
    return JobRegistry()


@pytest.fixture
def mock_synthesizer(data_dir):
    """Synthesizer that writes a dummy WAV to the temp dir instead of calling Replicate."""
    synthesizer = MagicMock(spec=SpeechSynthesizer)
    synthesizer.is_configured = True

    async def synthesize(script_text, reference_voice_path, correlation_id, style_instruction=None):
        path = data_dir / 'temp' / f'{correlation_id}-tts.wav'
        path.write_bytes(FAKE_WAV)
        return path

    synthesizer.synthesize = AsyncMock(side_effect=synthesize)
    return synthesizer


@pytest.fixture
def mock_mixer():
    """Mixer that writes a dummy MP3 to the destination instead of running ffmpeg."""
    mixer = MagicMock(spec=AudioMixer)
    mixer.ffmpeg_binary = 'ffmpeg'
    mixer.is_available.return_value = True

    async def mix(speech_path, bgm_path, volume, dest_path):
        Path(dest_path).write_bytes(FAKE_MP3)

    async def transcode(speech_path, dest_path):
        Path(dest_path).write_bytes(FAKE_MP3)

    mixer.mix = AsyncMock(side_effect=mix)
    mixer.transcode = AsyncMock(side_effect=transcode)
    return mixer


@pytest_asyncio.fixture
async def job_processor(voice_store, mock_synthesizer, mock_mixer, data_dir):
    processor = JobProcessor(
        voice_store,
        mock_synthesizer,
        mock_mixer,
        output_dir=data_dir / 'output',
    )
    yield processor
    await processor.stop(timeout=1.0)


@pytest_asyncio.fixture
async def client(job_registry, job_processor, voice_store, mock_synthesizer, mock_mixer, data_dir):
    """Create a test client with the lifespan services replaced by fixtures."""
    from server import app

    app.dependency_overrides[get_job_registry] = lambda: job_registry
    app.dependency_overrides[get_job_processor] = lambda: job_processor
    app.dependency_overrides[get_voice_store] = lambda: voice_store
    app.dependency_overrides[get_synthesizer] = lambda: mock_synthesizer
    app.dependency_overrides[get_audio_mixer] = lambda: mock_mixer

    with patch('app.routers.podcasts.BGM_DIR', data_dir / 'bgm'):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url='http://test') as client:
            yield client

    app.dependency_overrides.clear()


async def _wait_for_status(client, job_id, statuses=(JobStatus.completed, JobStatus.failed), timeout=2.0):
    """Poll the status endpoint until the job reaches one of ``statuses``."""
    wanted = {JobStatus(s).value for s in statuses}
    deadline = asyncio.get_running_loop().time() + timeout
    while True:
        response = await client.get(f'/api/podcasts/{job_id}')
        data = response.json()
        if data.get('status') in wanted:
            return data
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError(f'Job {job_id} stuck in {data.get("status")}')
        await asyncio.sleep(0.01)


@pytest.fixture
def wait_for_status():
    return _wait_for_status
