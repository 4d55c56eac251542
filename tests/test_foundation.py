"""
Foundation layer tests.

Tests for configuration, application wiring and the health endpoint.
"""
from unittest.mock import patch

import pytest


class TestConfig:
    """Tests for configured paths and limits."""

    def test_data_directories_live_under_data_dir(self):
        from app.config import BGM_DIR, DATA_DIR, OUTPUT_DIR, TEMP_DIR, VOICES_DIR

        assert VOICES_DIR == DATA_DIR / 'voices'
        assert BGM_DIR == DATA_DIR / 'bgm'
        assert TEMP_DIR == DATA_DIR / 'temp'
        assert OUTPUT_DIR == DATA_DIR / 'output'

    def test_limits(self):
        from app.config import DEFAULT_BGM_VOLUME, MAX_BGM_FILE_SIZE, MAX_LABEL_LENGTH, MAX_VOICE_FILE_SIZE

        assert DEFAULT_BGM_VOLUME == 0.3
        assert MAX_LABEL_LENGTH == 100
        assert MAX_VOICE_FILE_SIZE == 50 * 1024 * 1024
        assert MAX_BGM_FILE_SIZE == 100 * 1024 * 1024

    def test_ensure_directories(self, tmp_path):
        from app import config

        with patch.object(config, 'DATA_DIR', tmp_path), \
             patch.object(config, 'VOICES_DIR', tmp_path / 'voices'), \
             patch.object(config, 'BGM_DIR', tmp_path / 'bgm'), \
             patch.object(config, 'TEMP_DIR', tmp_path / 'temp'), \
             patch.object(config, 'OUTPUT_DIR', tmp_path / 'output'):
            config.ensure_directories()

        for name in ('voices', 'bgm', 'temp', 'output'):
            assert (tmp_path / name).is_dir()


class TestLifespan:
    """Tests for services built at startup and torn down at shutdown."""

    @pytest.mark.asyncio
    async def test_lifespan_wires_services(self, tmp_path):
        from server import app, lifespan
        from app.services.job_processor import JobProcessor
        from app.services.job_registry import JobRegistry
        from app.services.voice_store import VoiceStore

        with patch('server.ensure_directories'), \
             patch('app.services.voice_store.VOICES_DIR', tmp_path / 'voices'):
            async with lifespan(app):
                assert isinstance(app.state.job_registry, JobRegistry)
                assert isinstance(app.state.job_processor, JobProcessor)
                assert isinstance(app.state.voice_store, VoiceStore)
                assert app.state.job_processor.voice_store is app.state.voice_store
                assert (tmp_path / 'voices' / 'voices.json').exists()
                processor = app.state.job_processor

        with pytest.raises(RuntimeError):
            processor.submit(None)


class TestHealthEndpoint:
    """Tests for GET /health endpoint."""

    @pytest.mark.asyncio
    async def test_health_endpoint_returns_ok(self, client, voice):
        response = await client.get('/health')

        assert response.status_code == 200
        data = response.json()
        assert data['status'] == 'ok'
        assert data['ffmpeg_available'] is True
        assert data['tts_configured'] is True
        assert data['voice_count'] == 1
        assert data['active_jobs'] == 0

    @pytest.mark.asyncio
    async def test_health_reports_version(self, client):
        from app.config import APP_VERSION

        response = await client.get('/health')

        assert response.json()['version'] == APP_VERSION

    @pytest.mark.asyncio
    async def test_health_counts_active_jobs(self, client, job_registry):
        from app.models.job import JobSpec

        job_registry.create(JobSpec(script='Hello world', voice_id='voice-1'))

        response = await client.get('/health')

        assert response.json()['active_jobs'] == 1
