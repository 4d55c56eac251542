"""
Speech synthesizer backed by the Replicate predictions API.

The voice is cloned per request: the reference recording is sent inline as a
data URI together with the script, and the resulting audio is downloaded to
the temp directory.
"""
import asyncio
import base64
import logging
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from app.config import (
    REPLICATE_API_TOKEN,
    REPLICATE_API_URL,
    TEMP_DIR,
    TTS_MODEL,
    TTS_POLL_INTERVAL,
    TTS_PREDICTION_TIMEOUT,
    TTS_REQUEST_TIMEOUT,
)
from app.errors import SynthesisError

logger = logging.getLogger(__name__)

AUDIO_MIME_TYPES = {
    '.webm': 'audio/webm',
    '.wav': 'audio/wav',
    '.mp3': 'audio/mpeg',
    '.ogg': 'audio/ogg',
    '.m4a': 'audio/mp4',
}

FINISHED_PREDICTION_STATES = {'succeeded', 'failed', 'canceled'}


def guess_mime_type(path: Path) -> str:
    return AUDIO_MIME_TYPES.get(path.suffix.lower(), 'audio/webm')


def extract_output_location(output: Any) -> str:
    """
    Normalize a prediction's output into a single audio location.

    Models return either a plain URL, a list of URLs, or an object carrying
    the URL under ``url`` or ``uri``.
    """
    if isinstance(output, str) and output:
        return output
    if isinstance(output, (list, tuple)) and output:
        return extract_output_location(output[0])
    if isinstance(output, Mapping):
        for key in ('url', 'uri'):
            value = output.get(key)
            if isinstance(value, str) and value:
                return value
    raise SynthesisError(f'Unexpected TTS output format: {type(output).__name__}')


def parse_prediction(response: httpx.Response) -> Dict[str, Any]:
    """Decode a prediction body, which must be a JSON object."""
    try:
        prediction = response.json()
    except ValueError:
        prediction = None
    if not isinstance(prediction, Mapping):
        snippet = (response.text or '').strip()[:200]
        message = 'TTS returned a malformed response'
        raise SynthesisError(f'{message}: {snippet}' if snippet else message)
    return dict(prediction)


class SpeechSynthesizer:
    """Clone a voice and read a script with it via a remote TTS model."""

    def __init__(
        self,
        api_token: str = REPLICATE_API_TOKEN,
        model: str = TTS_MODEL,
        temp_dir: Optional[Path] = None,
        base_url: str = REPLICATE_API_URL,
        poll_interval: float = TTS_POLL_INTERVAL,
        request_timeout: float = TTS_REQUEST_TIMEOUT,
        prediction_timeout: float = TTS_PREDICTION_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_token = api_token
        self.model = model
        self.temp_dir = Path(temp_dir) if temp_dir is not None else TEMP_DIR
        self.base_url = base_url.rstrip('/')
        self.poll_interval = poll_interval
        self.request_timeout = request_timeout
        self.prediction_timeout = prediction_timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_token)

    async def synthesize(
        self,
        script_text: str,
        reference_voice_path: Path,
        correlation_id: str,
        style_instruction: Optional[str] = None,
    ) -> Path:
        """
        Generate speech for a script in the voice of a reference recording.

        Args:
            script_text: Text to read
            reference_voice_path: Recording of the voice to clone
            correlation_id: Job id, used to name the output file
            style_instruction: Optional tone/pace/emotion hint

        Returns:
            Path of the synthesized audio in the temp directory

        Raises:
            SynthesisError: on any remote or local failure
        """
        if not self.is_configured:
            raise SynthesisError('REPLICATE_API_TOKEN is not configured')

        loop = asyncio.get_running_loop()
        reference_audio = await loop.run_in_executor(None, self._encode_reference, Path(reference_voice_path))
        payload: Dict[str, str] = {
            'text': script_text,
            'mode': 'voice_clone',
            'reference_audio': reference_audio,
            'reference_text': '',
            'language': 'auto',
        }
        if style_instruction:
            payload['style_instruction'] = style_instruction

        output_path = self.temp_dir / f'{correlation_id}-tts.wav'

        try:
            async with self._open_client() as client:
                prediction = await self._create_prediction(client, payload)
                prediction = await self._wait_for_prediction(client, prediction)
                location = extract_output_location(prediction.get('output'))
                await self._download(client, location, output_path)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            detail = (exc.response.text or '').strip()[:200]
            if detail:
                message = f'TTS request failed with status {status}: {detail}'
            else:
                message = f'TTS request failed with status {status}'
            raise SynthesisError(message) from exc
        except httpx.HTTPError as exc:
            raise SynthesisError(f'TTS request failed: {exc}') from exc

        logger.info('Synthesized speech for %s -> %s', correlation_id, output_path)
        return output_path

    def _encode_reference(self, path: Path) -> str:
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise SynthesisError(f'Reference voice file is unavailable: {path.name}') from exc
        encoded = base64.b64encode(data).decode('ascii')
        return f'data:{guess_mime_type(path)};base64,{encoded}'

    def _open_client(self) -> httpx.AsyncClient:
        headers = {
            'Authorization': f'Bearer {self.api_token}',
            'Accept': 'application/json',
        }
        return httpx.AsyncClient(
            headers=headers,
            timeout=self.request_timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    async def _create_prediction(self, client: httpx.AsyncClient, payload: Dict[str, str]) -> Dict[str, Any]:
        response = await client.post(
            f'{self.base_url}/models/{self.model}/predictions',
            json={'input': payload},
            headers={'Prefer': 'wait'},
        )
        response.raise_for_status()
        return parse_prediction(response)

    async def _wait_for_prediction(self, client: httpx.AsyncClient, prediction: Dict[str, Any]) -> Dict[str, Any]:
        deadline = time.monotonic() + self.prediction_timeout

        while prediction.get('status') not in FINISHED_PREDICTION_STATES:
            if time.monotonic() >= deadline:
                raise SynthesisError(
                    f'TTS prediction {prediction.get("id")} did not finish within '
                    f'{self.prediction_timeout:.0f}s'
                )
            urls = prediction.get('urls')
            poll_url = urls.get('get') if isinstance(urls, Mapping) else None
            if not isinstance(poll_url, str) or not poll_url:
                raise SynthesisError('TTS prediction response has no status URL')

            await asyncio.sleep(self.poll_interval)
            response = await client.get(poll_url)
            response.raise_for_status()
            prediction = parse_prediction(response)

        status = prediction.get('status')
        if status == 'failed':
            raise SynthesisError(f'TTS prediction failed: {prediction.get("error") or "unknown error"}')
        if status == 'canceled':
            raise SynthesisError('TTS prediction was canceled')
        return prediction

    async def _download(self, client: httpx.AsyncClient, url: str, dest: Path):
        loop = asyncio.get_running_loop()
        async with client.stream('GET', url) as response:
            if response.is_error:
                await response.aread()
            response.raise_for_status()
            f = await loop.run_in_executor(None, _open_for_writing, dest)
            try:
                async for chunk in response.aiter_bytes():
                    await loop.run_in_executor(None, f.write, chunk)
            finally:
                await loop.run_in_executor(None, f.close)


def _open_for_writing(path: Path):
    path.parent.mkdir(parents=True, exist_ok=True)
    return open(path, 'wb')
