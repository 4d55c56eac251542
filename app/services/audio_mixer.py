"""
Audio post-processing with ffmpeg: BGM mixing and MP3 transcoding.
"""
import asyncio
import functools
import logging
import shutil
import subprocess
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List

from app.config import FFMPEG_BINARY, FFMPEG_TIMEOUT, FFMPEG_WORKERS
from app.errors import ProcessingError

logger = logging.getLogger(__name__)

MP3_OUTPUT_OPTIONS = ['-codec:a', 'libmp3lame', '-q:a', '2']


class AudioMixer:
    """
    Runs ffmpeg for the post-processing stage of a podcast job.

    ffmpeg is invoked synchronously in a thread pool so the event loop is
    free while a long mix runs.
    """

    def __init__(
        self,
        ffmpeg_binary: str = FFMPEG_BINARY,
        timeout: float = FFMPEG_TIMEOUT,
        max_workers: int = FFMPEG_WORKERS,
    ):
        self.ffmpeg_binary = ffmpeg_binary
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    def is_available(self) -> bool:
        """Check whether the ffmpeg binary can be found."""
        return shutil.which(self.ffmpeg_binary) is not None

    def build_mix_command(self, speech_path: Path, bgm_path: Path, volume: float, dest_path: Path) -> List[str]:
        # BGM is cut to the speech length by amix duration=first.
        filter_graph = (
            f'[1:a]volume={volume}[bgm];'
            '[0:a][bgm]amix=inputs=2:duration=first:dropout_transition=2[out]'
        )
        return [
            self.ffmpeg_binary, '-hide_banner', '-loglevel', 'error', '-y',
            '-i', str(speech_path),
            '-i', str(bgm_path),
            '-filter_complex', filter_graph,
            '-map', '[out]',
            *MP3_OUTPUT_OPTIONS,
            str(dest_path),
        ]

    def build_transcode_command(self, speech_path: Path, dest_path: Path) -> List[str]:
        return [
            self.ffmpeg_binary, '-hide_banner', '-loglevel', 'error', '-y',
            '-i', str(speech_path),
            *MP3_OUTPUT_OPTIONS,
            str(dest_path),
        ]

    async def mix(self, speech_path: Path, bgm_path: Path, volume: float, dest_path: Path):
        """
        Mix speech with background music into an MP3.

        Args:
            speech_path: Synthesized speech
            bgm_path: Background music
            volume: BGM volume, 0.0 to 1.0
            dest_path: Output MP3 path

        Raises:
            ProcessingError: invalid volume or ffmpeg failure
        """
        if not 0.0 <= volume <= 1.0:
            raise ProcessingError(f'BGM volume must be between 0.0 and 1.0, got {volume}')
        command = self.build_mix_command(speech_path, bgm_path, volume, dest_path)
        await self._run(command, 'BGM mixing failed')

    async def transcode(self, speech_path: Path, dest_path: Path):
        """Convert speech alone into an MP3."""
        command = self.build_transcode_command(speech_path, dest_path)
        await self._run(command, 'MP3 conversion failed')

    async def _run(self, command: List[str], failure_message: str):
        Path(command[-1]).parent.mkdir(parents=True, exist_ok=True)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            self._executor,
            functools.partial(self._run_sync, command, failure_message),
        )

    def _run_sync(self, command: List[str], failure_message: str):
        logger.debug('Running %s', ' '.join(command))
        try:
            proc = subprocess.run(
                command,
                check=False,
                text=True,
                capture_output=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise ProcessingError(f'{failure_message}: {self.ffmpeg_binary} not found') from exc
        except subprocess.TimeoutExpired as exc:
            raise ProcessingError(f'{failure_message}: ffmpeg timed out after {self.timeout:.0f}s') from exc

        if proc.returncode != 0:
            stderr = (proc.stderr or '').strip()[-1000:]
            logger.error('ffmpeg exited with %d: %s', proc.returncode, stderr)
            detail = stderr.splitlines()[-1] if stderr else f'exit code {proc.returncode}'
            raise ProcessingError(f'{failure_message}: {detail}', stderr=stderr)

    def cleanup(self):
        """Clean up resources."""
        self._executor.shutdown(wait=False)
