"""
Background job processor for podcast generation.

Each job runs as its own asyncio task through
pending -> synthesizing -> mixing -> completed, or into failed from any
working state. Runs are supervised: the task set is owned here and every
run ends with the job in a terminal state.
"""
import asyncio
import logging
from pathlib import Path
from typing import Optional, Set

from app.config import MAX_CONCURRENT_JOBS, OUTPUT_DIR
from app.errors import ProcessingError, SynthesisError
from app.models.job import Job
from app.services.audio_mixer import AudioMixer
from app.services.tts_service import SpeechSynthesizer
from app.services.voice_store import VoiceStore

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = 'An unexpected error occurred while producing the podcast'
SHUTDOWN_FAILURE_MESSAGE = 'Server shut down before the podcast was finished'


class JobProcessor:
    """
    Drives podcast jobs through synthesis and mixing.

    Jobs run concurrently up to ``max_concurrent``; jobs waiting for a slot
    stay pending.
    """

    def __init__(
        self,
        voice_store: VoiceStore,
        synthesizer: SpeechSynthesizer,
        mixer: AudioMixer,
        output_dir: Optional[Path] = None,
        max_concurrent: int = MAX_CONCURRENT_JOBS,
    ):
        self.voice_store = voice_store
        self.synthesizer = synthesizer
        self.mixer = mixer
        self.output_dir = Path(output_dir) if output_dir is not None else OUTPUT_DIR
        self.max_concurrent = max_concurrent
        self._slots: Optional[asyncio.Semaphore] = None
        self._tasks: Set[asyncio.Task] = set()
        self._accepting = True

    @property
    def accepting(self) -> bool:
        return self._accepting

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def output_path_for(self, job_id: str) -> Path:
        """Final artifact location, derived from the job id alone."""
        return self.output_dir / f'{job_id}.mp3'

    def submit(self, job: Job) -> asyncio.Task:
        """
        Dispatch a freshly created job. Returns without waiting for it.

        Raises:
            RuntimeError: the processor has been stopped
        """
        if not self._accepting:
            raise RuntimeError('Job processor is shutting down')
        if self._slots is None:
            # Created lazily so it binds to the running loop.
            self._slots = asyncio.Semaphore(self.max_concurrent)

        task = asyncio.create_task(self._run(job), name=f'podcast-job-{job.id}')
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    async def drain(self):
        """Wait for every in-flight job to reach a terminal state."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def stop(self, timeout: float = 5.0):
        """Stop accepting jobs, give running ones a grace period, cancel the rest."""
        self._accepting = False
        if not self._tasks:
            return
        try:
            await asyncio.wait_for(self.drain(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning('Cancelling %d unfinished jobs', len(self._tasks))
            for task in list(self._tasks):
                task.cancel()
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error('Job task %s escaped its error boundary', task.get_name(), exc_info=exc)

    async def _run(self, job: Job):
        """Run one job to a terminal state. Never raises except on cancellation."""
        try:
            async with self._slots:
                await self._process_job(job)
        except (SynthesisError, ProcessingError) as e:
            logger.error('Job %s failed: %s', job.id, e)
            job.fail(str(e))
        except asyncio.CancelledError:
            if not job.is_terminal:
                job.fail(SHUTDOWN_FAILURE_MESSAGE)
            raise
        except Exception:
            logger.exception('Unexpected error while processing job %s', job.id)
            if not job.is_terminal:
                job.fail(GENERIC_FAILURE_MESSAGE)

    async def _process_job(self, job: Job):
        job.start_synthesis()
        logger.info('Job %s: synthesizing', job.id)

        voice = self.voice_store.find_by_id(job.voice_id)
        if voice is None:
            raise SynthesisError(f'Voice not found: {job.voice_id}')

        speech_path = await self.synthesizer.synthesize(
            job.script,
            self.voice_store.get_file_path(voice),
            job.id,
            job.style_instruction,
        )

        job.start_mixing()
        logger.info('Job %s: mixing', job.id)

        output_path = self.output_path_for(job.id)
        if job.bgm_path is not None:
            await self.mixer.mix(speech_path, job.bgm_path, job.bgm_volume, output_path)
        else:
            await self.mixer.transcode(speech_path, output_path)

        job.complete(output_path)
        logger.info('Job %s: completed -> %s', job.id, output_path)

        self._discard_intermediate(Path(speech_path))

    def _discard_intermediate(self, speech_path: Path):
        try:
            speech_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning('Could not remove intermediate audio %s: %s', speech_path, e)
