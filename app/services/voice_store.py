"""
Flat file voice store: audio files plus a voices.json index.
"""
import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from app.config import VOICES_DIR
from app.errors import NotFoundError
from app.models.voice import Voice

logger = logging.getLogger(__name__)

MIME_EXTENSIONS: Dict[str, str] = {
    'audio/webm': '.webm',
    'audio/wav': '.wav',
    'audio/wave': '.wav',
    'audio/x-wav': '.wav',
    'audio/mpeg': '.mp3',
    'audio/mp3': '.mp3',
    'audio/ogg': '.ogg',
    'audio/mp4': '.m4a',
}
DEFAULT_EXTENSION = '.webm'


def extension_for_mime(mime_type: str) -> str:
    """Map an upload content type to the file extension it is stored under."""
    return MIME_EXTENSIONS.get(mime_type, DEFAULT_EXTENSION)


class VoiceStore:
    """
    Persists voice metadata and raw audio bytes.

    The index is re-read on every lookup so that the file on disk stays the
    single source of truth. Writes are serialized with a lock.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else VOICES_DIR
        self.index_path = self.data_dir / 'voices.json'
        self._lock = threading.Lock()

    def ensure_data_dir(self):
        """Create the voices directory and an empty index if missing."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if not self.index_path.exists():
            self._write_index([])

    def list(self) -> List[Voice]:
        """Get all stored voices."""
        return self._read_index()

    def find_by_id(self, voice_id: str) -> Optional[Voice]:
        """Get a voice by ID, or None when it does not exist."""
        for voice in self._read_index():
            if voice.id == voice_id:
                return voice
        return None

    def save(self, label: str, audio: bytes, mime_type: str) -> Voice:
        """Store a recording and add it to the index."""
        self.ensure_data_dir()

        voice_id = str(uuid.uuid4())
        file_name = f'{voice_id}{extension_for_mime(mime_type)}'
        (self.data_dir / file_name).write_bytes(audio)

        voice = Voice(
            id=voice_id,
            label=label,
            file_name=file_name,
            mime_type=mime_type,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        with self._lock:
            voices = self._read_index()
            voices.append(voice)
            self._write_index(voices)

        logger.info('Saved voice %s (%s, %d bytes)', voice_id, mime_type, len(audio))
        return voice

    def delete(self, voice_id: str):
        """
        Remove a voice and its audio file.

        Raises:
            NotFoundError: voice_id is not in the index
        """
        with self._lock:
            voices = self._read_index()
            voice = next((v for v in voices if v.id == voice_id), None)
            if voice is None:
                raise NotFoundError('Voice', voice_id)

            try:
                self.get_file_path(voice).unlink()
            except FileNotFoundError:
                pass  # Already gone

            self._write_index([v for v in voices if v.id != voice_id])

        logger.info('Deleted voice %s', voice_id)

    def get_file_path(self, voice: Voice) -> Path:
        """Absolute path of a voice's audio file."""
        return self.data_dir / voice.file_name

    def _read_index(self) -> List[Voice]:
        try:
            raw = json.loads(self.index_path.read_text(encoding='utf-8'))
            return [Voice.from_dict(item) for item in raw.get('voices', [])]
        except FileNotFoundError:
            return []
        except (ValueError, KeyError, TypeError, AttributeError):
            logger.warning('Voice index %s is unreadable, treating as empty', self.index_path)
            return []

    def _write_index(self, voices: List[Voice]):
        payload = {'voices': [v.to_dict() for v in voices]}
        self.index_path.write_text(json.dumps(payload, indent=2), encoding='utf-8')
