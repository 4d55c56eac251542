"""
Application configuration and paths.
"""
import os
from pathlib import Path

# Application identity
APP_NAME = 'CloneCast'
APP_VERSION = '0.1.0'

# Server configuration
SERVER_HOST = os.environ.get('HOST', '127.0.0.1')
SERVER_PORT = int(os.environ.get('PORT', '3000'))

# Data storage (voices, uploaded BGM, intermediate TTS audio, final podcasts)
DATA_DIR = Path(os.environ.get('CLONECAST_DATA_DIR', 'data')).resolve()
VOICES_DIR = DATA_DIR / 'voices'
BGM_DIR = DATA_DIR / 'bgm'
TEMP_DIR = DATA_DIR / 'temp'
OUTPUT_DIR = DATA_DIR / 'output'

# Remote TTS (Replicate predictions API)
REPLICATE_API_TOKEN = os.environ.get('REPLICATE_API_TOKEN', '')
REPLICATE_API_URL = os.environ.get('REPLICATE_API_URL', 'https://api.replicate.com/v1')
TTS_MODEL = os.environ.get('TTS_MODEL', 'qwen/qwen3-tts')
TTS_POLL_INTERVAL = 1.0  # seconds between prediction status checks
TTS_REQUEST_TIMEOUT = 120.0  # per HTTP request
TTS_PREDICTION_TIMEOUT = 600.0  # whole prediction, including queueing on Replicate

# Audio post-processing
FFMPEG_BINARY = os.environ.get('FFMPEG_BINARY', 'ffmpeg')
FFMPEG_TIMEOUT = 600.0
FFMPEG_WORKERS = 2

# Request limits
DEFAULT_BGM_VOLUME = 0.3
MAX_LABEL_LENGTH = 100
MAX_VOICE_FILE_SIZE = 50 * 1024 * 1024  # 50MB
MAX_BGM_FILE_SIZE = 100 * 1024 * 1024  # 100MB

# Job pipeline limits
MAX_CONCURRENT_JOBS = int(os.environ.get('MAX_CONCURRENT_JOBS', '4'))
MAX_RETAINED_JOBS = int(os.environ.get('MAX_RETAINED_JOBS', '500'))


def ensure_directories():
    """Create required directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    VOICES_DIR.mkdir(parents=True, exist_ok=True)
    BGM_DIR.mkdir(parents=True, exist_ok=True)
    TEMP_DIR.mkdir(parents=True, exist_ok=True)
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
