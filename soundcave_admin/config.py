"""Configuration: env, backend URL, session storage, list and upload limits."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of soundcave_admin package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so SOUNDCAVE_API_URL etc. are set
load_dotenv(BASE_DIR / ".env")

DATA_DIR = Path(os.getenv("SOUNDCAVE_DATA_DIR", str(BASE_DIR / "data")))
SESSION_PATH = DATA_DIR / "session.json"

# Keys the dashboard persists its session under
TOKEN_KEY = "soundcave_token"
USER_KEY = "soundcave_user"

# SoundCave REST backend
SOUNDCAVE_API_URL = os.getenv("SOUNDCAVE_API_URL", "http://localhost:5000")
HTTP_TIMEOUT_SEC = float(os.getenv("SOUNDCAVE_HTTP_TIMEOUT_SEC", "30"))

# Local admin API
API_HOST = os.getenv("SOUNDCAVE_ADMIN_HOST", "0.0.0.0")
API_PORT = int(os.getenv("SOUNDCAVE_ADMIN_PORT", "8000"))
# Web UI origin for CORS; empty allows any origin
WEB_ORIGIN = os.getenv("SOUNDCAVE_WEB_ORIGIN", "")

LOG_LEVEL = os.getenv("SOUNDCAVE_LOG_LEVEL", "INFO").upper()

# List screens
PAGE_SIZE = int(os.getenv("SOUNDCAVE_PAGE_SIZE", "10"))
SEARCH_DEBOUNCE_SEC = float(os.getenv("SOUNDCAVE_SEARCH_DEBOUNCE_SEC", "0.5"))
# Option lists (artists, genres) for selects and filters
LOOKUP_LIMIT = 100

# Upload limits, as advertised next to the dashboard's file inputs
_MB = 1024 * 1024
IMAGE_MAX_BYTES = int(float(os.getenv("SOUNDCAVE_IMAGE_MAX_MB", "5")) * _MB)
AUDIO_MAX_BYTES = int(float(os.getenv("SOUNDCAVE_AUDIO_MAX_MB", "50")) * _MB)
VIDEO_MAX_BYTES = int(float(os.getenv("SOUNDCAVE_VIDEO_MAX_MB", "200")) * _MB)


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
