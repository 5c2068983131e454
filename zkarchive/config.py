import os
from dotenv import load_dotenv

load_dotenv()

_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def _positive_int(name: str, default: int) -> int:
    try:
        value = int(os.getenv(name, str(default)))
    except ValueError:
        return default
    return value if value > 0 else default


def build_allowed_origins(extra: str | None) -> list[str]:
    """Default origins followed by the comma-separated extras, deduplicated in order."""
    origins = list(DEFAULT_CORS_ORIGINS)
    if extra:
        origins.extend(origin.strip() for origin in extra.split(","))
    return list(dict.fromkeys(origin for origin in origins if origin))


DEFAULT_CORS_ORIGINS = (
    "https://zkarchive.us",
    "https://app.zkarchive.us",
    "https://useodds.fun",
    "http://localhost:3000",
    "http://localhost:5173",
)

HOST = os.getenv("HOST", "0.0.0.0")
PORT = _positive_int("PORT", 4000)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(_PROJECT_ROOT, "uploads"))
DATA_DIR = os.getenv("DATA_DIR", os.path.join(_PROJECT_ROOT, "data"))
DB_FILE = os.path.join(DATA_DIR, "archives.json")

# Relational backend for the metadata store; the JSON file is used when unset
DB_URL = os.getenv("DB_URL", "")

MAX_FILE_SIZE_MB = _positive_int("MAX_FILE_SIZE_MB", 100)
MAX_FILE_SIZE = MAX_FILE_SIZE_MB * 1024 * 1024
CACHE_MAX_AGE_SECONDS = int(os.getenv("CACHE_MAX_AGE_SECONDS", "3600"))

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
ALLOWED_ORIGINS = build_allowed_origins(CORS_ORIGINS)
