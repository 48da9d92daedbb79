from pathlib import Path
import os
import tempfile
from dotenv import load_dotenv
from django.core.exceptions import ImproperlyConfigured

# -----------------------------------------------------
# Helpers
# -----------------------------------------------------
def env(name: str, default=None, *, required: bool = False):
    val = os.getenv(name, default)
    if required and (val is None or (isinstance(val, str) and val.strip() == "")):
        raise ImproperlyConfigured(f"Missing required environment variable: {name}")
    return val

def env_bool(name: str, default: bool = False) -> bool:
    return str(os.getenv(name, str(default))).lower() in {"1", "true", "yes", "on"}

def env_seconds(name: str) -> float | None:
    """Optional timeout in seconds; unset or blank means unbounded."""
    val = os.getenv(name, "").strip()
    if not val:
        return None
    try:
        seconds = float(val)
    except ValueError:
        raise ImproperlyConfigured(f"{name} must be a number of seconds, got {val!r}")
    if seconds <= 0:
        raise ImproperlyConfigured(f"{name} must be positive, got {val!r}")
    return seconds

# -----------------------------------------------------
# Paths & basics
# -----------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

DEBUG = env_bool("DEBUG", False)

# Workers never serve HTTP, but Django still wants a key
SECRET_KEY = env("DJANGO_SECRET_KEY", "dev-only-secret-key-change-me", required=not DEBUG)

# -----------------------------------------------------
# Applications
# -----------------------------------------------------
INSTALLED_APPS = [
    # Third-party
    "rest_framework",

    # Local
    "processing",
]

# -----------------------------------------------------
# Internationalization
# -----------------------------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# -----------------------------------------------------
# Logging
# -----------------------------------------------------
LOG_LEVEL = env("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "processing": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "celery": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}

# -----------------------------------------------------
# Django REST Framework
# -----------------------------------------------------
REST_FRAMEWORK = {
    # Serializers only; no views are mounted
    "UNAUTHENTICATED_USER": None,
}

# -----------------------------------------------------
# Celery / Redis
# -----------------------------------------------------
CELERY_BROKER_URL = env("CELERY_BROKER_URL", "redis://127.0.0.1:6379/0")
CELERY_RESULT_BACKEND = env("CELERY_RESULT_BACKEND", "redis://127.0.0.1:6379/0")
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = int(env("CELERY_TASK_TIME_LIMIT", str(60 * 30)))  # seconds
# Jobs are long; one at a time per worker process
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]

# -----------------------------------------------------
# S3 / MinIO (env-driven; no hardcoded secrets)
# -----------------------------------------------------
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL") or "http://127.0.0.1:9000"  # fine for local
S3_REGION = os.getenv("S3_REGION", "us-east-1")
S3_BUCKET = os.getenv("S3_BUCKET", "media-local")
S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY")          # set in .env for local
S3_SECRET_KEY = os.getenv("S3_SECRET_KEY")          # set in .env for local

# Object paths handed to and returned from the pipeline look like /objects/<key>
OBJECT_PATH_PREFIX = os.getenv("OBJECT_PATH_PREFIX", "/objects")
HLS_KEY_PREFIX = os.getenv("HLS_KEY_PREFIX", "hls")
UPLOADS_KEY_PREFIX = os.getenv("UPLOADS_KEY_PREFIX", "uploads")

# -----------------------------------------------------
# FFmpeg / staging
# -----------------------------------------------------
FFMPEG_BINARY = os.getenv("FFMPEG_BINARY", "ffmpeg")
FFPROBE_BINARY = os.getenv("FFPROBE_BINARY", "ffprobe")
STAGING_ROOT = Path(os.getenv("STAGING_ROOT") or tempfile.gettempdir())
HLS_SEGMENT_SECONDS = int(env("HLS_SEGMENT_SECONDS", "6"))

PROBE_TIMEOUT_SECONDS = env_seconds("PROBE_TIMEOUT_SECONDS")
TRANSCODE_TIMEOUT_SECONDS = env_seconds("TRANSCODE_TIMEOUT_SECONDS")
FRAME_TIMEOUT_SECONDS = env_seconds("FRAME_TIMEOUT_SECONDS")

# 1 keeps segment uploads sequential
SEGMENT_UPLOAD_WORKERS = max(1, int(env("SEGMENT_UPLOAD_WORKERS", "1")))
