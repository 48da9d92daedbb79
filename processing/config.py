"""
Pipeline options.

Read from Django settings once per pipeline instance, so tests can build an
instance pointing at a sandbox staging root without touching settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import tempfile

from django.conf import settings

from .hls import SEGMENT_SECONDS


@dataclass
class PipelineOptions:
    staging_root: Path = Path(tempfile.gettempdir())
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"
    segment_seconds: int = SEGMENT_SECONDS

    # None means no timeout
    probe_timeout: float | None = None
    transcode_timeout: float | None = None
    frame_timeout: float | None = None

    segment_upload_workers: int = 1
    hls_key_prefix: str = "hls"
    uploads_key_prefix: str = "uploads"

    @classmethod
    def from_settings(cls) -> "PipelineOptions":
        return cls(
            staging_root=Path(settings.STAGING_ROOT),
            ffmpeg_binary=settings.FFMPEG_BINARY,
            ffprobe_binary=settings.FFPROBE_BINARY,
            segment_seconds=int(settings.HLS_SEGMENT_SECONDS),
            probe_timeout=settings.PROBE_TIMEOUT_SECONDS,
            transcode_timeout=settings.TRANSCODE_TIMEOUT_SECONDS,
            frame_timeout=settings.FRAME_TIMEOUT_SECONDS,
            segment_upload_workers=max(1, int(settings.SEGMENT_UPLOAD_WORKERS)),
            hls_key_prefix=settings.HLS_KEY_PREFIX.strip("/"),
            uploads_key_prefix=settings.UPLOADS_KEY_PREFIX.strip("/"),
        )
