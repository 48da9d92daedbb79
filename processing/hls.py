"""Single-profile HLS packaging with ffmpeg."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .exceptions import ProcessTimeout, TranscodeFailed, TranscodeTimeout
from .runner import ProcessRunner

logger = logging.getLogger(__name__)

MANIFEST_NAME = "playlist.m3u8"
SEGMENT_EXTENSION = ".ts"
SEGMENT_FILENAME = "segment_%03d.ts"
SEGMENT_SECONDS = 6
STDERR_TAIL_CHARS = 500

# H.264 Main@3.1 / AAC stereo, at most 1280x720 with even dimensions
VIDEO_FILTER = (
    "scale='trunc(min(1280,iw)/2)*2':'trunc(min(720,ih)/2)*2'"
    ":force_original_aspect_ratio=decrease,"
    "pad=ceil(iw/2)*2:ceil(ih/2)*2"
)


@dataclass
class HlsOutput:
    manifest_path: Path
    segment_paths: list[Path]


def hls_args(source: Path, output_dir: Path, segment_seconds: int = SEGMENT_SECONDS) -> list[str]:
    return [
        "-y",
        "-i", str(source),
        "-c:v", "libx264",
        "-preset", "fast",
        "-crf", "23",
        "-c:a", "aac",
        "-b:a", "128k",
        "-ac", "2",
        "-ar", "44100",
        "-vf", VIDEO_FILTER,
        "-profile:v", "main",
        "-level", "3.1",
        "-start_number", "0",
        "-hls_time", str(segment_seconds),
        "-hls_list_size", "0",
        "-hls_segment_filename", str(output_dir / SEGMENT_FILENAME),
        "-f", "hls",
        str(output_dir / MANIFEST_NAME),
    ]


def stderr_tail(stderr: str, limit: int = STDERR_TAIL_CHARS) -> str:
    return stderr[-limit:]


def collect_segments(output_dir: Path) -> list[Path]:
    """Segment files in ``output_dir``, in playback order.

    Zero-padded numbering makes lexicographic order the playback order.
    """
    return sorted(
        (p for p in output_dir.iterdir() if p.is_file() and p.suffix == SEGMENT_EXTENSION),
        key=lambda p: p.name,
    )


def transcode_to_hls(
    runner: ProcessRunner,
    source: Path,
    output_dir: Path,
    *,
    ffmpeg: str = "ffmpeg",
    segment_seconds: int = SEGMENT_SECONDS,
    timeout: float | None = None,
) -> HlsOutput:
    try:
        result = runner.run(ffmpeg, hls_args(source, output_dir, segment_seconds), timeout=timeout)
    except ProcessTimeout as e:
        raise TranscodeTimeout(e.tool, e.timeout) from e

    if not result.ok:
        tail = stderr_tail(result.stderr)
        logger.error("ffmpeg HLS transcode failed with code %s", result.exit_code)
        raise TranscodeFailed(result.exit_code, tail)

    segments = collect_segments(output_dir)
    return HlsOutput(manifest_path=output_dir / MANIFEST_NAME, segment_paths=segments)
