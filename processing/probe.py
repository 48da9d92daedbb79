"""Video duration probing via ffprobe."""

from __future__ import annotations

import logging
import math
from pathlib import Path

from .exceptions import ProbeTimeout, ProcessSpawnError, ProcessTimeout
from .runner import ProcessRunner

logger = logging.getLogger(__name__)

# Duration is informational for HLS; thumbnails space timestamps by it, so a
# zero would put every frame at 0s.
HLS_DURATION_FALLBACK = 0.0
THUMBNAIL_DURATION_FALLBACK = 10.0


def probe_args(video_path: Path) -> list[str]:
    return [
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(video_path),
    ]


def parse_duration(output: str) -> float | None:
    try:
        value = float(output.strip())
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def get_video_duration(
    runner: ProcessRunner,
    video_path: Path,
    fallback: float = HLS_DURATION_FALLBACK,
    *,
    ffprobe: str = "ffprobe",
    timeout: float | None = None,
) -> float:
    """Container duration in seconds, or ``fallback`` when probing fails.

    Only a timeout is fatal (``ProbeTimeout``); a failed or unparseable probe
    degrades to the fallback.
    """
    try:
        result = runner.run(ffprobe, probe_args(video_path), timeout=timeout)
    except ProcessTimeout as e:
        raise ProbeTimeout(e.tool, e.timeout) from e
    except ProcessSpawnError as e:
        logger.warning("ffprobe could not be started (%s); using %ss", e, fallback)
        return fallback

    if not result.ok:
        logger.warning(
            "ffprobe exited %s for %s: %s; using %ss",
            result.exit_code, video_path, result.stderr.strip()[-200:], fallback,
        )
        return fallback

    duration = parse_duration(result.stdout)
    if duration is None:
        logger.warning("Unparseable ffprobe duration %r; using %ss", result.stdout[:80], fallback)
        return fallback
    return duration
