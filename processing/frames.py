"""Still-frame extraction and timestamp selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Generic, Iterable, TypeVar

from PIL import Image, UnidentifiedImageError

from .exceptions import FrameExtractionFailed, ProcessSpawnError, ProcessTimeout
from .runner import ProcessRunner

logger = logging.getLogger(__name__)

FRAME_WIDTH = 1280
FRAME_HEIGHT = 720
# Seeking to the very end yields no frame, so stay this far before it
CLAMP_EPSILON = 0.5

FRAME_FILTER = (
    f"scale={FRAME_WIDTH}:{FRAME_HEIGHT}:force_original_aspect_ratio=decrease,"
    f"pad={FRAME_WIDTH}:{FRAME_HEIGHT}:(ow-iw)/2:(oh-ih)/2"
)

T = TypeVar("T")


def clamp_timestamp(timestamp: float, duration: float) -> float:
    """Clamp into ``[0, duration - CLAMP_EPSILON]``, never below 0."""
    upper = max(0.0, duration - CLAMP_EPSILON)
    return max(0.0, min(float(timestamp), upper))


def evenly_spaced_timestamps(duration: float, count: int) -> list[float]:
    """``count`` timestamps at ``duration / (count + 1) * i`` for ``i = 1..count``, clamped."""
    if count < 1:
        return []
    step = duration / (count + 1)
    return [clamp_timestamp(step * i, duration) for i in range(1, count + 1)]


def frame_args(source: Path, timestamp: float, output_path: Path) -> list[str]:
    return [
        "-ss", f"{timestamp:.3f}",
        "-i", str(source),
        "-vframes", "1",
        "-q:v", "2",
        "-vf", FRAME_FILTER,
        "-y",
        str(output_path),
    ]


def _verify_image(path: Path, timestamp: float) -> None:
    if not path.is_file() or path.stat().st_size == 0:
        raise FrameExtractionFailed(timestamp, "ffmpeg produced no image")
    try:
        with Image.open(path) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise FrameExtractionFailed(timestamp, f"unreadable image: {e}") from e


def extract_frame(
    runner: ProcessRunner,
    source: Path,
    timestamp: float,
    output_path: Path,
    *,
    ffmpeg: str = "ffmpeg",
    timeout: float | None = None,
) -> Path:
    """Write one JPEG frame at ``timestamp`` to ``output_path``.

    Every failure mode surfaces as FrameExtractionFailed.
    """
    try:
        result = runner.run(ffmpeg, frame_args(source, timestamp, output_path), timeout=timeout)
    except (ProcessTimeout, ProcessSpawnError) as e:
        raise FrameExtractionFailed(timestamp, str(e)) from e

    if not result.ok:
        raise FrameExtractionFailed(
            timestamp, f"ffmpeg exited with code {result.exit_code}: {result.stderr[-500:]}"
        )

    _verify_image(output_path, timestamp)
    return output_path


@dataclass
class FrameBatch(Generic[T]):
    """Outcome of a best-effort multi-frame extraction."""

    succeeded: list[T] = field(default_factory=list)
    failed: list[FrameExtractionFailed] = field(default_factory=list)


def collect_frames(timestamps: Iterable[float], extract_one: Callable[[float], T]) -> FrameBatch[T]:
    """Run ``extract_one`` per timestamp, keeping successes and dropping failures.

    Only FrameExtractionFailed is absorbed; anything else propagates.
    """
    batch: FrameBatch[T] = FrameBatch()
    for timestamp in timestamps:
        try:
            batch.succeeded.append(extract_one(timestamp))
        except FrameExtractionFailed as e:
            logger.warning("Skipping frame at %.3fs: %s", timestamp, e.reason)
            batch.failed.append(e)
    return batch
