from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class HlsResult:
    manifest_path: str
    segment_paths: list[str]
    duration: float


@dataclass
class ThumbnailResult:
    thumbnail_path: str
    timestamp: float


@dataclass
class FrameBatchResult:
    frames: list[ThumbnailResult] = field(default_factory=list)
