"""HLS and thumbnail pipelines over a stored source video."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from uuid import uuid4

from . import hls
from .config import PipelineOptions
from .exceptions import ManifestRewriteError, SourceEmpty
from .frames import clamp_timestamp, collect_frames, evenly_spaced_timestamps, extract_frame
from .manifest import rewrite_manifest, segment_names
from .probe import HLS_DURATION_FALLBACK, THUMBNAIL_DURATION_FALLBACK, get_video_duration
from .results import FrameBatchResult, HlsResult, ThumbnailResult
from .runner import ProcessRunner, SubprocessRunner
from .staging import StagingArea
from .storage import AclPolicy, ObjectStore, S3ObjectStore
from .utils import content_type_for, source_suffix

logger = logging.getLogger(__name__)

DEFAULT_THUMBNAIL_TIMESTAMP = 2.0
DEFAULT_FRAME_COUNT = 6


class VideoPipeline:
    """Runs jobs against one object store and process runner.

    Every public operation is one job: it gets its own staging directory,
    which is gone by the time the call returns or raises.
    """

    def __init__(
        self,
        store: ObjectStore | None = None,
        runner: ProcessRunner | None = None,
        options: PipelineOptions | None = None,
    ) -> None:
        self.store = store or S3ObjectStore()
        self.runner = runner or SubprocessRunner()
        self.options = options or PipelineOptions.from_settings()

    # ------------------------------------------------------------------
    # HLS
    # ------------------------------------------------------------------

    def transcode_to_hls(self, source_object_path: str, owner_user_id: str) -> HlsResult:
        policy = AclPolicy(owner=owner_user_id)
        logger.info("[HLS] Starting transcode for %s", source_object_path)

        with StagingArea(self.options.staging_root, prefix="hls") as staging:
            source = self._download_source(staging, source_object_path)
            duration = self._probe(source, HLS_DURATION_FALLBACK)
            logger.info("[HLS] Video duration: %ss", duration)

            output_dir = staging.file("out")
            output_dir.mkdir()
            output = hls.transcode_to_hls(
                self.runner,
                source,
                output_dir,
                ffmpeg=self.options.ffmpeg_binary,
                segment_seconds=self.options.segment_seconds,
                timeout=self.options.transcode_timeout,
            )
            logger.info("[HLS] Transcode complete: %d segments", len(output.segment_paths))

            manifest_text = output.manifest_path.read_text(encoding="utf-8")
            produced = {p.name for p in output.segment_paths}
            for name in segment_names(manifest_text):
                if name not in produced:
                    raise ManifestRewriteError(name)

            key_prefix = f"{self.options.hls_key_prefix}/{staging.job_id}"
            final_paths = self._upload_segments(output.segment_paths, key_prefix, policy)

            rewritten, replaced = rewrite_manifest(manifest_text, final_paths)
            if replaced != len(final_paths):
                logger.warning(
                    "[HLS] Manifest references %d segments but %d were produced",
                    replaced, len(final_paths),
                )
            manifest_path = self._publish(
                rewritten.encode("utf-8"),
                content_type_for(output.manifest_path),
                f"{key_prefix}/{hls.MANIFEST_NAME}",
                policy,
            )

        logger.info("[HLS] Upload complete: %s", manifest_path)
        return HlsResult(
            manifest_path=manifest_path,
            segment_paths=[final_paths[p.name] for p in output.segment_paths],
            duration=duration,
        )

    def check_hls_manifest_exists(self, manifest_path: str) -> bool:
        try:
            return self.store.exists(manifest_path)
        except Exception as e:
            logger.debug("Manifest existence check failed for %s: %s", manifest_path, e)
            return False

    def _upload_segments(self, segments: list[Path], key_prefix: str, policy: AclPolicy) -> dict[str, str]:
        """Upload every segment; returns filename -> final object path."""

        def publish(path: Path) -> tuple[str, str]:
            object_path = self._publish(
                path.read_bytes(), content_type_for(path), f"{key_prefix}/{path.name}", policy
            )
            return path.name, object_path

        workers = self.options.segment_upload_workers
        if workers > 1 and len(segments) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                uploaded = list(pool.map(publish, segments))
        else:
            uploaded = [publish(p) for p in segments]
        return dict(uploaded)

    # ------------------------------------------------------------------
    # Thumbnails
    # ------------------------------------------------------------------

    def generate_auto_thumbnail(
        self,
        source_object_path: str,
        owner_user_id: str,
        timestamp: float = DEFAULT_THUMBNAIL_TIMESTAMP,
    ) -> ThumbnailResult:
        policy = AclPolicy(owner=owner_user_id)

        with StagingArea(self.options.staging_root, prefix="thumb") as staging:
            source = self._download_source(staging, source_object_path)
            duration = self._probe(source, THUMBNAIL_DURATION_FALLBACK)
            safe_timestamp = clamp_timestamp(timestamp, duration)

            frame = self._extract(source, safe_timestamp, staging.file("thumb.jpg"))
            thumbnail_path = self._publish_thumbnail(frame, policy)

        return ThumbnailResult(thumbnail_path=thumbnail_path, timestamp=safe_timestamp)

    def generate_thumbnail_at_timestamp(
        self, source_object_path: str, owner_user_id: str, timestamp: float
    ) -> ThumbnailResult:
        if timestamp < 0:
            raise ValueError(f"timestamp must be non-negative, got {timestamp}")
        return self.generate_auto_thumbnail(source_object_path, owner_user_id, timestamp)

    def extract_multiple_frames(
        self,
        source_object_path: str,
        owner_user_id: str,
        frame_count: int = DEFAULT_FRAME_COUNT,
    ) -> FrameBatchResult:
        if frame_count < 1:
            raise ValueError(f"frame_count must be at least 1, got {frame_count}")
        policy = AclPolicy(owner=owner_user_id)

        with StagingArea(self.options.staging_root, prefix="thumb") as staging:
            source = self._download_source(staging, source_object_path)
            duration = self._probe(source, THUMBNAIL_DURATION_FALLBACK)
            timestamps = evenly_spaced_timestamps(duration, frame_count)

            def extract_one(timestamp: float) -> ThumbnailResult:
                frame = self._extract(source, timestamp, staging.file(f"frame_{uuid4().hex}.jpg"))
                return ThumbnailResult(
                    thumbnail_path=self._publish_thumbnail(frame, policy),
                    timestamp=timestamp,
                )

            batch = collect_frames(timestamps, extract_one)

        logger.info(
            "Extracted %d of %d frames from %s",
            len(batch.succeeded), frame_count, source_object_path,
        )
        return FrameBatchResult(frames=batch.succeeded)

    def _extract(self, source: Path, timestamp: float, output_path: Path) -> Path:
        return extract_frame(
            self.runner,
            source,
            timestamp,
            output_path,
            ffmpeg=self.options.ffmpeg_binary,
            timeout=self.options.frame_timeout,
        )

    def _publish_thumbnail(self, frame: Path, policy: AclPolicy) -> str:
        key = f"{self.options.uploads_key_prefix}/{uuid4().hex}{frame.suffix}"
        return self._publish(frame.read_bytes(), content_type_for(frame), key, policy)

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def _download_source(self, staging: StagingArea, object_path: str) -> Path:
        destination = staging.file(f"source{source_suffix(object_path)}")
        logger.info("Downloading video from storage: %s", object_path)
        local = self.store.download_object(object_path, destination)

        size = local.stat().st_size
        logger.info("Downloaded video: %d bytes", size)
        if size == 0:
            raise SourceEmpty(object_path)
        return local

    def _probe(self, source: Path, fallback: float) -> float:
        return get_video_duration(
            self.runner,
            source,
            fallback,
            ffprobe=self.options.ffprobe_binary,
            timeout=self.options.probe_timeout,
        )

    def _publish(self, data: bytes, content_type: str, key: str, policy: AclPolicy) -> str:
        """Upload and apply the ACL; an object is only returned once both succeed."""
        object_path = self.store.upload_buffer(data, content_type, key)
        self.store.set_acl_policy(object_path, policy)
        return object_path


_default_pipeline: VideoPipeline | None = None


def get_pipeline() -> VideoPipeline:
    """Process-wide pipeline built from Django settings."""
    global _default_pipeline
    if _default_pipeline is None:
        _default_pipeline = VideoPipeline()
    return _default_pipeline


def transcode_to_hls(source_object_path: str, owner_user_id: str) -> HlsResult:
    return get_pipeline().transcode_to_hls(source_object_path, owner_user_id)


def generate_auto_thumbnail(
    source_object_path: str, owner_user_id: str, timestamp: float = DEFAULT_THUMBNAIL_TIMESTAMP
) -> ThumbnailResult:
    return get_pipeline().generate_auto_thumbnail(source_object_path, owner_user_id, timestamp)


def extract_multiple_frames(
    source_object_path: str, owner_user_id: str, frame_count: int = DEFAULT_FRAME_COUNT
) -> FrameBatchResult:
    return get_pipeline().extract_multiple_frames(source_object_path, owner_user_id, frame_count)


def generate_thumbnail_at_timestamp(
    source_object_path: str, owner_user_id: str, timestamp: float
) -> ThumbnailResult:
    return get_pipeline().generate_thumbnail_at_timestamp(source_object_path, owner_user_id, timestamp)


def check_hls_manifest_exists(manifest_path: str) -> bool:
    return get_pipeline().check_hls_manifest_exists(manifest_path)
