from celery import shared_task
from celery.utils.log import get_task_logger

from .exceptions import PipelineError
from .pipelines import get_pipeline
from .serializers import (
    FrameBatchJobSerializer,
    FrameBatchResultSerializer,
    HlsResultSerializer,
    ManifestCheckSerializer,
    SourceJobSerializer,
    ThumbnailJobSerializer,
    ThumbnailResultSerializer,
    TimestampThumbnailJobSerializer,
)

logger = get_task_logger(__name__)


def _validated(serializer_class, **data) -> dict:
    ser = serializer_class(data=data)
    ser.is_valid(raise_exception=True)
    return ser.validated_data


def _run(task, label: str, fn, *args):
    """Run a pipeline operation, logging a bounded error before re-raising."""
    logger.info("Task %s: %s started", task.request.id, label)
    try:
        result = fn(*args)
    except PipelineError as e:
        logger.error("Task %s: %s failed: %s", task.request.id, label, str(e)[:4000])
        raise
    except Exception as e:
        logger.exception("Task %s: %s crashed: %s", task.request.id, label, str(e)[:4000])
        raise
    logger.info("Task %s: %s finished", task.request.id, label)
    return result


@shared_task(bind=True)
def transcode_to_hls_task(self, source_path: str, owner_id: str) -> dict:
    data = _validated(SourceJobSerializer, source_path=source_path, owner_id=owner_id)
    result = _run(
        self, f"HLS transcode of {source_path}",
        get_pipeline().transcode_to_hls, data["source_path"], data["owner_id"],
    )
    return HlsResultSerializer(result).data


@shared_task(bind=True)
def generate_auto_thumbnail_task(self, source_path: str, owner_id: str, timestamp: float | None = None) -> dict:
    payload = {"source_path": source_path, "owner_id": owner_id}
    if timestamp is not None:
        payload["timestamp"] = timestamp
    data = _validated(ThumbnailJobSerializer, **payload)
    result = _run(
        self, f"thumbnail of {source_path}",
        get_pipeline().generate_auto_thumbnail, data["source_path"], data["owner_id"], data["timestamp"],
    )
    return ThumbnailResultSerializer(result).data


@shared_task(bind=True)
def generate_thumbnail_at_timestamp_task(self, source_path: str, owner_id: str, timestamp: float) -> dict:
    data = _validated(
        TimestampThumbnailJobSerializer, source_path=source_path, owner_id=owner_id, timestamp=timestamp
    )
    result = _run(
        self, f"thumbnail of {source_path} at {timestamp}s",
        get_pipeline().generate_thumbnail_at_timestamp,
        data["source_path"], data["owner_id"], data["timestamp"],
    )
    return ThumbnailResultSerializer(result).data


@shared_task(bind=True)
def extract_multiple_frames_task(self, source_path: str, owner_id: str, frame_count: int | None = None) -> dict:
    payload = {"source_path": source_path, "owner_id": owner_id}
    if frame_count is not None:
        payload["frame_count"] = frame_count
    data = _validated(FrameBatchJobSerializer, **payload)
    result = _run(
        self, f"{data['frame_count']} frames of {source_path}",
        get_pipeline().extract_multiple_frames, data["source_path"], data["owner_id"], data["frame_count"],
    )
    return FrameBatchResultSerializer(result).data


@shared_task
def check_hls_manifest_exists_task(manifest_path: str) -> bool:
    data = _validated(ManifestCheckSerializer, manifest_path=manifest_path)
    return get_pipeline().check_hls_manifest_exists(data["manifest_path"])
