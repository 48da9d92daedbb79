"""Shared test fixtures for the video pipeline."""

import os
import threading
from pathlib import Path

import django
import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "video_pipeline.settings")
os.environ.setdefault("DEBUG", "1")
django.setup()

from PIL import Image  # noqa: E402

from processing.config import PipelineOptions  # noqa: E402
from processing.exceptions import ObjectNotFound  # noqa: E402
from processing.pipelines import VideoPipeline  # noqa: E402
from processing.runner import ProcessResult, ProcessRunner  # noqa: E402
from processing.storage import AclPolicy, ObjectStore, key_for, object_path_for  # noqa: E402

SOURCE_PATH = "/objects/uploads/source-video"
OWNER_ID = "user-42"


class FakeRunner(ProcessRunner):
    """Scripted stand-in for ffprobe/ffmpeg.

    ffprobe prints ``duration``; an HLS ffmpeg call writes ``segments`` files
    plus a playlist; a frame call writes a small JPEG. Set ``probe_result`` or
    ``hls_result`` to a ProcessResult to override, ``probe_error`` to raise, and
    ``failing_frames`` to the 1-based frame calls that should exit nonzero.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str], float | None]] = []
        self.duration = "30.0\n"
        self.probe_result: ProcessResult | None = None
        self.probe_error: Exception | None = None
        self.segments = 3
        self.hls_result: ProcessResult | None = None
        self.hls_hook = None
        self.failing_frames: set[int] = set()
        self.frame_calls = 0
        self._lock = threading.Lock()

    def run(self, tool, args, timeout=None):
        args = list(args)
        with self._lock:
            self.calls.append((tool, args, timeout))
        if tool.endswith("ffprobe"):
            return self._probe()
        if "hls" in args:
            return self._hls(args)
        return self._frame(args)

    def tools(self) -> list[str]:
        return [tool for tool, _, _ in self.calls]

    def _probe(self) -> ProcessResult:
        if self.probe_error is not None:
            raise self.probe_error
        if self.probe_result is not None:
            return self.probe_result
        return ProcessResult(0, self.duration, "")

    def _hls(self, args: list[str]) -> ProcessResult:
        if self.hls_hook is not None:
            self.hls_hook(args)
        if self.hls_result is not None:
            return self.hls_result
        manifest = Path(args[-1])
        pattern = args[args.index("-hls_segment_filename") + 1]
        lines = ["#EXTM3U", "#EXT-X-VERSION:3", "#EXT-X-TARGETDURATION:6", "#EXT-X-MEDIA-SEQUENCE:0"]
        for i in range(self.segments):
            segment = Path(pattern % i)
            segment.write_bytes(b"\x47" * 188 * (i + 1))
            lines += ["#EXTINF:6.000000,", segment.name]
        lines.append("#EXT-X-ENDLIST")
        manifest.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return ProcessResult(0, "", "")

    def _frame(self, args: list[str]) -> ProcessResult:
        with self._lock:
            self.frame_calls += 1
            call = self.frame_calls
        if call in self.failing_frames:
            return ProcessResult(1, "", "Output file is empty, nothing was encoded")
        Image.new("RGB", (32, 18), "black").save(args[-1], format="JPEG")
        return ProcessResult(0, "", "")


class FakeObjectStore(ObjectStore):
    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.acls: dict[str, AclPolicy] = {}
        self.upload_order: list[str] = []
        self.fail_uploads_for: str | None = None
        self._lock = threading.Lock()

    def put_source(self, object_path: str, data: bytes) -> None:
        self.objects[key_for(object_path)] = (data, "video/mp4")

    def download_object(self, object_path, destination):
        key = key_for(object_path)
        if key not in self.objects:
            raise ObjectNotFound(object_path)
        Path(destination).write_bytes(self.objects[key][0])
        return Path(destination)

    def upload_buffer(self, data, content_type, target_key):
        if self.fail_uploads_for and target_key.endswith(self.fail_uploads_for):
            raise RuntimeError(f"upload rejected: {target_key}")
        with self._lock:
            self.objects[target_key] = (bytes(data), content_type)
            self.upload_order.append(target_key)
        return object_path_for(target_key)

    def set_acl_policy(self, object_path, policy):
        if key_for(object_path) not in self.objects:
            raise ObjectNotFound(object_path)
        with self._lock:
            self.acls[object_path] = policy

    def exists(self, object_path):
        return key_for(object_path) in self.objects


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def fake_store() -> FakeObjectStore:
    store = FakeObjectStore()
    store.put_source(SOURCE_PATH, b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 1024)
    return store


@pytest.fixture
def staging_root(tmp_path: Path) -> Path:
    root = tmp_path / "staging"
    root.mkdir()
    return root


@pytest.fixture
def pipeline(fake_store, fake_runner, staging_root) -> VideoPipeline:
    return VideoPipeline(
        store=fake_store,
        runner=fake_runner,
        options=PipelineOptions(staging_root=staging_root),
    )
