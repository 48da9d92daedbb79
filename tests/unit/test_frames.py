"""Tests for frame extraction and timestamp selection."""

from pathlib import Path

import pytest

from processing.exceptions import FrameExtractionFailed, ProcessSpawnError
from processing.frames import (
    clamp_timestamp,
    collect_frames,
    evenly_spaced_timestamps,
    extract_frame,
    frame_args,
)
from processing.runner import ProcessResult


class TestTimestamps:
    def test_even_spacing(self) -> None:
        timestamps = evenly_spaced_timestamps(30.0, 6)

        assert timestamps == pytest.approx([30 / 7, 60 / 7, 90 / 7, 120 / 7, 150 / 7, 180 / 7])
        assert [round(t, 2) for t in timestamps] == [4.29, 8.57, 12.86, 17.14, 21.43, 25.71]
        assert all(t < 30.0 for t in timestamps)

    def test_spacing_is_clamped_for_short_videos(self) -> None:
        timestamps = evenly_spaced_timestamps(1.0, 3)

        assert timestamps == pytest.approx([0.25, 0.5, 0.5])

    def test_no_frames_requested(self) -> None:
        assert evenly_spaced_timestamps(30.0, 0) == []

    @pytest.mark.parametrize(
        "timestamp,duration,expected",
        [
            (5.0, 3.0, 2.5),
            (3.0, 3.0, 2.5),
            (2.0, 30.0, 2.0),
            (-1.0, 30.0, 0.0),
            (2.0, 0.3, 0.0),
            (2.0, 0.0, 0.0),
        ],
    )
    def test_clamp(self, timestamp: float, duration: float, expected: float) -> None:
        assert clamp_timestamp(timestamp, duration) == pytest.approx(expected)


def test_frame_args(tmp_path: Path) -> None:
    args = frame_args(tmp_path / "in.mp4", 2.5, tmp_path / "out.jpg")

    assert args[:2] == ["-ss", "2.500"]
    assert args[args.index("-vframes") + 1] == "1"
    assert "pad=1280:720" in args[args.index("-vf") + 1]
    assert "-y" in args
    assert args[-1] == str(tmp_path / "out.jpg")


@pytest.mark.parametrize(
    "timestamp,expected",
    [(0.00005, "0.000"), (1e-4, "0.000"), (0.0, "0.000"), (12.3456, "12.346")],
)
def test_frame_args_seek_is_plain_decimal(tmp_path: Path, timestamp: float, expected: str) -> None:
    args = frame_args(tmp_path / "in.mp4", timestamp, tmp_path / "out.jpg")

    assert args[1] == expected
    assert "e" not in args[1]


class TestExtractFrame:
    def test_writes_verified_image(self, fake_runner, tmp_path: Path) -> None:
        out = extract_frame(fake_runner, tmp_path / "in.mp4", 1.0, tmp_path / "f.jpg")

        assert out == tmp_path / "f.jpg"
        assert out.stat().st_size > 0

    def test_nonzero_exit(self, fake_runner, tmp_path: Path) -> None:
        fake_runner.failing_frames = {1}

        with pytest.raises(FrameExtractionFailed) as exc_info:
            extract_frame(fake_runner, tmp_path / "in.mp4", 4.0, tmp_path / "f.jpg")

        assert exc_info.value.timestamp == 4.0
        assert "code 1" in exc_info.value.reason

    def test_success_without_output_file(self, tmp_path: Path) -> None:
        class SilentRunner:
            def run(self, tool, args, timeout=None):
                return ProcessResult(0, "", "")

        with pytest.raises(FrameExtractionFailed, match="no image"):
            extract_frame(SilentRunner(), tmp_path / "in.mp4", 1.0, tmp_path / "f.jpg")

    def test_corrupt_output_file(self, tmp_path: Path) -> None:
        class GarbageRunner:
            def run(self, tool, args, timeout=None):
                Path(args[-1]).write_bytes(b"definitely not a jpeg")
                return ProcessResult(0, "", "")

        with pytest.raises(FrameExtractionFailed, match="unreadable image"):
            extract_frame(GarbageRunner(), tmp_path / "in.mp4", 1.0, tmp_path / "f.jpg")

    def test_spawn_failure(self, tmp_path: Path) -> None:
        class MissingRunner:
            def run(self, tool, args, timeout=None):
                raise ProcessSpawnError(tool, "No such file or directory")

        with pytest.raises(FrameExtractionFailed, match="Failed to start ffmpeg"):
            extract_frame(MissingRunner(), tmp_path / "in.mp4", 1.0, tmp_path / "f.jpg")


class TestCollectFrames:
    def test_keeps_successes_in_order_and_drops_failures(self) -> None:
        def extract_one(timestamp: float) -> float:
            if timestamp in (2.0, 3.0):
                raise FrameExtractionFailed(timestamp, "boom")
            return timestamp * 10

        batch = collect_frames([1.0, 2.0, 3.0, 4.0], extract_one)

        assert batch.succeeded == [10.0, 40.0]
        assert [e.timestamp for e in batch.failed] == [2.0, 3.0]

    def test_total_failure_is_an_empty_batch(self) -> None:
        def extract_one(timestamp: float):
            raise FrameExtractionFailed(timestamp, "boom")

        batch = collect_frames([1.0, 2.0], extract_one)

        assert batch.succeeded == []
        assert len(batch.failed) == 2

    def test_other_errors_propagate(self) -> None:
        def extract_one(timestamp: float):
            raise RuntimeError("upload rejected")

        with pytest.raises(RuntimeError):
            collect_frames([1.0], extract_one)
