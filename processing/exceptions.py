"""Errors raised by the video processing pipeline.

Upload and ACL failures are not wrapped: botocore's ``ClientError`` reaches the
caller unchanged.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every pipeline failure."""


class SourceEmpty(PipelineError):
    """The downloaded source video has zero bytes."""

    def __init__(self, object_path: str) -> None:
        self.object_path = object_path
        super().__init__(f"Downloaded video file is empty: {object_path}")


class ObjectNotFound(PipelineError):
    """The requested object path does not resolve to a stored object."""

    def __init__(self, object_path: str) -> None:
        self.object_path = object_path
        super().__init__(f"Object not found: {object_path}")


class ProcessSpawnError(PipelineError):
    """An external tool could not be started (usually: not installed)."""

    def __init__(self, tool: str, reason: str = "") -> None:
        self.tool = tool
        self.reason = reason
        message = f"Failed to start {tool}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ProcessTimeout(PipelineError):
    """An external tool outlived its timeout and was killed."""

    def __init__(self, tool: str, timeout: float) -> None:
        self.tool = tool
        self.timeout = timeout
        super().__init__(f"{tool} timed out after {timeout:g}s and was killed")


class ProbeTimeout(ProcessTimeout):
    pass


class TranscodeTimeout(ProcessTimeout):
    pass


class TranscodeFailed(PipelineError):
    """The HLS transcode exited nonzero."""

    def __init__(self, exit_code: int, stderr_tail: str) -> None:
        self.exit_code = exit_code
        self.stderr_tail = stderr_tail
        super().__init__(f"ffmpeg HLS transcode failed with code {exit_code}: {stderr_tail}")


class FrameExtractionFailed(PipelineError):
    """A single still frame could not be produced."""

    def __init__(self, timestamp: float, reason: str) -> None:
        self.timestamp = timestamp
        self.reason = reason
        super().__init__(f"Failed to extract frame at {timestamp:.3f}s: {reason}")


class ManifestRewriteError(PipelineError):
    """The manifest references a segment that was not uploaded in this job."""

    def __init__(self, segment_name: str) -> None:
        self.segment_name = segment_name
        super().__init__(f"Manifest references unknown segment: {segment_name}")
