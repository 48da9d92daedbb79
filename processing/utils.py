import mimetypes
from pathlib import Path

# Minimal content-type hints for HLS; mimetypes gets .ts wrong on most systems
HLS_CONTENT_TYPES = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".ts": "video/mp2t",
    ".m2ts": "video/mp2t",
}

def content_type_for(path) -> str:
    """Content-Type to store a local file under."""
    suffix = Path(path).suffix.lower()
    if suffix in HLS_CONTENT_TYPES:
        return HLS_CONTENT_TYPES[suffix]
    mime, _ = mimetypes.guess_type(str(path))
    return mime or "application/octet-stream"

def source_suffix(object_path: str, default: str = ".mp4") -> str:
    """Extension for the local copy of a source object; upload keys often have none."""
    suffix = Path(object_path).suffix.lower()
    return suffix if suffix and len(suffix) <= 6 else default
