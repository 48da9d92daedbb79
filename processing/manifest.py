"""Point an ffmpeg-written playlist at uploaded segment objects."""

from __future__ import annotations

import re
from typing import Mapping

from .exceptions import ManifestRewriteError

SEGMENT_TOKEN = re.compile(r"segment_\d+\.ts")


def segment_names(manifest_text: str) -> list[str]:
    """Segment filenames referenced by the manifest, in order."""
    return SEGMENT_TOKEN.findall(manifest_text)


def rewrite_manifest(manifest_text: str, final_paths: Mapping[str, str]) -> tuple[str, int]:
    """
    Replace every segment filename token with its uploaded object path.

    Returns the rewritten text and the number of tokens replaced. A token
    missing from ``final_paths`` raises ManifestRewriteError.
    """

    def _replace(match: re.Match) -> str:
        name = match.group(0)
        try:
            return final_paths[name]
        except KeyError:
            raise ManifestRewriteError(name) from None

    return SEGMENT_TOKEN.subn(_replace, manifest_text)
