"""Job-scoped local staging directories."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable
from uuid import uuid4

logger = logging.getLogger(__name__)


def new_job_dir(root: Path, prefix: str) -> tuple[str, Path]:
    """Create ``<root>/<prefix>_<job id>`` and return ``(job_id, path)``."""
    job_id = uuid4().hex
    path = Path(root) / f"{prefix}_{job_id}"
    path.mkdir(parents=True, exist_ok=False)
    return job_id, path


def cleanup(job_dir: Path | None, paths: Iterable[Path] = ()) -> None:
    """Best-effort removal of ``paths`` and then ``job_dir``. Never raises."""
    for item in paths:
        try:
            Path(item).unlink(missing_ok=True)
        except OSError as e:
            logger.debug("Could not remove %s: %s", item, e)
    if job_dir is None:
        return
    try:
        shutil.rmtree(job_dir)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug("Could not remove staging dir %s: %s", job_dir, e)


class StagingArea:
    """
    Exclusive working directory for one job.

    Use as a context manager; the directory and every tracked path are
    removed exactly once when the block exits, whether it returns or raises.
    Removal errors are swallowed so they never replace the job's own error.
    """

    def __init__(self, root: Path, prefix: str = "job") -> None:
        self.root = Path(root)
        self.prefix = prefix
        self.job_id: str | None = None
        self.path: Path | None = None
        self._tracked: list[Path] = []
        self._released = False

    def __enter__(self) -> "StagingArea":
        self.job_id, self.path = new_job_dir(self.root, self.prefix)
        logger.debug("Acquired staging dir %s", self.path)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False

    def file(self, name: str) -> Path:
        """Path for ``name`` inside the staging dir."""
        if self.path is None:
            raise RuntimeError("staging area not acquired")
        return self.path / name

    def track(self, path: Path) -> Path:
        """Register a path outside the staging dir for removal on release."""
        self._tracked.append(Path(path))
        return Path(path)

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        cleanup(self.path, self._tracked)
        logger.debug("Released staging dir %s", self.path)
