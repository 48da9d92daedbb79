"""Child process invocation for ffprobe/ffmpeg."""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from .exceptions import ProcessSpawnError, ProcessTimeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ProcessRunner(ABC):
    """Runs an external tool and reports how it exited.

    A nonzero exit is returned, not raised; the caller decides whether it is
    fatal. Failing to start the tool raises ``ProcessSpawnError`` and running
    past ``timeout`` raises ``ProcessTimeout``.
    """

    @abstractmethod
    def run(self, tool: str, args: Sequence[str], timeout: float | None = None) -> ProcessResult:
        raise NotImplementedError


class SubprocessRunner(ProcessRunner):
    def run(self, tool: str, args: Sequence[str], timeout: float | None = None) -> ProcessResult:
        cmd = [tool, *[str(a) for a in args]]
        logger.debug("Running %s", " ".join(cmd))
        try:
            # subprocess.run kills the child before re-raising TimeoutExpired
            proc = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise ProcessTimeout(tool, timeout)
        except OSError as e:
            raise ProcessSpawnError(tool, str(e)) from e

        return ProcessResult(
            exit_code=proc.returncode,
            stdout=proc.stdout.decode("utf-8", errors="ignore"),
            stderr=proc.stderr.decode("utf-8", errors="ignore"),
        )
