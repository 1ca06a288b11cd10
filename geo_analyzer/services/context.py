"""
Per-job run context: cancellation, progress checkpoints and job log lines.
"""

from dataclasses import dataclass, field
from typing import Callable


class JobCancelled(Exception):
    """Raised at a checkpoint after the job's cancellation token was tripped."""


class CancellationToken:
    """Cooperative cancellation flag checked at stage boundaries and before page work."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise JobCancelled("Job abgebrochen")


def _noop_progress(value: int) -> None:
    return None


def _noop_log(message: str) -> None:
    return None


@dataclass
class JobContext:
    """Hooks the pipeline uses to talk back to whoever owns the job."""

    job_id: str = "adhoc"
    token: CancellationToken = field(default_factory=CancellationToken)
    on_progress: Callable[[int], None] = _noop_progress
    on_log: Callable[[str], None] = _noop_log

    def checkpoint(self, progress: int, message: str | None = None) -> None:
        """Stage boundary: honor cancellation, then record progress."""
        self.token.raise_if_cancelled()
        if message:
            self.on_log(message)
        self.on_progress(progress)

    def log(self, message: str) -> None:
        self.on_log(message)
