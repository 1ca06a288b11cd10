"""
Job store - the only place job records are mutated.
"""

from typing import Protocol
from uuid import uuid4

from geo_analyzer.database.models import AnalyzeOptions, DiscoveryResult, Job, JobLogEntry, JobStatus, utcnow
from geo_analyzer.utils.logger import get_logger

logger = get_logger(__name__)


class JobStateError(Exception):
    """Illegal job transition (unknown job, update after completion, missing result/error)."""


class JobStore(Protocol):
    def create(self, url: str, options: AnalyzeOptions | None = None) -> Job: ...

    def get(self, job_id: str) -> Job | None: ...

    def update(
        self,
        job_id: str,
        *,
        status: JobStatus | None = None,
        progress: int | None = None,
        result: DiscoveryResult | None = None,
        error: str | None = None,
        log: str | None = None,
    ) -> Job: ...


class InMemoryJobStore:
    """
    Dict-backed JobStore for a single process.

    Callers get copies; progress never decreases; done/error jobs are frozen.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}

    def create(self, url: str, options: AnalyzeOptions | None = None) -> Job:
        job = Job(id=str(uuid4()), url=url, options=options or AnalyzeOptions())
        self._jobs[job.id] = job
        logger.debug("Job created", job_id=job.id, url=url)
        return job.model_copy(deep=True)

    def get(self, job_id: str) -> Job | None:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job is not None else None

    def update(
        self,
        job_id: str,
        *,
        status: JobStatus | None = None,
        progress: int | None = None,
        result: DiscoveryResult | None = None,
        error: str | None = None,
        log: str | None = None,
    ) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobStateError(f"Unknown job {job_id}")
        if job.status.terminal:
            raise JobStateError(f"Job {job_id} is already {job.status.value}")
        if status == JobStatus.DONE and result is None:
            raise JobStateError("A finished job needs a result")
        if status == JobStatus.ERROR and not error:
            raise JobStateError("A failed job needs an error message")

        if log:
            job.logs.append(JobLogEntry(message=log))
        if progress is not None:
            job.progress = max(job.progress, min(100, max(0, progress)))
        if status is not None:
            job.status = status
        if status == JobStatus.DONE:
            job.result = result
            job.progress = 100
        if status == JobStatus.ERROR:
            job.error = error
        job.updated_at = utcnow()
        return job.model_copy(deep=True)
