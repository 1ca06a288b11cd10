"""
Job Orchestrator - runs discovery jobs as isolated asyncio tasks.

Every job owns a CancellationToken and writes its state only through the
injected JobStore. A failing job is recorded as error and never affects
other jobs.
"""

import asyncio
from typing import Awaitable, Callable

from geo_analyzer.config import settings
from geo_analyzer.database.job_store import JobStateError, JobStore
from geo_analyzer.database.models import AnalyzeOptions, DiscoveryResult, Job, JobStatus
from geo_analyzer.services.context import CancellationToken, JobCancelled, JobContext
from geo_analyzer.services.discovery_pipeline import MainPageUnavailable, run_discovery_and_analysis
from geo_analyzer.utils.logger import get_logger, job_log_context

logger = get_logger(__name__)

Pipeline = Callable[[str, AnalyzeOptions, JobContext], Awaitable[DiscoveryResult]]


class JobOrchestrator:
    def __init__(
        self,
        store: JobStore,
        pipeline: Pipeline = run_discovery_and_analysis,
        max_concurrent_jobs: int | None = None,
    ):
        self.store = store
        self.pipeline = pipeline
        self._slots = asyncio.Semaphore(max_concurrent_jobs or settings.max_concurrent_jobs)
        self._tokens: dict[str, CancellationToken] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    def submit(self, url: str, options: AnalyzeOptions | None = None) -> str:
        """Queue a job and start it in the background; returns the job id."""
        job = self.store.create(url, options)
        self._tokens[job.id] = CancellationToken()
        task = asyncio.create_task(self._execute(job.id), name=f"geo-job-{job.id}")
        self._tasks[job.id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job.id, None))
        logger.info("Job submitted", job_id=job.id, url=url)
        return job.id

    async def run(self, url: str, options: AnalyzeOptions | None = None) -> Job:
        """Create a job and run it to completion in the current task."""
        job = self.store.create(url, options)
        self._tokens[job.id] = CancellationToken()
        await self._execute(job.id)
        return self.store.get(job.id)

    def cancel(self, job_id: str) -> bool:
        """Trip the job's token; it stops at its next checkpoint."""
        token = self._tokens.get(job_id)
        job = self.store.get(job_id)
        if token is None or job is None or job.status.terminal:
            return False
        token.cancel()
        logger.info("Job cancellation requested", job_id=job_id)
        return True

    async def wait(self, job_id: str) -> Job | None:
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.shield(task)
        return self.store.get(job_id)

    def get(self, job_id: str) -> Job | None:
        return self.store.get(job_id)

    def _context(self, job_id: str) -> JobContext:
        def on_progress(value: int) -> None:
            self.store.update(job_id, progress=value)

        def on_log(message: str) -> None:
            self.store.update(job_id, log=message)

        return JobContext(
            job_id=job_id,
            token=self._tokens[job_id],
            on_progress=on_progress,
            on_log=on_log,
        )

    async def _execute(self, job_id: str) -> None:
        job = self.store.get(job_id)
        ctx = self._context(job_id)
        with job_log_context(job_id):
            async with self._slots:
                try:
                    ctx.token.raise_if_cancelled()
                    self.store.update(job_id, status=JobStatus.RUNNING, log="Job gestartet")
                    result = await self.pipeline(job.url, job.options, ctx)
                    self.store.update(job_id, status=JobStatus.DONE, result=result, log="Job abgeschlossen")
                    logger.info("Job done", score=result.score.total)
                except JobCancelled as e:
                    self._fail(job_id, str(e))
                    logger.info("Job cancelled")
                except MainPageUnavailable as e:
                    self._fail(job_id, str(e))
                    logger.warning("Main page unavailable", url=job.url, error=str(e))
                except Exception as e:
                    self._fail(job_id, str(e) or e.__class__.__name__)
                    logger.exception("Job failed", url=job.url)
                finally:
                    self._tokens.pop(job_id, None)

    def _fail(self, job_id: str, message: str) -> None:
        try:
            self.store.update(job_id, status=JobStatus.ERROR, error=message, log=f"Fehler: {message}")
        except JobStateError:
            logger.warning("Job already finished")
