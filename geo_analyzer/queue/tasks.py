"""
Celery tasks for GEO analysis.
"""

import asyncio
from typing import Any

from celery import shared_task

from geo_analyzer.database.job_store import InMemoryJobStore
from geo_analyzer.database.models import AnalyzeOptions
from geo_analyzer.services.discovery_pipeline import run_discovery_and_analysis
from geo_analyzer.services.job_orchestrator import JobOrchestrator
from geo_analyzer.utils.logger import get_logger

logger = get_logger(__name__)


@shared_task(bind=True)
def run_geo_audit(self, url: str, options: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Run one discovery + analysis job to completion inside the worker.

    The job record (status, progress, logs, result or error) is returned as
    JSON. Failures end up in the record, so the task itself does not retry.
    """
    logger.info("Starting GEO audit", task_id=self.request.id, url=url)

    analyze_options = AnalyzeOptions.model_validate(options or {})
    job = asyncio.run(_run_job(url, analyze_options))

    logger.info(
        "GEO audit finished",
        task_id=self.request.id,
        url=url,
        status=job.status.value,
        score=job.result.score.total if job.result else None,
    )
    return job.model_dump(mode="json")


async def _run_job(url: str, options: AnalyzeOptions):
    orchestrator = JobOrchestrator(InMemoryJobStore(), pipeline=run_discovery_and_analysis)
    return await orchestrator.run(url, options)
