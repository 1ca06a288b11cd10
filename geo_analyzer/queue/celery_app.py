"""
Celery application configuration.
"""

from celery import Celery
from celery.signals import setup_logging

from geo_analyzer.config import settings

celery_app = Celery(
    "geo_analyzer",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["geo_analyzer.queue.tasks"],
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=1800,  # 30 minutes hard limit
    task_soft_time_limit=1500,

    # One browser-heavy audit per worker slot
    worker_prefetch_multiplier=1,
    worker_concurrency=settings.max_concurrent_jobs,

    result_expires=86400,  # 24 hours

    # Disable Celery's default hijack of root logger
    worker_hijack_root_logger=False,
)

celery_app.conf.task_routes = {
    "geo_analyzer.queue.tasks.run_geo_audit": {"queue": "audits"},
}


@setup_logging.connect
def configure_celery_logging(**kwargs):
    """Route Celery's own loggers through the structlog setup."""
    from geo_analyzer.utils.logger import setup_logging as setup_structlog

    setup_structlog()
