"""
Celery application instance and configuration.

Run a worker and the beat scheduler with:

    celery -A phrasebook.workers.celery_app worker -Q phrases,monitoring --loglevel=info
    celery -A phrasebook.workers.celery_app beat --loglevel=info
"""

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging as celery_setup_logging

from phrasebook.core.config import settings
from phrasebook.core.logging import setup_logging

# Create Celery application
celery_app = Celery(
    "phrasebook",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["phrasebook.tasks.phrase_tasks"],
)

# Configure Celery
celery_app.conf.update(
    task_serializer=settings.CELERY_TASK_SERIALIZER,
    result_serializer=settings.CELERY_RESULT_SERIALIZER,
    accept_content=settings.celery_accept_content_list,
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=settings.CELERY_ENABLE_UTC,
    task_track_started=True,
    task_time_limit=5 * 60,  # 5 minutes
    task_soft_time_limit=4 * 60,  # 4 minutes
    result_expires=3600,  # 1 hour
)

# Celery Beat Schedule (Periodic Tasks)
celery_app.conf.beat_schedule = {
    'get-processing-stats': {
        'task': 'phrases.get_processing_stats',
        'schedule': crontab(minute='*/15'),  # Every 15 minutes
        'options': {'queue': 'monitoring'},
    },
}

# Task routing
celery_app.conf.task_routes = {
    'phrases.categorize_phrase': {'queue': 'phrases'},
    'phrases.get_processing_stats': {'queue': 'monitoring'},
}


@celery_setup_logging.connect
def configure_worker_logging(**kwargs):
    """Use the application's structlog setup instead of Celery's own handlers."""
    setup_logging()
