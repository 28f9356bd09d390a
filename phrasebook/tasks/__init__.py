"""
Celery tasks package.

- phrase_tasks: phrase categorization and processing stats
"""

from phrasebook.tasks.phrase_tasks import (
    categorize_phrase,
    enqueue_categorization,
    get_processing_stats,
)

__all__ = [
    "categorize_phrase",
    "enqueue_categorization",
    "get_processing_stats",
]
