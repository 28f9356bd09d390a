"""
Celery tasks for phrase categorization.

This module contains background tasks for:
- Categorizing a newly submitted phrase (one job per phrase)
- Monitoring how many phrases are still waiting for a category

Categorization jobs are safe to replay: the workflow skips phrases that are
missing or already settled, so a redelivered message is harmless. That is
why the task acknowledges late and is requeued if the worker dies.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import func, select

from phrasebook.db.session import task_session
from phrasebook.models.phrase import Phrase
from phrasebook.services.phrase_service import PhraseService
from phrasebook.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


# ========================================
# Async Helper
# ========================================

def run_async(coro):
    """
    Run async coroutine, handling both event loop and no event loop scenarios.

    - Celery worker (no running loop): asyncio.run()
    - Called from inside a running loop (tests): run in a worker thread
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    import concurrent.futures

    with concurrent.futures.ThreadPoolExecutor() as executor:
        future = executor.submit(asyncio.run, coro)
        return future.result()


# ========================================
# Categorization
# ========================================

async def _categorize(phrase_id: int) -> Dict[str, Any]:
    async with task_session() as db:
        try:
            outcome = await PhraseService(db).categorize(phrase_id)
        except Exception as e:
            # Store failures: leave the phrase in Processing and report
            logger.error(f"Categorization of phrase {phrase_id} failed: {e}", exc_info=True)
            await db.rollback()
            return {
                'success': False,
                'phrase_id': phrase_id,
                'outcome': 'error',
                'category': None,
                'fallback_reason': None,
                'error': str(e),
            }

    return {'success': True, **outcome.as_dict()}


@celery_app.task(
    name='phrases.categorize_phrase',
    acks_late=True,
    reject_on_worker_lost=True,
)
def categorize_phrase(phrase_id: int) -> dict:
    """
    Assign a category to one phrase.

    Args:
        phrase_id: Database ID of the phrase

    Returns:
        Dictionary with success, phrase_id, outcome, category and
        fallback_reason
    """
    logger.info(f"Categorizing phrase {phrase_id}")
    result = run_async(_categorize(phrase_id))
    logger.info(f"Phrase {phrase_id} categorization finished: {result['outcome']}")
    return result


def enqueue_categorization(phrase_id: int) -> None:
    """
    Hand a phrase to the categorization queue.

    Raises whatever the broker client raises if the message can't be sent.
    """
    categorize_phrase.apply_async(args=[phrase_id], countdown=0)


# ========================================
# Monitoring
# ========================================

async def _processing_stats(now: datetime) -> Dict[str, Any]:
    async with task_session() as db:
        result = await db.execute(
            select(Phrase.is_processing, func.count(Phrase.id)).group_by(Phrase.is_processing)
        )
        counts = {bool(row[0]): row[1] for row in result.all()}

        oldest = await db.scalar(
            select(func.min(Phrase.created_at)).where(Phrase.is_processing.is_(True))
        )

    oldest_age = None
    if oldest is not None:
        if oldest.tzinfo is None:
            oldest = oldest.replace(tzinfo=timezone.utc)
        oldest_age = (now - oldest).total_seconds()

    return {
        'processing': counts.get(True, 0),
        'settled': counts.get(False, 0),
        'total': sum(counts.values()),
        'oldest_processing_age_seconds': oldest_age,
    }


@celery_app.task(name='phrases.get_processing_stats')
def get_processing_stats() -> dict:
    """
    Get statistics about phrases waiting for categorization.

    Read-only: phrases stuck in Processing are reported, not repaired.
    """
    stats = run_async(_processing_stats(datetime.now(timezone.utc)))
    if stats['processing']:
        logger.info(
            f"{stats['processing']} phrase(s) awaiting categorization, "
            f"oldest {stats['oldest_processing_age_seconds']:.0f}s"
        )
    return stats
