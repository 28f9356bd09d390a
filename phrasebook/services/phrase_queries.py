"""
Phrase Query Service

Read-side operations over the phrases table: listing/search and the
dashboard aggregations. Everything here is a pure function of the current
rows and is recomputed on every call (no caching, no stored aggregates).

Listing Modes:
--------------
1. search text given  → full-text match over `text`, optionally narrowed by category
2. only category      → equality lookup, newest first
3. neither            → every phrase, newest first

Search takes precedence: when both are given, the category only narrows
the full-text results.
"""

import logging
import random
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Dict, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from phrasebook.core.config import settings
from phrasebook.models.phrase import Phrase
from phrasebook.services.processors.activity import (
    DayBucket,
    build_heatmap,
    build_weekly_progress,
    count_by_day,
    heatmap_window,
    month_labels,
)
from phrasebook.services.processors.text_search import TextSearchService

logger = logging.getLogger(__name__)

WEEKLY_WINDOW = timedelta(days=7)


def weekly_window_start(now: Optional[datetime] = None) -> datetime:
    """Inclusive lower bound of the sliding 7×24h window ending at ``now``."""
    now = now or datetime.now(timezone.utc)
    return now - WEEKLY_WINDOW


def activity_timezone(name: Optional[str] = None) -> tzinfo:
    """Timezone used for calendar-day buckets."""
    name = name or settings.ACTIVITY_TIMEZONE
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


class PhraseQueryService:
    """
    Service for listing, searching and aggregating phrases.

    Usage:
    ------
    queries = PhraseQueryService(db)
    phrases = await queries.list_phrases(search="wisdom")
    counts = await queries.category_histogram()   # {"Technical": 3, "Processing...": 1}
    this_week = await queries.weekly_count()
    """

    def __init__(
        self,
        db: AsyncSession,
        text_search: Optional[TextSearchService] = None,
        tz: Optional[tzinfo] = None,
    ):
        """
        Args:
            db: Database session
            text_search: Full-text clause builder (defaults to English)
            tz: Timezone for day buckets (defaults to settings.ACTIVITY_TIMEZONE)
        """
        self.db = db
        self.text_search = text_search or TextSearchService()
        self.tz = tz or activity_timezone()

    @property
    def dialect_name(self) -> str:
        return self.db.get_bind().dialect.name

    # ========================================
    # Listing / Search
    # ========================================

    async def list_phrases(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Phrase]:
        """
        List phrases in one of the three modes (see module docstring).

        Args:
            category: Category label filter (the processing sentinel is allowed)
            search: Full-text query; blank counts as absent

        Returns:
            Matching phrases
        """
        search = search.strip() if search else None
        category = category or None

        if search:
            match = self.text_search.build_match(Phrase.text, search, self.dialect_name)
            if match is None:
                # Nothing searchable left after removing punctuation
                return []

            stmt = select(Phrase).where(match.clause)
            if category:
                stmt = stmt.where(Phrase.category == category)
            if match.rank is not None:
                stmt = stmt.order_by(match.rank.desc(), Phrase.created_at.desc())
            else:
                stmt = stmt.order_by(Phrase.created_at.desc(), Phrase.id.desc())

        elif category:
            stmt = (
                select(Phrase)
                .where(Phrase.category == category)
                .order_by(Phrase.created_at.desc(), Phrase.id.desc())
            )

        else:
            stmt = select(Phrase).order_by(Phrase.created_at.desc(), Phrase.id.desc())

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    # ========================================
    # Aggregations
    # ========================================

    async def count_phrases(self) -> int:
        result = await self.db.execute(select(func.count(Phrase.id)))
        return result.scalar() or 0

    async def category_histogram(self) -> Dict[str, int]:
        """
        Count phrases per category label.

        Includes the processing sentinel; the values sum to the total
        number of phrases.
        """
        result = await self.db.execute(
            select(Phrase.category, func.count(Phrase.id)).group_by(Phrase.category)
        )
        return {category: count for category, count in result.all()}

    async def weekly_count(self, now: Optional[datetime] = None) -> int:
        """
        Count phrases created within the trailing 7×24h window.

        The window slides with ``now`` (not calendar-aligned) and its lower
        bound is inclusive.
        """
        cutoff = weekly_window_start(now)
        result = await self.db.execute(
            select(func.count(Phrase.id)).where(Phrase.created_at >= cutoff)
        )
        return result.scalar() or 0

    async def random_phrase(self, rng: Optional[random.Random] = None) -> Optional[Phrase]:
        """
        Pick one settled phrase uniformly at random.

        Phrases still being categorized are never returned.

        Args:
            rng: Random source (tests pass a seeded one)

        Returns:
            A phrase, or None if no settled phrase exists
        """
        result = await self.db.execute(
            select(Phrase).where(Phrase.is_processing.is_(False)).order_by(Phrase.id)
        )
        candidates = list(result.scalars().all())
        if not candidates:
            return None

        rng = rng or random
        return candidates[rng.randrange(len(candidates))]

    async def summary(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """Dashboard tiles: total phrases, distinct categories, phrases this week."""
        return {
            "total_phrases": await self.count_phrases(),
            "category_count": len(await self.category_histogram()),
            "weekly_count": await self.weekly_count(now),
        }

    # ========================================
    # Calendar Buckets
    # ========================================

    def today(self) -> date:
        return datetime.now(self.tz).date()

    async def _creation_times_since(self, first_day: date) -> Sequence[datetime]:
        since = datetime.combine(first_day, time.min, tzinfo=self.tz).astimezone(timezone.utc)
        result = await self.db.execute(
            select(Phrase.created_at).where(Phrase.created_at >= since)
        )
        return list(result.scalars().all())

    async def weekly_progress(self, today: Optional[date] = None) -> List[DayBucket]:
        """Per-day counts for the last seven calendar days, ending today."""
        today = today or self.today()
        timestamps = await self._creation_times_since(today - timedelta(days=6))
        return build_weekly_progress(count_by_day(timestamps, self.tz), today)

    async def activity_heatmap(
        self,
        today: Optional[date] = None,
    ) -> Tuple[List[List[DayBucket]], List[Tuple[str, int]]]:
        """
        Contribution-style heatmap grid.

        Returns:
            (weeks, month_labels): 53 Sunday-first weeks of DayBuckets, and
            (label, week index) pairs marking month changes
        """
        today = today or self.today()
        start, _ = heatmap_window(today)
        timestamps = await self._creation_times_since(start)
        weeks = build_heatmap(count_by_day(timestamps, self.tz), today)
        return weeks, month_labels(weeks)


def create_phrase_query_service(db: AsyncSession) -> PhraseQueryService:
    """Factory function to create a phrase query service."""
    return PhraseQueryService(db)
