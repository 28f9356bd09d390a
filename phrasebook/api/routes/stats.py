"""
Dashboard statistics endpoints.

Every number is recomputed from the phrases table on each request.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from phrasebook.db.deps import DBSession
from phrasebook.schemas.stats import (
    ActivityCell,
    ActivityHeatmapResponse,
    CategoryHistogramResponse,
    DailyCount,
    DashboardSummaryResponse,
    MonthLabel,
    WeeklyCountResponse,
    WeeklyProgressResponse,
)
from phrasebook.services.phrase_queries import PhraseQueryService, weekly_window_start

router = APIRouter(prefix="/stats", tags=["Statistics"])


def get_phrase_queries(db: DBSession) -> PhraseQueryService:
    return PhraseQueryService(db)


@router.get("/categories", response_model=CategoryHistogramResponse)
async def category_histogram(
    queries: PhraseQueryService = Depends(get_phrase_queries),
) -> CategoryHistogramResponse:
    """Phrase count per category label, including phrases still processing."""
    counts = await queries.category_histogram()
    return CategoryHistogramResponse(counts=counts, total=sum(counts.values()))


@router.get("/weekly-count", response_model=WeeklyCountResponse)
async def weekly_count(
    queries: PhraseQueryService = Depends(get_phrase_queries),
) -> WeeklyCountResponse:
    """Phrases created in the last 7 days."""
    now = datetime.now(timezone.utc)
    count = await queries.weekly_count(now)
    return WeeklyCountResponse(count=count, window_start=weekly_window_start(now))


@router.get("/summary", response_model=DashboardSummaryResponse)
async def summary(
    queries: PhraseQueryService = Depends(get_phrase_queries),
) -> DashboardSummaryResponse:
    return DashboardSummaryResponse(**await queries.summary())


@router.get("/weekly-progress", response_model=WeeklyProgressResponse)
async def weekly_progress(
    queries: PhraseQueryService = Depends(get_phrase_queries),
) -> WeeklyProgressResponse:
    """Per-day counts for the last seven days, oldest first."""
    buckets = await queries.weekly_progress()
    return WeeklyProgressResponse(
        days=[
            DailyCount(date=b.date, day=b.day, full_date=b.full_date, count=b.count)
            for b in buckets
        ]
    )


@router.get("/activity", response_model=ActivityHeatmapResponse)
async def activity_heatmap(
    queries: PhraseQueryService = Depends(get_phrase_queries),
) -> ActivityHeatmapResponse:
    """Year-long activity heatmap in Sunday-first weeks."""
    weeks, labels = await queries.activity_heatmap()
    cells = [
        [ActivityCell(date=b.date, count=b.count, level=b.level) for b in week]
        for week in weeks
    ]
    return ActivityHeatmapResponse(
        start=weeks[0][0].date,
        end=weeks[-1][-1].date,
        weeks=cells,
        month_labels=[MonthLabel(label=label, index=index) for label, index in labels],
        total=sum(b.count for week in weeks for b in week),
    )
