"""
Pydantic schemas for dashboard statistics.
"""

from datetime import date, datetime
from typing import Dict, List

from pydantic import BaseModel, Field


class CategoryHistogramResponse(BaseModel):
    """Phrase counts per category label (includes 'Processing...')."""

    counts: Dict[str, int]
    total: int


class WeeklyCountResponse(BaseModel):
    count: int
    window_start: datetime = Field(..., description="Inclusive lower bound of the 7-day window")


class DashboardSummaryResponse(BaseModel):
    total_phrases: int
    category_count: int
    weekly_count: int


class DailyCount(BaseModel):
    date: date
    day: str = Field(..., examples=["Mon"])
    full_date: str = Field(..., examples=["Oct 17"])
    count: int


class WeeklyProgressResponse(BaseModel):
    days: List[DailyCount]


class ActivityCell(BaseModel):
    date: date
    count: int
    level: int = Field(..., ge=0, le=4, description="Heatmap intensity bucket")


class MonthLabel(BaseModel):
    label: str = Field(..., examples=["Jan"])
    index: int = Field(..., description="Week index where the month starts")


class ActivityHeatmapResponse(BaseModel):
    start: date
    end: date
    weeks: List[List[ActivityCell]]
    month_labels: List[MonthLabel]
    total: int
