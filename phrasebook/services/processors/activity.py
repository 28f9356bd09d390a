"""
Activity bucketing for the dashboard.

Pure functions: they take creation timestamps and a "today" date and
return per-day counts. No database access, so the calendar logic can be
tested without fixtures.

Weeks start on Sunday, matching the dashboard's calendar layout.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Dict, Iterable, List, Tuple

HEATMAP_LOOKBACK_DAYS = 364
WEEKLY_PROGRESS_DAYS = 7


@dataclass
class DayBucket:
    date: date
    count: int

    @property
    def day(self) -> str:
        """Short weekday name, e.g. "Mon"."""
        return self.date.strftime("%a")

    @property
    def full_date(self) -> str:
        """Month and day, e.g. "Oct 7"."""
        return f"{self.date:%b} {self.date.day}"

    @property
    def level(self) -> int:
        return activity_level(self.count)


def to_local_date(timestamp: datetime, tz: tzinfo) -> date:
    """
    Calendar date of ``timestamp`` in ``tz``.

    Naive timestamps are taken as UTC (SQLite drops the offset on storage).
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(tz).date()


def count_by_day(timestamps: Iterable[datetime], tz: tzinfo) -> Dict[date, int]:
    """Number of timestamps falling on each local calendar date."""
    return dict(Counter(to_local_date(ts, tz) for ts in timestamps))


def activity_level(count: int) -> int:
    """
    Heatmap intensity bucket.

    0 → 0, 1 → 1, 2-3 → 2, 4-5 → 3, 6+ → 4
    """
    if count <= 0:
        return 0
    if count == 1:
        return 1
    if count <= 3:
        return 2
    if count <= 5:
        return 3
    return 4


def start_of_week(day: date) -> date:
    """The Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def end_of_week(day: date) -> date:
    """The Saturday on or after ``day``."""
    return start_of_week(day) + timedelta(days=6)


def heatmap_window(today: date) -> Tuple[date, date]:
    """
    First and last day of the heatmap grid.

    The grid ends on the Saturday of the current week and starts on the
    Sunday of the week 364 days before that, giving 53 full weeks.
    """
    end = end_of_week(today)
    start = start_of_week(end - timedelta(days=HEATMAP_LOOKBACK_DAYS))
    return start, end


def build_heatmap(counts: Dict[date, int], today: date) -> List[List[DayBucket]]:
    """Group the heatmap window into Sunday-first weeks of seven DayBuckets."""
    start, end = heatmap_window(today)

    weeks: List[List[DayBucket]] = []
    current: List[DayBucket] = []
    day = start
    while day <= end:
        current.append(DayBucket(date=day, count=counts.get(day, 0)))
        if len(current) == 7:
            weeks.append(current)
            current = []
        day += timedelta(days=1)

    if current:
        weeks.append(current)

    return weeks


def month_labels(weeks: List[List[DayBucket]]) -> List[Tuple[str, int]]:
    """(month abbreviation, week index) wherever the first day of a week changes month."""
    labels: List[Tuple[str, int]] = []
    last_month = None
    for index, week in enumerate(weeks):
        first_day = week[0].date
        if first_day.month != last_month:
            labels.append((first_day.strftime("%b"), index))
            last_month = first_day.month
    return labels


def build_weekly_progress(counts: Dict[date, int], today: date) -> List[DayBucket]:
    """One bucket per day for the last seven days, oldest first, ending today."""
    start = today - timedelta(days=WEEKLY_PROGRESS_DAYS - 1)
    return [
        DayBucket(date=start + timedelta(days=offset), count=counts.get(start + timedelta(days=offset), 0))
        for offset in range(WEEKLY_PROGRESS_DAYS)
    ]
