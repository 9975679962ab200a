"""Date bucketing for chart series - daily, ISO-week and calendar-month totals"""

from collections.abc import Iterable, Sequence
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
GRANULARITIES = (DAILY, WEEKLY, MONTHLY)

_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class SeriesPoint(BaseModel):
    """One chart point: a bucket key, its display label and per-status sums"""

    key: str
    label: str
    values: dict[str, int] = Field(default_factory=dict)
    total: int = 0


def bucket_for(day: date, granularity: str) -> tuple[str, str]:
    """
    Bucket key and display label for a date.

    daily   -> ("2024-03-05", "2024-03-05")
    weekly  -> ("2024-W10", "Week 10 · 2024")   ISO week-numbering year
    monthly -> ("2024-03", "Mar 2024")
    """
    if granularity == DAILY:
        iso = day.isoformat()
        return iso, iso
    if granularity == WEEKLY:
        iso_year, iso_week, _ = day.isocalendar()
        week = f"{iso_week:02d}"
        return f"{iso_year}-W{week}", f"Week {week} · {iso_year}"
    if granularity == MONTHLY:
        return f"{day.year}-{day.month:02d}", f"{_MONTH_ABBR[day.month - 1]} {day.year}"
    raise ValueError(f"Unknown granularity: {granularity}")


def daily_series(rows: Iterable[tuple[date, str, int]]) -> list[SeriesPoint]:
    """Fold flat ``(date, status_key, count)`` rows into one point per date, sorted by date"""
    by_day: dict[date, dict[str, int]] = {}
    for day, status_key, count in rows:
        values = by_day.setdefault(day, {})
        values[status_key] = values.get(status_key, 0) + int(count)

    return [
        SeriesPoint(key=day.isoformat(), label=day.isoformat(), values=values, total=sum(values.values()))
        for day, values in sorted(by_day.items())
    ]


def bucket_series(
    points: Sequence[SeriesPoint],
    granularity: str,
    status_keys: Optional[Sequence[str]] = None,
) -> list[SeriesPoint]:
    """
    Regroup a daily series into ``granularity`` buckets.

    Values are summed per status key and the result is sorted by bucket key.
    When ``status_keys`` is given every point carries each of them, zero-filled.
    """
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown granularity: {granularity}")

    grouped: dict[str, SeriesPoint] = {}
    for point in points:
        key, label = bucket_for(date.fromisoformat(point.key), granularity)
        bucket = grouped.get(key)
        if bucket is None:
            bucket = grouped[key] = SeriesPoint(key=key, label=label)
        for status_key, value in point.values.items():
            bucket.values[status_key] = bucket.values.get(status_key, 0) + value

    result = []
    for key in sorted(grouped):
        bucket = grouped[key]
        if status_keys:
            for status_key in status_keys:
                bucket.values.setdefault(status_key, 0)
        bucket.total = sum(bucket.values.values())
        result.append(bucket)
    return result


def flatten_series(points: Iterable[SeriesPoint]) -> dict[tuple[date, str], int]:
    """Inverse of ``daily_series``: ``(date, status_key) -> count`` for a daily series"""
    flat: dict[tuple[date, str], int] = {}
    for point in points:
        day = date.fromisoformat(point.key)
        for status_key, value in point.values.items():
            flat[(day, status_key)] = flat.get((day, status_key), 0) + value
    return flat


def count_by_bucket(days: Iterable[date], granularity: str, value_key: str = "count") -> list[SeriesPoint]:
    """Count occurrences of dates per bucket, e.g. members joined per week"""
    return bucket_series(daily_series((day, value_key, 1) for day in days), granularity)
