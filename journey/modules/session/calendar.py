"""UTC calendar-field comparisons used by the first-launch heuristics."""

from datetime import UTC, datetime


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_same_year(a: datetime, b: datetime) -> bool:
    a, b = _utc(a), _utc(b)
    return a.year == b.year


def is_same_month(a: datetime, b: datetime) -> bool:
    a, b = _utc(a), _utc(b)
    return (a.year, a.month) == (b.year, b.month)


def is_same_day(a: datetime, b: datetime) -> bool:
    a, b = _utc(a), _utc(b)
    return a.date() == b.date()


def is_same_hour(a: datetime, b: datetime) -> bool:
    a, b = _utc(a), _utc(b)
    return (a.date(), a.hour) == (b.date(), b.hour)
