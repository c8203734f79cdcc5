"""Date helpers for digest labels and collection windows."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta


def digest_date_label(target_date: date | None = None) -> str:
    """Return a full weekday/month/day/year label, e.g. "Sunday, October 18, 2026"."""
    if target_date is None:
        target_date = date.today()
    return f"{target_date:%A}, {target_date:%B} {target_date.day}, {target_date.year}"


def collection_cutoff(hours: int, now: datetime | None = None) -> datetime:
    """Return the UTC instant before which items are considered stale."""
    if now is None:
        now = datetime.now(tz=UTC)
    return now - timedelta(hours=hours)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
