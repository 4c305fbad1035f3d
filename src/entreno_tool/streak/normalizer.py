"""Agrupación de eventos de actividad por día de calendario."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, tzinfo

from dateutil import tz

from entreno_tool.model import ActivityEvent, ActivityKind, DayBucket


def reference_calendar(name: str) -> tzinfo:
    """Resolve an IANA timezone name to the reference calendar.

    Raises:
        ValueError: If the name is unknown.
    """
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown timezone: {name}")
    return zone


def calendar_day(occurred_at: datetime, calendar: tzinfo) -> date:
    """Return the calendar day of an instant in the reference calendar.

    Naive datetimes are taken as UTC instants.
    """
    if occurred_at.tzinfo is None:
        occurred_at = occurred_at.replace(tzinfo=tz.UTC)
    return occurred_at.astimezone(calendar).date()


def bucket(
    events: Iterable[ActivityEvent], calendar: tzinfo
) -> dict[date, DayBucket]:
    """Group events into one bucket per calendar day.

    Args:
        events: Activity events in any order. Duplicates are counted twice.
        calendar: Reference calendar used for every event of this call.

    Returns:
        Mapping calendar day -> DayBucket. Days without events are absent.
    """
    strength: dict[date, int] = {}
    cardio: set[date] = set()
    for event in events:
        day = calendar_day(event.occurred_at, calendar)
        if event.kind is ActivityKind.CARDIO_SESSION:
            cardio.add(day)
            strength.setdefault(day, 0)
        else:
            strength[day] = strength.get(day, 0) + 1

    return {
        day: DayBucket(
            calendar_day=day,
            strength_set_count=count,
            cardio_session_present=day in cardio,
        )
        for day, count in sorted(strength.items())
    }
