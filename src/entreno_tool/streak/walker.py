"""Conteo de racha hacia atrás desde hoy."""

from __future__ import annotations

from collections.abc import Collection
from datetime import date, timedelta

DEFAULT_HORIZON_DAYS = 365


def walk(
    qualified_days: Collection[date],
    today: date,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> int:
    """Count consecutive qualified days ending today or yesterday.

    Today not qualifying yet does not break the streak: the user may still
    train later in the day, so the walk skips it without counting. The first
    unqualified day before today ends the walk.

    Args:
        qualified_days: Calendar days that met the qualification rule.
        today: Current calendar day in the same reference calendar.
        horizon_days: Maximum number of days inspected. Streaks longer than
            the horizon are reported as ``horizon_days``.

    Returns:
        Streak length (0 when nothing qualifies).
    """
    count = 0
    for i in range(horizon_days):
        day = today - timedelta(days=i)
        if day in qualified_days:
            count += 1
        elif i == 0:
            continue
        else:
            break
    return count
