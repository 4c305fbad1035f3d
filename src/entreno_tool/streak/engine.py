"""Cálculo de racha completo: agrupar, calificar y recorrer."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, tzinfo

from entreno_tool.model import ActivityEvent, StreakResult
from entreno_tool.streak.normalizer import bucket
from entreno_tool.streak.qualifier import (
    DEFAULT_POLICY,
    QualificationPolicy,
    qualify,
)
from entreno_tool.streak.walker import DEFAULT_HORIZON_DAYS, walk

logger = logging.getLogger(__name__)


def compute_streak(
    events: Iterable[ActivityEvent],
    calendar: tzinfo,
    today: date,
    *,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    policy: QualificationPolicy = DEFAULT_POLICY,
) -> StreakResult:
    """Compute the current streak from the full event history.

    Args:
        events: Every strength-set and cardio event of the user.
        calendar: Reference calendar for day boundaries.
        today: Current day in ``calendar``.
        horizon_days: Walk cap, see :func:`walk`.
        policy: Qualification thresholds.

    Returns:
        StreakResult for ``today``.
    """
    buckets = bucket(events, calendar)
    qualified = qualify(buckets, policy)
    count = walk(qualified, today, horizon_days)
    logger.debug(
        "Streak %d as of %s (%d active days, %d qualified)",
        count,
        today.isoformat(),
        len(buckets),
        len(qualified),
    )
    return StreakResult(count=count, as_of_day=today)
