"""Resúmenes de progreso: calendario de actividad, peso y ejercicios."""

from __future__ import annotations

from collections.abc import Collection, Mapping
from datetime import date, tzinfo

import pandas as pd

from entreno_tool.model import DayBucket

CALENDAR_COLUMNS = ["date", "strength_sets", "cardio", "qualified"]
WEIGHT_PROGRESS_COLUMNS = ["date", "weight_kg", "change_kg"]
EXERCISE_PROGRESS_COLUMNS = [
    "exercise_name",
    "date",
    "sets",
    "max_weight",
    "volume",
]
CARDIO_PROGRESS_COLUMNS = ["activity", "date", "sessions", "minutes", "distance_km"]


def build_calendar(min_day: date, max_day: date) -> pd.DataFrame:
    """Build inclusive day calendar DataFrame."""
    days = pd.date_range(start=min_day, end=max_day, freq="D")
    return pd.DataFrame({"date": days.date})


def activity_calendar(
    buckets: Mapping[date, DayBucket],
    qualified: Collection[date],
    start: date,
    end: date,
) -> pd.DataFrame:
    """One row per day in ``[start, end]`` with counts and qualification.

    Raises:
        ValueError: If ``start`` is after ``end``.
    """
    if start > end:
        raise ValueError(f"start {start} is after end {end}")
    cal = build_calendar(min_day=start, max_day=end)
    empty = DayBucket(calendar_day=start)
    cal["strength_sets"] = [
        buckets.get(day, empty).strength_set_count for day in cal["date"]
    ]
    cal["cardio"] = [
        buckets.get(day, empty).cardio_session_present for day in cal["date"]
    ]
    cal["qualified"] = [day in qualified for day in cal["date"]]
    return cal[CALENDAR_COLUMNS]


def _local_dates(ts: pd.Series, calendar: tzinfo) -> pd.Series:
    stamps = pd.to_datetime(ts, utc=True)
    return stamps.dt.tz_convert(calendar).dt.date


def weight_progress(weight_history: pd.DataFrame, calendar: tzinfo) -> pd.DataFrame:
    """Weight entries by day with change relative to the first entry.

    Args:
        weight_history: Columns ``recorded_at`` and ``weight_kg``.
        calendar: Reference calendar for the ``date`` column.
    """
    if weight_history.empty:
        return pd.DataFrame(columns=WEIGHT_PROGRESS_COLUMNS)
    out = weight_history.sort_values("recorded_at").reset_index(drop=True)
    out["date"] = _local_dates(out["recorded_at"], calendar)
    out["change_kg"] = (out["weight_kg"] - out.loc[0, "weight_kg"]).round(2)
    return out[WEIGHT_PROGRESS_COLUMNS]


def exercise_progress(workout_logs: pd.DataFrame, calendar: tzinfo) -> pd.DataFrame:
    """Aggregate logged sets per exercise and day (count/max weight/volume)."""
    if workout_logs.empty:
        return pd.DataFrame(columns=EXERCISE_PROGRESS_COLUMNS)
    df = workout_logs.copy()
    df["date"] = _local_dates(df["logged_at"], calendar)
    df["volume"] = df["reps_completed"] * df["weight_used"]
    g = df.groupby(["exercise_name", "date"], as_index=False).agg(
        sets=("reps_completed", "count"),
        max_weight=("weight_used", "max"),
        volume=("volume", "sum"),
    )
    g["volume"] = g["volume"].round(2)
    return g.sort_values(["exercise_name", "date"]).reset_index(drop=True)[
        EXERCISE_PROGRESS_COLUMNS
    ]


def cardio_progress(cardio_logs: pd.DataFrame, calendar: tzinfo) -> pd.DataFrame:
    """Aggregate cardio sessions per activity and day.

    ``minutes`` is the total duration; ``distance_km`` sums the sessions that
    recorded a distance.
    """
    if cardio_logs.empty:
        return pd.DataFrame(columns=CARDIO_PROGRESS_COLUMNS)
    df = cardio_logs.copy()
    df["date"] = _local_dates(df["logged_at"], calendar)
    df["distance_km"] = pd.to_numeric(df["distance_km"], errors="coerce")
    g = df.groupby(["activity", "date"], as_index=False).agg(
        sessions=("duration_seconds", "count"),
        seconds=("duration_seconds", "sum"),
        distance_km=("distance_km", "sum"),
    )
    g["minutes"] = (g["seconds"] / 60).round(1)
    g["distance_km"] = g["distance_km"].round(2)
    return g.sort_values(["date", "activity"]).reset_index(drop=True)[
        CARDIO_PROGRESS_COLUMNS
    ]
