"""Persistencia SQLite para configuracion, registros de entrenamiento y planes."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path

import pandas as pd
from dateutil import parser as date_parser
from dateutil import tz

from entreno_tool.errors import EventSourceError
from entreno_tool.model import (
    ActivityEvent,
    ActivityKind,
    GeneratedPlan,
    PlanExercise,
    PlanSession,
    Profile,
)

logger = logging.getLogger(__name__)

CARDIO_ACTIVITIES: tuple[str, ...] = ("treadmill", "bike", "stairs", "elliptical")
GENDERS: tuple[str, ...] = ("male", "female")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS profiles (
    user_id TEXT PRIMARY KEY,
    gender TEXT NOT NULL,
    height_cm REAL NOT NULL,
    initial_weight_kg REAL NOT NULL,
    current_weight_kg REAL NOT NULL,
    onboarding_completed INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS workout_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    exercise_name TEXT NOT NULL,
    muscle_group TEXT,
    reps_completed INTEGER NOT NULL,
    weight_used REAL NOT NULL,
    logged_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS cardio_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    activity TEXT NOT NULL,
    duration_seconds INTEGER NOT NULL,
    distance_km REAL,
    logged_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS weight_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    weight_kg REAL NOT NULL,
    recorded_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS workout_plans (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    goal TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS workout_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    plan_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    label TEXT,
    sort_order INTEGER NOT NULL,
    FOREIGN KEY(plan_id) REFERENCES workout_plans(id)
);

CREATE TABLE IF NOT EXISTS session_exercises (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    muscle_group TEXT NOT NULL,
    sets INTEGER NOT NULL,
    suggested_reps INTEGER NOT NULL,
    sort_order INTEGER NOT NULL,
    FOREIGN KEY(session_id) REFERENCES workout_sessions(id)
);

CREATE INDEX IF NOT EXISTS idx_workout_logs_user ON workout_logs(user_id);
CREATE INDEX IF NOT EXISTS idx_cardio_logs_user ON cardio_logs(user_id);
CREATE INDEX IF NOT EXISTS idx_weight_history_user ON weight_history(user_id);
"""

WORKOUT_LOG_COLUMNS = [
    "logged_at",
    "exercise_name",
    "muscle_group",
    "reps_completed",
    "weight_used",
]
CARDIO_LOG_COLUMNS = ["logged_at", "activity", "duration_seconds", "distance_km"]
WEIGHT_COLUMNS = ["recorded_at", "weight_kg"]


@dataclass(frozen=True)
class AppConfig:
    """Configuracion persistida de la app."""

    timezone: str = "UTC"
    horizon_days: int = 365
    min_strength_sets: int = 2
    min_cardio_sessions: int = 1
    gateway_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    model: str = "google/gemini-3-flash-preview"


# minimum accepted value per integer key; 0 disables a qualification rule
_INT_MINIMUMS: dict[str, int] = {
    "horizon_days": 1,
    "min_strength_sets": 0,
    "min_cardio_sessions": 0,
}
_INT_KEYS = tuple(_INT_MINIMUMS)
_STR_KEYS = ("timezone", "gateway_url", "model")


class SQLiteStore:
    """Repositorio SQLite para la app."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    def load_config(self) -> AppConfig:
        """Devuelve configuracion guardada o defaults."""
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows}
        defaults = AppConfig()
        kwargs: dict[str, object] = {}
        for key in _STR_KEYS:
            raw = values.get(key, "").strip()
            if raw:
                kwargs[key] = raw
        for key in _INT_KEYS:
            parsed = _parse_int(values.get(key), _INT_MINIMUMS[key])
            if parsed is None:
                if key in values:
                    logger.warning("Ignoring invalid config %s=%r", key, values[key])
                continue
            kwargs[key] = parsed
        return replace(defaults, **kwargs)

    def save_config(self, config: AppConfig) -> None:
        """Guarda la configuracion en tabla key/value."""
        payload = {key: str(getattr(config, key)) for key in _STR_KEYS + _INT_KEYS}
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                payload.items(),
            )
            conn.commit()

    def log_set(
        self,
        user_id: str,
        exercise_name: str,
        reps_completed: int,
        weight_used: float,
        *,
        muscle_group: str | None = None,
        logged_at: datetime | None = None,
    ) -> int:
        """Guarda una serie completada. Devuelve el id del registro."""
        if reps_completed < 0 or weight_used < 0:
            raise ValueError("reps and weight must be >= 0")
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO workout_logs(
                    user_id, exercise_name, muscle_group,
                    reps_completed, weight_used, logged_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    exercise_name,
                    muscle_group,
                    reps_completed,
                    weight_used,
                    _to_utc_iso(logged_at),
                ),
            )
            conn.commit()
        return int(cur.lastrowid)

    def log_cardio(
        self,
        user_id: str,
        activity: str,
        duration_seconds: int,
        *,
        distance_km: float | None = None,
        logged_at: datetime | None = None,
    ) -> int:
        """Guarda una sesion de cardio terminada.

        Raises:
            ValueError: If the activity is unknown or the duration is zero.
        """
        if activity not in CARDIO_ACTIVITIES:
            raise ValueError(f"Unknown cardio activity: {activity!r}")
        if duration_seconds <= 0:
            raise ValueError("duration_seconds must be > 0")
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO cardio_logs(
                    user_id, activity, duration_seconds, distance_km, logged_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    activity,
                    duration_seconds,
                    distance_km,
                    _to_utc_iso(logged_at),
                ),
            )
            conn.commit()
        return int(cur.lastrowid)

    def record_weight(
        self, user_id: str, weight_kg: float, *, recorded_at: datetime | None = None
    ) -> int:
        """Guarda un registro de peso corporal.

        If the user has a profile, its current weight follows the most
        recent entry of the history.
        """
        if weight_kg <= 0:
            raise ValueError("weight_kg must be > 0")
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO weight_history(user_id, weight_kg, recorded_at)
                VALUES (?, ?, ?)
                """,
                (user_id, weight_kg, _to_utc_iso(recorded_at)),
            )
            conn.execute(
                """
                UPDATE profiles SET
                    current_weight_kg = (
                        SELECT weight_kg FROM weight_history
                        WHERE user_id = ?
                        ORDER BY recorded_at DESC, id DESC LIMIT 1
                    ),
                    updated_at = ?
                WHERE user_id = ?
                """,
                (user_id, _to_utc_iso(None), user_id),
            )
            conn.commit()
        return int(cur.lastrowid)

    def complete_onboarding(
        self,
        user_id: str,
        gender: str,
        height_cm: float,
        weight_kg: float,
        *,
        recorded_at: datetime | None = None,
    ) -> Profile:
        """Crea o reemplaza el perfil y registra el primer peso.

        Initial and current weight both start at ``weight_kg``.

        Raises:
            ValueError: If the gender is unknown or a measure is not positive.
        """
        if gender not in GENDERS:
            raise ValueError(f"gender must be one of {GENDERS}")
        if height_cm <= 0 or weight_kg <= 0:
            raise ValueError("height_cm and weight_kg must be > 0")
        recorded = _to_utc_iso(recorded_at)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO profiles(
                    user_id, gender, height_cm, initial_weight_kg,
                    current_weight_kg, onboarding_completed, updated_at
                ) VALUES (?, ?, ?, ?, ?, 1, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    gender=excluded.gender,
                    height_cm=excluded.height_cm,
                    initial_weight_kg=excluded.initial_weight_kg,
                    current_weight_kg=excluded.current_weight_kg,
                    onboarding_completed=1,
                    updated_at=excluded.updated_at
                """,
                (user_id, gender, height_cm, weight_kg, weight_kg, _to_utc_iso(None)),
            )
            conn.execute(
                """
                INSERT INTO weight_history(user_id, weight_kg, recorded_at)
                VALUES (?, ?, ?)
                """,
                (user_id, weight_kg, recorded),
            )
            conn.commit()
        logger.info("Onboarding completed for %s", user_id)
        return Profile(
            user_id=user_id,
            gender=gender,
            height_cm=height_cm,
            initial_weight_kg=weight_kg,
            current_weight_kg=weight_kg,
            onboarding_completed=True,
        )

    def load_profile(self, user_id: str) -> Profile | None:
        """Devuelve el perfil del usuario, o None si no hizo el onboarding."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT gender, height_cm, initial_weight_kg, current_weight_kg,
                       onboarding_completed
                FROM profiles WHERE user_id = ?
                """,
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        return Profile(
            user_id=user_id,
            gender=row["gender"],
            height_cm=float(row["height_cm"]),
            initial_weight_kg=float(row["initial_weight_kg"]),
            current_weight_kg=float(row["current_weight_kg"]),
            onboarding_completed=bool(row["onboarding_completed"]),
        )

    def load_activity_events(self, user_id: str) -> list[ActivityEvent]:
        """Carga todos los eventos de fuerza y cardio del usuario.

        Raises:
            EventSourceError: If either log cannot be read in full.
        """
        try:
            with self._connect() as conn:
                set_rows = conn.execute(
                    "SELECT logged_at FROM workout_logs WHERE user_id = ?",
                    (user_id,),
                ).fetchall()
                cardio_rows = conn.execute(
                    "SELECT logged_at FROM cardio_logs WHERE user_id = ?",
                    (user_id,),
                ).fetchall()
            events = [
                ActivityEvent(ActivityKind.STRENGTH_SET, _parse_ts(row["logged_at"]))
                for row in set_rows
            ]
            events.extend(
                ActivityEvent(ActivityKind.CARDIO_SESSION, _parse_ts(row["logged_at"]))
                for row in cardio_rows
            )
        except (sqlite3.Error, ValueError, OverflowError) as exc:
            raise EventSourceError(
                f"Could not load activity for user {user_id}: {exc}"
            ) from exc
        logger.debug(
            "Loaded %d sets and %d cardio sessions for %s",
            len(set_rows),
            len(cardio_rows),
            user_id,
        )
        return events

    def load_workout_logs(self, user_id: str) -> pd.DataFrame:
        """Carga las series del usuario como DataFrame."""
        return self._load_frame(
            f"SELECT {', '.join(WORKOUT_LOG_COLUMNS)} FROM workout_logs "
            "WHERE user_id = ? ORDER BY logged_at",
            user_id,
            WORKOUT_LOG_COLUMNS,
            "logged_at",
        )

    def load_cardio_logs(self, user_id: str) -> pd.DataFrame:
        """Carga las sesiones de cardio del usuario como DataFrame."""
        return self._load_frame(
            f"SELECT {', '.join(CARDIO_LOG_COLUMNS)} FROM cardio_logs "
            "WHERE user_id = ? ORDER BY logged_at",
            user_id,
            CARDIO_LOG_COLUMNS,
            "logged_at",
        )

    def load_weight_history(self, user_id: str) -> pd.DataFrame:
        """Carga el historial de peso del usuario como DataFrame."""
        return self._load_frame(
            f"SELECT {', '.join(WEIGHT_COLUMNS)} FROM weight_history "
            "WHERE user_id = ? ORDER BY recorded_at",
            user_id,
            WEIGHT_COLUMNS,
            "recorded_at",
        )

    def _load_frame(
        self, sql: str, user_id: str, columns: list[str], ts_col: str
    ) -> pd.DataFrame:
        with self._connect() as conn:
            rows = conn.execute(sql, (user_id,)).fetchall()
        out = pd.DataFrame([dict(row) for row in rows])
        if out.empty:
            return pd.DataFrame(columns=columns)
        out[ts_col] = pd.to_datetime(out[ts_col], utc=True)
        return out[columns]

    def save_plan(self, user_id: str, plan: GeneratedPlan, goal: str | None) -> int:
        """Guarda un plan validado con sus sesiones y ejercicios."""
        created_at = _to_utc_iso(None)
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO workout_plans(user_id, name, goal, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, plan.name, goal, created_at),
            )
            plan_id = int(cur.lastrowid)
            for session in plan.sessions:
                cur = conn.execute(
                    """
                    INSERT INTO workout_sessions(plan_id, name, label, sort_order)
                    VALUES (?, ?, ?, ?)
                    """,
                    (plan_id, session.name, session.label, session.sort_order),
                )
                session_id = int(cur.lastrowid)
                conn.executemany(
                    """
                    INSERT INTO session_exercises(
                        session_id, name, muscle_group, sets,
                        suggested_reps, sort_order
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            session_id,
                            ex.name,
                            ex.muscle_group,
                            ex.sets,
                            ex.suggested_reps,
                            i,
                        )
                        for i, ex in enumerate(session.exercises)
                    ],
                )
            conn.commit()
        logger.info("Saved plan %d (%s) for %s", plan_id, plan.name, user_id)
        return plan_id

    def load_plan(self, plan_id: int) -> GeneratedPlan | None:
        """Carga un plan por id, o None si no existe."""
        with self._connect() as conn:
            plan_row = conn.execute(
                "SELECT name FROM workout_plans WHERE id = ?", (plan_id,)
            ).fetchone()
            if plan_row is None:
                return None
            session_rows = conn.execute(
                """
                SELECT id, name, label, sort_order FROM workout_sessions
                WHERE plan_id = ? ORDER BY sort_order, id
                """,
                (plan_id,),
            ).fetchall()
            sessions = []
            for srow in session_rows:
                ex_rows = conn.execute(
                    """
                    SELECT name, muscle_group, sets, suggested_reps
                    FROM session_exercises
                    WHERE session_id = ? ORDER BY sort_order
                    """,
                    (srow["id"],),
                ).fetchall()
                sessions.append(
                    PlanSession(
                        name=srow["name"],
                        label=srow["label"] or "",
                        sort_order=int(srow["sort_order"]),
                        exercises=tuple(
                            PlanExercise(
                                name=r["name"],
                                muscle_group=r["muscle_group"],
                                sets=int(r["sets"]),
                                suggested_reps=int(r["suggested_reps"]),
                            )
                            for r in ex_rows
                        ),
                    )
                )
        return GeneratedPlan(name=plan_row["name"], sessions=tuple(sessions))

    def list_plans(self, user_id: str) -> pd.DataFrame:
        """Lista los planes del usuario, el mas reciente primero."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, name, goal, created_at FROM workout_plans
                WHERE user_id = ? ORDER BY created_at DESC, id DESC
                """,
                (user_id,),
            ).fetchall()
        out = pd.DataFrame([dict(row) for row in rows])
        if out.empty:
            return pd.DataFrame(columns=["id", "name", "goal", "created_at"])
        return out


def _parse_int(raw: str | None, minimum: int) -> int | None:
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value >= minimum else None


def _to_utc_iso(value: datetime | None) -> str:
    if value is None:
        value = datetime.now(tz=tz.UTC)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=tz.UTC)
    return value.astimezone(tz.UTC).isoformat(timespec="seconds")


def _parse_ts(raw: str) -> datetime:
    value = date_parser.isoparse(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz.UTC)
    return value
