"""CLI para registrar entrenamientos, calcular la racha y generar planes."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from datetime import date, datetime, timedelta, tzinfo
from pathlib import Path

import pandas as pd

from entreno_tool.excel_writer import ExcelLayout, write_progress_xlsx
from entreno_tool.model import ActivityEvent, GeneratedPlan
from entreno_tool.plan_generation import (
    GOALS,
    LEVELS,
    PlanGatewayClient,
    PlanRequest,
    read_plan_file,
)
from entreno_tool.progress import (
    activity_calendar,
    cardio_progress,
    exercise_progress,
    weight_progress,
)
from entreno_tool.sources.base import EventSource
from entreno_tool.sources.json_export import JsonExportSource, parse_logged_at
from entreno_tool.sources.store import StoreEventSource
from entreno_tool.storage import CARDIO_ACTIVITIES, GENDERS, AppConfig, SQLiteStore
from entreno_tool.streak.engine import compute_streak
from entreno_tool.streak.normalizer import bucket, reference_calendar
from entreno_tool.streak.qualifier import QualificationPolicy, qualify

logger = logging.getLogger(__name__)

_DEFAULT_DB = Path.home() / ".entreno_tool" / "entreno.sqlite3"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Registro de entrenamientos, racha diaria y planes."
    )
    parser.add_argument(
        "--db",
        default=str(_DEFAULT_DB),
        help="Base SQLite (default: ~/.entreno_tool/entreno.sqlite3).",
    )
    parser.add_argument("--user", default="local", help="Id de usuario.")
    parser.add_argument("--verbose", action="store_true", help="Log DEBUG.")
    sub = parser.add_subparsers(dest="command", required=True)

    streak = sub.add_parser("streak", help="Calcula la racha actual.")
    streak.add_argument("--json", help="Exportación JSON en lugar de la base.")
    _add_calendar_args(streak)
    streak.add_argument("--horizon", type=int, help="Días máximos hacia atrás.")
    streak.add_argument("--export", help="Directorio de salida para el Excel.")

    progress = sub.add_parser(
        "progress", help="Exporta calendario, peso, ejercicios y cardio a Excel."
    )
    _add_calendar_args(progress)
    progress.add_argument(
        "--export", required=True, help="Directorio de salida para el Excel."
    )

    plan = sub.add_parser("generate-plan", help="Genera y guarda un plan.")
    plan.add_argument("--goal", choices=GOALS, required=True)
    plan.add_argument("--level", choices=LEVELS, required=True)
    plan.add_argument("--gender", choices=GENDERS, help="Default: el del perfil.")
    plan.add_argument("--weight", type=float, help="Default: peso actual del perfil.")

    create = sub.add_parser("create-plan", help="Guarda un plan armado a mano.")
    create.add_argument("--file", required=True, help="Plan en JSON.")

    plans = sub.add_parser("plans", help="Lista los planes guardados.")
    plans.add_argument("--id", type=int, help="Muestra el detalle de un plan.")

    onboard = sub.add_parser("onboard", help="Crea el perfil del usuario.")
    onboard.add_argument("--gender", choices=GENDERS, required=True)
    onboard.add_argument("--height", type=float, required=True, help="Altura en cm.")
    onboard.add_argument("--weight", type=float, required=True, help="Peso en kg.")
    onboard.add_argument("--at", help="Momento ISO-8601 (default: ahora).")

    sub.add_parser("profile", help="Muestra el perfil y el cambio de peso.")

    log_set = sub.add_parser("log-set", help="Registra una serie.")
    log_set.add_argument("--exercise", required=True)
    log_set.add_argument("--reps", type=int, required=True)
    log_set.add_argument("--weight", type=float, required=True)
    log_set.add_argument("--muscle-group")
    log_set.add_argument("--at", help="Momento ISO-8601 (default: ahora).")

    log_cardio = sub.add_parser("log-cardio", help="Registra una sesión de cardio.")
    log_cardio.add_argument("--activity", choices=CARDIO_ACTIVITIES, required=True)
    log_cardio.add_argument("--seconds", type=int, required=True)
    log_cardio.add_argument("--distance", type=float)
    log_cardio.add_argument("--at", help="Momento ISO-8601 (default: ahora).")

    log_weight = sub.add_parser("log-weight", help="Registra el peso corporal.")
    log_weight.add_argument("--kg", type=float, required=True)
    log_weight.add_argument("--at", help="Momento ISO-8601 (default: ahora).")

    return parser.parse_args(argv)


def _add_calendar_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--tz", help="Zona horaria del calendario (IANA).")
    parser.add_argument("--today", help="Día de referencia YYYY-MM-DD.")
    parser.add_argument(
        "--calendar-days",
        type=int,
        default=30,
        help="Días del calendario exportado (default: 30).",
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code (0 on success).
    """
    ns = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = SQLiteStore(Path(ns.db).expanduser().resolve())

    if ns.command == "streak":
        return _run_streak(ns, store)
    if ns.command == "progress":
        return _run_progress(ns, store)
    if ns.command == "generate-plan":
        return _run_generate_plan(ns, store)
    if ns.command == "create-plan":
        plan = read_plan_file(Path(ns.file).expanduser())
        _print_saved_plan(store.save_plan(ns.user, plan, "custom"), plan)
        return 0
    if ns.command == "plans":
        return _run_plans(ns, store)
    if ns.command == "onboard":
        profile = store.complete_onboarding(
            ns.user,
            ns.gender,
            ns.height,
            ns.weight,
            recorded_at=_optional_ts(ns.at),
        )
        print(
            f"OK: onboard: {profile.gender}, {profile.height_cm:g} cm, "
            f"{profile.current_weight_kg:g} kg"
        )
        return 0
    if ns.command == "profile":
        return _run_profile(ns, store)
    if ns.command == "log-set":
        row_id = store.log_set(
            ns.user,
            ns.exercise,
            ns.reps,
            ns.weight,
            muscle_group=ns.muscle_group,
            logged_at=_optional_ts(ns.at),
        )
    elif ns.command == "log-cardio":
        row_id = store.log_cardio(
            ns.user,
            ns.activity,
            ns.seconds,
            distance_km=ns.distance,
            logged_at=_optional_ts(ns.at),
        )
    else:
        row_id = store.record_weight(ns.user, ns.kg, recorded_at=_optional_ts(ns.at))
    print(f"OK: {ns.command}: id {row_id}")
    return 0


def _streak_settings(
    ns: argparse.Namespace, config: AppConfig
) -> tuple[tzinfo, date, QualificationPolicy]:
    calendar = reference_calendar(ns.tz or config.timezone)
    today = (
        date.fromisoformat(ns.today) if ns.today else datetime.now(tz=calendar).date()
    )
    policy = QualificationPolicy(
        min_strength_sets=config.min_strength_sets,
        min_cardio_sessions=config.min_cardio_sessions,
    )
    return calendar, today, policy


def _calendar_frame(
    events: list[ActivityEvent],
    calendar: tzinfo,
    today: date,
    days: int,
    policy: QualificationPolicy,
) -> pd.DataFrame:
    days = max(days, 1)
    buckets = bucket(events, calendar)
    return activity_calendar(
        buckets,
        qualify(buckets, policy),
        today - timedelta(days=days - 1),
        today,
    )


def _output_path(directory: str, prefix: str, calendar: tzinfo) -> Path:
    ts = datetime.now(tz=calendar).strftime("%Y-%m-%d_%H-%M-%S")
    return Path(directory).expanduser() / f"{prefix}_{ts}.xlsx"


def _run_streak(ns: argparse.Namespace, store: SQLiteStore) -> int:
    config = store.load_config()
    calendar, today, policy = _streak_settings(ns, config)
    horizon = ns.horizon if ns.horizon is not None else config.horizon_days

    source: EventSource = (
        JsonExportSource(Path(ns.json).expanduser())
        if ns.json
        else StoreEventSource(store, ns.user)
    )
    source.validate()
    events = source.load_events()

    result = compute_streak(
        events, calendar, today, horizon_days=horizon, policy=policy
    )
    print(f"OK: events: {len(events)}")
    print(f"OK: streak: {result.count} (as of {result.as_of_day.isoformat()})")

    if ns.export:
        cal = _calendar_frame(events, calendar, today, ns.calendar_days, policy)
        out_path = _output_path(ns.export, "entreno_progreso", calendar)
        write_progress_xlsx(cal, result, out_path, ExcelLayout())
        print(f"OK: Output: {out_path}")
    return 0


def _run_progress(ns: argparse.Namespace, store: SQLiteStore) -> int:
    config = store.load_config()
    calendar, today, policy = _streak_settings(ns, config)

    source = StoreEventSource(store, ns.user)
    source.validate()
    events = source.load_events()
    result = compute_streak(
        events, calendar, today, horizon_days=config.horizon_days, policy=policy
    )

    weight = weight_progress(store.load_weight_history(ns.user), calendar)
    exercises = exercise_progress(store.load_workout_logs(ns.user), calendar)
    cardio = cardio_progress(store.load_cardio_logs(ns.user), calendar)
    print(f"OK: streak: {result.count} (as of {result.as_of_day.isoformat()})")
    print(f"OK: weight entries: {len(weight)}")
    print(f"OK: exercise days: {len(exercises)}")
    print(f"OK: cardio days: {len(cardio)}")

    out_path = _output_path(ns.export, "entreno_evolucion", calendar)
    write_progress_xlsx(
        _calendar_frame(events, calendar, today, ns.calendar_days, policy),
        result,
        out_path,
        ExcelLayout(),
        weight=weight,
        exercises=exercises,
        cardio=cardio,
    )
    print(f"OK: Output: {out_path}")
    return 0


def _run_generate_plan(ns: argparse.Namespace, store: SQLiteStore) -> int:
    gender, weight = ns.gender, ns.weight
    if gender is None or weight is None:
        profile = store.load_profile(ns.user)
        if profile is None:
            raise ValueError(
                f"No profile for user {ns.user}: run onboard "
                "or pass --gender and --weight"
            )
        gender = gender or profile.gender
        weight = weight if weight is not None else profile.current_weight_kg

    config = store.load_config()
    request = PlanRequest(goal=ns.goal, gender=gender, weight_kg=weight, level=ns.level)
    with PlanGatewayClient(config.gateway_url, config.model) as client:
        plan = client.generate(request)
    _print_saved_plan(store.save_plan(ns.user, plan, ns.goal), plan)
    return 0


def _print_saved_plan(plan_id: int, plan: GeneratedPlan) -> None:
    print(f"OK: plan {plan_id}: {plan.name} ({len(plan.sessions)} sessions)")


def _run_plans(ns: argparse.Namespace, store: SQLiteStore) -> int:
    if ns.id is None:
        plans = store.list_plans(ns.user)
        print(f"OK: plans: {len(plans)}")
        for row in plans.itertuples(index=False):
            print(f"  {row.id}  {row.created_at}  {row.goal or '-'}  {row.name}")
        return 0

    plan = store.load_plan(ns.id)
    if plan is None:
        raise ValueError(f"Plan {ns.id} not found")
    _print_saved_plan(ns.id, plan)
    for session in plan.sessions:
        print(f"  {session.name} - {session.label}")
        for ex in session.exercises:
            print(
                f"    {ex.name} ({ex.muscle_group}) {ex.sets}x{ex.suggested_reps}"
            )
    return 0


def _run_profile(ns: argparse.Namespace, store: SQLiteStore) -> int:
    profile = store.load_profile(ns.user)
    if profile is None:
        raise ValueError(f"No profile for user {ns.user}: run onboard first")
    print(f"OK: profile: {profile.gender}, {profile.height_cm:g} cm")
    print(
        f"OK: weight: {profile.current_weight_kg:g} kg "
        f"(initial {profile.initial_weight_kg:g} kg, "
        f"change {profile.weight_change_kg:+g} kg)"
    )
    return 0


def _optional_ts(raw: str | None) -> datetime | None:
    if raw is None:
        return None
    return parse_logged_at(raw, "--at")
