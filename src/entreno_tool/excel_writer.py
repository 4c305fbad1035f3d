"""Generación de Excel con el calendario de actividad y la racha."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

from entreno_tool.model import StreakResult

_DIA_SEMANA: tuple[str, ...] = ("lun", "mar", "mie", "jue", "vie", "sab", "dom")

_HEADER_MAP: dict[str, str] = {
    "weekday": "Día",
    "date": "Fecha",
    "strength_sets": "Series",
    "cardio": "Cardio",
    "qualified": "Califica",
    "weight_kg": "Peso (kg)",
    "change_kg": "Cambio (kg)",
    "exercise_name": "Ejercicio",
    "sets": "Series",
    "max_weight": "Peso máx.",
    "volume": "Volumen",
    "activity": "Actividad",
    "sessions": "Sesiones",
    "minutes": "Minutos",
    "distance_km": "Distancia (km)",
}

_WIDTHS: tuple[tuple[str, int], ...] = (
    ("Día", 6),
    ("Fecha", 12),
    ("Series", 8),
    ("Cardio", 8),
    ("Califica", 9),
    ("Peso (kg)", 10),
    ("Cambio (kg)", 11),
    ("Ejercicio", 24),
    ("Peso máx.", 10),
    ("Volumen", 10),
    ("Actividad", 12),
    ("Distancia (km)", 14),
)


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the progress workbook."""

    sheet_name: str = "Calendario"
    summary_sheet_name: str = "Resumen"
    weight_sheet_name: str = "Peso"
    exercise_sheet_name: str = "Ejercicios"
    cardio_sheet_name: str = "Cardio"


def _weekday_label(i: object) -> str:
    """Convierte índice 0-6 (lunes-domingo) a etiqueta de 3 letras."""
    if isinstance(i, int) and 0 <= i < 7:
        return _DIA_SEMANA[i]
    return ""


def _prepare_calendar(calendar: pd.DataFrame) -> pd.DataFrame:
    """Añade columna Día y convierte booleanos a si/no."""
    export_df = calendar.copy()
    if export_df.empty:
        return export_df.rename(columns=_HEADER_MAP)
    export_df["weekday"] = [
        _weekday_label(d.weekday()) if hasattr(d, "weekday") else ""
        for d in export_df["date"]
    ]
    for col in ("cardio", "qualified"):
        if col in export_df.columns:
            export_df[col] = export_df[col].map(lambda v: "si" if v else "no")
    cols = ["weekday"] + [c for c in export_df.columns if c != "weekday"]
    return export_df[cols].rename(columns=_HEADER_MAP)


def write_progress_xlsx(
    calendar: pd.DataFrame,
    streak: StreakResult,
    out_path: Path,
    layout: ExcelLayout,
    *,
    weight: pd.DataFrame | None = None,
    exercises: pd.DataFrame | None = None,
    cardio: pd.DataFrame | None = None,
) -> None:
    """Write the activity calendar and a streak summary to XLSX.

    Args:
        calendar: Output of :func:`entreno_tool.progress.activity_calendar`.
        streak: Streak to report.
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
        weight: Optional output of :func:`entreno_tool.progress.weight_progress`.
        exercises: Optional output of
            :func:`entreno_tool.progress.exercise_progress`.
        cardio: Optional output of :func:`entreno_tool.progress.cardio_progress`.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    export_df = _prepare_calendar(calendar)
    summary = pd.DataFrame(
        {
            "Racha (días)": [streak.count],
            "Al día": [streak.as_of_day],
            "Días que califican": [
                int(calendar["qualified"].sum()) if not calendar.empty else 0
            ],
        }
    )

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        export_df.to_excel(writer, index=False, sheet_name=layout.sheet_name)
        summary.to_excel(writer, index=False, sheet_name=layout.summary_sheet_name)
        _format_sheet(writer.book[layout.sheet_name])
        _format_sheet(writer.book[layout.summary_sheet_name])
        extra = (
            (layout.weight_sheet_name, weight),
            (layout.exercise_sheet_name, exercises),
            (layout.cardio_sheet_name, cardio),
        )
        for sheet_name, frame in extra:
            if frame is None:
                continue
            frame.rename(columns=_HEADER_MAP).to_excel(
                writer, index=False, sheet_name=sheet_name
            )
            _format_sheet(writer.book[sheet_name])


def _style_header_row(ws: Any) -> None:
    """Aplica fuente negrita, alineación y borde a la fila de cabecera."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    """Aplica alineación y borde a las filas de datos."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center")
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    for header, width in _WIDTHS:
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(ws: Any, col_index: dict[str, int]) -> None:
    fmt_map: dict[str, str] = {
        "Fecha": "dd/mm/yyyy",
        "Al día": "dd/mm/yyyy",
        "Series": "0",
        "Peso (kg)": "0.0",
        "Cambio (kg)": "0.0",
        "Peso máx.": "0.0",
        "Volumen": "0.0",
        "Minutos": "0.0",
        "Distancia (km)": "0.00",
        "Racha (días)": "0",
    }
    for row in ws.iter_rows(min_row=2):
        for header, fmt in fmt_map.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _format_sheet(ws: Any) -> None:
    """Apply borders, widths and number formats to a worksheet."""
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index)
