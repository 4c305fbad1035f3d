from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import cast

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from entreno_tool.excel_writer import ExcelLayout, _format_sheet, write_progress_xlsx
from entreno_tool.model import StreakResult


def test_write_progress_xlsx_calendar_and_summary(tmp_path: Path) -> None:
    """Calendario con Día/Fecha/Series/Cardio/Califica y hoja de resumen."""
    cal = pd.DataFrame(
        {
            "date": [date(2025, 12, 15), date(2025, 12, 16)],
            "strength_sets": [3, 0],
            "cardio": [False, True],
            "qualified": [True, True],
        }
    )
    out = tmp_path / "nested" / "out.xlsx"
    write_progress_xlsx(cal, StreakResult(2, date(2025, 12, 16)), out, ExcelLayout())

    wb = load_workbook(out)
    ws = cast(Worksheet, wb[ExcelLayout().sheet_name])
    headers = [cell.value for cell in ws[1]]
    assert headers == ["Día", "Fecha", "Series", "Cardio", "Califica"]
    assert ws.cell(row=2, column=1).value == "lun"
    assert ws.cell(row=2, column=3).value == 3
    assert ws.cell(row=3, column=4).value == "si"
    assert ws.cell(row=2, column=4).value == "no"
    assert ws.column_dimensions["A"].width == 6
    assert ws.cell(row=2, column=2).number_format == "dd/mm/yyyy"

    summary = cast(Worksheet, wb[ExcelLayout().summary_sheet_name])
    assert summary.cell(row=1, column=1).value == "Racha (días)"
    assert summary.cell(row=2, column=1).value == 2
    assert summary.cell(row=2, column=3).value == 2


def test_write_progress_xlsx_empty_calendar(tmp_path: Path) -> None:
    cal = pd.DataFrame(columns=["date", "strength_sets", "cardio", "qualified"])
    out = tmp_path / "out.xlsx"
    write_progress_xlsx(cal, StreakResult(0, date(2025, 12, 16)), out, ExcelLayout())
    wb = load_workbook(out)
    summary = wb[ExcelLayout().summary_sheet_name]
    assert summary.cell(row=2, column=1).value == 0
    assert summary.cell(row=2, column=3).value == 0


def test_format_sheet_handles_missing_headers() -> None:
    wb = Workbook()
    ws = cast(Worksheet, wb.active)
    ws.append(["Solo"])
    ws.append([1])

    _format_sheet(ws)

    assert ws.cell(row=1, column=1).font.bold is True
    assert ws.cell(row=2, column=1).alignment.horizontal == "center"


def test_write_progress_xlsx_optional_sheets(tmp_path: Path) -> None:
    cal = pd.DataFrame(columns=["date", "strength_sets", "cardio", "qualified"])
    weight = pd.DataFrame(
        {
            "date": [date(2025, 6, 1), date(2025, 6, 8)],
            "weight_kg": [80.0, 79.5],
            "change_kg": [0.0, -0.5],
        }
    )
    exercises = pd.DataFrame(
        columns=["exercise_name", "date", "sets", "max_weight", "volume"]
    )
    out = tmp_path / "out.xlsx"
    write_progress_xlsx(
        cal,
        StreakResult(0, date(2025, 6, 8)),
        out,
        ExcelLayout(),
        weight=weight,
        exercises=exercises,
    )

    wb = load_workbook(out)
    assert "Cardio" not in wb.sheetnames
    peso = cast(Worksheet, wb[ExcelLayout().weight_sheet_name])
    assert [c.value for c in peso[1]] == ["Fecha", "Peso (kg)", "Cambio (kg)"]
    assert peso.cell(row=3, column=3).value == -0.5
    assert peso.cell(row=2, column=2).number_format == "0.0"
    ejercicios = cast(Worksheet, wb[ExcelLayout().exercise_sheet_name])
    assert [c.value for c in ejercicios[1]] == [
        "Ejercicio",
        "Fecha",
        "Series",
        "Peso máx.",
        "Volumen",
    ]
    assert ejercicios.max_row == 1
