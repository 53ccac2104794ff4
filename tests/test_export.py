"""Tests für die Ausgabe: Terminal-Tabelle (rich) und Excel-Export (openpyxl)."""

from datetime import date
from pathlib import Path

import pytest
from rich.console import Console

from config.defaults import default_period_grid
from config.schema import Weekday
from data.demo_service import DemoTimetableService
from export.excel_export import GridExcelExporter
from export.helpers import (
    COLORS,
    cell_fill_color,
    format_cell,
    get_subject_color,
    hex_to_rgb,
    lighten,
)
from export.tui_renderer import build_rich_table, render_grid_rows
from schedule.grid import CellKind, build_grid
from schedule.normalizer import normalize


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def _make_demo_grid(with_substitution: bool = False):
    svc = DemoTimetableService.empty(default_period_grid())
    svc.add_teacher("T", "Tariq Aziz")
    svc.add_teacher("U", "Uzma Baig")
    svc.add_room("R1", "Room 1")
    tt = svc.add_timetable("Class 5", "A")
    svc.add_lesson(tt.id, Weekday.TUESDAY, "Period 3", "Mathematics", "T", "R1")
    svc.add_lesson(tt.id, Weekday.MONDAY, "Period 1", "Basket Weaving", "T", "R1")
    if with_substitution:
        svc.assign_substitute(tt.id, Weekday.TUESDAY.index, 0, "U", date(2024, 10, 15))
    grid = default_period_grid()
    timetable = svc.get_timetables()[0]
    return build_grid(
        grid, normalize(timetable.to_view(), grid),
        substitutions=svc.get_substitutes(), timetable_id=timetable.id,
        week_of=date(2024, 10, 15), title=timetable.label,
    ), svc


# ─── HILFSFUNKTIONEN ──────────────────────────────────────────────────────────

class TestHelpers:
    def test_hex_to_rgb(self):
        assert hex_to_rgb("1890FF") == (0x18, 0x90, 0xFF)
        assert hex_to_rgb("#FFFFFF") == (255, 255, 255)

    def test_lighten(self):
        assert lighten("000000", 1.0) == "FFFFFF"
        assert lighten("FFFFFF", 0.5) == "FFFFFF"
        assert lighten("1890FF", 0.0) == "1890FF"

    def test_subject_color_fallback(self):
        assert get_subject_color("English") == "52C41A"
        assert get_subject_color("Basket Weaving") == "1890FF"

    def test_format_cell_kinds(self):
        grid, _ = _make_demo_grid()
        assert format_cell(grid.cell(Weekday.TUESDAY, "Period 3")) == \
            "Mathematics\nTariq Aziz\nRoom 1"
        assert format_cell(grid.cell(Weekday.TUESDAY, "Break")) == "─"
        assert format_cell(grid.cell(Weekday.FRIDAY, "Period 3")) == "—"

    def test_format_substituted_cell(self):
        grid, _ = _make_demo_grid(with_substitution=True)
        text = format_cell(grid.cell(Weekday.TUESDAY, "Period 3"))
        assert text.startswith("Mathematics\nUzma Baig")
        assert "Vertr. für Tariq Aziz" in text

    def test_fill_colors(self):
        grid, _ = _make_demo_grid(with_substitution=True)
        assert cell_fill_color(grid.cell(Weekday.MONDAY, "Lunch")) == COLORS["pause"]
        assert cell_fill_color(grid.cell(Weekday.FRIDAY, "Period 1")) == COLORS["free"]
        assert cell_fill_color(grid.cell(Weekday.TUESDAY, "Period 3")) == COLORS["substituted"]
        assert cell_fill_color(grid.cell(Weekday.MONDAY, "Period 1")) == lighten("1890FF")


# ─── TERMINAL ─────────────────────────────────────────────────────────────────

class TestTerminal:
    def test_render_rows_shape(self):
        grid, _ = _make_demo_grid()
        rows = render_grid_rows(grid)
        assert len(rows) == 9
        assert all(len(r) == 2 + 6 for r in rows)
        assert rows[0][0] == "Period 1"
        assert rows[0][1] == "08:00 - 08:40"
        assert rows[3][0] == "Break"
        assert set(rows[3][2:]) == {"─"}

    def test_rich_table_renders(self):
        grid, _ = _make_demo_grid()
        table = build_rich_table(grid)
        assert len(table.columns) == 8
        assert table.row_count == 9
        console = Console(record=True, width=200)
        console.print(table)
        out = console.export_text()
        assert "Mathematics" in out
        assert "Tuesday" in out


# ─── EXCEL ────────────────────────────────────────────────────────────────────

class TestExcelExport:
    def test_creates_file_with_sheet(self, tmp_path: Path):
        grid, _ = _make_demo_grid()
        out = GridExcelExporter("Muster-Schule").export([grid], tmp_path / "plan.xlsx")
        assert out.exists()

        from openpyxl import load_workbook
        wb = load_workbook(out)
        assert wb.sheetnames == ["Class 5 - A (2024-2025)"]
        ws = wb.active
        assert ws.cell(row=1, column=1).value == "Stunde"
        assert ws.cell(row=1, column=4).value == "Tuesday"
        # Zeile 2 = Period 1, Zeile 4 = Period 3
        assert ws.cell(row=4, column=1).value == "Period 3"
        assert ws.cell(row=4, column=4).value == "Mathematics\nTariq Aziz\nRoom 1"
        # Pause zusammengeführt
        assert ws.cell(row=5, column=3).value == "── Break ──"
        assert any(str(r) == "C5:H5" for r in ws.merged_cells.ranges)

    def test_substitution_sheet(self, tmp_path: Path):
        grid, svc = _make_demo_grid(with_substitution=True)
        out = GridExcelExporter().export([grid], tmp_path / "plan.xlsx",
                                         substitutions=svc.get_substitutes())
        from openpyxl import load_workbook
        wb = load_workbook(out)
        assert wb.sheetnames[-1] == "Vertretungen"
        ws = wb["Vertretungen"]
        assert ws.cell(row=2, column=1).value == "15.10.2024"
        assert ws.cell(row=2, column=3).value == "Class 5 - A"
        assert ws.cell(row=2, column=6).value == "Uzma Baig"

    def test_duplicate_titles_made_unique(self, tmp_path: Path):
        grid, _ = _make_demo_grid()
        out = GridExcelExporter().export([grid, grid], tmp_path / "x.xlsx")
        from openpyxl import load_workbook
        names = load_workbook(out).sheetnames
        assert len(names) == 2
        assert len(set(names)) == 2

    def test_no_grids_still_valid_file(self, tmp_path: Path):
        out = GridExcelExporter().export([], tmp_path / "leer.xlsx")
        from openpyxl import load_workbook
        assert load_workbook(out).sheetnames == ["Leer"]

    def test_grid_cells_cover_every_period(self):
        grid, _ = _make_demo_grid()
        assert {c.kind for c in grid.iter_cells()} == {
            CellKind.BREAK, CellKind.FILLED, CellKind.EMPTY,
        }

    def test_off_grid_row_marked(self, tmp_path: Path):
        """Zusatzzeile außerhalb des Zeitrasters: Stunde und Zeit hervorgehoben."""
        svc = DemoTimetableService.empty(default_period_grid())
        svc.add_teacher("T", "Tariq Aziz")
        tt = svc.add_timetable("Class 5", "A")
        svc.add_lesson(tt.id, Weekday.WEDNESDAY, "Extra", "English", "T",
                       start_time="10:32", end_time="11:00")
        grid_cfg = default_period_grid()
        timetable = svc.get_timetables()[0]
        grid = build_grid(grid_cfg, normalize(timetable.to_view(), grid_cfg),
                          title=timetable.label)
        out = GridExcelExporter().export([grid], tmp_path / "plan.xlsx")

        from openpyxl import load_workbook
        ws = load_workbook(out).active
        # 9 Zeilen Zeitraster + Header → Zusatzzeile in Excel-Zeile 11
        assert ws.cell(row=11, column=1).value == "Period (10:32)"
        assert ws.cell(row=11, column=1).fill.start_color.rgb.endswith(COLORS["synthesized"])
        assert ws.cell(row=2, column=1).fill.start_color.rgb != "00" + COLORS["synthesized"]
