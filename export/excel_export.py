"""Excel-Export für Wochenraster und Vertretungsliste (openpyxl)."""

import logging
from pathlib import Path
from typing import Iterable, Optional

from models.substitution import SubstitutionRecord
from schedule.grid import TimetableGrid

from export.helpers import COLORS, cell_fill_color, format_cell, today_str

logger = logging.getLogger(__name__)


class GridExcelExporter:
    """Schreibt ein oder mehrere Wochenraster in eine Excel-Datei (ein Blatt je Raster)."""

    # Spaltenbreiten (Excel-Einheiten)
    COL_STD_W  = 14
    COL_ZEIT_W = 15
    COL_DAY_W  = 22

    # Zeilenhöhen (Punkte)
    ROW_HEADER_H  = 22
    ROW_LESSON_H  = 48
    ROW_PAUSE_H   = 14

    def __init__(self, school_name: str = ""):
        self.school_name = school_name

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(
        self,
        grids: Iterable[TimetableGrid],
        output_path: Path,
        substitutions: Optional[list[SubstitutionRecord]] = None,
    ) -> Path:
        """Erstellt die Excel-Datei.

        substitutions: optionale Vertretungsliste – wenn angegeben,
        wird ein zusätzliches Blatt "Vertretungen" angehängt.
        """
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        used_titles: set[str] = set()
        for grid in grids:
            self._sheet_grid(wb, grid, used_titles)

        if substitutions is not None:
            self._sheet_substitutions(wb, substitutions)

        if not wb.sheetnames:
            wb.create_sheet(title="Leer")

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        logger.info(f"Excel gespeichert: {output_path}")
        return output_path

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _center_align(self, wrap: bool = True):
        from openpyxl.styles import Alignment
        return Alignment(wrap_text=wrap, horizontal="center", vertical="center")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _write_header(self, ws, headers: list[str], row: int = 1) -> None:
        from openpyxl.styles import Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=row, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = self._center_align(wrap=False)
            cell.border = border
        ws.row_dimensions[row].height = self.ROW_HEADER_H

    @staticmethod
    def _sheet_title(title: str, used: set[str]) -> str:
        # Excel: max. 31 Zeichen, keine []:*?/\
        clean = "".join(ch for ch in title if ch not in "[]:*?/\\") or "Plan"
        candidate = clean[:31]
        n = 2
        while candidate in used:
            suffix = f" ({n})"
            candidate = clean[: 31 - len(suffix)] + suffix
            n += 1
        used.add(candidate)
        return candidate

    # ─── Sheet: Wochenraster ──────────────────────────────────────────────────

    def _sheet_grid(self, wb, grid: TimetableGrid, used_titles: set[str]) -> None:
        from openpyxl.styles import Font
        from openpyxl.utils import get_column_letter

        ws = wb.create_sheet(title=self._sheet_title(grid.title or "Plan", used_titles))
        ws.column_dimensions["A"].width = self.COL_STD_W
        ws.column_dimensions["B"].width = self.COL_ZEIT_W
        for col in range(3, 3 + len(grid.weekdays)):
            ws.column_dimensions[get_column_letter(col)].width = self.COL_DAY_W

        self._write_header(ws, ["Stunde", "Zeit"] + [d.value for d in grid.weekdays])
        border = self._thin_border()

        excel_row = 2   # Zeile 1 = Header
        for row in grid.rows:
            c = ws.cell(row=excel_row, column=1, value=row.period_name)
            c.alignment = self._center_align(wrap=False)
            c.border = border
            c.font = Font(bold=not row.is_break, italic=row.is_break, size=9,
                          color="CC0000" if row.is_synthesized else "000000")

            c = ws.cell(row=excel_row, column=2, value=row.time_label)
            c.alignment = self._center_align(wrap=False)
            c.border = border
            c.font = Font(size=8)

            if row.is_synthesized:
                # Zusatzzeile außerhalb des Zeitrasters
                for col in (1, 2):
                    ws.cell(row=excel_row, column=col).fill = self._fill(COLORS["synthesized"])

            if row.is_break:
                # Pausen über alle Tagesspalten zusammenführen
                last_col = 2 + len(grid.weekdays)
                ws.merge_cells(start_row=excel_row, start_column=3,
                               end_row=excel_row, end_column=last_col)
                c = ws.cell(row=excel_row, column=3, value=f"── {row.period_name} ──")
                c.fill = self._fill(COLORS["pause"])
                c.alignment = self._center_align(wrap=False)
                c.font = Font(italic=True, size=8, color="666666")
                ws.row_dimensions[excel_row].height = self.ROW_PAUSE_H
            else:
                for col, cell in enumerate(row.cells, 3):
                    c = ws.cell(row=excel_row, column=col, value=format_cell(cell))
                    c.fill = self._fill(cell_fill_color(cell))
                    c.alignment = self._center_align()
                    c.border = border
                    c.font = Font(size=8, bold=cell.is_substituted)
                ws.row_dimensions[excel_row].height = self.ROW_LESSON_H
            excel_row += 1

        excel_row += 1
        footer = f"Erstellt: {today_str()}"
        if self.school_name:
            footer = f"{self.school_name}  |  {footer}"
        ws.cell(row=excel_row, column=1, value=footer).font = Font(italic=True, size=8)

    # ─── Sheet: Vertretungen ──────────────────────────────────────────────────

    def _sheet_substitutions(self, wb, records: list[SubstitutionRecord]) -> None:
        ws = wb.create_sheet(title="Vertretungen")
        headers = ["Datum", "Tag", "Klasse", "Fach", "Lehrkraft", "Vertretung", "Grund"]
        self._write_header(ws, headers)
        border = self._thin_border()
        for row, rec in enumerate(records, 2):
            original = rec.original_teacher.name if rec.original_teacher else ""
            values = [
                rec.date.strftime("%d.%m.%Y"),
                rec.weekday.value,
                rec.class_section,
                rec.subject,
                original,
                rec.substitute_teacher.name,
                rec.reason or "",
            ]
            for col, value in enumerate(values, 1):
                ws.cell(row=row, column=col, value=value).border = border
        for col, width in zip("ABCDEFG", (12, 12, 16, 18, 22, 22, 30)):
            ws.column_dimensions[col].width = width
