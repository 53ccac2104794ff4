"""Export-Modul: Terminal (rich) und Excel (openpyxl) für Wochenraster."""

from export.excel_export import GridExcelExporter
from export.tui_renderer import build_rich_table, render_grid_rows

__all__ = ["GridExcelExporter", "build_rich_table", "render_grid_rows"]
