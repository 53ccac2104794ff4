"""Gemeinsamer Renderer für die Terminal-Anzeige eines Wochenrasters (rich)."""

from rich import box
from rich.table import Table
from rich.text import Text

from export.helpers import format_cell, get_subject_color
from schedule.grid import CellKind, GridCell, TimetableGrid


def render_grid_rows(grid: TimetableGrid) -> list[list[str]]:
    """Gibt Tabellenzeilen als reinen Text zurück.

    Jede Zeile: [Stunde, Zeit, Mo, Di, …]. Pausen-Zeilen tragen in allen
    Tagesspalten '─'.
    """
    rows: list[list[str]] = []
    for row in grid.rows:
        rows.append(
            [row.period_name, row.time_label] + [format_cell(c) for c in row.cells]
        )
    return rows


def _rich_cell(cell: GridCell) -> Text:
    if cell.kind == CellKind.BREAK:
        return Text("─" * 8, style="dim")
    if cell.kind == CellKind.EMPTY or cell.slot is None:
        return Text("—", style="dim")
    slot = cell.slot
    text = Text()
    text.append(slot.subject, style=f"bold #{get_subject_color(slot.subject)}")
    counterpart_style = "bold yellow" if cell.is_substituted else ""
    text.append(f"\n{slot.counterpart}", style=counterpart_style)
    text.append(f"\n{slot.room}", style="dim")
    if cell.is_substituted:
        text.append(f"\nVertr. für {cell.original_counterpart}", style="italic yellow")
    return text


def build_rich_table(grid: TimetableGrid) -> Table:
    """Baut eine rich-Tabelle aus dem Raster (eine Spalte je Wochentag)."""
    table = Table(title=grid.title or None, box=box.ROUNDED, show_lines=True)
    table.add_column("Stunde", style="bold", no_wrap=True)
    table.add_column("Zeit", style="dim", no_wrap=True)
    for day in grid.weekdays:
        table.add_column(day.value, min_width=14)

    for row in grid.rows:
        if row.is_break:
            table.add_row(
                Text(row.period_name, style="dim italic"),
                Text(row.time_label, style="dim"),
                *[_rich_cell(c) for c in row.cells],
            )
            continue
        label = Text(row.period_name, style="red" if row.is_synthesized else "")
        table.add_row(label, row.time_label, *[_rich_cell(c) for c in row.cells])
    return table
