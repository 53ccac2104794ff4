"""Grid-Renderer: normalisierte Slots + Zeitraster → vollständiges Wochenraster.

Pro Stunde des Zeitrasters eine Zeile, pro Wochentag eine Zelle. Jede Zelle ist
genau eines von: Pause, belegt, leer. Reine Darstellung, kein eigener Zustand.
"""

from datetime import date
from enum import Enum
from typing import Iterable, Iterator, Optional

from pydantic import BaseModel

from config.schema import PeriodDefinition, PeriodGridConfig, Weekday, time_to_minutes
from models.schedule import NormalizedSlot
from models.substitution import SubstitutionRecord
from schedule.normalizer import SlotMap, is_synthesized


class CellKind(str, Enum):
    BREAK = "break"
    FILLED = "filled"
    EMPTY = "empty"


class GridCell(BaseModel):
    """Eine Zelle (Wochentag × Stunde)."""

    weekday: Weekday
    period_name: str
    kind: CellKind
    slot: Optional[NormalizedSlot] = None
    is_substituted: bool = False
    original_counterpart: Optional[str] = None
    substitution: Optional[SubstitutionRecord] = None

    @property
    def detail(self) -> str:
        """Hover-/Detailtext: Gegenüber • Raum (Beginn-Ende)."""
        if self.slot is None:
            return ""
        text = f"{self.slot.counterpart} • {self.slot.room} ({self.slot.time_label})"
        if self.is_substituted:
            text += f" – Vertretung für {self.original_counterpart}"
        return text


class GridRow(BaseModel):
    """Eine Zeile des Rasters (Stunde, Pause oder synthetische Zusatzzeile)."""

    period_name: str
    time_label: str
    is_break: bool = False
    is_synthesized: bool = False
    cells: list[GridCell]


class TimetableGrid(BaseModel):
    """Vollständiges Wochenraster einer Ansicht."""

    title: str = ""
    weekdays: list[Weekday]
    rows: list[GridRow]

    def cell(self, weekday: Weekday, period_name: str) -> Optional[GridCell]:
        for row in self.rows:
            if row.period_name == period_name:
                for c in row.cells:
                    if c.weekday == weekday:
                        return c
        return None

    def iter_cells(self) -> Iterator[GridCell]:
        for row in self.rows:
            yield from row.cells

    def filled_cells(self) -> list[GridCell]:
        return [c for c in self.iter_cells() if c.kind == CellKind.FILLED]

    @property
    def is_empty(self) -> bool:
        return not self.filled_cells()


# ─── Aufbau ───────────────────────────────────────────────────────────────────

def build_grid(
    grid: PeriodGridConfig,
    slot_map: SlotMap,
    substitutions: Iterable[SubstitutionRecord] = (),
    timetable_id: Optional[str] = None,
    week_of: Optional[date] = None,
    title: str = "",
) -> TimetableGrid:
    """Baut das Raster auf.

    Pausen-Zeilen sind an allen Tagen gleich und ohne Inhalt. Slots mit
    synthetischem Stundennamen erscheinen als Zusatzzeilen nach Beginn sortiert.
    Mit timetable_id werden aktive Vertretungen dieses Stundenplans eingeblendet
    (bei week_of nur Vertretungen derselben Kalenderwoche).
    """
    overlay = _substitution_index(substitutions, timetable_id, week_of)
    weekdays = list(grid.weekdays)
    rows: list[GridRow] = []

    for period in grid.periods:
        rows.append(_period_row(period, weekdays, slot_map, overlay))

    synthetic = sorted(
        {name for (_, name) in slot_map if is_synthesized(name)},
        key=lambda n: _synthetic_sort_key(n, slot_map),
    )
    for name in synthetic:
        cells = [
            _filled_or_empty(day, name, slot_map.get((day, name)), overlay)
            for day in weekdays
        ]
        filled = [c.slot for c in cells if c.slot is not None]
        rows.append(GridRow(
            period_name=name,
            time_label=filled[0].time_label if filled else "",
            is_synthesized=True,
            cells=cells,
        ))

    return TimetableGrid(title=title, weekdays=weekdays, rows=rows)


def _period_row(
    period: PeriodDefinition,
    weekdays: list[Weekday],
    slot_map: SlotMap,
    overlay: dict,
) -> GridRow:
    if period.is_break:
        cells = [
            GridCell(weekday=day, period_name=period.name, kind=CellKind.BREAK)
            for day in weekdays
        ]
        return GridRow(period_name=period.name, time_label=period.time_label,
                       is_break=True, cells=cells)
    cells = [
        _filled_or_empty(day, period.name, slot_map.get((day, period.name)), overlay)
        for day in weekdays
    ]
    return GridRow(period_name=period.name, time_label=period.time_label, cells=cells)


def _filled_or_empty(
    day: Weekday,
    period_name: str,
    slot: Optional[NormalizedSlot],
    overlay: dict,
) -> GridCell:
    if slot is None:
        return GridCell(weekday=day, period_name=period_name, kind=CellKind.EMPTY)
    record = overlay.get((day, slot.timetable_id, slot.period_index))
    if record is None:
        return GridCell(weekday=day, period_name=period_name,
                        kind=CellKind.FILLED, slot=slot)
    return GridCell(
        weekday=day,
        period_name=period_name,
        kind=CellKind.FILLED,
        slot=slot.model_copy(update={"counterpart": record.substitute_teacher.name}),
        is_substituted=True,
        original_counterpart=slot.counterpart,
        substitution=record,
    )


def _substitution_index(
    substitutions: Iterable[SubstitutionRecord],
    timetable_id: Optional[str],
    week_of: Optional[date],
) -> dict[tuple, SubstitutionRecord]:
    """(Wochentag, Stundenplan-ID, period_index) → aktive Vertretung."""
    if timetable_id is None:
        return {}
    week = week_of.isocalendar()[:2] if week_of else None
    index: dict[tuple, SubstitutionRecord] = {}
    for rec in sorted(substitutions, key=lambda r: (r.date, r.id or "")):
        if not rec.is_active or rec.timetable_id != timetable_id:
            continue
        if week is not None and rec.date.isocalendar()[:2] != week:
            continue
        index[(rec.weekday, rec.timetable_id, rec.period_index)] = rec
    return index


def _synthetic_sort_key(name: str, slot_map: SlotMap) -> tuple:
    starts = [
        s.start_time for (_, n), s in slot_map.items() if n == name and s.start_time
    ]
    try:
        return (min(time_to_minutes(s) for s in starts), name)
    except ValueError:
        return (24 * 60, name)
