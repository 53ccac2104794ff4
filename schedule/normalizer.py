"""Schedule-Normalizer: drei Server-Ansichten → ein einheitliches Slot-Raster.

Jede Ansicht (Klasse, Lehrer, Raum) liefert Einträge in eigener Form. Alle
werden auf ``(Weekday, Stundenname) → NormalizedSlot`` abgebildet.

Zuordnung eines Eintrags zu einer Stunde des Zeitrasters:
  1. Beginn des Eintrags == Beginn einer Unterrichtsstunde (exakt)
  2. sonst: Ordinal-Index des Eintrags → N-te Unterrichtsstunde
  3. sonst: synthetischer Name "Period (HH:MM)" – der Eintrag geht nie verloren
"""

import logging
from dataclasses import dataclass
from typing import Optional

from config.schema import PeriodGridConfig, Weekday
from models.schedule import (
    ClassPeriodEntry,
    ClassViewSchedule,
    FlatScheduleEntry,
    NormalizedSlot,
    RawSchedule,
    RoomViewSchedule,
    TeacherViewSchedule,
)

logger = logging.getLogger(__name__)

SlotMap = dict[tuple[Weekday, str], NormalizedSlot]

_SYNTHETIC_PREFIX = "Period ("


def synthesized_period_name(start_time: str) -> str:
    """Platzhaltername für Einträge ohne passende Stunde im Zeitraster."""
    return f"{_SYNTHETIC_PREFIX}{start_time or '?'})"


def is_synthesized(period_name: str) -> bool:
    return period_name.startswith(_SYNTHETIC_PREFIX)


@dataclass(frozen=True)
class _Placement:
    """Ein Eintrag mit allen Angaben, die für die Stundenzuordnung nötig sind."""

    weekday: Weekday
    start_time: str
    ordinal: Optional[int]      # 0-basiert über Unterrichtsstunden
    slot: NormalizedSlot

    @property
    def sort_key(self) -> tuple:
        s = self.slot
        return (
            self.weekday.index, self.start_time, s.end_time,
            -1 if self.ordinal is None else self.ordinal,
            s.subject, s.counterpart, s.room,
            s.timetable_id or "", -1 if s.period_index is None else s.period_index,
        )


# ─── Öffentliche API ──────────────────────────────────────────────────────────

def normalize(raw: RawSchedule, grid: PeriodGridConfig) -> SlotMap:
    """Normalisiert eine beliebige Ansicht gegen das Zeitraster.

    Das Ergebnis hängt nicht von der Reihenfolge der Rohdaten ab: Einträge werden
    vor dem Einfügen kanonisch sortiert, bei Kollisionen gewinnt der letzte.
    """
    if isinstance(raw, ClassViewSchedule):
        placements = _class_placements(raw)
    elif isinstance(raw, TeacherViewSchedule):
        placements = _flat_placements(raw.entries, _teacher_counterpart)
    elif isinstance(raw, RoomViewSchedule):
        placements = _flat_placements(raw.entries, _room_counterpart)
    else:
        raise TypeError(f"Unbekannte Ansicht: {type(raw).__name__}")

    slot_map: SlotMap = {}
    for p in sorted(placements, key=lambda p: p.sort_key):
        period_name = resolve_period_name(grid, p.start_time, p.ordinal)
        key = (p.weekday, period_name)
        if key in slot_map and slot_map[key] != p.slot:
            logger.warning(
                f"Doppelbelegung {p.weekday.value}/{period_name}: "
                f"'{slot_map[key].subject}' wird durch '{p.slot.subject}' ersetzt"
            )
        slot_map[key] = p.slot
    return slot_map


def normalize_class_view(raw: ClassViewSchedule, grid: PeriodGridConfig) -> SlotMap:
    return normalize(raw, grid)


def normalize_teacher_view(raw: TeacherViewSchedule, grid: PeriodGridConfig) -> SlotMap:
    return normalize(raw, grid)


def normalize_room_view(raw: RoomViewSchedule, grid: PeriodGridConfig) -> SlotMap:
    return normalize(raw, grid)


def resolve_period_name(
    grid: PeriodGridConfig, start_time: str, ordinal: Optional[int]
) -> str:
    """Findet den Stundennamen: exakter Beginn → Ordinal → synthetischer Name."""
    period = grid.period_by_start(start_time)
    if period is not None:
        return period.name
    if ordinal is not None:
        period = grid.period_by_ordinal(ordinal)
        if period is not None:
            logger.info(
                f"Beginn {start_time} passt zu keiner Stunde – "
                f"Zuordnung über Index {ordinal} zu '{period.name}'"
            )
            return period.name
    name = synthesized_period_name(start_time)
    logger.warning(f"Beginn {start_time} nicht im Zeitraster – Platzhalter '{name}'")
    return name


# ─── Ansichten ────────────────────────────────────────────────────────────────

def _lesson_order(p: ClassPeriodEntry) -> tuple:
    return (
        p.start_time, p.end_time, p.period_number or 0,
        p.subject_name, p.teacher or "", p.teacher_id or "", p.room_name,
    )


def _class_placements(raw: ClassViewSchedule) -> list[_Placement]:
    placements: list[_Placement] = []
    for day_schedule in raw.days:
        weekday = Weekday.parse(day_schedule.day)
        if weekday is None:
            logger.warning(
                f"Unbekannter Wochentag '{day_schedule.day}' – "
                f"{len(day_schedule.periods)} Stunde(n) nicht darstellbar"
            )
            continue
        for position, p in enumerate(sorted(day_schedule.periods, key=_lesson_order)):
            ordinal = p.period_number - 1 if p.period_number else None
            placements.append(_Placement(
                weekday=weekday,
                start_time=p.start_time,
                ordinal=ordinal,
                slot=NormalizedSlot(
                    subject=p.subject_name or "Unknown",
                    counterpart=p.teacher or "Unknown",
                    room=p.room_name or "Unknown",
                    start_time=p.start_time,
                    end_time=p.end_time,
                    # Position im zeitlich sortierten Tag, wie der Server periodIndex vergibt
                    period_index=position,
                    timetable_id=raw.timetable_id,
                ),
            ))
    return placements


def _teacher_counterpart(entry: FlatScheduleEntry) -> str:
    return f"{entry.class_name} - {entry.section}"


def _room_counterpart(entry: FlatScheduleEntry) -> str:
    return f"{entry.class_name} {entry.section} ({entry.teacher or 'Teacher'})"


def _flat_placements(entries: list[FlatScheduleEntry], counterpart) -> list[_Placement]:
    placements: list[_Placement] = []
    for e in entries:
        weekday = Weekday.parse(e.day)
        if weekday is None:
            logger.warning(f"Unbekannter Wochentag '{e.day}' – Eintrag {e.subject} übersprungen")
            continue
        placements.append(_Placement(
            weekday=weekday,
            start_time=e.start_time,
            ordinal=e.period_index,
            slot=NormalizedSlot(
                subject=e.subject,
                counterpart=counterpart(e),
                room=e.room,
                start_time=e.start_time,
                end_time=e.end_time,
                period_index=e.period_index,
                timetable_id=e.timetable_id,
            ),
        ))
    return placements
