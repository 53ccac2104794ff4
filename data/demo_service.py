"""Demo-Server im Speicher: gleiche Schnittstelle wie TimetableApiClient.

Dient für ``main.py --demo`` und für Tests. Erzeugt reproduzierbare Demo-Daten
(Seed) oder startet leer und wird über ``add_*`` befüllt.

Regeln wie auf dem echten Server:
  - Freie Lehrkräfte: keine reguläre Stunde und keine aktive Vertretung, die
    sich mit [Beginn, Ende) am selben Wochentag überschneidet
  - Zuweisen in ein bereits vertretenes Slot oder an eine belegte Lehrkraft → 409
  - Entfernen über (Stundenplan, dayIndex, periodIndex)
"""

import itertools
import logging
import random
from datetime import date
from typing import Optional

from api.errors import ApiResponseError
from config.schema import PeriodGridConfig, Weekday, windows_overlap
from config.defaults import SUBJECT_COLORS
from models.room import Room
from models.schedule import ClassDaySchedule, ClassPeriodEntry, FlatScheduleEntry
from models.school_class import SchoolClass
from models.substitution import SubstitutionRecord, SubstitutionStatus
from models.teacher import Teacher
from models.timetable import Timetable, TimetableStatus

logger = logging.getLogger(__name__)

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_TEACHER_NAMES = [
    "Ayesha Khan", "Bilal Ahmed", "Sana Malik", "Usman Tariq", "Hina Raza",
    "Kamran Ali", "Nida Hussain", "Faisal Qureshi", "Zara Sheikh",
    "Imran Butt", "Mehwish Iqbal", "Omar Farooq", "Rabia Noor", "Saad Javed",
]

_CLASS_NAMES = ["Class 5", "Class 6", "Class 7", "Class 8"]
_SECTIONS = ["A", "B"]


class DemoTimetableService:
    """Im-Speicher-Implementierung von TimetableService."""

    def __init__(
        self,
        grid: PeriodGridConfig,
        academic_year: str = "2024-2025",
        seed: Optional[int] = 42,
        populate: bool = True,
    ) -> None:
        self.grid = grid
        self.academic_year = academic_year
        self.teachers: dict[str, Teacher] = {}
        self.teacher_branches: dict[str, Optional[str]] = {}
        self.rooms: dict[str, Room] = {}
        self.classes: dict[str, SchoolClass] = {}
        self.timetables: dict[str, Timetable] = {}
        self.substitutions: list[SubstitutionRecord] = []
        self._ids = itertools.count(1)
        self._rng = random.Random(seed)
        if populate:
            self._populate()

    @classmethod
    def empty(cls, grid: PeriodGridConfig,
              academic_year: str = "2024-2025") -> "DemoTimetableService":
        return cls(grid, academic_year=academic_year, populate=False)

    # ─── Aufbau ───────────────────────────────────────────────────────────────

    def add_teacher(self, teacher_id: str, name: str, subjects: Optional[list[str]] = None,
                    branch: Optional[str] = None) -> Teacher:
        teacher = Teacher(id=teacher_id, name=name, subjects=subjects or [])
        self.teachers[teacher_id] = teacher
        self.teacher_branches[teacher_id] = branch
        return teacher

    def add_room(self, room_id: str, name: str) -> Room:
        room = Room(id=room_id, name=name)
        self.rooms[room_id] = room
        return room

    def add_timetable(self, class_name: str, section: str,
                      status: TimetableStatus = TimetableStatus.ACTIVE) -> Timetable:
        """Legt einen leeren Stundenplan für Klasse/Sektion an (inkl. Klassenliste)."""
        tid = f"tt-{next(self._ids)}"
        timetable = Timetable(
            id=tid,
            class_name=class_name,
            section=section,
            academic_year=self.academic_year,
            status=status,
            schedule=[ClassDaySchedule(day=d.value, periods=[]) for d in self.grid.weekdays],
        )
        self.timetables[tid] = timetable
        cls_id = f"cls-{class_name}"
        school_class = self.classes.get(cls_id) or SchoolClass(id=cls_id, name=class_name)
        if section not in school_class.sections:
            school_class = school_class.model_copy(
                update={"sections": [*school_class.sections, section]})
        self.classes[cls_id] = school_class
        return timetable

    def add_lesson(
        self,
        timetable_id: str,
        weekday: Weekday,
        period_name: str,
        subject: str,
        teacher_id: str,
        room_id: Optional[str] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
    ) -> ClassPeriodEntry:
        """Fügt eine Stunde hinzu; Zeiten kommen aus dem Zeitraster, außer sie sind angegeben."""
        period = next((p for p in self.grid.periods if p.name == period_name), None)
        if period is None and (start_time is None or end_time is None):
            raise ValueError(f"Unbekannte Stunde '{period_name}' ohne Uhrzeiten")
        ordinal = self.grid.teaching_index(period_name)
        teacher = self.teachers[teacher_id]
        entry = ClassPeriodEntry(
            period_number=ordinal + 1 if ordinal is not None else None,
            subject_name=subject,
            teacher=teacher.name,
            teacher_id=teacher.id,
            room_name=self.rooms[room_id].name if room_id else "Unknown",
            start_time=start_time or period.start_time,
            end_time=end_time or period.end_time,
        )
        timetable = self.timetables[timetable_id]
        for day in timetable.schedule:
            if Weekday.parse(day.day) == weekday:
                day.periods.append(entry)
                day.periods.sort(key=lambda p: p.start_time)
                break
        return entry

    def _populate(self) -> None:
        """Reproduzierbare Demo-Schule: 8 Klassen-Sektionen, 14 Lehrkräfte."""
        subjects = list(SUBJECT_COLORS)
        for i, name in enumerate(_TEACHER_NAMES, 1):
            self.add_teacher(
                f"T{i:02d}", name,
                subjects=self._rng.sample(subjects, 2),
                branch="main",
            )
        for i in range(1, 9):
            self.add_room(f"R{100 + i}", f"Room {100 + i}")

        room_ids = sorted(self.rooms)
        teacher_ids = sorted(self.teachers)
        home_rooms = itertools.cycle(room_ids)
        busy: set[tuple[Weekday, str, str]] = set()

        for class_name in _CLASS_NAMES:
            for section in _SECTIONS:
                timetable = self.add_timetable(class_name, section)
                room_id = next(home_rooms)
                for day in self.grid.weekdays:
                    for period in self.grid.teaching_periods:
                        free = [t for t in teacher_ids
                                if (day, period.name, t) not in busy]
                        teacher_id = self._rng.choice(free)
                        busy.add((day, period.name, teacher_id))
                        subject = self._rng.choice(self.teachers[teacher_id].subjects)
                        self.add_lesson(timetable.id, day, period.name, subject,
                                        teacher_id, room_id)

    # ─── Hilfen ───────────────────────────────────────────────────────────────

    def _entries(self, predicate) -> list[FlatScheduleEntry]:
        """Alle regulären Stunden aktiver Stundenpläne als flache Einträge."""
        result = []
        for tt in self.timetables.values():
            if tt.status != TimetableStatus.ACTIVE or tt.academic_year != self.academic_year:
                continue
            for day in tt.schedule:
                for idx, p in enumerate(day.periods):
                    entry = FlatScheduleEntry(
                        day=day.day,
                        start_time=p.start_time,
                        end_time=p.end_time,
                        subject=p.subject_name,
                        class_name=tt.class_name,
                        section=tt.section,
                        room=p.room_name,
                        teacher=p.teacher,
                        teacher_id=p.teacher_id,
                        period_index=idx,
                        period_number=p.period_number,
                        timetable_id=tt.id,
                    )
                    if predicate(entry):
                        result.append(entry)
        return result

    def _lesson_at(self, timetable_id: str, day_index: int,
                   period_index: int) -> tuple[Timetable, Weekday, ClassPeriodEntry]:
        timetable = self.timetables.get(timetable_id)
        if timetable is None:
            raise ApiResponseError("Timetable not found", status=404)
        weekday = list(Weekday)[day_index] if 0 <= day_index < len(Weekday) else None
        day = next((d for d in timetable.schedule if Weekday.parse(d.day) == weekday), None)
        if day is None or not 0 <= period_index < len(day.periods):
            raise ApiResponseError("Period not found", status=404)
        return timetable, weekday, day.periods[period_index]

    def _substitute_duties(self, teacher_id: str) -> list[FlatScheduleEntry]:
        duties = []
        for rec in self.substitutions:
            if not rec.is_active or rec.substitute_teacher.id != teacher_id:
                continue
            _, weekday, lesson = self._lesson_at(rec.timetable_id, rec.day_index,
                                                 rec.period_index)
            duties.append(FlatScheduleEntry(
                day=weekday.value,
                start_time=lesson.start_time,
                end_time=lesson.end_time,
                subject=rec.subject,
                class_name=rec.class_name,
                section=rec.section,
                room=lesson.room_name,
                teacher=rec.substitute_teacher.name,
                teacher_id=teacher_id,
                period_index=rec.period_index,
                timetable_id=rec.timetable_id,
                is_substitute=True,
            ))
        return duties

    def is_busy(self, teacher_id: str, weekday: Weekday,
                start_time: str, end_time: str) -> bool:
        """Reguläre Stunde oder aktive Vertretung überschneidet sich mit dem Fenster."""
        entries = self._entries(lambda e: e.teacher_id == teacher_id)
        entries += self._substitute_duties(teacher_id)
        return any(
            Weekday.parse(e.day) == weekday
            and windows_overlap(e.start_time, e.end_time, start_time, end_time)
            for e in entries
        )

    # ─── TimetableService ─────────────────────────────────────────────────────

    def get_timetables(self, class_name=None, section=None, academic_year=None,
                       status="active") -> list[Timetable]:
        result = []
        for tt in self.timetables.values():
            if class_name and tt.class_name != class_name:
                continue
            if section and tt.section != section:
                continue
            if academic_year and tt.academic_year != academic_year:
                continue
            if status and tt.status.value != status:
                continue
            result.append(tt.model_copy(deep=True))
        return result

    def get_teacher_timetable(self, teacher_id: str,
                              academic_year: Optional[str] = None) -> list[FlatScheduleEntry]:
        if teacher_id not in self.teachers:
            raise ApiResponseError("Teacher not found", status=404)
        if academic_year and academic_year != self.academic_year:
            return []
        return (self._entries(lambda e: e.teacher_id == teacher_id)
                + self._substitute_duties(teacher_id))

    def get_room_schedule(self, room_id: str,
                          academic_year: Optional[str] = None) -> list[FlatScheduleEntry]:
        room = self.rooms.get(room_id)
        if room is None:
            raise ApiResponseError("Room not found", status=404)
        if academic_year and academic_year != self.academic_year:
            return []
        return self._entries(lambda e: e.room == room.name)

    def delete_timetable(self, timetable_id: str) -> bool:
        if self.timetables.pop(timetable_id, None) is None:
            raise ApiResponseError("Timetable not found", status=404)
        self.substitutions = [s for s in self.substitutions
                              if s.timetable_id != timetable_id]
        return True

    def get_substitutes(self) -> list[SubstitutionRecord]:
        return [s for s in self.substitutions if s.is_active]

    def get_available_substitutes(self, weekday: Weekday, start_time: str,
                                  end_time: str, branch: Optional[str] = None) -> list[Teacher]:
        return [
            t for tid, t in sorted(self.teachers.items())
            if (branch is None or self.teacher_branches.get(tid) in (None, branch))
            and not self.is_busy(tid, weekday, start_time, end_time)
        ]

    def assign_substitute(self, timetable_id: str, day_index: int, period_index: int,
                          substitute_teacher_id: str, on_date: date,
                          reason: Optional[str] = None) -> SubstitutionRecord:
        timetable, weekday, lesson = self._lesson_at(timetable_id, day_index, period_index)
        if Weekday.from_date(on_date) != weekday:
            raise ApiResponseError("Date does not match the period's day", status=400)
        substitute = self.teachers.get(substitute_teacher_id)
        if substitute is None:
            raise ApiResponseError("Teacher not found", status=404)
        for rec in self.substitutions:
            if rec.is_active and rec.slot_key == (timetable_id, day_index, period_index) \
                    and rec.date == on_date:
                raise ApiResponseError("Substitute already assigned", status=409)
        if self.is_busy(substitute.id, weekday, lesson.start_time, lesson.end_time):
            raise ApiResponseError("Teacher is not available", status=409)

        original = self.teachers.get(lesson.teacher_id or "")
        record = SubstitutionRecord(
            id=f"sub-{next(self._ids)}",
            timetable_id=timetable_id,
            date=on_date,
            weekday=weekday,
            period_index=period_index,
            period_number=lesson.period_number,
            subject=lesson.subject_name,
            class_name=timetable.class_name,
            section=timetable.section,
            original_teacher=original,
            substitute_teacher=substitute,
            reason=reason,
        )
        self.substitutions.append(record)
        logger.info(f"Demo: Vertretung {record.id} angelegt")
        return record

    def remove_substitute(self, timetable_id: str, day_index: int,
                          period_index: int) -> bool:
        found = False
        for i, rec in enumerate(self.substitutions):
            if rec.is_active and rec.slot_key == (timetable_id, day_index, period_index):
                self.substitutions[i] = rec.model_copy(
                    update={"status": SubstitutionStatus.REVERTED})
                found = True
        if not found:
            raise ApiResponseError("Substitute not found", status=404)
        return True

    def get_teachers(self) -> list[Teacher]:
        return [self.teachers[k] for k in sorted(self.teachers)]

    def get_rooms(self) -> list[Room]:
        return [self.rooms[k] for k in sorted(self.rooms)]

    def get_classes(self) -> list[SchoolClass]:
        return [self.classes[k] for k in sorted(self.classes)]

    def get_current_academic_year(self) -> Optional[str]:
        return self.academic_year
