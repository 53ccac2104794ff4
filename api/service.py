"""Schnittstelle zum Stundenplan-Server.

Zwei Implementierungen: ``TimetableApiClient`` (HTTP) und
``DemoTimetableService`` (im Speicher, für --demo und Tests).
"""

from datetime import date
from typing import Optional, Protocol

from config.schema import Weekday
from models.room import Room
from models.schedule import FlatScheduleEntry
from models.school_class import SchoolClass
from models.substitution import SubstitutionRecord
from models.teacher import Teacher
from models.timetable import Timetable


class TimetableService(Protocol):

    # ─── Stundenpläne ───

    def get_timetables(
        self,
        class_name: Optional[str] = None,
        section: Optional[str] = None,
        academic_year: Optional[str] = None,
        status: Optional[str] = "active",
    ) -> list[Timetable]: ...

    def get_teacher_timetable(
        self, teacher_id: str, academic_year: Optional[str] = None
    ) -> list[FlatScheduleEntry]: ...

    def get_room_schedule(
        self, room_id: str, academic_year: Optional[str] = None
    ) -> list[FlatScheduleEntry]: ...

    def delete_timetable(self, timetable_id: str) -> bool: ...

    # ─── Vertretungen ───

    def get_substitutes(self) -> list[SubstitutionRecord]: ...

    def get_available_substitutes(
        self,
        weekday: Weekday,
        start_time: str,
        end_time: str,
        branch: Optional[str] = None,
    ) -> list[Teacher]: ...

    def assign_substitute(
        self,
        timetable_id: str,
        day_index: int,
        period_index: int,
        substitute_teacher_id: str,
        on_date: date,
        reason: Optional[str] = None,
    ) -> SubstitutionRecord: ...

    def remove_substitute(
        self, timetable_id: str, day_index: int, period_index: int
    ) -> bool: ...

    # ─── Stammdaten ───

    def get_teachers(self) -> list[Teacher]: ...

    def get_rooms(self) -> list[Room]: ...

    def get_classes(self) -> list[SchoolClass]: ...

    def get_current_academic_year(self) -> Optional[str]: ...
