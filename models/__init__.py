from models.teacher import Teacher
from models.room import Room
from models.school_class import SchoolClass
from models.schedule import (
    ClassDaySchedule,
    ClassPeriodEntry,
    ClassViewSchedule,
    FlatScheduleEntry,
    NormalizedSlot,
    RawSchedule,
    RoomViewSchedule,
    TeacherViewSchedule,
    ViewKind,
)
from models.timetable import Timetable, TimetableScope, TimetableStatus
from models.substitution import SubstitutionRecord, SubstitutionStatus

__all__ = [
    "Teacher",
    "Room",
    "SchoolClass",
    "ClassDaySchedule",
    "ClassPeriodEntry",
    "ClassViewSchedule",
    "FlatScheduleEntry",
    "NormalizedSlot",
    "RawSchedule",
    "RoomViewSchedule",
    "TeacherViewSchedule",
    "ViewKind",
    "Timetable",
    "TimetableScope",
    "TimetableStatus",
    "SubstitutionRecord",
    "SubstitutionStatus",
]
