"""Rohe Stundenplan-Einträge der drei Ansichten und der normalisierte Slot (Pydantic v2).

Der Server liefert denselben Stundenplan je nach Ansicht in anderer Form:

  Klassen-Ansicht:  nach Wochentag gruppiert, je Tag eine Liste von Stunden
  Lehrer-Ansicht:   flache Liste mit Tag, Uhrzeit, Fach, Klasse, Sektion, Raum
  Raum-Ansicht:     wie die Lehrer-Ansicht

Die drei Formen werden als getaggte Varianten (``kind``) modelliert, damit der
Normalizer genau einen Eingangstyp hat.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.teacher import display_name, reference_id


class ViewKind(str, Enum):
    CLASS = "class"
    TEACHER = "teacher"
    ROOM = "room"


def normalize_time(value: Any) -> str:
    """Bringt Uhrzeiten auf "HH:MM" ("9:30" → "09:30"); Unbekanntes bleibt unverändert."""
    if value is None:
        return ""
    text = str(value).strip()
    parts = text.split(":")
    if len(parts) >= 2 and parts[0].isdigit() and parts[1][:2].isdigit():
        return f"{int(parts[0]):02d}:{parts[1][:2]}"
    return text


class _RawEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_time: str = Field("", alias="startTime")
    end_time: str = Field("", alias="endTime")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _times(cls, v: Any) -> str:
        return normalize_time(v)


# ─── Klassen-Ansicht ──────────────────────────────────────────────────────────

class ClassPeriodEntry(_RawEntry):
    """Eine Stunde innerhalb eines Tages der Klassen-Ansicht."""

    period_number: Optional[int] = Field(None, alias="periodNumber")  # 1-basiert
    subject_name: str = Field("Unknown", alias="subjectName")
    teacher: Optional[str] = None          # Anzeigename
    teacher_id: Optional[str] = None
    room_name: str = Field("Unknown", alias="roomName")

    @field_validator("subject_name", "room_name", mode="before")
    @classmethod
    def _names(cls, v: Any) -> str:
        return display_name(v)

    @classmethod
    def from_payload(cls, data: dict) -> "ClassPeriodEntry":
        payload = dict(data)
        raw_teacher = payload.get("teacher")
        payload["teacher"] = display_name(raw_teacher) if raw_teacher else None
        payload["teacher_id"] = reference_id(raw_teacher)
        return cls.model_validate(payload)


class ClassDaySchedule(BaseModel):
    """Alle Stunden einer Klasse an einem Wochentag."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    day: str
    periods: list[ClassPeriodEntry] = []

    @field_validator("periods", mode="before")
    @classmethod
    def _periods(cls, v: Any) -> Any:
        return [
            ClassPeriodEntry.from_payload(p) if isinstance(p, dict) else p
            for p in v or []
        ]


# ─── Lehrer- und Raum-Ansicht ─────────────────────────────────────────────────

class FlatScheduleEntry(_RawEntry):
    """Ein Eintrag der flachen Lehrer- bzw. Raumliste."""

    day: str
    subject: str = "Subject"
    class_name: str = Field("Class", alias="class")
    section: str = ""
    room: str = ""
    teacher: Optional[str] = None
    teacher_id: Optional[str] = None
    period_index: Optional[int] = Field(None, alias="periodIndex")  # 0-basiert
    period_number: Optional[int] = Field(None, alias="periodNumber")
    timetable_id: Optional[str] = Field(None, alias="timetableId")
    is_substitute: bool = Field(False, alias="isSubstitute")
    branch: Optional[str] = None

    @classmethod
    def from_payload(cls, data: dict) -> "FlatScheduleEntry":
        payload = dict(data)
        raw_teacher = payload.get("teacher")
        payload["subject"] = display_name(payload.get("subject"), "Subject")
        payload["class"] = display_name(payload.get("class"), "Class")
        payload["section"] = display_name(payload.get("section"), "")
        payload["room"] = display_name(payload.get("room"), "")
        payload["teacher"] = display_name(raw_teacher) if raw_teacher else None
        payload["teacher_id"] = reference_id(raw_teacher)
        if payload.get("branch") is not None:
            payload["branch"] = reference_id(payload["branch"])
        return cls.model_validate(payload)

    @property
    def class_section(self) -> str:
        return f"{self.class_name} - {self.section}"

    def label(self) -> str:
        """Kurzbeschreibung für Auswahllisten."""
        return (
            f"{self.day} {self.start_time}-{self.end_time} | "
            f"{self.subject} | {self.class_section}"
        )


# ─── Getaggte Varianten ───────────────────────────────────────────────────────

class ClassViewSchedule(BaseModel):
    kind: Literal[ViewKind.CLASS] = ViewKind.CLASS
    timetable_id: Optional[str] = None
    days: list[ClassDaySchedule] = []


class TeacherViewSchedule(BaseModel):
    kind: Literal[ViewKind.TEACHER] = ViewKind.TEACHER
    teacher_id: Optional[str] = None
    entries: list[FlatScheduleEntry] = []


class RoomViewSchedule(BaseModel):
    kind: Literal[ViewKind.ROOM] = ViewKind.ROOM
    room_id: Optional[str] = None
    room_name: Optional[str] = None
    entries: list[FlatScheduleEntry] = []


RawSchedule = Annotated[
    Union[ClassViewSchedule, TeacherViewSchedule, RoomViewSchedule],
    Field(discriminator="kind"),
]


# ─── Normalisierter Slot ──────────────────────────────────────────────────────

class NormalizedSlot(BaseModel):
    """Inhalt einer Zelle (Wochentag, Stunde) nach der Normalisierung."""

    subject: str
    counterpart: str        # Lehrer (Klassen-/Raum-Ansicht) bzw. "Klasse - Sektion"
    room: str
    start_time: str
    end_time: str
    period_index: Optional[int] = None
    timetable_id: Optional[str] = None

    @property
    def time_label(self) -> str:
        return f"{self.start_time}-{self.end_time}"
