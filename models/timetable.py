"""Stundenplan-Dokument der Klassen-Ansicht (Pydantic v2)."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.schedule import ClassDaySchedule, ClassViewSchedule
from models.teacher import display_name


class TimetableStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"


class TimetableScope(str, Enum):
    CLASS = "class"
    TEACHER = "teacher"
    ROOM = "room"


class Timetable(BaseModel):
    """Ein Stundenplan; wird vom (externen) Builder gepflegt, hier nur gelesen.

    Die ID wird für Löschen und den Link zum Builder gebraucht.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    scope: TimetableScope = TimetableScope.CLASS
    class_name: str = Field("", alias="class")
    section: str = ""
    academic_year: str = Field("", alias="academicYear")
    status: TimetableStatus = TimetableStatus.ACTIVE
    schedule: list[ClassDaySchedule] = []

    @model_validator(mode="before")
    @classmethod
    def _from_payload(cls, data: Any) -> Any:
        if isinstance(data, dict):
            payload = dict(data)
            if "_id" not in payload and "id" in payload:
                payload["_id"] = payload.pop("id")
            if "class" in payload:
                payload["class"] = display_name(payload["class"], "")
            if "section" in payload:
                payload["section"] = display_name(payload["section"], "")
            return payload
        return data

    @property
    def label(self) -> str:
        return f"{self.class_name} - {self.section} ({self.academic_year})"

    def to_view(self) -> ClassViewSchedule:
        """Klassen-Ansicht für den Normalizer."""
        return ClassViewSchedule(timetable_id=self.id, days=self.schedule)

    def builder_path(self) -> str:
        """Pfad zum Stundenplan-Builder der Weboberfläche."""
        return f"/timetable/builder?id={self.id}"


def pick_active(timetables: list[Timetable]) -> Optional[Timetable]:
    """Erster aktiver Stundenplan, sonst der erste überhaupt."""
    for t in timetables:
        if t.status == TimetableStatus.ACTIVE:
            return t
    return timetables[0] if timetables else None
