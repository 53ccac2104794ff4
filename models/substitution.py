"""Vertretungs-Datensatz (Pydantic v2)."""

from datetime import date as date_type
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from config.schema import Weekday
from models.teacher import Teacher, display_name


class SubstitutionStatus(str, Enum):
    ACTIVE = "active"
    REVERTED = "reverted"


class SubstitutionRecord(BaseModel):
    """Eine eintägige Vertretung in einem konkreten Stunden-Slot.

    Angelegt durch den Vertretungs-Workflow, rückgängig gemacht über das
    Vertretungs-Journal (status → reverted).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(None, alias="_id")
    timetable_id: str = Field(alias="timetableId")
    date: date_type
    weekday: Weekday = Field(alias="day")
    period_index: int = Field(alias="periodIndex")          # 0-basiert, ohne Pausen
    period_number: Optional[int] = Field(None, alias="periodNumber")
    subject: str = "Subject"
    class_name: str = Field("", alias="class")
    section: str = ""
    original_teacher: Optional[Teacher] = Field(None, alias="originalTeacher")
    substitute_teacher: Teacher = Field(alias="substituteTeacher")
    reason: Optional[str] = None
    status: SubstitutionStatus = SubstitutionStatus.ACTIVE

    @model_validator(mode="before")
    @classmethod
    def _from_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        if "_id" not in payload and "id" in payload:
            payload["_id"] = payload.pop("id")
        if isinstance(payload.get("date"), str):
            # ISO-Zeitstempel "2024-10-15T00:00:00.000Z" → Datum
            payload["date"] = payload["date"][:10]
        day = payload.get("day", payload.get("weekday"))
        if isinstance(day, str):
            parsed = Weekday.parse(day)
            if parsed is not None:
                payload["day"] = parsed
        elif day is None and payload.get("date"):
            parsed = Weekday.from_date(date_type.fromisoformat(str(payload["date"])))
            if parsed is not None:
                payload["day"] = parsed
        payload.pop("weekday", None)
        for key in ("subject", "class", "section"):
            if key in payload:
                payload[key] = display_name(payload[key], "")
        return payload

    @property
    def day_index(self) -> int:
        """Tagesindex für den Server (0=Montag)."""
        return self.weekday.index

    @property
    def is_active(self) -> bool:
        return self.status == SubstitutionStatus.ACTIVE

    @property
    def class_section(self) -> str:
        return f"{self.class_name} - {self.section}"

    @property
    def slot_key(self) -> tuple[str, int, int]:
        """(timetable_id, day_index, period_index): Schlüssel für Entfernen."""
        return (self.timetable_id, self.day_index, self.period_index)

    def reverted(self) -> "SubstitutionRecord":
        return self.model_copy(update={"status": SubstitutionStatus.REVERTED})
