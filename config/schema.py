from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from enum import Enum
import re

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def time_to_minutes(value: str) -> int:
    """Wandelt "HH:MM" in Minuten seit Mitternacht um."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def windows_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """True wenn sich zwei halboffene Zeitfenster [start, end) überschneiden."""
    return (
        time_to_minutes(start_a) < time_to_minutes(end_b)
        and time_to_minutes(start_b) < time_to_minutes(end_a)
    )


class Weekday(str, Enum):
    """Unterrichtstage. Die Reihenfolge ist fest und dient als Zeilenschlüssel."""
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"

    @property
    def index(self) -> int:
        """0-basierter Tagesindex (0=Montag), wie ihn der Server als dayIndex erwartet."""
        return list(Weekday).index(self)

    @classmethod
    def from_date(cls, d) -> Optional["Weekday"]:
        """Wochentag eines Datums; None für Sonntag."""
        idx = d.weekday()
        members = list(cls)
        return members[idx] if idx < len(members) else None

    @classmethod
    def parse(cls, value: str) -> Optional["Weekday"]:
        """Toleranter Parser ("tuesday", "Tue", "Tuesday"); None wenn unbekannt."""
        if not value:
            return None
        key = value.strip().lower()
        for day in cls:
            if day.value.lower() == key or day.value[:3].lower() == key:
                return day
        return None


# ─── ZEITRASTER (für alle Ansichten identisch) ───

class PeriodDefinition(BaseModel):
    """Eine Spalte des Wochenrasters: Unterrichtsstunde oder Pause."""
    # Anzeigename, z.B. "Period 3" oder "Lunch"
    name: str
    # Beginn im Format "HH:MM" (inklusive)
    start_time: str
    # Ende im Format "HH:MM" (exklusive)
    end_time: str
    # Pausen enthalten nie eine Unterrichtsstunde
    is_break: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_time_format(cls, v: str) -> str:
        if not _TIME_RE.match(v):
            raise ValueError(f"Ungültige Uhrzeit '{v}' (erwartet HH:MM)")
        return v

    @model_validator(mode='after')
    def _check_range(self):
        if time_to_minutes(self.start_time) >= time_to_minutes(self.end_time):
            raise ValueError(
                f"{self.name}: Beginn {self.start_time} liegt nicht vor Ende {self.end_time}"
            )
        return self

    @property
    def time_label(self) -> str:
        return f"{self.start_time} - {self.end_time}"


class PeriodGridConfig(BaseModel):
    """Festes, geordnetes Zeitraster.

    Gilt für die ganze Anwendung (nicht pro Klasse):
    - Unterrichtsstunden und Pausen in zeitlicher Reihenfolge
    - Unterrichtstage (Zeilen der Ansicht)
    """
    # Alle Stunden und Pausen, aufsteigend und überschneidungsfrei
    periods: list[PeriodDefinition] = Field(
        description="Alle Stunden und Pausen in Reihenfolge")
    # Unterrichtstage in fester Reihenfolge
    weekdays: list[Weekday] = Field(
        default_factory=lambda: list(Weekday),
        description="Unterrichtstage")

    @model_validator(mode='after')
    def validate_periods(self):
        """Prüfe eindeutige Namen und aufsteigende, überschneidungsfreie Zeiten."""
        names = [p.name for p in self.periods]
        if len(names) != len(set(names)):
            raise ValueError("Stundennamen im Zeitraster müssen eindeutig sein")
        for prev, cur in zip(self.periods, self.periods[1:]):
            if time_to_minutes(cur.start_time) < time_to_minutes(prev.end_time):
                raise ValueError(
                    f"{cur.name} beginnt vor dem Ende von {prev.name}")
        order = [d.index for d in self.weekdays]
        if order != sorted(set(order)):
            raise ValueError("Wochentage müssen eindeutig und geordnet sein")
        return self

    @property
    def teaching_periods(self) -> list[PeriodDefinition]:
        """Nur Unterrichtsstunden (ohne Pausen), in Rasterreihenfolge."""
        return [p for p in self.periods if not p.is_break]

    def period_by_start(self, start_time: str) -> Optional[PeriodDefinition]:
        """Unterrichtsstunde, deren Beginn exakt start_time ist."""
        for p in self.teaching_periods:
            if p.start_time == start_time:
                return p
        return None

    def period_by_ordinal(self, index: int) -> Optional[PeriodDefinition]:
        """N-te Unterrichtsstunde (0-basiert); None außerhalb des Rasters."""
        teaching = self.teaching_periods
        if 0 <= index < len(teaching):
            return teaching[index]
        return None

    def teaching_index(self, name: str) -> Optional[int]:
        """0-basierter Index einer Unterrichtsstunde unter allen Unterrichtsstunden."""
        for i, p in enumerate(self.teaching_periods):
            if p.name == name:
                return i
        return None


# ─── SERVER-ANBINDUNG ───

class ApiConfig(BaseModel):
    """Zugang zum Schulverwaltungs-Server (REST)."""
    # Basis-URL inkl. /api
    base_url: str = Field("http://localhost:5000/api",
        description="Basis-URL des REST-Servers")
    # Timeout pro Anfrage in Sekunden
    timeout_seconds: float = Field(30.0, ge=1, le=300,
        description="Timeout pro Anfrage (Sekunden)")
    # Bearer-Token der Sitzung (Anmeldung erfolgt außerhalb der Konsole)
    token: Optional[str] = Field(None,
        description="Bearer-Token")
    # Filiale / Campus für X-Branch-Context
    branch: Optional[str] = Field(None,
        description="Filiale (Scope für Konfliktabfragen)")

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")


# ─── GESAMT-CONFIG ───

class ConsoleConfig(BaseModel):
    """Gesamtkonfiguration der Stundenplan-Konsole."""
    # Name der Schule (nur Anzeige)
    school_name: str = Field("Muster-Schule",
        description="Name der Schule")
    # Aktives Schuljahr für alle Abfragen
    academic_year: str = Field("2024-2025",
        description="Aktives Schuljahr")
    # Auswählbare Schuljahre
    academic_years: list[str] = Field(
        default=["2023-2024", "2024-2025", "2025-2026"],
        description="Auswählbare Schuljahre")
    # Server-Zugang
    api: ApiConfig = Field(default_factory=ApiConfig)
    # Zeitraster aller Ansichten
    period_grid: PeriodGridConfig

    @model_validator(mode='after')
    def _ensure_year_listed(self):
        if self.academic_year not in self.academic_years:
            self.academic_years = sorted([*self.academic_years, self.academic_year])
        return self
