"""Vertretungs-Workflow als expliziter Zustandsautomat.

Ablauf (streng sequentiell, kein Überspringen):

  IDLE
    └─ select_teacher_and_date()  → TEACHER_DATE_SELECTED  (lädt candidate_slots)
         └─ select_slot()         → SLOT_SELECTED          (lädt available_substitutes)
              └─ select_substitute() → READY_TO_COMMIT
                   └─ commit()    → IDLE                   (liefert SubstitutionRecord)

  cancel() führt aus jedem Zustand zurück nach IDLE.

Jede Änderung weiter oben verwirft alles, was davon abhängt. Jede Server-Anfrage
trägt die Generation der Auswahl, für die sie gestellt wurde; Antworten für eine
veraltete Generation werden verworfen.
"""

import logging
from datetime import date as date_type
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel

from api.service import TimetableService
from config.schema import Weekday
from models.schedule import FlatScheduleEntry
from models.substitution import SubstitutionRecord
from models.teacher import Teacher

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    IDLE = "idle"
    TEACHER_DATE_SELECTED = "teacher_date_selected"
    SLOT_SELECTED = "slot_selected"
    READY_TO_COMMIT = "ready_to_commit"


class SubstitutionValidationError(Exception):
    """Lokaler Validierungsfehler: blockiert die Aktion vor jeder Anfrage."""


class WorkflowStateError(SubstitutionValidationError):
    """Übergang ist im aktuellen Zustand nicht erlaubt."""


class WorkflowSelection(BaseModel):
    """Flüchtige Auswahl eines einzelnen Zuweisungsvorgangs."""

    absent_teacher: Optional[str] = None
    date: Optional[date_type] = None
    weekday: Optional[Weekday] = None
    candidate_slots: list[FlatScheduleEntry] = []
    chosen_slot_index: Optional[int] = None
    available_substitutes: list[Teacher] = []
    substitute_teacher: Optional[str] = None
    reason: Optional[str] = None

    @property
    def chosen_slot(self) -> Optional[FlatScheduleEntry]:
        if self.chosen_slot_index is None:
            return None
        return self.candidate_slots[self.chosen_slot_index]


# Übergänge: Zielaktion → erlaubte Ausgangszustände
_ALLOWED = {
    "select_slot": {
        WorkflowState.TEACHER_DATE_SELECTED,
        WorkflowState.SLOT_SELECTED,
        WorkflowState.READY_TO_COMMIT,
    },
    "select_substitute": {
        WorkflowState.SLOT_SELECTED,
        WorkflowState.READY_TO_COMMIT,
    },
    "commit": {WorkflowState.READY_TO_COMMIT},
}


class SubstituteWorkflow:
    """Führt eine Vertretungszuweisung Schritt für Schritt durch.

    Verwendung:
        wf = SubstituteWorkflow(service, academic_year="2024-2025")
        wf.select_teacher_and_date("T01", date(2024, 10, 15))
        wf.select_slot(0)
        wf.select_substitute("T07", reason="Krankheit")
        record = wf.commit()
    """

    def __init__(
        self,
        service: TimetableService,
        academic_year: Optional[str] = None,
        branch: Optional[str] = None,
        known_substitutions: Iterable[SubstitutionRecord] = (),
    ) -> None:
        self.service = service
        self.academic_year = academic_year
        self.branch = branch
        self.known_substitutions = list(known_substitutions)
        self.state = WorkflowState.IDLE
        self.selection = WorkflowSelection()
        self._generation = 0
        self._closed = False

    # ─── Generationen ─────────────────────────────────────────────────────────

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, ticket: int, step: str) -> bool:
        if ticket == self._generation and not self._closed:
            return True
        logger.debug(
            f"Veraltete Antwort für '{step}' verworfen "
            f"(Generation {ticket}, aktuell {self._generation})"
        )
        return False

    def _require(self, action: str) -> None:
        if self._closed:
            raise WorkflowStateError("Workflow wurde beendet")
        if self.state not in _ALLOWED[action]:
            raise WorkflowStateError(
                f"'{action}' ist im Zustand '{self.state.value}' nicht erlaubt"
            )

    # ─── Schritt 1: Lehrkraft + Datum ─────────────────────────────────────────

    def select_teacher_and_date(
        self, teacher_id: str, on_date: date_type
    ) -> list[FlatScheduleEntry]:
        """Startet die Kette neu und lädt die Stunden der fehlenden Lehrkraft.

        Erlaubt aus jedem Zustand. Bei einem Serverfehler bleibt die neue Auswahl
        mit leerer Kandidatenliste stehen; erneuter Aufruf wiederholt den Schritt.
        """
        if self._closed:
            raise WorkflowStateError("Workflow wurde beendet")
        if not teacher_id:
            raise SubstitutionValidationError("Bitte eine fehlende Lehrkraft wählen")
        if on_date is None:
            raise SubstitutionValidationError("Bitte ein Datum wählen")

        ticket = self._next_generation()
        weekday = Weekday.from_date(on_date)
        self.selection = WorkflowSelection(
            absent_teacher=teacher_id, date=on_date, weekday=weekday,
        )
        self.state = WorkflowState.TEACHER_DATE_SELECTED

        if weekday is None:
            return []

        entries = self.service.get_teacher_timetable(teacher_id, self.academic_year)
        if not self._is_current(ticket, "select_teacher_and_date"):
            return self.selection.candidate_slots

        covered = {
            r.slot_key for r in self.known_substitutions
            if r.is_active and r.date == on_date
        }
        candidates = [
            e for e in entries
            if Weekday.parse(e.day) == weekday
            and not e.is_substitute
            and not (
                e.timetable_id is not None and e.period_index is not None
                and (e.timetable_id, weekday.index, e.period_index) in covered
            )
        ]
        candidates.sort(key=lambda e: (e.start_time, e.end_time, e.subject))
        self.selection.candidate_slots = candidates
        logger.info(
            f"{len(candidates)} Stunde(n) für {teacher_id} am {on_date.isoformat()} "
            f"({weekday.value})"
        )
        return candidates

    # ─── Schritt 2: Stunde ────────────────────────────────────────────────────

    def select_slot(self, index: int) -> list[Teacher]:
        """Wählt eine Stunde und fragt frische Vertretungskandidaten ab."""
        self._require("select_slot")
        slots = self.selection.candidate_slots
        if not 0 <= index < len(slots):
            raise SubstitutionValidationError(f"Ungültige Stunde: {index}")

        ticket = self._next_generation()
        self.selection = self.selection.model_copy(update={
            "chosen_slot_index": index,
            "available_substitutes": [],
            "substitute_teacher": None,
            "reason": None,
        })
        self.state = WorkflowState.SLOT_SELECTED

        slot = slots[index]
        teachers = self.service.get_available_substitutes(
            self.selection.weekday,
            slot.start_time,
            slot.end_time,
            slot.branch or self.branch,
        )
        if not self._is_current(ticket, "select_slot"):
            return self.selection.available_substitutes

        absent = self.selection.absent_teacher
        available = [t for t in teachers if t.id != absent]
        self.selection.available_substitutes = available
        return available

    # ─── Schritt 3: Vertretung ────────────────────────────────────────────────

    def select_substitute(self, teacher_id: str, reason: Optional[str] = None) -> None:
        self._require("select_substitute")
        if teacher_id not in {t.id for t in self.selection.available_substitutes}:
            raise SubstitutionValidationError(
                f"Lehrkraft {teacher_id} ist in diesem Zeitfenster nicht verfügbar"
            )
        self.selection = self.selection.model_copy(update={
            "substitute_teacher": teacher_id,
            "reason": reason or None,
        })
        self.state = WorkflowState.READY_TO_COMMIT

    # ─── Abschluss ────────────────────────────────────────────────────────────

    def commit(self) -> SubstitutionRecord:
        """Sendet die Zuweisung. Bei Erfolg zurück nach IDLE.

        Ohne Stundenplan-ID an der gewählten Stunde wird nichts gesendet.
        Serverfehler lassen Zustand und Auswahl unverändert.
        """
        self._require("commit")
        sel = self.selection
        slot = sel.chosen_slot
        if slot is None or not slot.timetable_id:
            raise SubstitutionValidationError(
                "Ungültige Stunde gewählt (Stundenplan-ID fehlt)"
            )
        if slot.period_index is None:
            raise SubstitutionValidationError(
                "Ungültige Stunde gewählt (Stundenindex fehlt)"
            )

        record = self.service.assign_substitute(
            slot.timetable_id,
            sel.weekday.index,
            slot.period_index,
            sel.substitute_teacher,
            sel.date,
            sel.reason,
        )
        record = self._complete_record(record, slot)
        logger.info(
            f"Vertretung: {record.substitute_teacher.name} für "
            f"{sel.absent_teacher} am {sel.date.isoformat()} ({slot.label()})"
        )
        self.known_substitutions.append(record)
        self.reset()
        return record

    def _complete_record(
        self, record: SubstitutionRecord, slot: FlatScheduleEntry
    ) -> SubstitutionRecord:
        """Ergänzt Felder, die der Server in der Antwort weglässt."""
        sel = self.selection
        update: dict = {}
        chosen = next(
            (t for t in sel.available_substitutes if t.id == sel.substitute_teacher), None
        )
        if chosen is not None and record.substitute_teacher.id == chosen.id:
            update["substitute_teacher"] = chosen
        if record.original_teacher is None:
            update["original_teacher"] = Teacher(
                id=sel.absent_teacher, name=slot.teacher or sel.absent_teacher
            )
        if not record.class_name:
            update["class_name"] = slot.class_name
            update["section"] = slot.section
        if record.subject in ("", "Subject"):
            update["subject"] = slot.subject
        if record.period_number is None and slot.period_number is not None:
            update["period_number"] = slot.period_number
        return record.model_copy(update=update) if update else record

    def cancel(self) -> None:
        """Verwirft die Auswahl ohne Serverwirkung."""
        self._next_generation()
        self.reset()

    def reset(self) -> None:
        self.selection = WorkflowSelection()
        self.state = WorkflowState.IDLE

    def close(self) -> None:
        """Beim Schließen der Ansicht: noch laufende Antworten werden verworfen."""
        self.cancel()
        self._closed = True

    # ─── Anzeige-Hilfen ───────────────────────────────────────────────────────

    @property
    def can_select_slot(self) -> bool:
        return (self.state in _ALLOWED["select_slot"]
                and bool(self.selection.candidate_slots))

    @property
    def can_select_substitute(self) -> bool:
        return (self.state in _ALLOWED["select_substitute"]
                and bool(self.selection.available_substitutes))

    @property
    def can_commit(self) -> bool:
        return self.state == WorkflowState.READY_TO_COMMIT

    @property
    def guidance(self) -> Optional[str]:
        """Hinweis, wenn der nächste Schritt mangels Daten nicht möglich ist."""
        sel = self.selection
        if self.state == WorkflowState.IDLE:
            return "Fehlende Lehrkraft und Datum wählen."
        if self.state == WorkflowState.TEACHER_DATE_SELECTED:
            if sel.weekday is None:
                return "Am Sonntag findet kein Unterricht statt – anderes Datum wählen."
            if not sel.candidate_slots:
                return (
                    f"Keine offenen Stunden am {sel.weekday.value} – "
                    "andere Lehrkraft oder anderes Datum wählen."
                )
            return None
        if self.state == WorkflowState.SLOT_SELECTED and not sel.available_substitutes:
            return "Keine freie Lehrkraft in diesem Zeitfenster – andere Stunde wählen."
        return None
