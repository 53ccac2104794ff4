"""Vertretungs-Journal: Liste der aktiven Vertretungen mit Rücknahme."""

import logging
from collections import defaultdict
from datetime import date
from typing import Optional

from api.errors import ApiResponseError
from api.service import TimetableService
from models.substitution import SubstitutionRecord

logger = logging.getLogger(__name__)


class SubstitutionLedger:
    """Hält die zuletzt geladenen Vertretungen und nimmt einzelne zurück.

    Die Liste wird nur über refresh() vom Server ersetzt; revert() entfernt den
    Eintrag lokal erst, wenn der Server die Rücknahme bestätigt hat.
    """

    def __init__(self, service: TimetableService) -> None:
        self.service = service
        self._records: list[SubstitutionRecord] = []
        self._reverted: set[tuple] = set()

    @staticmethod
    def _identity(record: SubstitutionRecord) -> tuple:
        """Server-ID, sonst Slot + Datum (der Slot allein kann mehrfach belegt sein)."""
        return (record.id, *record.slot_key, record.date)

    def refresh(self) -> list[SubstitutionRecord]:
        records = self.service.get_substitutes()
        self._records = sorted(
            (r for r in records if r.is_active),
            key=lambda r: (r.date, r.day_index, r.period_index, r.timetable_id),
        )
        self._reverted -= {self._identity(r) for r in self._records}
        logger.debug(f"{len(self._records)} aktive Vertretung(en) geladen")
        return list(self._records)

    @property
    def active(self) -> list[SubstitutionRecord]:
        return list(self._records)

    def on_date(self, day: date) -> list[SubstitutionRecord]:
        return [r for r in self._records if r.date == day]

    def for_timetable(self, timetable_id: str) -> list[SubstitutionRecord]:
        return [r for r in self._records if r.timetable_id == timetable_id]

    def by_substitute(self) -> dict[str, list[SubstitutionRecord]]:
        """Vertretungen gruppiert nach vertretender Lehrkraft (Name)."""
        grouped: dict[str, list[SubstitutionRecord]] = defaultdict(list)
        for r in self._records:
            grouped[r.substitute_teacher.name].append(r)
        return dict(grouped)

    def get(self, index: int) -> Optional[SubstitutionRecord]:
        """1-basierter Zugriff wie in der Listen-Ausgabe der CLI."""
        if 1 <= index <= len(self._records):
            return self._records[index - 1]
        return None

    def add(self, record: SubstitutionRecord) -> None:
        """Übernimmt eine frisch angelegte Vertretung ohne erneutes Laden."""
        if record.is_active and record not in self._records:
            self._reverted.discard(self._identity(record))
            self._records.append(record)
            self._records.sort(
                key=lambda r: (r.date, r.day_index, r.period_index, r.timetable_id)
            )

    def revert(self, record: SubstitutionRecord) -> SubstitutionRecord:
        """Nimmt eine Vertretung zurück.

        Bereits zurückgenommene Vertretungen werden ohne Anfrage bestätigt.
        Meldet der Server 404, gilt die Vertretung ebenfalls als entfernt.
        Andere Serverfehler lassen die Liste unverändert.
        """
        identity = self._identity(record)
        if not record.is_active or identity in self._reverted:
            logger.debug(f"Vertretung {record.id or record.slot_key} bereits zurückgenommen")
            return record if not record.is_active else record.reverted()
        timetable_id, day_index, period_index = record.slot_key
        try:
            self.service.remove_substitute(timetable_id, day_index, period_index)
        except ApiResponseError as exc:
            if exc.status != 404:
                raise
            logger.info(f"Vertretung {record.slot_key} existiert auf dem Server nicht mehr")
        self._reverted.add(identity)
        self._records = [r for r in self._records if self._identity(r) != identity]
        logger.info(
            f"Vertretung zurückgenommen: {record.substitute_teacher.name} "
            f"({record.class_section}, {record.date.isoformat()})"
        )
        return record.reverted()
