"""HTTP-Client für den Stundenplan-Server (requests).

Antworten haben die Form ``{"success": bool, "data": ..., "message": str}``.
Listen kommen entweder direkt oder paginiert als ``{"docs": [...]}``.
"""

import logging
from datetime import date
from typing import Any, Optional
from urllib.parse import quote

import requests

from api.errors import (
    DEFAULT_ERROR_MESSAGE,
    ApiConnectionError,
    ApiResponseError,
    AuthenticationError,
)
from config.schema import ApiConfig, Weekday
from models.room import Room
from models.schedule import FlatScheduleEntry
from models.school_class import SchoolClass
from models.substitution import SubstitutionRecord
from models.teacher import Teacher, display_name
from models.timetable import Timetable

logger = logging.getLogger(__name__)

REFERENCE_LIMIT = 100


def _as_list(data: Any) -> list:
    if data is None:
        return []
    if isinstance(data, dict):
        return list(data.get("docs") or [])
    return list(data)


def _schedule_list(data: Any) -> list:
    """Lehrer-/Raum-Antworten liefern {"schedule": [...]} oder direkt eine Liste."""
    if isinstance(data, dict):
        return list(data.get("schedule") or [])
    return _as_list(data)


class TimetableApiClient:
    """Client für alle Stundenplan- und Vertretungs-Endpunkte."""

    def __init__(self, config: ApiConfig,
                 session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    # ─── Transport ────────────────────────────────────────────────────────────

    def _headers(self) -> dict:
        headers = {}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"
        if self.config.branch:
            headers["X-Branch-Context"] = self.config.branch
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """Führt eine Anfrage aus und gibt ``data`` der Antwort zurück."""
        url = f"{self.config.base_url}{path}"
        logger.debug(f"{method} {url} params={kwargs.get('params')}")
        try:
            response = self.session.request(
                method,
                url,
                headers=self._headers(),
                timeout=self.config.timeout_seconds,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise ApiConnectionError(f"Server nicht erreichbar: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        message = DEFAULT_ERROR_MESSAGE
        if isinstance(payload, dict) and payload.get("message"):
            message = str(payload["message"])

        if response.status_code == 401:
            raise AuthenticationError(message, status=401)
        if response.status_code >= 400:
            raise ApiResponseError(message, status=response.status_code)
        if isinstance(payload, dict) and payload.get("success") is False:
            raise ApiResponseError(message, status=response.status_code)

        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    # ─── Stundenpläne ─────────────────────────────────────────────────────────

    def get_timetables(
        self,
        class_name: Optional[str] = None,
        section: Optional[str] = None,
        academic_year: Optional[str] = None,
        status: Optional[str] = "active",
    ) -> list[Timetable]:
        params = {
            "class": class_name,
            "section": section,
            "academicYear": academic_year,
            "status": status,
        }
        data = self._request("GET", "/timetable",
                             params={k: v for k, v in params.items() if v})
        return [Timetable.model_validate(t) for t in _as_list(data)]

    def get_teacher_timetable(
        self, teacher_id: str, academic_year: Optional[str] = None
    ) -> list[FlatScheduleEntry]:
        params = {"academicYear": academic_year} if academic_year else None
        data = self._request("GET", f"/timetable/teacher/{quote(teacher_id)}",
                             params=params)
        return [FlatScheduleEntry.from_payload(e) for e in _schedule_list(data)]

    def get_room_schedule(
        self, room_id: str, academic_year: Optional[str] = None
    ) -> list[FlatScheduleEntry]:
        params = {"academicYear": academic_year} if academic_year else None
        data = self._request("GET", f"/timetable/room/{quote(room_id)}/schedule",
                             params=params)
        return [FlatScheduleEntry.from_payload(e) for e in _schedule_list(data)]

    def delete_timetable(self, timetable_id: str) -> bool:
        self._request("DELETE", f"/timetable/{quote(timetable_id)}")
        logger.info(f"Stundenplan {timetable_id} gelöscht")
        return True

    # ─── Vertretungen ─────────────────────────────────────────────────────────

    def get_substitutes(self) -> list[SubstitutionRecord]:
        data = self._request("GET", "/timetable/substitutes")
        return [SubstitutionRecord.model_validate(r) for r in _as_list(data)]

    def get_available_substitutes(
        self,
        weekday: Weekday,
        start_time: str,
        end_time: str,
        branch: Optional[str] = None,
    ) -> list[Teacher]:
        params = {
            "day": weekday.value,
            "startTime": start_time,
            "endTime": end_time,
        }
        if branch or self.config.branch:
            params["branch"] = branch or self.config.branch
        data = self._request("GET", "/timetable/substitutes/available", params=params)
        return [Teacher.model_validate(t) for t in _as_list(data)]

    def assign_substitute(
        self,
        timetable_id: str,
        day_index: int,
        period_index: int,
        substitute_teacher_id: str,
        on_date: date,
        reason: Optional[str] = None,
    ) -> SubstitutionRecord:
        body = {
            "dayIndex": day_index,
            "periodIndex": period_index,
            "substituteTeacherId": substitute_teacher_id,
            "reason": reason,
            "date": on_date.isoformat(),
        }
        data = self._request("POST", f"/timetable/{quote(timetable_id)}/substitute",
                             json=body)
        record = {
            "timetableId": timetable_id,
            "day": list(Weekday)[day_index],
            "periodIndex": period_index,
            "date": on_date.isoformat(),
            "substituteTeacher": substitute_teacher_id,
            "reason": reason,
        }
        # Manche Server-Versionen liefern den ganzen Stundenplan statt der Vertretung
        if isinstance(data, dict) and "substituteTeacher" in data:
            record.update({k: v for k, v in data.items() if v is not None})
        return SubstitutionRecord.model_validate(record)

    def remove_substitute(
        self, timetable_id: str, day_index: int, period_index: int
    ) -> bool:
        self._request(
            "DELETE",
            f"/timetable/{quote(timetable_id)}/substitute",
            json={"dayIndex": day_index, "periodIndex": period_index},
        )
        return True

    # ─── Stammdaten ───────────────────────────────────────────────────────────

    def get_teachers(self) -> list[Teacher]:
        data = self._request("GET", "/staff",
                             params={"role": "teacher", "limit": REFERENCE_LIMIT})
        return [Teacher.model_validate(t) for t in _as_list(data)]

    def get_rooms(self) -> list[Room]:
        data = self._request("GET", "/academic/rooms", params={"limit": REFERENCE_LIMIT})
        return [Room.model_validate(r) for r in _as_list(data)]

    def get_classes(self) -> list[SchoolClass]:
        data = self._request("GET", "/academic/classes", params={"limit": REFERENCE_LIMIT})
        return [SchoolClass.model_validate(c) for c in _as_list(data)]

    def get_current_academic_year(self) -> Optional[str]:
        data = self._request("GET", "/academic/years/current")
        if not data:
            return None
        return display_name(data, "") or None
