"""Fehlerhierarchie für Server-Anfragen.

Alle Fehler werden dem Nutzer gemeldet; es gibt keine automatischen
Wiederholungen. Der Workflow-Zustand bleibt erhalten, damit der Nutzer denselben
Schritt erneut auslösen kann.
"""

from typing import Optional

DEFAULT_ERROR_MESSAGE = "Something went wrong"


class ApiError(Exception):
    """Basis aller Server-Fehler."""

    def __init__(self, message: str = DEFAULT_ERROR_MESSAGE,
                 status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.message} (HTTP {self.status})"
        return self.message


class ApiConnectionError(ApiError):
    """Server nicht erreichbar oder Timeout."""


class ApiResponseError(ApiError):
    """Server antwortet mit 4xx/5xx oder success=false."""


class AuthenticationError(ApiResponseError):
    """Sitzung abgelaufen oder Token ungültig (HTTP 401).

    Anmeldung erfolgt außerhalb der Konsole; neues Token per
    TIMETABLE_API_TOKEN oder 'config edit' setzen.
    """
