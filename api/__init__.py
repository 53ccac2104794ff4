"""Anbindung an den Schulverwaltungs-Server."""

from .errors import ApiConnectionError, ApiError, ApiResponseError, AuthenticationError
from .service import TimetableService
from .client import TimetableApiClient

__all__ = [
    "ApiError",
    "ApiConnectionError",
    "ApiResponseError",
    "AuthenticationError",
    "TimetableService",
    "TimetableApiClient",
]
