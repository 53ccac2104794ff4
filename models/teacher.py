"""Datenmodell für eine Lehrkraft (Pydantic v2)."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def display_name(value: Any, default: str = "Unknown") -> str:
    """Anzeigename aus einem Server-Wert.

    Der Server liefert Personen, Fächer, Klassen und Räume mal als String,
    mal als Objekt mit name / fullName / firstName + lastName.
    """
    if value is None:
        return default
    if isinstance(value, str):
        return value or default
    if isinstance(value, dict):
        for key in ("fullName", "name"):
            if value.get(key):
                return str(value[key])
        parts = [value.get("firstName"), value.get("lastName")]
        joined = " ".join(p for p in parts if p)
        return joined or default
    return str(value)


def reference_id(value: Any) -> Optional[str]:
    """ID aus einem String oder Objekt (_id / id)."""
    if value is None:
        return None
    if isinstance(value, dict):
        raw = value.get("_id") or value.get("id")
        return str(raw) if raw is not None else None
    return str(value)


class Teacher(BaseModel):
    """Repräsentiert eine einzelne Lehrkraft (Auswahllisten, Vertretungen)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")       # Server-ID
    name: str                          # "Ayesha Khan"
    subjects: list[str] = []           # Unterrichtbare Fächer, falls geliefert

    @model_validator(mode="before")
    @classmethod
    def _from_payload(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"_id": data, "name": data}
        if isinstance(data, dict):
            payload = dict(data)
            if "_id" not in payload and "id" in payload:
                payload["_id"] = payload.pop("id")
            if not payload.get("name"):
                payload["name"] = display_name(payload)
            if payload.get("_id") is None:
                payload["_id"] = payload["name"]
            payload["_id"] = str(payload["_id"])
            payload["subjects"] = [
                display_name(s, "") for s in payload.get("subjects") or []
                if display_name(s, "")
            ]
            return payload
        return data

    def __str__(self) -> str:
        return self.name
