"""Datenmodell für eine Schulklasse mit Sektionen (Pydantic v2)."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SchoolClass(BaseModel):
    """Repräsentiert eine Klasse (z.B. "Class 5") mit ihren Sektionen ("A", "B")."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    sections: list[str] = []

    @field_validator("sections", mode="before")
    @classmethod
    def _section_names(cls, v: Any) -> list[str]:
        # Sektionen kommen als Strings oder als {"name": "A"}
        result = []
        for s in v or []:
            name = s.get("name") if isinstance(s, dict) else s
            if name:
                result.append(str(name))
        return result

    def has_section(self, section: str) -> bool:
        return section in self.sections
