"""Datenmodell für einen Raum (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Room(BaseModel):
    """Repräsentiert einen Raum der Raumliste."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")    # Server-ID
    name: str                       # "Lab 2"
    room_type: Optional[str] = Field(None, alias="type")
    capacity: Optional[int] = None
