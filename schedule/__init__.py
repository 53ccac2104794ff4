"""Stundenplan-Modul: Normalisierung der Server-Ansichten und Wochenraster."""

from .normalizer import SlotMap, normalize, resolve_period_name, synthesized_period_name
from .grid import CellKind, GridCell, GridRow, TimetableGrid, build_grid

__all__ = [
    "SlotMap",
    "normalize",
    "resolve_period_name",
    "synthesized_period_name",
    "CellKind",
    "GridCell",
    "GridRow",
    "TimetableGrid",
    "build_grid",
]
