"""Gemeinsame Hilfsfunktionen für Terminal- und Excel-Ausgabe."""

from datetime import date

from config.defaults import DEFAULT_SUBJECT_COLOR, SUBJECT_COLORS
from schedule.grid import CellKind, GridCell

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "free":        "F5F5F5",
    "pause":       "DDDDDD",
    "header":      "4472C4",
    "substituted": "FFE7BA",
    "synthesized": "FFF1F0",
}


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Wandelt RRGGBB-String in (r, g, b)-Tupel um."""
    h = hex_color.lstrip("#")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def lighten(hex_color: str, factor: float = 0.75) -> str:
    """Hellt eine Farbe Richtung Weiß auf (Zellhintergrund für Fachfarben)."""
    r, g, b = hex_to_rgb(hex_color)
    return "".join(
        f"{int(c + (255 - c) * factor):02X}" for c in (r, g, b)
    )


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


# ─── Fach-Farbe ───────────────────────────────────────────────────────────────

def get_subject_color(subject_name: str) -> str:
    """Gibt die Hex-Farbe für ein Fach zurück (unbekannte Fächer: Standardblau)."""
    return SUBJECT_COLORS.get(subject_name, DEFAULT_SUBJECT_COLOR)


# ─── Zelleninhalt-Formatierung ────────────────────────────────────────────────

def format_cell(cell: GridCell) -> str:
    """Formatiert eine Rasterzelle als mehrzeiligen Text.

    belegt:   "Fach\\nGegenüber\\nRaum"  (+ "(Vertr. für …)" bei Vertretung)
    Pause:    "─"
    leer:     "—"
    """
    if cell.kind == CellKind.BREAK:
        return "─"
    if cell.kind == CellKind.EMPTY or cell.slot is None:
        return "—"
    slot = cell.slot
    text = f"{slot.subject}\n{slot.counterpart}\n{slot.room}"
    if cell.is_substituted:
        text += f"\n(Vertr. für {cell.original_counterpart})"
    return text


def cell_fill_color(cell: GridCell) -> str:
    """Hintergrundfarbe einer Zelle im Excel-Export."""
    if cell.kind == CellKind.BREAK:
        return COLORS["pause"]
    if cell.kind == CellKind.EMPTY or cell.slot is None:
        return COLORS["free"]
    if cell.is_substituted:
        return COLORS["substituted"]
    return lighten(get_subject_color(cell.slot.subject))
