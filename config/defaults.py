from config.schema import (
    ApiConfig,
    ConsoleConfig,
    PeriodDefinition,
    PeriodGridConfig,
    Weekday,
)


def default_period_grid() -> PeriodGridConfig:
    """Standard-Zeitraster der Schule.

    Stundenraster:
    Period 1  08:00 - 08:40
    Period 2  08:45 - 09:25
    Period 3  09:30 - 10:10
       ── Break ──
    Period 4  10:30 - 11:10
    Period 5  11:15 - 11:55
    Period 6  12:00 - 12:40
       ── Lunch ──
    Period 7  13:20 - 14:00

    Unterricht Montag bis Samstag.
    """
    return PeriodGridConfig(
        periods=[
            PeriodDefinition(name="Period 1", start_time="08:00", end_time="08:40"),
            PeriodDefinition(name="Period 2", start_time="08:45", end_time="09:25"),
            PeriodDefinition(name="Period 3", start_time="09:30", end_time="10:10"),
            PeriodDefinition(name="Break", start_time="10:10", end_time="10:30",
                             is_break=True),
            PeriodDefinition(name="Period 4", start_time="10:30", end_time="11:10"),
            PeriodDefinition(name="Period 5", start_time="11:15", end_time="11:55"),
            PeriodDefinition(name="Period 6", start_time="12:00", end_time="12:40"),
            PeriodDefinition(name="Lunch", start_time="12:40", end_time="13:20",
                             is_break=True),
            PeriodDefinition(name="Period 7", start_time="13:20", end_time="14:00"),
        ],
        weekdays=list(Weekday),
    )


def default_console_config() -> ConsoleConfig:
    """Komplette Default-Konfiguration (lokaler Entwicklungsserver)."""
    return ConsoleConfig(
        school_name="Muster-Schule",
        academic_year="2024-2025",
        academic_years=["2023-2024", "2024-2025", "2025-2026"],
        api=ApiConfig(),
        period_grid=default_period_grid(),
    )


# ─── FACHFARBEN ───
# Fach → Hex-Farbe (RRGGBB) für Terminal und Excel.

SUBJECT_COLORS: dict[str, str] = {
    "Mathematics":        "1890FF",
    "English":            "52C41A",
    "Science":            "722ED1",
    "Urdu":               "FA8C16",
    "Social Studies":     "13C2C2",
    "Computer":           "EB2F96",
    "Islamic Studies":    "2F54EB",
    "Physical Education": "FAAD14",
}

DEFAULT_SUBJECT_COLOR = "1890FF"
