"""Tests für den Schedule-Normalizer (Klassen-, Lehrer- und Raum-Ansicht)."""

import random

import pytest

from config.defaults import default_period_grid
from config.schema import Weekday
from models.schedule import (
    ClassDaySchedule,
    ClassViewSchedule,
    FlatScheduleEntry,
    RoomViewSchedule,
    TeacherViewSchedule,
)
from schedule.normalizer import (
    is_synthesized,
    normalize,
    normalize_class_view,
    normalize_room_view,
    normalize_teacher_view,
    resolve_period_name,
    synthesized_period_name,
)


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

@pytest.fixture
def grid():
    return default_period_grid()


def _make_class_view(days: dict[str, list[dict]], timetable_id: str = "tt-1") -> ClassViewSchedule:
    return ClassViewSchedule(
        timetable_id=timetable_id,
        days=[ClassDaySchedule(day=d, periods=ps) for d, ps in days.items()],
    )


def _make_period(number, start, end, subject="Mathematics", teacher="Ayesha Khan",
                 room="Room 101") -> dict:
    return {
        "periodNumber": number,
        "startTime": start,
        "endTime": end,
        "subjectName": subject,
        "teacher": teacher,
        "roomName": room,
    }


def _make_entry(day, start, end, subject="Mathematics", cls="Class 5", section="A",
                room="Room 101", teacher="Ayesha Khan", period_index=None,
                timetable_id="tt-1") -> FlatScheduleEntry:
    payload = {
        "day": day,
        "startTime": start,
        "endTime": end,
        "subject": subject,
        "class": cls,
        "section": section,
        "room": room,
        "teacher": teacher,
        "timetableId": timetable_id,
    }
    if period_index is not None:
        payload["periodIndex"] = period_index
    return FlatScheduleEntry.from_payload(payload)


# ─── KLASSEN-ANSICHT ──────────────────────────────────────────────────────────

class TestClassView:
    def test_exact_start_match(self, grid):
        """Beginn 09:30 → Period 3, Gegenüber ist die Lehrkraft."""
        view = _make_class_view({"Tuesday": [_make_period(3, "09:30", "10:10")]})
        slots = normalize_class_view(view, grid)
        slot = slots[(Weekday.TUESDAY, "Period 3")]
        assert slot.subject == "Mathematics"
        assert slot.counterpart == "Ayesha Khan"
        assert slot.room == "Room 101"
        assert slot.timetable_id == "tt-1"

    def test_teacher_object_and_missing_teacher(self, grid):
        view = _make_class_view({"Monday": [
            _make_period(1, "08:00", "08:40",
                         teacher={"_id": "T01", "firstName": "Bilal", "lastName": "Ahmed"}),
            _make_period(2, "08:45", "09:25", teacher=None),
        ]})
        slots = normalize(view, grid)
        assert slots[(Weekday.MONDAY, "Period 1")].counterpart == "Bilal Ahmed"
        assert slots[(Weekday.MONDAY, "Period 2")].counterpart == "Unknown"

    def test_period_index_is_position_in_day(self, grid):
        """period_index entspricht der Position im Tages-Array."""
        view = _make_class_view({"Wednesday": [
            _make_period(2, "08:45", "09:25"),
            _make_period(4, "10:30", "11:10", subject="English"),
        ]})
        slots = normalize(view, grid)
        assert slots[(Weekday.WEDNESDAY, "Period 2")].period_index == 0
        assert slots[(Weekday.WEDNESDAY, "Period 4")].period_index == 1

    def test_ordinal_fallback_from_period_number(self, grid):
        """Beginn 09:35 passt nicht; periodNumber 3 → Period 3."""
        view = _make_class_view({"Tuesday": [_make_period(3, "09:35", "10:10")]})
        slots = normalize(view, grid)
        assert (Weekday.TUESDAY, "Period 3") in slots

    def test_short_time_is_padded(self, grid):
        """ "9:30" wird zu "09:30" und passt exakt."""
        view = _make_class_view({"Friday": [_make_period(None, "9:30", "10:10")]})
        slots = normalize(view, grid)
        assert slots[(Weekday.FRIDAY, "Period 3")].start_time == "09:30"

    def test_unknown_weekday_skipped(self, grid):
        view = _make_class_view({
            "Sunday": [_make_period(1, "08:00", "08:40")],
            "Monday": [_make_period(1, "08:00", "08:40")],
        })
        slots = normalize(view, grid)
        assert list(slots) == [(Weekday.MONDAY, "Period 1")]

    def test_missing_subject_and_room_fall_back(self, grid):
        view = _make_class_view({"Monday": [{"startTime": "08:00", "endTime": "08:40"}]})
        slot = normalize(view, grid)[(Weekday.MONDAY, "Period 1")]
        assert slot.subject == "Unknown"
        assert slot.room == "Unknown"


# ─── LEHRER- UND RAUM-ANSICHT ─────────────────────────────────────────────────

class TestFlatViews:
    def test_teacher_counterpart_is_class_section(self, grid):
        view = TeacherViewSchedule(teacher_id="T01", entries=[
            _make_entry("Tuesday", "09:30", "10:10", period_index=2),
        ])
        slots = normalize_teacher_view(view, grid)
        assert slots[(Weekday.TUESDAY, "Period 3")].counterpart == "Class 5 - A"

    def test_room_counterpart_includes_teacher(self, grid):
        view = RoomViewSchedule(room_id="R101", entries=[
            _make_entry("Monday", "08:00", "08:40"),
            _make_entry("Monday", "08:45", "09:25", teacher=None),
        ])
        slots = normalize_room_view(view, grid)
        assert slots[(Weekday.MONDAY, "Period 1")].counterpart == "Class 5 A (Ayesha Khan)"
        assert slots[(Weekday.MONDAY, "Period 2")].counterpart == "Class 5 A (Teacher)"

    def test_off_grid_without_index_is_synthesized(self, grid):
        """Beginn 10:32 ohne Index → eigener Platzhalter, nichts geht verloren."""
        view = TeacherViewSchedule(entries=[_make_entry("Thursday", "10:32", "11:12")])
        slots = normalize(view, grid)
        assert list(slots) == [(Weekday.THURSDAY, "Period (10:32)")]
        assert slots[(Weekday.THURSDAY, "Period (10:32)")].subject == "Mathematics"

    def test_off_grid_with_index_uses_ordinal(self, grid):
        """Beginn 10:32 mit periodIndex 3 → vierte Unterrichtsstunde."""
        view = TeacherViewSchedule(entries=[
            _make_entry("Thursday", "10:32", "11:12", period_index=3),
        ])
        slots = normalize(view, grid)
        assert (Weekday.THURSDAY, "Period 4") in slots

    def test_index_beyond_grid_is_synthesized(self, grid):
        view = TeacherViewSchedule(entries=[
            _make_entry("Thursday", "15:00", "15:40", period_index=12),
        ])
        assert (Weekday.THURSDAY, "Period (15:00)") in normalize(view, grid)

    def test_subject_object_is_flattened(self, grid):
        entry = FlatScheduleEntry.from_payload({
            "day": "Monday", "startTime": "08:00", "endTime": "08:40",
            "subject": {"name": "English"}, "class": {"name": "Class 6"},
            "section": "B", "room": {"name": "Lab 2"},
        })
        slot = normalize(TeacherViewSchedule(entries=[entry]), grid)[(Weekday.MONDAY, "Period 1")]
        assert slot.subject == "English"
        assert slot.counterpart == "Class 6 - B"
        assert slot.room == "Lab 2"


# ─── DETERMINISMUS ────────────────────────────────────────────────────────────

class TestDeterminism:
    def test_order_independent(self, grid):
        """Gleiche Einträge in beliebiger Reihenfolge → gleiches Ergebnis."""
        entries = [
            _make_entry(day, start, end, subject=subj, period_index=idx)
            for day in ("Monday", "Tuesday", "Friday")
            for idx, (start, end, subj) in enumerate([
                ("08:00", "08:40", "Mathematics"),
                ("08:45", "09:25", "English"),
                ("10:32", "11:12", "Science"),
                ("13:20", "14:00", "Urdu"),
            ])
        ]
        expected = normalize(TeacherViewSchedule(entries=entries), grid)
        rng = random.Random(7)
        for _ in range(10):
            shuffled = entries[:]
            rng.shuffle(shuffled)
            assert normalize(TeacherViewSchedule(entries=shuffled), grid) == expected

    def test_collision_winner_independent_of_order(self, grid):
        """Zwei Einträge für dieselbe Zelle: Gewinner hängt nicht von der Reihenfolge ab."""
        a = _make_entry("Tuesday", "09:30", "10:10", subject="English")
        b = _make_entry("Tuesday", "09:30", "10:10", subject="Mathematics")
        first = normalize(TeacherViewSchedule(entries=[a, b]), grid)
        second = normalize(TeacherViewSchedule(entries=[b, a]), grid)
        assert first == second
        assert len(first) == 1

    def test_class_view_order_independent(self, grid):
        days = {
            "Monday": [_make_period(1, "08:00", "08:40"), _make_period(2, "08:45", "09:25")],
            "Tuesday": [_make_period(3, "09:30", "10:10")],
        }
        reversed_days = {d: list(reversed(ps)) for d, ps in reversed(list(days.items()))}
        a = normalize(_make_class_view(days), grid)
        b = normalize(_make_class_view(reversed_days), grid)
        assert a == b
        assert a[(Weekday.MONDAY, "Period 1")].period_index == 0
        assert a[(Weekday.MONDAY, "Period 2")].period_index == 1

    def test_class_period_index_follows_start_time(self, grid):
        """Der Index einer Klassenstunde ist ihre Position im zeitlich sortierten Tag."""
        days = {"Monday": [
            _make_period(2, "08:45", "09:25", subject="English"),
            _make_period(1, "08:00", "08:40", subject="Mathematics"),
        ]}
        slots = normalize(_make_class_view(days), grid)
        assert slots[(Weekday.MONDAY, "Period 1")].period_index == 0
        assert slots[(Weekday.MONDAY, "Period 2")].period_index == 1


# ─── STUNDENAUFLÖSUNG ─────────────────────────────────────────────────────────

class TestResolvePeriodName:
    def test_exact_beats_ordinal(self, grid):
        assert resolve_period_name(grid, "08:00", 5) == "Period 1"

    def test_break_start_is_not_a_teaching_match(self, grid):
        """10:10 ist der Beginn der Pause, nicht einer Unterrichtsstunde."""
        assert resolve_period_name(grid, "10:10", None) == "Period (10:10)"

    def test_synthesized_names(self):
        assert synthesized_period_name("10:32") == "Period (10:32)"
        assert synthesized_period_name("") == "Period (?)"
        assert is_synthesized("Period (10:32)")
        assert not is_synthesized("Period 3")
