"""Tests für den Demo-Server: Demo-Daten und Konfliktregel für freie Lehrkräfte."""

from datetime import date

import pytest

from api.errors import ApiResponseError
from config.defaults import default_period_grid
from config.schema import Weekday, windows_overlap
from data.demo_service import DemoTimetableService


@pytest.fixture(scope="module")
def demo():
    return DemoTimetableService(default_period_grid(), seed=42)


def _all_windows(grid):
    for day in grid.weekdays:
        for p in grid.teaching_periods:
            yield day, p.start_time, p.end_time


class TestDemoData:
    def test_populated(self, demo):
        assert len(demo.get_teachers()) == 14
        assert len(demo.get_rooms()) == 8
        assert len(demo.get_timetables()) == 8
        classes = demo.get_classes()
        assert [c.name for c in classes] == ["Class 5", "Class 6", "Class 7", "Class 8"]
        assert all(c.sections == ["A", "B"] for c in classes)

    def test_reproducible(self):
        a = DemoTimetableService(default_period_grid(), seed=3)
        b = DemoTimetableService(default_period_grid(), seed=3)
        assert [t.model_dump() for t in a.get_timetables()] == \
               [t.model_dump() for t in b.get_timetables()]

    def test_every_teaching_period_filled(self, demo):
        grid = default_period_grid()
        for tt in demo.get_timetables():
            for day in tt.schedule:
                assert len(day.periods) == len(grid.teaching_periods)

    def test_no_teacher_double_booked(self, demo):
        seen = set()
        for tt in demo.get_timetables():
            for day in tt.schedule:
                for p in day.periods:
                    key = (day.day, p.start_time, p.teacher_id)
                    assert key not in seen
                    seen.add(key)

    def test_get_timetables_returns_copies(self, demo):
        tt = demo.get_timetables("Class 5", "A")[0]
        tt.schedule[0].periods.clear()
        assert demo.get_timetables("Class 5", "A")[0].schedule[0].periods

    def test_filters(self, demo):
        assert len(demo.get_timetables("Class 5")) == 2
        assert demo.get_timetables("Class 5", "A", "1999-2000") == []
        assert demo.get_current_academic_year() == "2024-2025"


class TestConflictQuery:
    def test_offered_teachers_have_no_overlap(self, demo):
        """Keine angebotene Lehrkraft hat eine überschneidende Stunde."""
        grid = default_period_grid()
        for day, start, end in _all_windows(grid):
            for teacher in demo.get_available_substitutes(day, start, end):
                for e in demo.get_teacher_timetable(teacher.id):
                    if Weekday.parse(e.day) == day:
                        assert not windows_overlap(e.start_time, e.end_time, start, end)

    def test_adjacent_window_is_free(self):
        svc = DemoTimetableService.empty(default_period_grid())
        svc.add_teacher("A", "Anwar")
        tt = svc.add_timetable("Class 5", "A")
        svc.add_lesson(tt.id, Weekday.MONDAY, "Period 1", "English", "A")
        free = svc.get_available_substitutes(Weekday.MONDAY, "08:40", "09:20")
        assert [t.id for t in free] == ["A"]
        assert svc.get_available_substitutes(Weekday.MONDAY, "08:30", "09:00") == []
        assert len(svc.get_available_substitutes(Weekday.TUESDAY, "08:00", "08:40")) == 1

    def test_branch_filter(self):
        svc = DemoTimetableService.empty(default_period_grid())
        svc.add_teacher("A", "Anwar", branch="nord")
        svc.add_teacher("B", "Bushra", branch="sued")
        svc.add_teacher("C", "Chaudhry")
        ids = [t.id for t in svc.get_available_substitutes(Weekday.MONDAY, "08:00", "08:40", "nord")]
        assert ids == ["A", "C"]


class TestAssignRules:
    def _make(self):
        svc = DemoTimetableService.empty(default_period_grid())
        svc.add_teacher("T", "Tariq")
        svc.add_teacher("U", "Uzma")
        svc.add_teacher("V", "Vaqar")
        tt = svc.add_timetable("Class 5", "A")
        svc.add_lesson(tt.id, Weekday.TUESDAY, "Period 3", "Mathematics", "T")
        return svc, tt

    def test_wrong_date_rejected(self):
        svc, tt = self._make()
        with pytest.raises(ApiResponseError) as exc:
            svc.assign_substitute(tt.id, Weekday.TUESDAY.index, 0, "U", date(2024, 10, 16))
        assert exc.value.status == 400

    def test_double_assignment_rejected(self):
        svc, tt = self._make()
        svc.assign_substitute(tt.id, 1, 0, "U", date(2024, 10, 15))
        with pytest.raises(ApiResponseError) as exc:
            svc.assign_substitute(tt.id, 1, 0, "V", date(2024, 10, 15))
        assert exc.value.status == 409

    def test_unknown_period(self):
        svc, tt = self._make()
        with pytest.raises(ApiResponseError) as exc:
            svc.assign_substitute(tt.id, 1, 4, "U", date(2024, 10, 15))
        assert exc.value.status == 404

    def test_remove_unknown(self):
        svc, tt = self._make()
        with pytest.raises(ApiResponseError):
            svc.remove_substitute(tt.id, 1, 0)

    def test_delete_timetable_drops_substitutions(self):
        svc, tt = self._make()
        svc.assign_substitute(tt.id, 1, 0, "U", date(2024, 10, 15))
        svc.delete_timetable(tt.id)
        assert svc.get_timetables() == []
        assert svc.get_substitutes() == []
