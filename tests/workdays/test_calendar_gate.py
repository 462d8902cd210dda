from datetime import date

from hr_attendance.workdays.service import CalendarGate

from conftest import InMemoryHolidays, InMemoryLeaves


def make_gate():
    holidays = InMemoryHolidays({date(2024, 1, 26)})
    leaves = InMemoryLeaves()
    leaves.approve(3, date(2024, 1, 22), date(2024, 1, 24))
    return CalendarGate(holidays, leaves), holidays


def test_weekdays_are_working_days():
    gate, _ = make_gate()

    assert gate.is_working_day(date(2024, 1, 22)) is True
    assert gate.is_working_day(date(2024, 1, 27)) is False
    assert gate.is_working_day(date(2024, 1, 28)) is False


def test_holiday_is_not_a_working_day():
    gate, _ = make_gate()

    assert gate.is_working_day(date(2024, 1, 26)) is False


def test_weekend_does_not_hit_holiday_lookup():
    gate, holidays = make_gate()

    gate.is_working_day(date(2024, 1, 27))

    assert holidays.lookups == 0


def test_approved_leave_is_inclusive():
    gate, _ = make_gate()

    assert gate.is_on_approved_leave(3, date(2024, 1, 22)) is True
    assert gate.is_on_approved_leave(3, date(2024, 1, 24)) is True
    assert gate.is_on_approved_leave(3, date(2024, 1, 25)) is False
    assert gate.is_on_approved_leave(4, date(2024, 1, 22)) is False


def test_cached_gate_memoizes_working_days():
    gate, holidays = make_gate()
    cached = gate.cached()

    for _ in range(3):
        assert cached.is_working_day(date(2024, 1, 26)) is False

    assert holidays.lookups == 1
