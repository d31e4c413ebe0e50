from datetime import date
from types import SimpleNamespace

import pytest

from portal.utils.conflict import find_conflicts, is_conflict, windows_overlap
from portal.utils.timeslots import parse_hhmm

DAY = date(2026, 11, 2)


def exam(start, end, room="R101", day=DAY, id=None):
    return SimpleNamespace(id=id, room=room, exam_date=day, start_time=start, end_time=end)


def test_back_to_back_windows_do_not_overlap():
    assert not windows_overlap("09:00", "10:00", "10:00", "11:00")
    assert not is_conflict(exam("09:00", "10:00"), exam("10:00", "11:00"))


def test_partial_overlap():
    assert is_conflict(exam("09:00", "10:30"), exam("10:00", "11:00"))
    assert is_conflict(exam("10:00", "11:00"), exam("09:00", "10:30"))


def test_containment():
    assert is_conflict(exam("09:00", "12:00"), exam("10:00", "11:00"))


def test_other_room_or_day():
    assert not is_conflict(exam("09:00", "10:30"), exam("10:00", "11:00", room="R102"))
    assert not is_conflict(exam("09:00", "10:30"), exam("10:00", "11:00", day=date(2026, 11, 3)))


def test_room_is_compared_after_strip():
    assert is_conflict(exam("09:00", "10:30", room=" R101 "), exam("10:00", "11:00"))


def test_no_room_never_conflicts():
    assert not is_conflict(exam("09:00", "10:30", room=None), exam("10:00", "11:00", room=None))
    assert not is_conflict(exam("09:00", "10:30", room=""), exam("10:00", "11:00", room=""))


def test_find_conflicts_skips_excluded_id():
    booked = [exam("09:00", "10:00", id=1), exam("09:30", "11:00", id=2), exam("11:00", "12:00", id=3)]
    candidate = exam("09:15", "10:15")
    assert [e.id for e in find_conflicts(candidate, booked)] == [1, 2]
    assert [e.id for e in find_conflicts(candidate, booked, exclude_id=2)] == [1]


@pytest.mark.parametrize("bad", ["9:00", "24:00", "12:60", "noon", "", None])
def test_parse_hhmm_rejects_bad_input(bad):
    with pytest.raises(ValueError):
        parse_hhmm(bad)


def test_parse_hhmm():
    assert parse_hhmm("00:00") == 0
    assert parse_hhmm("09:30") == 570
    assert parse_hhmm("23:59") == 23 * 60 + 59
