# portal/utils/conflict.py
from typing import Iterable, List

from portal.utils.timeslots import parse_hhmm

# only these statuses hold a room
BLOCKING_STATUSES = ("scheduled", "ongoing")


def windows_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """
    Half-open [start, end): 09:00-10:00 and 10:00-11:00 do not overlap.
    """
    return parse_hhmm(start1) < parse_hhmm(end2) and parse_hhmm(start2) < parse_hhmm(end1)


def _room(value) -> str:
    return (value or "").strip()


def is_conflict(a, b) -> bool:
    """
    Two exams conflict when:
    1. same room
    2. same date
    3. time windows overlap
    """
    room = _room(a.room)
    if not room or room != _room(b.room):
        return False
    if a.exam_date != b.exam_date:
        return False
    return windows_overlap(a.start_time, a.end_time, b.start_time, b.end_time)


def find_conflicts(candidate, existing: Iterable, exclude_id=None) -> List:
    """
    candidate: anything with exam_date / start_time / end_time / room
    existing: exams already on the books
    exclude_id: the exam being updated, so it is not compared with itself
    """
    out = []
    for e in existing:
        if exclude_id is not None and getattr(e, "id", None) == exclude_id:
            continue
        if is_conflict(candidate, e):
            out.append(e)
    return out
