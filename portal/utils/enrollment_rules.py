"""
Enrollment state machine for one (student, course) pair.

    NONE -> ENROLLED -> DROPPED | COMPLETED
    DROPPED -> ENROLLED (re-enrollment, same row)
    COMPLETED is terminal

Everything here works on already-loaded records and returns an ``Outcome``.
The caller owns locking, the atomic seat increment and the commit.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from portal.utils.errors import Outcome, bad_state, conflict

ENROLLED = "enrolled"
DROPPED = "dropped"
COMPLETED = "completed"

COURSE_ACTIVE = "active"

DEFAULT_DROP_WINDOW_DAYS = 14
DEFAULT_MAX_COURSES = 4
DEFAULT_MAX_CREDITS = 24


@dataclass(frozen=True)
class Transition:
    """The delta a handler persists for one enrollment row."""
    event: str                      # enrolled / re_enrolled / dropped / completed
    status: str
    at: datetime
    seat_delta: int = 0

    def apply_to(self, enrollment) -> None:
        enrollment.status = self.status
        if self.status == ENROLLED:
            enrollment.enrolled_at = self.at
            enrollment.dropped_at = None
        elif self.status == DROPPED:
            enrollment.dropped_at = self.at
        elif self.status == COMPLETED:
            enrollment.completed_at = self.at


def as_utc(dt: datetime) -> datetime:
    # sqlite hands back naive datetimes; they are stored as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _code(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def missing_prerequisites(course, completed_codes: Iterable[str]) -> list[str]:
    """
    Prerequisite codes the student has not completed.

    ``min_grade`` is carried on each prerequisite but only completion is
    checked.
    """
    done = {_code(c) for c in completed_codes}
    return [p.course_code for p in (course.prerequisites or []) if _code(p.course_code) not in done]


def prerequisite_report(course, completed_codes: Iterable[str]) -> list[dict]:
    done = {_code(c) for c in completed_codes}
    out = []
    for p in course.prerequisites or []:
        satisfied = _code(p.course_code) in done
        out.append({
            "course_code": p.course_code,
            "course_name": getattr(p, "course_name", None),
            "required_grade": getattr(p, "min_grade", None),
            "status": "completed" if satisfied else "not_completed",
            "message": "Prerequisite satisfied" if satisfied else "Course not completed",
        })
    return out


def completed_course_codes(student_enrollments: Iterable) -> list[str]:
    return [e.course.code for e in student_enrollments if e.status == COMPLETED and e.course is not None]


def semester_load(student_enrollments: Iterable, semester_number, exclude_course_id=None) -> tuple[int, int]:
    """(course count, credit sum) of enrolled courses in the given semester number."""
    count = 0
    credits = 0
    for e in student_enrollments:
        if e.status != ENROLLED or e.course is None:
            continue
        if exclude_course_id is not None and e.course_id == exclude_course_id:
            continue
        if e.course.semester_number != semester_number:
            continue
        count += 1
        credits += e.course.credits or 0
    return count, credits


def try_enroll(
    course,
    existing,
    student_enrollments: Iterable,
    now: datetime,
    max_courses: int = DEFAULT_MAX_COURSES,
    max_credits: int = DEFAULT_MAX_CREDITS,
) -> Outcome:
    """
    Decide whether the student may (re-)enroll in ``course``.

    ``existing`` is the student's row for this course (or None) and
    ``student_enrollments`` all of the student's rows with their course
    loaded. A dropped row goes through exactly the same checks as a fresh
    enrollment; only the resulting event name differs.
    """
    student_enrollments = list(student_enrollments)

    if course.status != COURSE_ACTIVE:
        return bad_state("Course is not available for enrollment", course_status=course.status)

    if course.enrolled_count >= course.capacity:
        return conflict("Course is at full capacity", capacity=course.capacity)

    if existing is not None:
        if existing.status == ENROLLED:
            return conflict("Already enrolled in this course")
        if existing.status == COMPLETED:
            return conflict("Course already completed. Cannot re-enroll.")

    missing = missing_prerequisites(course, completed_course_codes(student_enrollments))
    if missing:
        return conflict("Prerequisites not met for this course", missing_prerequisites=missing)

    semester = course.semester_number
    count, credits = semester_load(student_enrollments, semester, exclude_course_id=course.id)
    if count >= max_courses:
        return conflict(
            f"Maximum enrollment limit reached for semester {semester} ({max_courses} courses)",
            enrolled_courses=count,
        )
    if credits + course.credits > max_credits:
        return conflict(
            f"Credit limit exceeded for semester {semester} (max {max_credits} credits)",
            current_credits=credits,
            requested_credits=course.credits,
        )

    event = "re_enrolled" if existing is not None and existing.status == DROPPED else "enrolled"
    return Outcome.success(Transition(event=event, status=ENROLLED, at=now, seat_delta=1))


def drop_deadline(enrollment, window_days: int = DEFAULT_DROP_WINDOW_DAYS) -> datetime:
    return as_utc(enrollment.enrolled_at) + timedelta(days=window_days)


def try_drop(enrollment, now: datetime, window_days: int = DEFAULT_DROP_WINDOW_DAYS) -> Outcome:
    if enrollment is None or enrollment.status != ENROLLED:
        return bad_state("Enrollment not found or already dropped")

    deadline = drop_deadline(enrollment, window_days)
    if as_utc(now) > deadline:
        return conflict(
            f"Drop period has expired. Courses can only be dropped within {window_days} days of enrollment.",
            deadline=deadline.isoformat(),
        )

    return Outcome.success(Transition(event="dropped", status=DROPPED, at=now, seat_delta=-1))


def try_complete(enrollment, now: datetime) -> Outcome:
    if enrollment is None or enrollment.status != ENROLLED:
        return bad_state("Only an enrolled course can be completed")
    return Outcome.success(Transition(event="completed", status=COMPLETED, at=now))
