from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from portal.utils.enrollment_rules import (
    prerequisite_report,
    try_complete,
    try_drop,
    try_enroll,
)
from portal.utils.errors import ErrorKind

NOW = datetime(2026, 9, 15, 10, 0, tzinfo=timezone.utc)
_ids = iter(range(1, 10_000))


def course(code="CS101", credits=4, capacity=30, enrolled=0, status="active", semester=1, prereqs=()):
    return SimpleNamespace(
        id=next(_ids),
        code=code,
        credits=credits,
        capacity=capacity,
        enrolled_count=enrolled,
        status=status,
        semester_number=semester,
        prerequisites=[SimpleNamespace(course_code=p, course_name=None, min_grade="D") for p in prereqs],
    )


def row(c, status="enrolled", enrolled_at=NOW):
    return SimpleNamespace(course=c, course_id=c.id, status=status, enrolled_at=enrolled_at, dropped_at=None)


def test_fresh_enrollment():
    out = try_enroll(course(), None, [], NOW)
    assert out.ok
    assert out.value.event == "enrolled"
    assert out.value.status == "enrolled"
    assert out.value.seat_delta == 1


def test_inactive_course_is_a_state_error():
    out = try_enroll(course(status="inactive"), None, [], NOW)
    assert out.rejection.kind is ErrorKind.STATE


def test_full_course():
    out = try_enroll(course(capacity=2, enrolled=2), None, [], NOW)
    assert out.rejection.kind is ErrorKind.CONFLICT
    assert out.rejection.message == "Course is at full capacity"


def test_already_enrolled_and_completed():
    c = course()
    assert try_enroll(c, row(c), [row(c)], NOW).rejection.message == "Already enrolled in this course"
    done = row(c, status="completed")
    assert "already completed" in try_enroll(c, done, [done], NOW).rejection.message


def test_missing_prerequisites_listed():
    c = course(code="CS201", prereqs=("CS101", "MA101"))
    passed = row(course(code="CS101"), status="completed")

    out = try_enroll(c, None, [passed], NOW)
    assert out.rejection.kind is ErrorKind.CONFLICT
    assert out.rejection.details["missing_prerequisites"] == ["MA101"]

    report = prerequisite_report(c, ["cs101"])
    assert [p["status"] for p in report] == ["completed", "not_completed"]


def test_course_count_limit_per_semester_number():
    current = [row(course(credits=3)) for _ in range(4)]
    out = try_enroll(course(credits=3), None, current, NOW)
    assert out.rejection.kind is ErrorKind.CONFLICT
    assert "Maximum enrollment limit" in out.rejection.message

    # other semester numbers do not count
    elsewhere = [row(course(credits=3, semester=2)) for _ in range(4)]
    assert try_enroll(course(credits=3), None, elsewhere, NOW).ok


def test_credit_limit_is_inclusive():
    # three enrolled courses, 20 credits
    current = [row(course(credits=c)) for c in (6, 6, 8)]
    assert try_enroll(course(credits=4), None, current, NOW).ok

    out = try_enroll(course(credits=5), None, current, NOW)
    assert out.rejection.kind is ErrorKind.CONFLICT
    assert out.rejection.message == "Credit limit exceeded for semester 1 (max 24 credits)"
    assert out.rejection.details == {"current_credits": 20, "requested_credits": 5}


def test_dropped_rows_do_not_count_towards_load():
    dropped = [row(course(credits=6), status="dropped") for _ in range(4)]
    assert try_enroll(course(), None, dropped, NOW).ok


def test_re_enrollment_runs_every_check():
    c = course(capacity=1, enrolled=1)
    dropped = row(c, status="dropped")
    assert try_enroll(c, dropped, [dropped], NOW).rejection.message == "Course is at full capacity"

    c.enrolled_count = 0
    out = try_enroll(c, dropped, [dropped], NOW)
    assert out.ok
    assert out.value.event == "re_enrolled"


def test_drop_window_boundaries():
    window = timedelta(days=14)
    assert try_drop(row(course(), enrolled_at=NOW - window + timedelta(seconds=1)), NOW).ok
    assert try_drop(row(course(), enrolled_at=NOW - window), NOW).ok

    late = try_drop(row(course(), enrolled_at=NOW - window - timedelta(seconds=1)), NOW)
    assert late.rejection.kind is ErrorKind.CONFLICT
    assert "Drop period has expired" in late.rejection.message


def test_drop_accepts_naive_utc_timestamps():
    naive = (NOW - timedelta(days=3)).replace(tzinfo=None)
    out = try_drop(row(course(), enrolled_at=naive), NOW)
    assert out.ok
    assert out.value.seat_delta == -1


def test_drop_requires_an_active_enrollment():
    assert try_drop(None, NOW).rejection.kind is ErrorKind.STATE
    assert try_drop(row(course(), status="dropped"), NOW).rejection.kind is ErrorKind.STATE


def test_transition_apply_to():
    e = row(course(), status="dropped")
    e.dropped_at = NOW - timedelta(days=1)
    out = try_enroll(e.course, e, [e], NOW)
    out.value.apply_to(e)
    assert e.status == "enrolled"
    assert e.enrolled_at == NOW
    assert e.dropped_at is None


def test_complete():
    e = row(course())
    out = try_complete(e, NOW)
    assert out.ok and out.value.seat_delta == 0
    assert try_complete(row(course(), status="dropped"), NOW).rejection.kind is ErrorKind.STATE
