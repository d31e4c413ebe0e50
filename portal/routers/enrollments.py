from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from portal.config import settings
from portal.database import get_db
from portal.models.course import Course
from portal.models.enrollment import Enrollment
from portal.models.enrollment_event import EnrollmentEvent
from portal.schemas.enrollment import EnrollmentOut, EnrollmentHistoryOut, PrerequisiteCheckOut
from portal.utils.auth import get_current_user, require_staff, require_student, STAFF_ROLES
from portal.utils.enrollment_rules import (
    completed_course_codes,
    prerequisite_report,
    try_complete,
    try_drop,
    try_enroll,
)
from portal.utils.errors import ErrorKind, Rejection, raise_for
from portal.utils.locks import lock_scope, course_key, student_key
from portal.utils.notify import Notifier, get_notifier
from portal.utils.seats import take_seat, release_seat

import logging
logger = logging.getLogger("portal.enrollments")

router = APIRouter(tags=["Enrollment"])

FULL = Rejection(ErrorKind.CONFLICT, "Course is at full capacity")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _course_or_404(db: Session, course_id: int) -> Course:
    c = db.get(Course, course_id)
    if not c:
        raise HTTPException(status_code=404, detail={"kind": "not_found", "message": "Course not found"})
    return c


def _student_rows(db: Session, student_id: int) -> list[Enrollment]:
    return (
        db.query(Enrollment)
        .options(joinedload(Enrollment.course).joinedload(Course.semester))
        .filter(Enrollment.student_id == student_id)
        .all()
    )


def _own_row(db: Session, student_id: int, course_id: int):
    return (
        db.query(Enrollment)
        .filter(Enrollment.student_id == student_id, Enrollment.course_id == course_id)
        .with_for_update()
        .first()
    )


def _record(enrollment: Enrollment, transition, semester_id) -> None:
    transition.apply_to(enrollment)
    enrollment.events.append(EnrollmentEvent(event=transition.event, semester_id=semester_id, at=transition.at))


@router.post("/courses/{course_id}/enroll", response_model=EnrollmentOut, status_code=201)
def enroll_in_course(
    course_id: int,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(require_student),
    notifier: Notifier = Depends(get_notifier),
):
    # per-student scope covers the course-count / credit checks,
    # per-course scope plus the conditional UPDATE covers the seat count
    lock_scope(db, student_key(user.id))
    lock_scope(db, course_key(course_id))

    course = _course_or_404(db, course_id)
    existing = _own_row(db, user.id, course_id)
    outcome = try_enroll(
        course,
        existing,
        _student_rows(db, user.id),
        _now(),
        max_courses=settings.MAX_COURSES_PER_SEMESTER,
        max_credits=settings.MAX_CREDITS_PER_SEMESTER,
    )
    if not outcome.ok:
        logger.warning("enroll rejected student=%s course=%s: %s", user.id, course.code, outcome.rejection.message)
        raise_for(outcome.rejection)

    if not take_seat(db, course.id):
        db.rollback()
        logger.warning("enroll lost last seat student=%s course=%s", user.id, course.code)
        raise_for(FULL)

    transition = outcome.value
    if existing is None:
        existing = Enrollment(student_id=user.id, course_id=course.id)
        db.add(existing)
    _record(existing, transition, course.semester_id)

    try:
        db.commit()
    except IntegrityError:
        # a parallel request inserted the same (student, course) row first
        db.rollback()
        raise_for(Rejection(ErrorKind.CONFLICT, "Already enrolled in this course"))

    db.refresh(existing)
    if transition.event == "re_enrolled":
        response.status_code = 200
        title = "Course Re-enrollment Successful"
    else:
        title = "Course Enrollment Successful"
    logger.info("student %s %s in course %s", user.id, transition.event, course.code)

    background_tasks.add_task(
        notifier.send,
        user.id,
        title,
        f"You have successfully enrolled in {course.name} ({course.code}).",
        category="academic",
        priority="medium",
        action_url="/student/academics",
        data={"course_id": course.id, "course_code": course.code, "enrollment_id": existing.id},
    )
    return existing


@router.delete("/courses/{course_id}/drop", response_model=EnrollmentOut)
def drop_course(
    course_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user=Depends(require_student),
    notifier: Notifier = Depends(get_notifier),
):
    lock_scope(db, student_key(user.id))
    lock_scope(db, course_key(course_id))

    enrollment = _own_row(db, user.id, course_id)
    if enrollment is None:
        logger.warning("drop failed: no enrollment student=%s course=%s", user.id, course_id)
        raise_for(Rejection(ErrorKind.NOT_FOUND, "Enrollment not found or already dropped"))

    outcome = try_drop(enrollment, _now(), window_days=settings.DROP_WINDOW_DAYS)
    if not outcome.ok:
        logger.warning("drop rejected student=%s course=%s: %s", user.id, course_id, outcome.rejection.message)
        raise_for(outcome.rejection)

    course = enrollment.course
    _record(enrollment, outcome.value, course.semester_id)
    release_seat(db, course.id)
    db.commit()
    db.refresh(enrollment)
    logger.info("student %s dropped course %s", user.id, course.code)

    background_tasks.add_task(
        notifier.send,
        user.id,
        "Course Dropped",
        f"You have dropped {course.name} ({course.code}).",
        category="academic",
        priority="low",
        action_url="/student/academics",
        data={"course_id": course.id, "course_code": course.code, "enrollment_id": enrollment.id},
    )
    return enrollment


@router.post("/courses/{course_id}/check-prerequisites", response_model=PrerequisiteCheckOut)
def check_prerequisites(course_id: int, db: Session = Depends(get_db), user=Depends(require_student)):
    course = _course_or_404(db, course_id)
    report = prerequisite_report(course, completed_course_codes(_student_rows(db, user.id)))
    return {
        "can_enroll": all(p["status"] == "completed" for p in report),
        "prerequisites": report,
    }


@router.get("/enrollments/{enrollment_id}/history", response_model=EnrollmentHistoryOut)
def enrollment_history(enrollment_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    e = db.get(Enrollment, enrollment_id)
    if not e or (user.role not in STAFF_ROLES and e.student_id != user.id):
        raise HTTPException(status_code=404, detail={"kind": "not_found", "message": "Enrollment not found"})
    return e


@router.post("/admin/enrollments/{enrollment_id}/complete", response_model=EnrollmentOut)
def complete_enrollment(
    enrollment_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    staff=Depends(require_staff),
    notifier: Notifier = Depends(get_notifier),
):
    e = db.query(Enrollment).filter(Enrollment.id == enrollment_id).with_for_update().first()
    if not e:
        raise HTTPException(status_code=404, detail={"kind": "not_found", "message": "Enrollment not found"})

    outcome = try_complete(e, _now())
    if not outcome.ok:
        raise_for(outcome.rejection)

    _record(e, outcome.value, e.course.semester_id)
    db.commit()
    db.refresh(e)
    logger.info("enrollment %s completed by %s", e.id, staff.id)

    background_tasks.add_task(
        notifier.send,
        e.student_id,
        "Course Completed",
        f"{e.course.name} ({e.course.code}) has been marked as completed.",
        category="academic",
        priority="medium",
        action_url="/student/academics",
        data={"course_id": e.course_id, "enrollment_id": e.id},
    )
    return e
