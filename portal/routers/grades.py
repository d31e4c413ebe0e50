from collections import Counter
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from portal.database import get_db
from portal.models.course import Course
from portal.models.grade import Grade
from portal.models.grade_component import GradeComponent
from portal.models.semester import Semester
from portal.models.user import User
from portal.schemas.grade import (
    BulkGradesIn,
    BulkGradesOut,
    ComponentRecordIn,
    CourseGradesOut,
    GradeCreate,
    GradeOut,
    GradeUpdate,
    StudentGradesOut,
)
from portal.utils.auth import get_current_user, require_admin, require_staff, STAFF_ROLES
from portal.utils.errors import ErrorKind, Outcome, Rejection, not_found, raise_for
from portal.utils.gpa import GradeLine, calculate_cgpa, calculate_sgpa, semester_breakdown
from portal.utils.grading import aggregate_components, is_fully_recorded, round2
from portal.utils.notify import Notifier, get_notifier

import logging
logger = logging.getLogger("portal.grades")

router = APIRouter(prefix="/grades", tags=["Grades"])

# statuses that count towards SGPA / CGPA
ROLLUP_STATUSES = ("graded", "published")


def _load_refs(db: Session, student_id: int, course_id: int, semester_id: int) -> Outcome:
    student = db.get(User, student_id)
    if not student or student.role != "student":
        return not_found("Student not found")
    course = db.get(Course, course_id)
    if not course:
        return not_found("Course not found")
    if not db.get(Semester, semester_id):
        return not_found("Semester not found")
    return Outcome.success(course)


def _check_can_grade(user, course: Course):
    # instructors grade their own courses only
    if user.role == "instructor" and course.instructor_id != user.id:
        raise HTTPException(status_code=403, detail="Not the instructor of this course")


def _find(db: Session, student_id: int, course_id: int, semester_id: int) -> Optional[Grade]:
    return (
        db.query(Grade)
        .filter(
            Grade.student_id == student_id,
            Grade.course_id == course_id,
            Grade.semester_id == semester_id,
        )
        .first()
    )


def _merge_components(grade: Grade, components_in) -> None:
    by_name = {c.name: c for c in grade.components}
    for c in components_in:
        row = by_name.get(c.name)
        if row is None:
            grade.components.append(GradeComponent(**c.model_dump()))
        else:
            row.weight = c.weight
            row.score = c.score
            row.max_score = c.max_score


def _recompute(grade: Grade, grader) -> None:
    summary = aggregate_components(grade.components)
    grade.total_score = summary.total_score
    grade.grade = summary.grade
    grade.grade_point = summary.grade_point
    if grade.status != "published":
        grade.status = "graded" if is_fully_recorded(grade.components) else "incomplete"
    grade.graded_by = grader.id
    grade.graded_at = datetime.now(timezone.utc)


def _grade_or_404(db: Session, grade_id: int) -> Grade:
    g = db.get(Grade, grade_id)
    if not g:
        raise_for(Rejection(ErrorKind.NOT_FOUND, "Grade not found"))
    return g


def _create(db: Session, body: GradeCreate, grader) -> Grade:
    g = Grade(
        student_id=body.student_id,
        course_id=body.course_id,
        semester_id=body.semester_id,
        remarks=body.remarks,
    )
    g.components = [GradeComponent(**c.model_dump()) for c in body.components]
    _recompute(g, grader)
    db.add(g)
    return g


def _rollup_lines(db: Session, student_id: int) -> list[GradeLine]:
    rows = (
        db.query(Grade)
        .options(joinedload(Grade.course))
        .filter(Grade.student_id == student_id, Grade.status.in_(ROLLUP_STATUSES))
        .all()
    )
    return [
        GradeLine(semester_id=g.semester_id, grade_point=g.grade_point, credits=g.course.credits if g.course else None)
        for g in rows
    ]


@router.post("", response_model=GradeOut, status_code=201)
def create_grade(body: GradeCreate, db: Session = Depends(get_db), staff=Depends(require_staff)):
    refs = _load_refs(db, body.student_id, body.course_id, body.semester_id)
    if not refs.ok:
        raise_for(refs.rejection)
    _check_can_grade(staff, refs.value)

    if _find(db, body.student_id, body.course_id, body.semester_id):
        raise_for(Rejection(
            ErrorKind.CONFLICT, "Grade already exists for this student in this course and semester"
        ))

    g = _create(db, body, staff)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise_for(Rejection(
            ErrorKind.CONFLICT, "Grade already exists for this student in this course and semester"
        ))
    db.refresh(g)
    logger.info("grade created student=%s course=%s total=%s", g.student_id, refs.value.code, g.total_score)
    return g


@router.put("/record", response_model=GradeOut)
def record_component(body: ComponentRecordIn, db: Session = Depends(get_db), staff=Depends(require_staff)):
    """Record one component; the grade row is created on first record."""
    refs = _load_refs(db, body.student_id, body.course_id, body.semester_id)
    if not refs.ok:
        raise_for(refs.rejection)
    _check_can_grade(staff, refs.value)

    g = _find(db, body.student_id, body.course_id, body.semester_id)
    if g is None:
        g = Grade(student_id=body.student_id, course_id=body.course_id, semester_id=body.semester_id)
        db.add(g)
    _merge_components(g, [body.component])
    _recompute(g, staff)

    try:
        db.commit()
    except IntegrityError:
        # a parallel first record created the same grade row
        db.rollback()
        raise_for(Rejection(
            ErrorKind.CONFLICT, "Grade already exists for this student in this course and semester"
        ))
    db.refresh(g)
    logger.info(
        "component %s recorded student=%s course=%s total=%s",
        body.component.name, g.student_id, refs.value.code, g.total_score,
    )
    return g


@router.post("/bulk", response_model=BulkGradesOut)
def bulk_upsert_grades(body: BulkGradesIn, db: Session = Depends(get_db), staff=Depends(require_staff)):
    results = []
    errors = []

    for raw in body.grades:
        try:
            item = GradeCreate.model_validate(raw)
        except ValidationError as e:
            errors.append({"data": raw, "error": str(e.errors()[0].get("msg"))})
            continue

        refs = _load_refs(db, item.student_id, item.course_id, item.semester_id)
        if not refs.ok:
            errors.append({"data": raw, "error": refs.rejection.message})
            continue
        if staff.role == "instructor" and refs.value.instructor_id != staff.id:
            errors.append({"data": raw, "error": "Not the instructor of this course"})
            continue

        g = _find(db, item.student_id, item.course_id, item.semester_id)
        if g is None:
            g = _create(db, item, staff)
            action = "created"
        else:
            # bulk replaces the whole component list; flush the deletes first
            # so re-used names do not trip the (grade_id, name) unique key
            g.components.clear()
            db.flush()
            g.components.extend(GradeComponent(**c.model_dump()) for c in item.components)
            if item.remarks is not None:
                g.remarks = item.remarks
            _recompute(g, staff)
            action = "updated"
        db.flush()
        results.append((action, g))

    db.commit()
    out = [{"action": a, "grade": GradeOut.model_validate(g)} for a, g in results]
    created = sum(1 for a, _ in results if a == "created")
    logger.info("bulk grades: %s ok, %s failed", len(results), len(errors))
    return {
        "results": out,
        "errors": errors,
        "created": created,
        "updated": len(results) - created,
        "failed": len(errors),
    }


@router.get("/me", response_model=StudentGradesOut)
def my_grades(
    semester_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return student_grades(user.id, semester_id, db, user)


@router.get("/student/{student_id}", response_model=StudentGradesOut)
def student_grades(
    student_id: int,
    semester_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    if user.role not in STAFF_ROLES and user.id != student_id:
        raise HTTPException(status_code=403, detail="Students can only view their own grades")

    q = db.query(Grade).filter(Grade.student_id == student_id)
    if semester_id is not None:
        q = q.filter(Grade.semester_id == semester_id)
    grades = q.order_by(Grade.semester_id.asc(), Grade.id.asc()).all()

    lines = _rollup_lines(db, student_id)
    sgpa = None
    if semester_id is not None:
        sgpa = calculate_sgpa([ln for ln in lines if ln.semester_id == semester_id])

    return {
        "student_id": student_id,
        "grades": grades,
        "sgpa": sgpa,
        "cgpa": calculate_cgpa(lines),
        "semesters": semester_breakdown(lines),
        "total_grades": len(grades),
    }


@router.get("/course/{course_id}", response_model=CourseGradesOut)
def course_grades(
    course_id: int,
    semester_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    staff=Depends(require_staff),
):
    course = db.get(Course, course_id)
    if not course:
        raise_for(Rejection(ErrorKind.NOT_FOUND, "Course not found"))
    _check_can_grade(staff, course)

    q = db.query(Grade).filter(Grade.course_id == course_id)
    if semester_id is not None:
        q = q.filter(Grade.semester_id == semester_id)
    grades = q.order_by(Grade.total_score.desc()).all()

    scores = [g.total_score for g in grades]
    stats = {
        "total_students": len(grades),
        "average_score": round2(sum(scores) / len(scores)) if scores else 0.0,
        "highest_score": max(scores) if scores else 0.0,
        "lowest_score": min(scores) if scores else 0.0,
        "grade_distribution": dict(Counter(g.grade for g in grades)),
    }
    return {"grades": grades, "stats": stats}


@router.get("/{grade_id}", response_model=GradeOut)
def get_grade(grade_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    g = _grade_or_404(db, grade_id)
    if user.role not in STAFF_ROLES and g.student_id != user.id:
        raise_for(Rejection(ErrorKind.NOT_FOUND, "Grade not found"))
    return g


@router.put("/{grade_id}", response_model=GradeOut)
def update_grade(grade_id: int, body: GradeUpdate, db: Session = Depends(get_db), staff=Depends(require_staff)):
    g = _grade_or_404(db, grade_id)
    _check_can_grade(staff, g.course)

    if body.components is not None:
        _merge_components(g, body.components)
    if body.remarks is not None:
        g.remarks = body.remarks
    _recompute(g, staff)

    db.commit()
    db.refresh(g)
    logger.info("grade %s updated total=%s grade=%s", g.id, g.total_score, g.grade)
    return g


@router.post("/{grade_id}/publish", response_model=GradeOut)
def publish_grade(
    grade_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    staff=Depends(require_staff),
    notifier: Notifier = Depends(get_notifier),
):
    g = _grade_or_404(db, grade_id)
    _check_can_grade(staff, g.course)
    if g.status == "incomplete":
        raise_for(Rejection(ErrorKind.STATE, "Only a fully graded record can be published"))

    g.status = "published"
    g.graded_by = staff.id
    g.graded_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(g)
    logger.info("grade %s published", g.id)

    background_tasks.add_task(
        notifier.send,
        g.student_id,
        "Grade Published",
        f"Your grade for {g.course.code} is now available: {g.grade}.",
        category="grade",
        priority="medium",
        action_url="/student/grades",
        data={"grade_id": g.id, "course_id": g.course_id, "grade": g.grade},
    )
    return g


@router.delete("/{grade_id}")
def delete_grade(grade_id: int, db: Session = Depends(get_db), admin=Depends(require_admin)):
    g = _grade_or_404(db, grade_id)
    db.delete(g)
    db.commit()
    logger.info("grade %s deleted (student=%s course=%s)", grade_id, g.student_id, g.course_id)
    return {"detail": "deleted"}
