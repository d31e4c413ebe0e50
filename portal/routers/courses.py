# portal/routers/courses.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.models.course import Course
from portal.models.enrollment import Enrollment
from portal.models.semester import Semester
from portal.schemas.course import CourseOut, CourseListOut
from portal.schemas.enrollment import MyCourseOut
from portal.utils.auth import get_current_user, require_student


router = APIRouter(prefix="/courses", tags=["Courses"])

import logging
logger = logging.getLogger("portal.courses")


def _filtered(
    q,
    department: Optional[str],
    semester: Optional[int],
    keyword: Optional[str],
):
    if department:
        q = q.filter(Course.department == department)

    # semester = semester number (1~12), like the student-facing catalog
    if semester is not None:
        q = q.join(Semester, Semester.id == Course.semester_id).filter(Semester.number == semester)

    if keyword:
        k = f"%{keyword.strip()}%"
        q = q.filter(or_(Course.code.ilike(k), Course.name.ilike(k)))
    return q


def _page(q, page: int, page_size: int) -> CourseListOut:
    total = q.count()
    rows = (
        q.order_by(Course.code.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return CourseListOut(
        items=[CourseOut.model_validate(c) for c in rows],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("", response_model=CourseListOut)
def search_courses(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),

    keyword: Optional[str] = Query(None, description="code or name keyword"),
    department: Optional[str] = Query(None),
    semester: Optional[int] = Query(None, ge=1, le=12, description="semester number"),
    status: Optional[str] = Query(None),

    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
):
    q = _filtered(db.query(Course), department, semester, keyword)
    if status:
        q = q.filter(Course.status == status)
    return _page(q, page, page_size)


@router.get("/available", response_model=CourseListOut)
def available_courses(
    db: Session = Depends(get_db),
    user=Depends(require_student),

    keyword: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    semester: Optional[int] = Query(None, ge=1, le=12),

    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
):
    # already enrolled or completed -> not offered again
    taken = select(Enrollment.course_id).where(
        Enrollment.student_id == user.id,
        Enrollment.status.in_(["enrolled", "completed"]),
    )
    q = db.query(Course).filter(Course.status == "active", Course.id.not_in(taken))
    q = _filtered(q, department, semester, keyword)
    return _page(q, page, page_size)


@router.get("/me", response_model=list[MyCourseOut])
def my_courses(db: Session = Depends(get_db), user=Depends(require_student)):
    rows = (
        db.query(Enrollment)
        .filter(Enrollment.student_id == user.id, Enrollment.status == "enrolled")
        .order_by(Enrollment.enrolled_at.asc())
        .all()
    )
    return [
        MyCourseOut(
            enrollment_id=e.id,
            enrolled_at=e.enrolled_at,
            course=CourseOut.model_validate(e.course),
        )
        for e in rows
    ]


@router.get("/{course_id}", response_model=CourseOut)
def get_course(course_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    c = db.get(Course, course_id)
    if not c:
        raise HTTPException(status_code=404, detail={"kind": "not_found", "message": "Course not found"})
    return CourseOut.model_validate(c)
