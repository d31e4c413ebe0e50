from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.utils.auth import require_admin
from portal.utils.locks import lock_scope, course_key

from portal.models.course import Course
from portal.models.course_prerequisite import CoursePrerequisite
from portal.models.enrollment import Enrollment
from portal.models.semester import Semester
from portal.models.user import User

from portal.schemas.course import CourseCreate, CourseUpdate, CourseOut, CourseListOut

import logging
logger = logging.getLogger("portal.admin")


router = APIRouter(prefix="/admin/courses", tags=["Admin - Courses"])


def _fail(status: int, kind: str, message: str):
    raise HTTPException(status_code=status, detail={"kind": kind, "message": message})


def _check_refs(db: Session, semester_id: Optional[int], instructor_id: Optional[int]):
    # FK 檢查
    if semester_id is not None and not db.get(Semester, semester_id):
        _fail(404, "not_found", "Semester not found")
    if instructor_id is not None:
        instructor = db.get(User, instructor_id)
        if not instructor or instructor.role not in ("instructor", "admin"):
            _fail(404, "not_found", "Instructor not found")


@router.get("", response_model=CourseListOut)
def admin_search_courses(
    db: Session = Depends(get_db),
    admin=Depends(require_admin),

    #篩選
    code: Optional[str] = Query(None, description="course code (partial)"),
    semester_id: Optional[int] = Query(None),
    department: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    keyword: Optional[str] = Query(None, description="name / description keyword"),

    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    q = db.query(Course)

    if code:
        q = q.filter(Course.code.ilike(f"%{code.strip()}%"))
    if semester_id is not None:
        q = q.filter(Course.semester_id == semester_id)
    if department:
        q = q.filter(Course.department == department)
    if status:
        q = q.filter(Course.status == status)
    if keyword:
        like = f"%{keyword.strip()}%"
        q = q.filter(or_(Course.name.ilike(like), Course.description.ilike(like)))

    total = q.count()
    items = (
        q.order_by(Course.code.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )

    return CourseListOut(
        items=[CourseOut.model_validate(x) for x in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=CourseOut, status_code=201)
def admin_create_course(
    body: CourseCreate,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    if db.query(Course.id).filter(Course.code == body.code).first():
        _fail(409, "conflict", "Course code already exists")

    _check_refs(db, body.semester_id, body.instructor_id)

    data = body.model_dump(exclude={"prerequisites"})
    c = Course(**data, enrolled_count=0)
    c.prerequisites = [CoursePrerequisite(**p.model_dump()) for p in body.prerequisites]
    db.add(c)

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        _fail(409, "conflict", str(e.orig))

    db.refresh(c)
    logger.info("course created: %s (%s credits, capacity %s)", c.code, c.credits, c.capacity)
    return CourseOut.model_validate(c)


@router.put("/{course_id}", response_model=CourseOut)
def admin_update_course(
    course_id: int,
    body: CourseUpdate,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    lock_scope(db, course_key(course_id))
    c = db.query(Course).filter(Course.id == course_id).with_for_update().first()
    if not c:
        _fail(404, "not_found", "Course not found")

    data = body.model_dump(exclude_unset=True)
    prereqs_in = data.pop("prerequisites", None)

    _check_refs(db, data.get("semester_id"), data.get("instructor_id"))

    if "capacity" in data and data["capacity"] < c.enrolled_count:
        _fail(409, "conflict", f"Capacity cannot be lower than current enrollment ({c.enrolled_count})")

    for k, v in data.items():
        setattr(c, k, v)

    if prereqs_in is not None:
        c.prerequisites = [CoursePrerequisite(**p) for p in prereqs_in]

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        _fail(409, "conflict", str(e.orig))

    db.refresh(c)
    logger.info("course updated: %s fields=%s", c.code, sorted(data))
    return CourseOut.model_validate(c)


@router.delete("/{course_id}")
def admin_delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    c = db.query(Course).filter(Course.id == course_id).first()
    if not c:
        _fail(404, "not_found", "Course not found")

    active = (
        db.query(Enrollment.id)
        .filter(Enrollment.course_id == course_id, Enrollment.status == "enrolled")
        .first()
    )
    if active:
        _fail(409, "conflict", "Course has enrolled students")

    db.delete(c)
    db.commit()
    logger.info("course deleted: %s", c.code)
    return {"detail": "deleted"}
