from datetime import date
from types import SimpleNamespace
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.models.course import Course
from portal.models.exam import Exam
from portal.schemas.exam import ConflictCheckOut, ExamCreate, ExamListOut, ExamOut, ExamUpdate
from portal.utils.auth import get_current_user, require_admin
from portal.utils.conflict import BLOCKING_STATUSES, find_conflicts
from portal.utils.errors import ErrorKind, Rejection, raise_for
from portal.utils.locks import lock_scope, room_key
from portal.utils.timeslots import parse_hhmm

import logging
logger = logging.getLogger("portal.exams")

router = APIRouter(prefix="/exams", tags=["Exams"])


def _exam_or_404(db: Session, exam_id: int) -> Exam:
    e = db.get(Exam, exam_id)
    if not e:
        raise_for(Rejection(ErrorKind.NOT_FOUND, "Exam not found"))
    return e


def _room_day(db: Session, room: Optional[str], exam_date: date) -> list[Exam]:
    """Exams that currently hold ``room`` on ``exam_date``."""
    if not room:
        return []
    return (
        db.query(Exam)
        .filter(Exam.room == room, Exam.exam_date == exam_date, Exam.status.in_(BLOCKING_STATUSES))
        .all()
    )


def _ensure_free(db: Session, candidate, exclude_id=None) -> None:
    """
    Re-check the room inside the writing transaction, under the room/date
    lock, so two parallel bookings cannot both pass on a stale read.
    """
    if candidate.status not in BLOCKING_STATUSES or not candidate.room:
        return
    lock_scope(db, room_key(candidate.room, candidate.exam_date))
    clashes = find_conflicts(candidate, _room_day(db, candidate.room, candidate.exam_date), exclude_id=exclude_id)
    if clashes:
        logger.warning(
            "exam conflict room=%s date=%s %s-%s vs %s",
            candidate.room, candidate.exam_date, candidate.start_time, candidate.end_time,
            [c.id for c in clashes],
        )
        raise_for(Rejection(
            ErrorKind.CONFLICT,
            f"Room {candidate.room} is already booked on {candidate.exam_date} in an overlapping time window",
            {"conflicts": [ExamOut.model_validate(c).model_dump(mode="json") for c in clashes]},
        ))


@router.get("", response_model=ExamListOut)
def list_exams(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
    course_id: Optional[int] = Query(None),
    semester_number: Optional[int] = Query(None, ge=1, le=8),
    status: Optional[str] = Query(None),
    room: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    q = db.query(Exam)
    if course_id is not None:
        q = q.filter(Exam.course_id == course_id)
    if semester_number is not None:
        q = q.filter(Exam.semester_number == semester_number)
    if status:
        q = q.filter(Exam.status == status)
    if room:
        q = q.filter(Exam.room == room.strip())
    if date_from:
        q = q.filter(Exam.exam_date >= date_from)
    if date_to:
        q = q.filter(Exam.exam_date <= date_to)

    total = q.count()
    rows = (
        q.order_by(Exam.exam_date.asc(), Exam.start_time.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return ExamListOut(items=rows, total=total, page=page, page_size=page_size)


@router.get("/conflicts", response_model=ConflictCheckOut)
def check_conflicts(
    room: str = Query(..., min_length=1),
    exam_date: date = Query(...),
    start_time: str = Query(...),
    end_time: str = Query(...),
    exclude_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    try:
        if parse_hhmm(end_time) <= parse_hhmm(start_time):
            raise ValueError("end_time must be after start_time on the same day")
    except ValueError as e:
        raise HTTPException(status_code=422, detail={"kind": "validation", "message": str(e)})

    candidate = SimpleNamespace(room=room.strip(), exam_date=exam_date, start_time=start_time, end_time=end_time)
    clashes = find_conflicts(candidate, _room_day(db, candidate.room, exam_date), exclude_id=exclude_id)
    return {"has_conflict": bool(clashes), "conflicts": clashes}


@router.get("/{exam_id}", response_model=ExamOut)
def get_exam(exam_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    return _exam_or_404(db, exam_id)


@router.post("", response_model=ExamOut, status_code=201)
def create_exam(body: ExamCreate, db: Session = Depends(get_db), admin=Depends(require_admin)):
    if not db.get(Course, body.course_id):
        raise_for(Rejection(ErrorKind.NOT_FOUND, "Course not found"))

    _ensure_free(db, body)

    e = Exam(**body.model_dump(), created_by=admin.id)
    db.add(e)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise_for(Rejection(ErrorKind.CONFLICT, "Exam could not be saved", {"reason": str(err.orig)}))
    db.refresh(e)
    logger.info("exam created id=%s room=%s %s %s-%s", e.id, e.room, e.exam_date, e.start_time, e.end_time)
    return e


@router.put("/{exam_id}", response_model=ExamOut)
def update_exam(exam_id: int, body: ExamUpdate, db: Session = Depends(get_db), admin=Depends(require_admin)):
    e = _exam_or_404(db, exam_id)
    data = body.model_dump(exclude_unset=True)
    if "room" in data and data["room"] is not None:
        data["room"] = data["room"].strip() or None

    # the exam as it would look after the update
    merged = SimpleNamespace(**{
        k: data.get(k, getattr(e, k))
        for k in ("room", "exam_date", "start_time", "end_time", "status")
    })
    if parse_hhmm(merged.end_time) <= parse_hhmm(merged.start_time):
        raise_for(Rejection(ErrorKind.VALIDATION, "end_time must be after start_time on the same day"))

    _ensure_free(db, merged, exclude_id=e.id)

    for k, v in data.items():
        setattr(e, k, v)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise_for(Rejection(ErrorKind.CONFLICT, "Exam could not be saved", {"reason": str(err.orig)}))
    db.refresh(e)
    logger.info("exam updated id=%s fields=%s", e.id, sorted(data))
    return e


@router.delete("/{exam_id}")
def delete_exam(exam_id: int, db: Session = Depends(get_db), admin=Depends(require_admin)):
    e = _exam_or_404(db, exam_id)
    db.delete(e)
    db.commit()
    logger.info("exam deleted id=%s", exam_id)
    return {"detail": "deleted"}
