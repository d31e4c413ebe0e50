from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.models.course import Course
from portal.models.semester import Semester
from portal.schemas.semester import SemesterCreate, SemesterUpdate, SemesterOut
from portal.utils.auth import get_current_user, require_admin

import logging
logger = logging.getLogger("portal.semesters")

router = APIRouter(prefix="/semesters", tags=["Semesters"])


def _not_found():
    return HTTPException(status_code=404, detail={"kind": "not_found", "message": "Semester not found"})


def _clear_current(db: Session, keep_id=None):
    # single-winner: unset every other current flag in the same transaction
    q = db.query(Semester).filter(Semester.is_current.is_(True))
    if keep_id is not None:
        q = q.filter(Semester.id != keep_id)
    q.update({Semester.is_current: False}, synchronize_session=False)


@router.get("", response_model=list[SemesterOut])
def list_semesters(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return db.query(Semester).order_by(Semester.year.desc(), Semester.number.desc()).all()


@router.get("/current", response_model=SemesterOut)
def get_current_semester(db: Session = Depends(get_db), user=Depends(get_current_user)):
    s = db.query(Semester).filter(Semester.is_current.is_(True)).first()
    if not s:
        raise HTTPException(status_code=404, detail={"kind": "not_found", "message": "No current semester found"})
    return s


@router.get("/{semester_id}", response_model=SemesterOut)
def get_semester(semester_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    s = db.get(Semester, semester_id)
    if not s:
        raise _not_found()
    return s


@router.post("", response_model=SemesterOut, status_code=201)
def create_semester(body: SemesterCreate, db: Session = Depends(get_db), admin=Depends(require_admin)):
    dup = db.query(Semester.id).filter(Semester.name == body.name, Semester.year == body.year).first()
    if dup:
        raise HTTPException(
            status_code=409,
            detail={"kind": "conflict", "message": "Semester with this name already exists for the given year"},
        )

    if body.is_current:
        _clear_current(db)

    s = Semester(**body.model_dump())
    db.add(s)
    db.commit()
    db.refresh(s)
    logger.info("semester created: %s (%s) current=%s", s.name, s.year, s.is_current)
    return s


@router.put("/{semester_id}", response_model=SemesterOut)
def update_semester(
    semester_id: int,
    body: SemesterUpdate,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    s = db.get(Semester, semester_id)
    if not s:
        raise _not_found()

    data = body.model_dump(exclude_unset=True)
    start = data.get("start_date", s.start_date)
    end = data.get("end_date", s.end_date)
    if end <= start:
        raise HTTPException(status_code=422, detail={"kind": "validation", "message": "end_date must be after start_date"})

    if data.get("is_current"):
        _clear_current(db, keep_id=s.id)

    for k, v in data.items():
        setattr(s, k, v)

    db.commit()
    db.refresh(s)
    logger.info("semester updated: %s", s.name)
    return s


@router.post("/{semester_id}/set-current", response_model=SemesterOut)
def set_current_semester(semester_id: int, db: Session = Depends(get_db), admin=Depends(require_admin)):
    s = db.get(Semester, semester_id)
    if not s:
        raise _not_found()
    _clear_current(db, keep_id=s.id)
    s.is_current = True
    db.commit()
    db.refresh(s)
    logger.info("current semester -> %s", s.name)
    return s


@router.delete("/{semester_id}")
def delete_semester(semester_id: int, db: Session = Depends(get_db), admin=Depends(require_admin)):
    s = db.get(Semester, semester_id)
    if not s:
        raise _not_found()
    if db.query(Course.id).filter(Course.semester_id == s.id).first():
        raise HTTPException(
            status_code=409,
            detail={"kind": "conflict", "message": "Semester still has courses; move or delete them first"},
        )
    db.delete(s)
    db.commit()
    logger.info("semester deleted: %s", s.name)
    return {"detail": "deleted"}
