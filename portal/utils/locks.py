import logging

from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger("portal.locks")


def lock_scope(db: Session, key: str) -> None:
    """
    Transaction-scoped mutual exclusion on ``key``; released on commit/rollback.

    PostgreSQL gets an advisory lock. SQLite already serializes writers, so
    nothing is taken there.
    """
    if db.get_bind().dialect.name != "postgresql":
        return
    db.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key})
    logger.debug("lock taken: %s", key)


def course_key(course_id) -> str:
    return f"course:{course_id}"


def student_key(student_id) -> str:
    return f"student:{student_id}"


def room_key(room: str, exam_date) -> str:
    return f"room:{(room or '').strip()}:{exam_date}"
