from sqlalchemy.orm import Session

from portal.models.course import Course


def take_seat(db: Session, course_id) -> bool:
    """
    UPDATE courses SET enrolled_count = enrolled_count + 1
    WHERE id = :id AND enrolled_count < capacity

    False means another request took the last seat first.
    """
    updated = (
        db.query(Course)
        .filter(Course.id == course_id, Course.enrolled_count < Course.capacity)
        .update({Course.enrolled_count: Course.enrolled_count + 1}, synchronize_session=False)
    )
    return updated == 1


def release_seat(db: Session, course_id) -> bool:
    updated = (
        db.query(Course)
        .filter(Course.id == course_id, Course.enrolled_count > 0)
        .update({Course.enrolled_count: Course.enrolled_count - 1}, synchronize_session=False)
    )
    return updated == 1
