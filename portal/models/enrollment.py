from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from portal.database import Base


class Enrollment(Base):
    """
    One row per (student, course). Drop and re-enroll reuse the row; the
    trail of transitions lives in EnrollmentEvent.
    """
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("student_id", "course_id", name="uq_enrollment_student_course"),)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    # enrolled / dropped / completed
    status = Column(String(20), nullable=False, default="enrolled", index=True)
    enrolled_at = Column(DateTime(timezone=True), nullable=False)
    dropped_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    course = relationship("Course")
    events = relationship(
        "EnrollmentEvent",
        back_populates="enrollment",
        cascade="all, delete-orphan",
        order_by="EnrollmentEvent.id",
    )
