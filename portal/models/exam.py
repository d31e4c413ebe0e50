from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from portal.database import Base

EXAM_STATUSES = ("draft", "scheduled", "ongoing", "completed", "cancelled", "postponed")
EXAM_TYPES = ("midterm", "final", "quiz", "practical", "viva", "project", "online")


class Exam(Base):
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(32), unique=True, nullable=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    semester_number = Column(Integer, nullable=False, index=True)

    exam_type = Column(String(20), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text)

    exam_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)   # HH:MM
    end_time = Column(String(5), nullable=False)     # HH:MM
    duration = Column(Integer, nullable=False)       # minutes

    room = Column(String(50), nullable=True, index=True)
    building = Column(String(100))

    max_marks = Column(Integer, nullable=False)
    passing_marks = Column(Integer)

    status = Column(String(20), nullable=False, default="scheduled", index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    course = relationship("Course")
