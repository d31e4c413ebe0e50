from sqlalchemy import Column, Integer, String, Float, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from portal.database import Base

GRADE_STATUSES = ("incomplete", "graded", "published")


class Grade(Base):
    __tablename__ = "grades"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", "semester_id", name="uq_grade_student_course_semester"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    semester_id = Column(Integer, ForeignKey("semesters.id"), nullable=False, index=True)

    # derived from components on every change
    total_score = Column(Float, nullable=False, default=0)
    grade = Column(String(2), nullable=False, default="F")
    grade_point = Column(Integer, nullable=False, default=0)

    status = Column(String(20), nullable=False, default="incomplete", index=True)
    graded_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)
    remarks = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    course = relationship("Course")
    semester = relationship("Semester")
    components = relationship(
        "GradeComponent",
        back_populates="grade_record",
        cascade="all, delete-orphan",
        order_by="GradeComponent.id",
    )
