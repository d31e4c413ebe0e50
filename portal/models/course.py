from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from portal.database import Base

COURSE_STATUSES = ("active", "inactive", "completed", "upcoming")


class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint("credits BETWEEN 1 AND 6", name="ck_course_credits"),
        CheckConstraint("enrolled_count >= 0 AND enrolled_count <= capacity", name="ck_course_seats"),
    )

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    department = Column(String(100), nullable=False)

    semester_id = Column(Integer, ForeignKey("semesters.id"), nullable=False, index=True)
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    credits = Column(Integer, nullable=False)
    # core / elective / lab / project
    course_type = Column(String(20), nullable=False, default="core")

    capacity = Column(Integer, nullable=False)
    enrolled_count = Column(Integer, nullable=False, default=0)

    status = Column(String(20), nullable=False, default="active", index=True)
    description = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # relationship
    semester = relationship("Semester")
    prerequisites = relationship(
        "CoursePrerequisite",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="CoursePrerequisite.id",
    )

    @property
    def semester_number(self):
        return self.semester.number if self.semester is not None else None
