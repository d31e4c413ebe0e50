from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from portal.database import Base


class CoursePrerequisite(Base):
    __tablename__ = "course_prerequisites"

    id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)

    course_code = Column(String(20), nullable=False)
    course_name = Column(String(255))
    # A / B / C / D / F
    min_grade = Column(String(2), nullable=False, default="D")

    course = relationship("Course", back_populates="prerequisites")
