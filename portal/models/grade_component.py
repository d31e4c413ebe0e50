from sqlalchemy import Column, Integer, String, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from portal.database import Base


class GradeComponent(Base):
    __tablename__ = "grade_components"
    __table_args__ = (UniqueConstraint("grade_id", "name", name="uq_grade_component_name"),)

    id = Column(Integer, primary_key=True)
    grade_id = Column(Integer, ForeignKey("grades.id", ondelete="CASCADE"), nullable=False, index=True)

    # midterm / final / practical / quiz / assignment / project / attendance
    name = Column(String(20), nullable=False)
    weight = Column(Float, nullable=False)
    score = Column(Float, nullable=True)
    max_score = Column(Float, nullable=False, default=100)

    grade_record = relationship("Grade", back_populates="components")
