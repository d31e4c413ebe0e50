from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from portal.database import Base


class EnrollmentEvent(Base):
    __tablename__ = "enrollment_events"

    id = Column(Integer, primary_key=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False, index=True)

    # enrolled / re_enrolled / dropped / completed
    event = Column(String(20), nullable=False)
    semester_id = Column(Integer, ForeignKey("semesters.id"), nullable=True)
    at = Column(DateTime(timezone=True), nullable=False)

    enrollment = relationship("Enrollment", back_populates="events")
