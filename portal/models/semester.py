from sqlalchemy import Column, Integer, String, Text, Boolean, Date, DateTime, UniqueConstraint, CheckConstraint
from sqlalchemy.sql import func

from portal.database import Base


class Semester(Base):
    __tablename__ = "semesters"
    __table_args__ = (
        UniqueConstraint("name", "year", name="uq_semester_name_year"),
        CheckConstraint("number BETWEEN 1 AND 12", name="ck_semester_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    number = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False, index=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    # upcoming / active / completed
    status = Column(String(20), nullable=False, default="upcoming")
    is_current = Column(Boolean, nullable=False, default=False, index=True)
    description = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
