from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict

from portal.schemas.course import CourseOut


class EnrollmentEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    event: str
    semester_id: Optional[int] = None
    at: datetime


class EnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    course_id: int
    status: str
    enrolled_at: datetime
    dropped_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class EnrollmentHistoryOut(EnrollmentOut):
    events: List[EnrollmentEventOut] = []


class MyCourseOut(BaseModel):
    enrollment_id: int
    enrolled_at: datetime
    course: CourseOut


class PrerequisiteStatusOut(BaseModel):
    course_code: str
    course_name: Optional[str] = None
    required_grade: Optional[str] = None
    status: str
    message: str


class PrerequisiteCheckOut(BaseModel):
    can_enroll: bool
    prerequisites: List[PrerequisiteStatusOut]
