from datetime import datetime
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator

CourseStatus = Literal["active", "inactive", "completed", "upcoming"]
CourseType = Literal["core", "elective", "lab", "project"]
MinGrade = Literal["A", "B", "C", "D", "F"]


class PrerequisiteIn(BaseModel):
    course_code: str = Field(min_length=1, max_length=20)
    course_name: Optional[str] = None
    min_grade: MinGrade = "D"

    @field_validator("course_code")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.strip().upper()


class PrerequisiteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    course_code: str
    course_name: Optional[str] = None
    min_grade: str


class CourseBase(BaseModel):
    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=255)
    department: str
    semester_id: int
    instructor_id: Optional[int] = None
    credits: int = Field(ge=1, le=6)
    course_type: CourseType = "core"
    capacity: int = Field(ge=1)
    status: CourseStatus = "active"
    description: Optional[str] = None

    @field_validator("code")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.strip().upper()


class CourseCreate(CourseBase):
    prerequisites: List[PrerequisiteIn] = Field(default_factory=list)


class CourseUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    department: Optional[str] = None
    semester_id: Optional[int] = None
    instructor_id: Optional[int] = None
    credits: Optional[int] = Field(default=None, ge=1, le=6)
    course_type: Optional[CourseType] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    status: Optional[CourseStatus] = None
    description: Optional[str] = None
    # None = leave untouched, [] = clear
    prerequisites: Optional[List[PrerequisiteIn]] = None


class CourseOut(CourseBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    enrolled_count: int
    semester_number: Optional[int] = None
    prerequisites: List[PrerequisiteOut] = []
    created_at: datetime
    updated_at: datetime


class CourseListOut(BaseModel):
    items: List[CourseOut]
    total: int
    page: int
    page_size: int
