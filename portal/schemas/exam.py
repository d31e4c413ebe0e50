from datetime import date, datetime
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from portal.utils.timeslots import parse_hhmm

ExamStatus = Literal["draft", "scheduled", "ongoing", "completed", "cancelled", "postponed"]
ExamType = Literal["midterm", "final", "quiz", "practical", "viva", "project", "online"]


def _check_window(start: Optional[str], end: Optional[str]):
    if start is not None and end is not None and parse_hhmm(end) <= parse_hhmm(start):
        raise ValueError("end_time must be after start_time on the same day")


class ExamBase(BaseModel):
    code: Optional[str] = None
    course_id: int
    semester_number: int = Field(ge=1, le=8)
    exam_type: ExamType
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    exam_date: date
    start_time: str
    end_time: str
    duration: int = Field(ge=30, le=480)
    room: Optional[str] = None
    building: Optional[str] = None
    max_marks: int = Field(ge=1)
    passing_marks: Optional[int] = Field(default=None, ge=0)
    status: ExamStatus = "scheduled"

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        parse_hhmm(v)
        return v.strip()

    @field_validator("room")
    @classmethod
    def _room(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class ExamCreate(ExamBase):
    @model_validator(mode="after")
    def _check(self):
        _check_window(self.start_time, self.end_time)
        return self


class ExamUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: Optional[str] = None
    semester_number: Optional[int] = Field(default=None, ge=1, le=8)
    exam_type: Optional[ExamType] = None
    title: Optional[str] = None
    description: Optional[str] = None
    exam_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=30, le=480)
    room: Optional[str] = None
    building: Optional[str] = None
    max_marks: Optional[int] = Field(default=None, ge=1)
    passing_marks: Optional[int] = Field(default=None, ge=0)
    status: Optional[ExamStatus] = None

    @field_validator(
        "semester_number", "exam_type", "title", "exam_date", "start_time", "end_time",
        "duration", "max_marks", "status",
        mode="before",
    )
    @classmethod
    def _not_null(cls, v):
        # omit the field to keep it; null is not a value for these columns
        if v is None:
            raise ValueError("field cannot be null")
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        parse_hhmm(v)
        return v.strip()


class ExamOut(ExamBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class ExamListOut(BaseModel):
    items: List[ExamOut]
    total: int
    page: int
    page_size: int


class ConflictCheckOut(BaseModel):
    has_conflict: bool
    conflicts: List[ExamOut]
