from datetime import date, datetime
from typing import Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SemesterStatus = Literal["upcoming", "active", "completed"]


class SemesterBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    number: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)
    start_date: date
    end_date: date
    status: SemesterStatus = "upcoming"
    is_current: bool = False
    description: Optional[str] = None


class SemesterCreate(SemesterBase):
    @model_validator(mode="after")
    def _check_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class SemesterUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    number: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[SemesterStatus] = None
    is_current: Optional[bool] = None
    description: Optional[str] = None

    @field_validator("name", "number", "year", "start_date", "end_date", "status", "is_current", mode="before")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class SemesterOut(SemesterBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime
