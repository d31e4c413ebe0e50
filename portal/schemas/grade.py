from datetime import datetime
from typing import Dict, List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, model_validator

ComponentName = Literal["midterm", "final", "practical", "quiz", "assignment", "project", "attendance"]


class GradeComponentIn(BaseModel):
    name: ComponentName
    weight: float = Field(ge=0, le=100)
    score: Optional[float] = Field(default=None, ge=0)
    max_score: float = Field(default=100, gt=0)

    @model_validator(mode="after")
    def _score_within_max(self):
        if self.score is not None and self.score > self.max_score:
            raise ValueError("score cannot exceed max_score")
        return self


def _unique_names(components: List[GradeComponentIn]):
    names = [c.name for c in components]
    if len(names) != len(set(names)):
        raise ValueError("component names must be unique")


class GradeCreate(BaseModel):
    student_id: int
    course_id: int
    semester_id: int
    components: List[GradeComponentIn] = Field(default_factory=list)
    remarks: Optional[str] = None

    @model_validator(mode="after")
    def _check_components(self):
        _unique_names(self.components)
        return self


class GradeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # replaces matching components by name, adds new ones, keeps the rest
    components: Optional[List[GradeComponentIn]] = None
    remarks: Optional[str] = None

    @model_validator(mode="after")
    def _check_components(self):
        if self.components:
            _unique_names(self.components)
        return self


class ComponentRecordIn(BaseModel):
    student_id: int
    course_id: int
    semester_id: int
    component: GradeComponentIn


class GradeComponentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    weight: float
    score: Optional[float] = None
    max_score: float


class GradeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    course_id: int
    semester_id: int
    components: List[GradeComponentOut] = []
    total_score: float
    grade: str
    grade_point: int
    status: str
    graded_by: Optional[int] = None
    graded_at: Optional[datetime] = None
    remarks: Optional[str] = None


class StudentGradesOut(BaseModel):
    student_id: int
    grades: List[GradeOut]
    sgpa: Optional[float] = None
    cgpa: float
    semesters: Dict[int, Dict[str, float]] = {}
    total_grades: int


class CourseGradeStats(BaseModel):
    total_students: int
    average_score: float
    highest_score: float
    lowest_score: float
    grade_distribution: Dict[str, int]


class CourseGradesOut(BaseModel):
    grades: List[GradeOut]
    stats: CourseGradeStats


class BulkGradesIn(BaseModel):
    grades: List[Dict] = Field(min_length=1)


class BulkGradeResult(BaseModel):
    action: Literal["created", "updated"]
    grade: GradeOut


class BulkGradeError(BaseModel):
    data: Dict
    error: str


class BulkGradesOut(BaseModel):
    results: List[BulkGradeResult]
    errors: List[BulkGradeError]
    created: int
    updated: int
    failed: int
