from typing import Optional
from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from uuid import UUID

from app.models.all_models import AssessmentType, StudentStatus


class TermBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    academic_year: str
    start_date: date
    end_date: date

    @field_validator('academic_year')
    def validate_academic_year(cls, v):
        if len(v) != 9 or not v[:4].isdigit() or not v[5:].isdigit() or v[4] not in "-/":
            raise ValueError('Academic year must be in format "YYYY-YYYY" or "YYYY/YYYY"')
        if int(v[5:]) != int(v[:4]) + 1:
            raise ValueError('Academic year must span two consecutive years')
        return v

class TermCreate(TermBase):
    pass

class TermResponse(TermBase):
    id: UUID
    is_current: bool
    created_at: datetime

    class Config:
        from_attributes = True

class SetCurrentTermRequest(BaseModel):
    reason: Optional[str] = None


class SchoolClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None

class SchoolClassResponse(SchoolClassCreate):
    id: UUID

    class Config:
        from_attributes = True


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: Optional[str] = Field(None, max_length=10)
    description: Optional[str] = None

class SubjectResponse(SubjectCreate):
    id: UUID

    class Config:
        from_attributes = True


class AssessmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: AssessmentType
    max_score: float = Field(100, gt=0)
    weight: float = Field(0, ge=0, le=100)

class AssessmentResponse(AssessmentCreate):
    id: UUID

    class Config:
        from_attributes = True


class StudentCreate(BaseModel):
    student_code: str = Field(..., min_length=1, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    class_id: Optional[UUID] = None

class StudentResponse(StudentCreate):
    id: UUID
    status: StudentStatus

    class Config:
        from_attributes = True
