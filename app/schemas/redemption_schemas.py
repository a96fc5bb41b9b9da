from enum import Enum
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_serializer, field_validator

from app.utils.grading import display_round


class RedemptionStatus(str, Enum):
    SUCCESS = "success"
    TOKEN_NOT_FOUND = "token_not_found"
    TOKEN_ALREADY_USED = "token_already_used"
    STUDENT_NOT_FOUND = "student_not_found"
    TERM_NOT_FOUND = "term_not_found"


class RedemptionRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    student_id: str = Field(..., min_length=1, max_length=64, description="Student code or student id")
    term_id: UUID

    @field_validator('code')
    def normalize_code(cls, v):
        return v.strip().upper()


class RedeemedResult(BaseModel):
    subject: str
    assessment: str
    score: float
    max_score: float
    percentage: float
    letter_grade: str

    @field_serializer('percentage')
    def round_percentage(self, v: float) -> float:
        return display_round(v)


class RedemptionOutcome(BaseModel):
    status: RedemptionStatus
    student_name: Optional[str] = None
    student_code: Optional[str] = None
    term_id: Optional[UUID] = None
    results: List[RedeemedResult] = []

    @property
    def succeeded(self) -> bool:
        return self.status == RedemptionStatus.SUCCESS


class RedemptionResponse(BaseModel):
    student_name: str
    student_code: str
    term_id: UUID
    results: List[RedeemedResult]
