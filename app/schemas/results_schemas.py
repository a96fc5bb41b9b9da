from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, Field

from app.models.all_models import ResultStatus


class ResultSubmit(BaseModel):
    student_id: UUID
    subject_id: UUID
    term_id: UUID
    assessment_id: UUID
    score: float
    max_score: Optional[float] = None
    remarks: Optional[str] = None


class ResultAmend(BaseModel):
    score: float
    reason: str = Field(..., min_length=1)


class ResultResubmit(BaseModel):
    score: Optional[float] = None
    reason: Optional[str] = None


class TransitionRequest(BaseModel):
    reason: Optional[str] = None


class BulkApproveRequest(BaseModel):
    result_ids: List[UUID] = Field(..., min_length=1)
    reason: Optional[str] = None


class ResultResponse(BaseModel):
    id: UUID
    student_id: UUID
    subject_id: UUID
    term_id: UUID
    assessment_id: UUID
    score: float
    max_score: float
    status: ResultStatus
    remarks: Optional[str] = None
    submitted_by: UUID
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SkippedResult(BaseModel):
    result_id: UUID
    reason: str


class BulkApproveResponse(BaseModel):
    approved: List[ResultResponse]
    skipped: List[SkippedResult]
