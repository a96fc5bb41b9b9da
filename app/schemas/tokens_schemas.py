from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field


class TokenBatchRequest(BaseModel):
    term_id: UUID
    quantity: int = Field(10, ge=1)


class TokenResponse(BaseModel):
    id: UUID
    code: str
    term_id: UUID
    is_used: bool
    used_by_student_id: Optional[UUID] = None
    used_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TokenStats(BaseModel):
    total: int
    used: int
    unused: int
