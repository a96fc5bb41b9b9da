from datetime import datetime
from typing import Any, Optional
from uuid import UUID
from pydantic import BaseModel

from app.models.all_models import AuditAction


class AuditLogEntryResponse(BaseModel):
    id: UUID
    actor_id: UUID
    action_type: AuditAction
    table_name: str
    record_id: UUID
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
