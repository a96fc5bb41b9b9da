from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from app.crud.audit import list_audit_log
from app.database import get_db
from app.models.all_models import AuditAction, User
from app.schemas.audit_schemas import AuditLogEntryResponse
from app.utils.auth import require_capability
from app.utils.permissions import Capability

router = APIRouter(prefix="/api/audit-logs", tags=["Audit Logs"])


@router.get("", response_model=List[AuditLogEntryResponse])
def get_audit_logs(
    start: datetime = None,
    end: datetime = None,
    actor_id: UUID = None,
    table_name: str = None,
    action_type: AuditAction = None,
    record_id: UUID = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1),
    current_user: User = Depends(require_capability(Capability.AUDIT_LOG)),
    db: Session = Depends(get_db)
):
    """
    Who changed what, from what value, to what value, and why. Newest first.
    """
    return list_audit_log(
        db,
        start=start,
        end=end,
        actor_id=actor_id,
        table_name=table_name,
        action_type=action_type,
        record_id=record_id,
        page=page,
        page_size=page_size
    )
