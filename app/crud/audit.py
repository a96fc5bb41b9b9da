from datetime import datetime
from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import InvalidArgument
from app.models.all_models import AuditAction, AuditLogEntry
from app.utils.store import retry_once_with_session
from app.utils.system_utils import to_local


@retry_once_with_session
def list_audit_log(
    db: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    actor_id: Optional[UUID] = None,
    table_name: Optional[str] = None,
    action_type: Optional[AuditAction] = None,
    record_id: Optional[UUID] = None,
    page: int = 1,
    page_size: int = 50,
) -> List[AuditLogEntry]:
    """Read-only, newest-first page of audit entries matching every given filter"""
    if page < 1:
        raise InvalidArgument("page must be 1 or greater")
    if page_size < 1 or page_size > settings.AUDIT_PAGE_SIZE_MAX:
        raise InvalidArgument(f"page_size must be between 1 and {settings.AUDIT_PAGE_SIZE_MAX}")
    # entries carry the school's wall clock
    start = to_local(start) if start else None
    end = to_local(end) if end else None
    if start and end and start > end:
        raise InvalidArgument("start must not be after end")

    query = db.query(AuditLogEntry)

    if start:
        query = query.filter(AuditLogEntry.created_at >= start)
    if end:
        query = query.filter(AuditLogEntry.created_at <= end)
    if actor_id:
        query = query.filter(AuditLogEntry.actor_id == actor_id)
    if table_name:
        query = query.filter(AuditLogEntry.table_name == table_name)
    if action_type:
        query = query.filter(AuditLogEntry.action_type == action_type)
    if record_id:
        query = query.filter(AuditLogEntry.record_id == record_id)

    return (
        query.order_by(AuditLogEntry.created_at.desc(), AuditLogEntry.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
