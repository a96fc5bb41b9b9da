from typing import Any, Dict, Optional
from uuid import UUID
import logging

from pydantic_core import to_jsonable_python
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.models.all_models import AuditAction, AuditLogEntry
from app.utils.system_utils import local_now

logger = logging.getLogger(__name__)


def snapshot(record) -> Dict[str, Any]:
    """JSON-safe copy of every mapped column of an ORM record."""
    mapper = inspect(record).mapper
    values = {attr.key: getattr(record, attr.key) for attr in mapper.column_attrs}
    return to_jsonable_python(values)


class AuditRecorder:
    """Appends audit entries to the caller's unit of work.

    Nothing is committed here: the entry becomes durable with the mutation it
    describes, or not at all.
    """

    def __init__(self, db_session: Session):
        self.db = db_session

    def record(self, actor_id: UUID, action_type: AuditAction, table_name: str, record_id: UUID,
               old_value: Optional[dict] = None, new_value: Optional[dict] = None,
               reason: Optional[str] = None) -> AuditLogEntry:
        entry = AuditLogEntry(
            actor_id=actor_id,
            action_type=action_type,
            table_name=table_name,
            record_id=record_id,
            old_value=old_value,
            new_value=new_value,
            reason=reason,
            created_at=local_now()
        )
        self.db.add(entry)
        logger.debug(f"Audit {action_type.value} on {table_name}/{record_id} by {actor_id}")
        return entry

    def record_insert(self, actor_id: UUID, record, reason: Optional[str] = None) -> AuditLogEntry:
        return self.record(actor_id, AuditAction.INSERT, record.__tablename__, record.id,
                           new_value=snapshot(record), reason=reason)

    def record_update(self, actor_id: UUID, record, old_value: dict,
                      reason: Optional[str] = None) -> AuditLogEntry:
        return self.record(actor_id, AuditAction.UPDATE, record.__tablename__, record.id,
                           old_value=old_value, new_value=snapshot(record), reason=reason)
