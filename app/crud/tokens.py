from typing import Dict, List, Optional
from uuid import UUID
from datetime import datetime
from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.models.all_models import RedemptionToken


def get_token_by_code(db: Session, code: str) -> Optional[RedemptionToken]:
    return db.query(RedemptionToken).filter(RedemptionToken.code == code).first()


def codes_in_use(db: Session, codes: List[str]) -> List[str]:
    rows = db.query(RedemptionToken.code).filter(RedemptionToken.code.in_(codes)).all()
    return [row.code for row in rows]


def consume_token(db: Session, token_id: UUID, student_id: UUID, used_at: datetime) -> bool:
    """Mark a token used only if it is still unused, as one conditional UPDATE.

    Returns True for the single caller whose statement flipped the flag.
    The caller owns the transaction.
    """
    stmt = (
        update(RedemptionToken)
        .where(RedemptionToken.id == token_id, RedemptionToken.is_used.is_(False))
        .values(is_used=True, used_by_student_id=student_id, used_at=used_at)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    return result.rowcount == 1


def list_tokens(db: Session, term_id: UUID = None, is_used: bool = None,
                skip: int = 0, limit: int = 100) -> List[RedemptionToken]:
    query = db.query(RedemptionToken)

    if term_id:
        query = query.filter(RedemptionToken.term_id == term_id)
    if is_used is not None:
        query = query.filter(RedemptionToken.is_used.is_(is_used))

    return query.order_by(RedemptionToken.created_at.desc(), RedemptionToken.code).offset(skip).limit(limit).all()


def token_stats(db: Session, term_id: UUID = None) -> Dict[str, int]:
    query = db.query(RedemptionToken.is_used, func.count(RedemptionToken.id))
    if term_id:
        query = query.filter(RedemptionToken.term_id == term_id)

    counts = {bool(is_used): count for is_used, count in query.group_by(RedemptionToken.is_used).all()}
    used = counts.get(True, 0)
    unused = counts.get(False, 0)
    return {"total": used + unused, "used": used, "unused": unused}
