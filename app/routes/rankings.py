from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID

from app.database import get_db
from app.models.all_models import User
from app.schemas.ranking_schemas import RankingReport
from app.services.ranking import build_term_rankings
from app.utils.auth import require_capability
from app.utils.permissions import Capability

router = APIRouter(prefix="/api/rankings", tags=["Position & Ranking"])


@router.get("/{term_id}", response_model=RankingReport)
def get_term_rankings(
    term_id: UUID,
    class_id: UUID = None,
    current_user: User = Depends(require_capability(Capability.POSITION_RANKING)),
    db: Session = Depends(get_db)
):
    """
    Positions and letter grades of every student with approved results in the term,
    recomputed on each call. Pass class_id for positions within one class.
    """
    return build_term_rankings(db, term_id, class_id)
