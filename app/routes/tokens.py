from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from app.crud import tokens as tokens_crud
from app.database import get_db
from app.models.all_models import User
from app.schemas.tokens_schemas import TokenBatchRequest, TokenResponse, TokenStats
from app.services.tokens import TokenService
from app.utils.auth import require_capability
from app.utils.permissions import Capability

router = APIRouter(prefix="/api/tokens", tags=["Scratch Cards"])

can_manage_tokens = require_capability(Capability.SCRATCH_CARD_GENERATOR)


@router.post("", response_model=List[TokenResponse], status_code=status.HTTP_201_CREATED)
def generate_tokens(data: TokenBatchRequest, current_user: User = Depends(can_manage_tokens),
                    db: Session = Depends(get_db)):
    return TokenService(db).generate_tokens(data.term_id, data.quantity, current_user.id)


@router.get("", response_model=List[TokenResponse])
def get_tokens(
    term_id: UUID = None,
    is_used: bool = None,
    limit: int = 100,
    skip: int = 0,
    current_user: User = Depends(can_manage_tokens),
    db: Session = Depends(get_db)
):
    return tokens_crud.list_tokens(db, term_id=term_id, is_used=is_used, skip=skip, limit=limit)


@router.get("/stats", response_model=TokenStats)
def get_token_stats(term_id: UUID = None, current_user: User = Depends(can_manage_tokens),
                    db: Session = Depends(get_db)):
    return tokens_crud.token_stats(db, term_id)
