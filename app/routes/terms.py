from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from app.crud import academics as academics_crud
from app.database import get_db
from app.exceptions import TermNotFound
from app.models.all_models import User
from app.schemas.academics_schemas import SetCurrentTermRequest, TermCreate, TermResponse
from app.services.terms import TermService
from app.utils.auth import get_current_user, require_capability
from app.utils.permissions import Capability

router = APIRouter(prefix="/api/terms", tags=["terms"])


@router.post("", response_model=TermResponse, status_code=status.HTTP_201_CREATED)
def create_term(term: TermCreate, current_user: User = Depends(require_capability(Capability.SETTINGS)),
                db: Session = Depends(get_db)):
    return TermService(db).create_term(
        name=term.name,
        academic_year=term.academic_year,
        start_date=term.start_date,
        end_date=term.end_date,
        actor_id=current_user.id
    )


@router.get("", response_model=List[TermResponse])
def get_terms(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return TermService(db).list_terms()


@router.get("/{term_id}", response_model=TermResponse)
def get_term(term_id: UUID, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    term = academics_crud.get_term(db, term_id)
    if term is None:
        raise TermNotFound()
    return term


@router.post("/{term_id}/set-current", response_model=TermResponse)
def set_current_term(term_id: UUID, data: SetCurrentTermRequest = None,
                     current_user: User = Depends(require_capability(Capability.SETTINGS)),
                     db: Session = Depends(get_db)):
    reason = data.reason if data else None
    return TermService(db).set_current_term(term_id, current_user.id, reason)
