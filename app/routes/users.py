from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.models.all_models import User, UserRole
from app.schemas.auth import UserCreate, UserResponse
from app.utils.auth import get_password_hash, require_capability
from app.utils.permissions import Capability

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a staff account",
    description="Create a login for a principal, exam officer or teacher. Requires user management rights."
)
def create_user(
    user_data: UserCreate,
    current_user: User = Depends(require_capability(Capability.USER_MANAGEMENT)),
    db: Session = Depends(get_db)
):
    existing_user = db.query(User).filter(
        (func.lower(User.email) == func.lower(user_data.email)) | (User.username == user_data.username)
    ).first()

    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username or email already registered"
        )

    new_user = User(
        username=user_data.username,
        email=user_data.email,
        full_name=user_data.full_name,
        password_hash=get_password_hash(user_data.password),
        role=user_data.role,
        is_active=True
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    return new_user


@router.get("", response_model=List[UserResponse])
def list_users(
    role: Optional[UserRole] = None,
    skip: int = 0,
    limit: int = 100,
    current_user: User = Depends(require_capability(Capability.USER_MANAGEMENT)),
    db: Session = Depends(get_db)
):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    return query.order_by(User.username).offset(skip).limit(limit).all()
