from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.redemption_schemas import RedemptionRequest, RedemptionResponse, RedemptionStatus
from app.services.redemption import RedemptionService

router = APIRouter(prefix="/api/redemption", tags=["Result Checker"])

# shared by every credential failure
INVALID_CREDENTIALS_DETAIL = "Invalid code or student details"


@router.post("", response_model=RedemptionResponse)
def redeem_token(data: RedemptionRequest, db: Session = Depends(get_db)):
    """
    Spend a scratch card to view a student's approved results for a term.
    No login required; the card is the credential.
    """
    outcome = RedemptionService(db).redeem(data.code, data.student_id, data.term_id)

    if outcome.status == RedemptionStatus.TERM_NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Term not found")
    if not outcome.succeeded:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=INVALID_CREDENTIALS_DETAIL)

    return RedemptionResponse(
        student_name=outcome.student_name,
        student_code=outcome.student_code,
        term_id=outcome.term_id,
        results=outcome.results
    )
