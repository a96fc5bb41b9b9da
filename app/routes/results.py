from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from app.crud import results as results_crud
from app.database import get_db
from app.exceptions import ResultNotFound
from app.models.all_models import ResultStatus, User
from app.schemas.results_schemas import (BulkApproveRequest, BulkApproveResponse, ResultAmend, ResultResponse,
                                         ResultResubmit, ResultSubmit, SkippedResult, TransitionRequest)
from app.services.lifecycle import ResultLifecycleService
from app.utils.auth import require_capability
from app.utils.permissions import Capability, authorize

router = APIRouter(prefix="/api/results", tags=["results"])

can_upload = require_capability(Capability.RESULT_UPLOAD)
can_approve = require_capability(Capability.RESULT_APPROVAL)
can_view = require_capability(Capability.RESULT_UPLOAD, Capability.RESULT_APPROVAL)


def _visible_to(user: User, result) -> bool:
    return authorize(user.role, Capability.RESULT_APPROVAL) or result.submitted_by == user.id


@router.post("", response_model=ResultResponse, status_code=status.HTTP_201_CREATED)
def submit_result(data: ResultSubmit, current_user: User = Depends(can_upload), db: Session = Depends(get_db)):
    return ResultLifecycleService(db).submit(
        student_id=data.student_id,
        subject_id=data.subject_id,
        term_id=data.term_id,
        assessment_id=data.assessment_id,
        score=data.score,
        max_score=data.max_score,
        remarks=data.remarks,
        teacher_id=current_user.id
    )


@router.get("", response_model=List[ResultResponse])
def get_results(
    term_id: UUID = None,
    result_status: ResultStatus = None,
    student_id: UUID = None,
    subject_id: UUID = None,
    limit: int = 100,
    skip: int = 0,
    current_user: User = Depends(can_view),
    db: Session = Depends(get_db)
):
    # teachers without approval rights only see what they submitted
    submitted_by = None if authorize(current_user.role, Capability.RESULT_APPROVAL) else current_user.id
    return results_crud.list_results(
        db,
        term_id=term_id,
        status=result_status,
        student_id=student_id,
        subject_id=subject_id,
        submitted_by=submitted_by,
        skip=skip,
        limit=limit
    )


@router.get("/{result_id}", response_model=ResultResponse)
def get_result(result_id: UUID, current_user: User = Depends(can_view), db: Session = Depends(get_db)):
    result = results_crud.get_result(db, result_id)
    if result is None or not _visible_to(current_user, result):
        raise ResultNotFound()
    return result


@router.post("/bulk-approve", response_model=BulkApproveResponse)
def bulk_approve_results(data: BulkApproveRequest, current_user: User = Depends(can_approve),
                         db: Session = Depends(get_db)):
    approved, skipped = ResultLifecycleService(db).bulk_approve(data.result_ids, current_user.id, data.reason)
    return BulkApproveResponse(
        approved=[ResultResponse.model_validate(result) for result in approved],
        skipped=[SkippedResult(result_id=result_id, reason=reason) for result_id, reason in skipped]
    )


@router.post("/{result_id}/approve", response_model=ResultResponse)
def approve_result(result_id: UUID, data: TransitionRequest = None, current_user: User = Depends(can_approve),
                   db: Session = Depends(get_db)):
    reason = data.reason if data else None
    return ResultLifecycleService(db).approve(result_id, current_user.id, reason)


@router.post("/{result_id}/reject", response_model=ResultResponse)
def reject_result(result_id: UUID, data: TransitionRequest = None, current_user: User = Depends(can_approve),
                  db: Session = Depends(get_db)):
    reason = data.reason if data else None
    return ResultLifecycleService(db).reject(result_id, current_user.id, reason)


@router.patch("/{result_id}", response_model=ResultResponse)
def amend_result(result_id: UUID, data: ResultAmend, current_user: User = Depends(can_upload),
                 db: Session = Depends(get_db)):
    return ResultLifecycleService(db).amend(result_id, data.score, data.reason, current_user.id)


@router.post("/{result_id}/resubmit", response_model=ResultResponse)
def resubmit_result(result_id: UUID, data: ResultResubmit, current_user: User = Depends(can_upload),
                    db: Session = Depends(get_db)):
    return ResultLifecycleService(db).resubmit(result_id, current_user.id, data.score, data.reason)
