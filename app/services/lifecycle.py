import logging
import math
from typing import Callable, List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud import academics as academics_crud
from app.crud import results as results_crud
from app.exceptions import (InvalidTransition, NotFoundError, PermissionDenied, ResultNotFound,
                            ValidationError)
from app.models.all_models import Result, ResultStatus
from app.services.audit import AuditRecorder, snapshot
from app.utils.store import retry_once
from app.utils.system_utils import local_now

logger = logging.getLogger(__name__)


def check_score(score: float, max_score: float) -> None:
    if max_score is None or not math.isfinite(max_score) or max_score <= 0:
        raise ValidationError("max_score must be greater than zero")
    if score is None or not math.isfinite(score) or score < 0 or score > max_score:
        raise ValidationError(f"score must be between 0 and {max_score:g}")


class ResultLifecycleService:
    """Owns every state change of a Result.

    Pending -> Approved | Rejected, Approved -> Rejected, Rejected -> Approved | Pending.
    Each change and its audit entry are committed together or not at all.
    """

    def __init__(self, db_session: Session):
        self.db = db_session
        self.audit = AuditRecorder(db_session)

    @retry_once
    def submit(self, student_id: UUID, subject_id: UUID, term_id: UUID, assessment_id: UUID,
               score: float, teacher_id: UUID, max_score: Optional[float] = None,
               remarks: Optional[str] = None) -> Result:
        """Record a teacher's score as a Pending result"""
        if academics_crud.get_student(self.db, student_id) is None:
            raise ValidationError(f"Student {student_id} does not exist")
        if academics_crud.get_subject(self.db, subject_id) is None:
            raise ValidationError(f"Subject {subject_id} does not exist")
        if academics_crud.get_term(self.db, term_id) is None:
            raise ValidationError(f"Term {term_id} does not exist")
        assessment = academics_crud.get_assessment(self.db, assessment_id)
        if assessment is None:
            raise ValidationError(f"Assessment {assessment_id} does not exist")

        if max_score is None:
            max_score = assessment.max_score
        check_score(score, max_score)

        if results_crud.find_result(self.db, student_id, subject_id, assessment_id, term_id):
            raise ValidationError("A result already exists for this student, subject, assessment and term")

        now = local_now()
        result = Result(
            id=uuid4(),
            student_id=student_id,
            subject_id=subject_id,
            term_id=term_id,
            assessment_id=assessment_id,
            score=float(score),
            max_score=float(max_score),
            status=ResultStatus.PENDING,
            remarks=remarks,
            submitted_by=teacher_id,
            created_at=now,
            updated_at=now
        )
        try:
            self.db.add(result)
            self.db.flush()
            self.audit.record_insert(teacher_id, result, reason="Result submitted")
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError("A result already exists for this student, subject, assessment and term") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(result)
        logger.info(f"Result {result.id} submitted by {teacher_id} for student {student_id}")
        return result

    @retry_once
    def approve(self, result_id: UUID, approver_id: UUID, reason: Optional[str] = None) -> Result:
        def apply(result: Result):
            if result.status == ResultStatus.APPROVED:
                raise InvalidTransition("Result is already approved")
            if result.submitted_by == approver_id:
                raise InvalidTransition("A result cannot be approved by the teacher who submitted it")
            result.status = ResultStatus.APPROVED
            result.approved_by = approver_id
            result.approved_at = local_now()

        result = self._transition(result_id, approver_id, apply, reason or "Result approved")
        logger.info(f"Result {result_id} approved by {approver_id}")
        return result

    @retry_once
    def reject(self, result_id: UUID, approver_id: UUID, reason: Optional[str] = None) -> Result:
        def apply(result: Result):
            if result.status == ResultStatus.REJECTED:
                raise InvalidTransition("Result is already rejected")
            result.status = ResultStatus.REJECTED
            result.approved_by = None
            result.approved_at = None

        result = self._transition(result_id, approver_id, apply, reason or "Result rejected")
        logger.info(f"Result {result_id} rejected by {approver_id}")
        return result

    @retry_once
    def amend(self, result_id: UUID, new_score: float, reason: str, teacher_id: UUID) -> Result:
        """Correct the score of a teacher's own result while it is still Pending"""
        if not reason or not reason.strip():
            raise ValidationError("A reason is required to amend a result")

        def apply(result: Result):
            if result.status != ResultStatus.PENDING:
                raise InvalidTransition(
                    f"Only pending results can be amended; this result is {result.status.value.lower()}"
                )
            if result.submitted_by != teacher_id:
                raise PermissionDenied("Only the submitting teacher can amend this result")
            check_score(new_score, result.max_score)
            result.score = float(new_score)

        result = self._transition(result_id, teacher_id, apply, reason.strip())
        logger.info(f"Result {result_id} amended by {teacher_id}")
        return result

    @retry_once
    def resubmit(self, result_id: UUID, teacher_id: UUID, new_score: Optional[float] = None,
                 reason: Optional[str] = None) -> Result:
        """Send a rejected result back for approval, optionally with a corrected score"""
        def apply(result: Result):
            if result.status != ResultStatus.REJECTED:
                raise InvalidTransition("Only rejected results can be resubmitted")
            if result.submitted_by != teacher_id:
                raise PermissionDenied("Only the submitting teacher can resubmit this result")
            if new_score is not None:
                check_score(new_score, result.max_score)
                result.score = float(new_score)
            result.status = ResultStatus.PENDING

        result = self._transition(result_id, teacher_id, apply, reason or "Result resubmitted")
        logger.info(f"Result {result_id} resubmitted by {teacher_id}")
        return result

    def bulk_approve(self, result_ids: List[UUID], approver_id: UUID,
                     reason: Optional[str] = None) -> Tuple[List[Result], List[Tuple[UUID, str]]]:
        """Approve each result in its own transaction; refusals are reported, not raised"""
        approved, skipped = [], []
        for result_id in dict.fromkeys(result_ids):
            try:
                approved.append(self.approve(result_id, approver_id, reason))
            except (InvalidTransition, NotFoundError) as e:
                skipped.append((result_id, e.message))
        logger.info(f"Bulk approval by {approver_id}: {len(approved)} approved, {len(skipped)} skipped")
        return approved, skipped

    def _transition(self, result_id: UUID, actor_id: UUID, apply: Callable[[Result], None],
                    reason: Optional[str]) -> Result:
        try:
            result = results_crud.get_result_for_update(self.db, result_id)
            if result is None:
                raise ResultNotFound()

            old_value = snapshot(result)
            apply(result)
            result.updated_at = local_now()
            self.db.flush()
            self.audit.record_update(actor_id, result, old_value, reason)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(result)
        return result
