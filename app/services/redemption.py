import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.crud import academics as academics_crud
from app.crud import results as results_crud
from app.crud import tokens as tokens_crud
from app.models.all_models import AuditAction, RedemptionToken, Student
from app.schemas.redemption_schemas import RedeemedResult, RedemptionOutcome, RedemptionStatus
from app.services.audit import AuditRecorder
from app.utils.grading import letter_grade, percentage_of
from app.utils.store import retry_once
from app.utils.system_utils import local_now, mask_code

logger = logging.getLogger(__name__)


class RedemptionService:
    """Releases a student's approved results in exchange for a single-use token."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.audit = AuditRecorder(db_session)

    @retry_once
    def redeem(self, code: str, student_ref: str, term_id: UUID) -> RedemptionOutcome:
        code = (code or "").strip().upper()

        if academics_crud.get_term(self.db, term_id) is None:
            return self._refuse(RedemptionStatus.TERM_NOT_FOUND, code, term_id)

        token = tokens_crud.get_token_by_code(self.db, code)
        if token is None or token.term_id != term_id:
            return self._refuse(RedemptionStatus.TOKEN_NOT_FOUND, code, term_id)

        student = academics_crud.resolve_student(self.db, student_ref)
        if student is None:
            return self._refuse(RedemptionStatus.STUDENT_NOT_FOUND, code, term_id)

        # The conditional write alone decides who wins; an earlier read of is_used proves nothing.
        outcome = self._consume(token.id, student, term_id)
        if outcome is None:
            return self._refuse(RedemptionStatus.TOKEN_ALREADY_USED, code, term_id)

        logger.info(f"Token {mask_code(code)} redeemed by student {student.id} for term {term_id}")
        return outcome

    def _consume(self, token_id: UUID, student: Student, term_id: UUID) -> Optional[RedemptionOutcome]:
        """Spend the token, audit it and read the results in one transaction.

        Returns None when another redemption already spent the token.
        """
        used_at = local_now()
        try:
            if not tokens_crud.consume_token(self.db, token_id, student.id, used_at):
                self.db.rollback()
                return None

            self.audit.record(
                actor_id=student.id,
                action_type=AuditAction.UPDATE,
                table_name=RedemptionToken.__tablename__,
                record_id=token_id,
                old_value={"is_used": False, "used_by_student_id": None, "used_at": None},
                new_value={"is_used": True, "used_by_student_id": str(student.id), "used_at": used_at.isoformat()},
                reason="Token redeemed",
            )
            outcome = RedemptionOutcome(
                status=RedemptionStatus.SUCCESS,
                student_name=student.full_name,
                student_code=student.student_code,
                term_id=term_id,
                results=self._approved_results(student.id, term_id),
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return outcome

    def _approved_results(self, student_id: UUID, term_id: UUID) -> List[RedeemedResult]:
        results = results_crud.approved_results_for_student(self.db, student_id, term_id)
        redeemed = []
        for result in results:
            percentage = percentage_of(result.score, result.max_score)
            redeemed.append(RedeemedResult(
                subject=result.subject.name,
                assessment=result.assessment.name,
                score=result.score,
                max_score=result.max_score,
                percentage=percentage,
                letter_grade=letter_grade(percentage),
            ))
        redeemed.sort(key=lambda r: (r.subject, r.assessment))
        return redeemed

    def _refuse(self, status: RedemptionStatus, code: str, term_id: UUID) -> RedemptionOutcome:
        logger.warning(f"Redemption refused ({status.value}) for token {mask_code(code)} in term {term_id}")
        return RedemptionOutcome(status=status)
