import logging
from datetime import date
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud import academics as academics_crud
from app.exceptions import TermNotFound, ValidationError
from app.models.all_models import Result, Term, TermArchive
from app.services.audit import AuditRecorder, snapshot
from app.utils.store import retry_once
from app.utils.system_utils import local_now

logger = logging.getLogger(__name__)


class TermService:
    """Term creation and the switch of the school's current term"""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.audit = AuditRecorder(db_session)

    def list_terms(self) -> List[Term]:
        return self.db.query(Term).order_by(Term.start_date.desc(), Term.name).all()

    @retry_once
    def create_term(self, name: str, academic_year: str, start_date: date, end_date: date,
                    actor_id: UUID) -> Term:
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date")

        term = Term(
            id=uuid4(),
            name=name,
            academic_year=academic_year,
            start_date=start_date,
            end_date=end_date,
            is_current=False
        )
        try:
            self.db.add(term)
            self.db.flush()
            self.audit.record_insert(actor_id, term, reason="Term created")
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ValidationError(f"Term {name} already exists for {academic_year}") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(term)
        logger.info(f"Term {term.id} ({name} {academic_year}) created by {actor_id}")
        return term

    @retry_once
    def set_current_term(self, term_id: UUID, actor_id: UUID, reason: Optional[str] = None) -> Term:
        """Make a term current, archiving the counts of the term it replaces"""
        try:
            term = academics_crud.get_term(self.db, term_id)
            if term is None:
                raise TermNotFound()
            if term.is_current:
                return term

            previous = self.db.query(Term).filter(Term.is_current.is_(True)).with_for_update().first()
            if previous is not None:
                self._archive(previous)
                old_value = snapshot(previous)
                previous.is_current = False
                previous.updated_at = local_now()
                # the partial unique index allows only one current row at flush time
                self.db.flush()
                self.audit.record_update(actor_id, previous, old_value, reason or "Term no longer current")

            old_value = snapshot(term)
            term.is_current = True
            term.updated_at = local_now()
            self.db.flush()
            self.audit.record_update(actor_id, term, old_value, reason or "Term set as current")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(term)
        logger.info(f"Term {term_id} is now current (set by {actor_id})")
        return term

    def _archive(self, term: Term) -> TermArchive:
        results_count, students_count = (
            self.db.query(func.count(Result.id), func.count(func.distinct(Result.student_id)))
            .filter(Result.term_id == term.id)
            .one()
        )
        archive = TermArchive(
            term_id=term.id,
            academic_year=term.academic_year,
            results_count=results_count,
            students_count=students_count,
            archived_at=local_now()
        )
        self.db.add(archive)
        return archive
