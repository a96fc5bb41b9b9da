from typing import List, Optional, Tuple
from uuid import UUID
from sqlalchemy.orm import Session

from app.models.all_models import Result, ResultStatus, SchoolClass, Student


def get_result(db: Session, result_id: UUID) -> Optional[Result]:
    return db.query(Result).filter(Result.id == result_id).first()


def get_result_for_update(db: Session, result_id: UUID) -> Optional[Result]:
    """Load a result under a row lock (no-op on SQLite, which serializes writers)"""
    return (
        db.query(Result)
        .filter(Result.id == result_id)
        .populate_existing()
        .with_for_update()
        .first()
    )


def find_result(db: Session, student_id: UUID, subject_id: UUID,
                assessment_id: UUID, term_id: UUID) -> Optional[Result]:
    return db.query(Result).filter(
        Result.student_id == student_id,
        Result.subject_id == subject_id,
        Result.assessment_id == assessment_id,
        Result.term_id == term_id
    ).first()


def list_results(
    db: Session,
    term_id: UUID = None,
    status: ResultStatus = None,
    student_id: UUID = None,
    subject_id: UUID = None,
    submitted_by: UUID = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Result]:
    query = db.query(Result)

    if term_id:
        query = query.filter(Result.term_id == term_id)
    if status:
        query = query.filter(Result.status == status)
    if student_id:
        query = query.filter(Result.student_id == student_id)
    if subject_id:
        query = query.filter(Result.subject_id == subject_id)
    if submitted_by:
        query = query.filter(Result.submitted_by == submitted_by)

    return query.order_by(Result.created_at.desc(), Result.id).offset(skip).limit(limit).all()


def approved_results_snapshot(db: Session, term_id: UUID) -> List[Tuple[Result, Student, Optional[str]]]:
    """Approved results of a term with their students and class names, read by one SELECT"""
    return (
        db.query(Result, Student, SchoolClass.name)
        .join(Student, Student.id == Result.student_id)
        .outerjoin(SchoolClass, SchoolClass.id == Student.class_id)
        .filter(Result.term_id == term_id, Result.status == ResultStatus.APPROVED)
        .all()
    )


def approved_results_for_student(db: Session, student_id: UUID, term_id: UUID) -> List[Result]:
    return (
        db.query(Result)
        .filter(
            Result.student_id == student_id,
            Result.term_id == term_id,
            Result.status == ResultStatus.APPROVED
        )
        .all()
    )
