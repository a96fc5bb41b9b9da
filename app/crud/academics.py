from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from app.models.all_models import Assessment, SchoolClass, Student, StudentStatus, Subject, Term


def get_student(db: Session, student_id: UUID) -> Optional[Student]:
    return db.query(Student).filter(Student.id == student_id).first()


def resolve_student(db: Session, student_ref: str) -> Optional[Student]:
    """Find a student by their school-issued code, or by id when the reference is a UUID"""
    if student_ref is None:
        return None
    ref = str(student_ref).strip()
    student = db.query(Student).filter(Student.student_code == ref).first()
    if student:
        return student
    try:
        student_uuid = UUID(ref)
    except ValueError:
        return None
    return get_student(db, student_uuid)


def get_term(db: Session, term_id: UUID) -> Optional[Term]:
    return db.query(Term).filter(Term.id == term_id).first()


def get_subject(db: Session, subject_id: UUID) -> Optional[Subject]:
    return db.query(Subject).filter(Subject.id == subject_id).first()


def get_assessment(db: Session, assessment_id: UUID) -> Optional[Assessment]:
    return db.query(Assessment).filter(Assessment.id == assessment_id).first()


def get_class(db: Session, class_id: UUID) -> Optional[SchoolClass]:
    return db.query(SchoolClass).filter(SchoolClass.id == class_id).first()


def list_students(db: Session, class_id: UUID = None, status: StudentStatus = None,
                  skip: int = 0, limit: int = 100) -> List[Student]:
    query = db.query(Student)

    if class_id:
        query = query.filter(Student.class_id == class_id)
    if status:
        query = query.filter(Student.status == status)

    return query.order_by(Student.last_name, Student.first_name).offset(skip).limit(limit).all()
