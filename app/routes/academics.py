from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List
import uuid

from app.crud import academics as academics_crud
from app.database import get_db
from app.models.all_models import Assessment, SchoolClass, Student, StudentStatus, Subject, User
from app.schemas.academics_schemas import (AssessmentCreate, AssessmentResponse, SchoolClassCreate, SchoolClassResponse,
                                           StudentCreate, StudentResponse, SubjectCreate, SubjectResponse)
from app.utils.auth import get_current_user, require_capability
from app.utils.permissions import Capability

router = APIRouter(prefix="/api/academics", tags=["academics"])


def _save(db: Session, record, conflict_detail: str):
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=conflict_detail
        )
    db.refresh(record)
    return record


# Class Endpoints
@router.post("/classes/", response_model=SchoolClassResponse, status_code=status.HTTP_201_CREATED)
def create_class(
    school_class: SchoolClassCreate,
    current_user: User = Depends(require_capability(Capability.CLASS_SUBJECT_SETUP)),
    db: Session = Depends(get_db)
):
    db_class = SchoolClass(id=uuid.uuid4(), name=school_class.name, description=school_class.description)
    return _save(db, db_class, "Class with this name already exists")

@router.get("/classes/", response_model=List[SchoolClassResponse])
def get_classes(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return db.query(SchoolClass).order_by(SchoolClass.name).all()


# Subject Endpoints
@router.post("/subjects/", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
def create_subject(
    subject: SubjectCreate,
    current_user: User = Depends(require_capability(Capability.CLASS_SUBJECT_SETUP)),
    db: Session = Depends(get_db)
):
    db_subject = Subject(
        id=uuid.uuid4(),
        name=subject.name,
        code=subject.code,
        description=subject.description
    )
    return _save(db, db_subject, "Subject with this name or code already exists")

@router.get("/subjects/", response_model=List[SubjectResponse])
def get_subjects(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return db.query(Subject).order_by(Subject.name).all()


# Assessment Endpoints
@router.post("/assessments/", response_model=AssessmentResponse, status_code=status.HTTP_201_CREATED)
def create_assessment(
    assessment: AssessmentCreate,
    current_user: User = Depends(require_capability(Capability.CLASS_SUBJECT_SETUP)),
    db: Session = Depends(get_db)
):
    db_assessment = Assessment(
        id=uuid.uuid4(),
        name=assessment.name,
        type=assessment.type,
        max_score=assessment.max_score,
        weight=assessment.weight
    )
    return _save(db, db_assessment, "Assessment could not be created")

@router.get("/assessments/", response_model=List[AssessmentResponse])
def get_assessments(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return db.query(Assessment).order_by(Assessment.type, Assessment.name).all()


# Student Endpoints
@router.post("/students/", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
def create_student(
    student: StudentCreate,
    current_user: User = Depends(require_capability(Capability.STUDENT_MANAGEMENT)),
    db: Session = Depends(get_db)
):
    if student.class_id and academics_crud.get_class(db, student.class_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Class with id {student.class_id} not found"
        )

    db_student = Student(
        id=uuid.uuid4(),
        student_code=student.student_code.strip(),
        first_name=student.first_name,
        last_name=student.last_name,
        class_id=student.class_id,
        status=StudentStatus.ACTIVE
    )
    return _save(db, db_student, "Student with this code already exists")

@router.get("/students/", response_model=List[StudentResponse])
def get_students(
    class_id: uuid.UUID = None,
    student_status: StudentStatus = None,
    limit: int = 100,
    skip: int = 0,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return academics_crud.list_students(db, class_id=class_id, status=student_status, skip=skip, limit=limit)
