from datetime import date
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.database import build_engine, get_db
from app.models.all_models import (Assessment, AssessmentType, Base, SchoolClass, Student, StudentStatus,
                                   Subject, Term, User, UserRole)
from app.services.lifecycle import ResultLifecycleService
from app.utils.auth import create_access_token, get_password_hash
from main import app

TEST_PASSWORD = "correct-horse-9"


@pytest.fixture(scope="session")
def password_hash():
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def engine(tmp_path):
    # a file database, so worker threads see each other's commits
    engine = build_engine(f"sqlite:///{tmp_path / 'results.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def _user(username, role, password_hash):
    return User(
        id=uuid4(),
        username=username,
        email=f"{username}@school.test",
        full_name=username.replace("_", " ").title(),
        password_hash=password_hash,
        role=role,
        is_active=True
    )


@pytest.fixture
def school(db, password_hash):
    """One current term, two classes, two subjects, two assessments, four students, one user per role."""
    term = Term(id=uuid4(), name="First Term", academic_year="2025/2026",
                start_date=date(2025, 9, 8), end_date=date(2025, 12, 12), is_current=True)
    other_term = Term(id=uuid4(), name="Second Term", academic_year="2025/2026",
                      start_date=date(2026, 1, 5), end_date=date(2026, 4, 2), is_current=False)
    jss1a = SchoolClass(id=uuid4(), name="JSS 1A")
    jss1b = SchoolClass(id=uuid4(), name="JSS 1B")
    maths = Subject(id=uuid4(), name="Mathematics", code="MTH")
    english = Subject(id=uuid4(), name="English Language", code="ENG")
    ca = Assessment(id=uuid4(), name="First CA", type=AssessmentType.CONTINUOUS_ASSESSMENT, max_score=40, weight=0.4)
    exam = Assessment(id=uuid4(), name="Exam", type=AssessmentType.END_OF_TERM_EXAM, max_score=100, weight=0.6)

    students = [
        Student(id=uuid4(), student_code=f"STU00{n}", first_name=first, last_name=last,
                class_id=school_class.id, status=StudentStatus.ACTIVE)
        for n, (first, last, school_class) in enumerate([
            ("Ada", "Okafor", jss1a),
            ("Bola", "Adeyemi", jss1a),
            ("Chidi", "Nwosu", jss1b),
            ("Dayo", "Bello", jss1b),
        ], start=1)
    ]

    users = {
        "principal": _user("principal", UserRole.PRINCIPAL, password_hash),
        "exam_officer": _user("exam_officer", UserRole.EXAM_OFFICER, password_hash),
        "form_teacher": _user("form_teacher", UserRole.FORM_TEACHER, password_hash),
        "teacher": _user("maths_teacher", UserRole.SUBJECT_TEACHER, password_hash),
        "other_teacher": _user("english_teacher", UserRole.SUBJECT_TEACHER, password_hash),
    }

    db.add_all([term, other_term, jss1a, jss1b, maths, english, ca, exam, *students, *users.values()])
    db.commit()

    return SimpleNamespace(
        term=term, other_term=other_term, jss1a=jss1a, jss1b=jss1b, maths=maths, english=english,
        ca=ca, exam=exam, students=students, **users
    )


@pytest.fixture
def lifecycle(db):
    return ResultLifecycleService(db)


@pytest.fixture
def submit(lifecycle, school):
    """Submit an exam result for a student as the maths teacher unless told otherwise."""
    def _submit(student, score, subject=None, assessment=None, term=None, teacher=None):
        return lifecycle.submit(
            student_id=student.id,
            subject_id=(subject or school.maths).id,
            term_id=(term or school.term).id,
            assessment_id=(assessment or school.exam).id,
            score=score,
            teacher_id=(teacher or school.teacher).id
        )
    return _submit


@pytest.fixture
def approved(submit, lifecycle, school):
    def _approved(student, score, **kwargs):
        result = submit(student, score, **kwargs)
        return lifecycle.approve(result.id, school.exam_officer.id)
    return _approved


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token(data={"sub": str(user.id), "username": user.username, "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}
    return _headers
