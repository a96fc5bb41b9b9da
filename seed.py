import random
from datetime import date
from uuid import uuid4

from faker import Faker

from app.database import SessionLocal, engine
from app.models.all_models import (Assessment, AssessmentType, Base, SchoolClass, Student, StudentStatus,
                                   Subject, User, UserRole)
from app.services.lifecycle import ResultLifecycleService
from app.services.terms import TermService
from app.services.tokens import TokenService
from app.utils.auth import get_password_hash

fake = Faker(['en_US'])

DEFAULT_PASSWORD = "ChangeMe123!"

STAFF = [
    ("principal", UserRole.PRINCIPAL),
    ("examofficer", UserRole.EXAM_OFFICER),
    ("formteacher", UserRole.FORM_TEACHER),
    ("mathsteacher", UserRole.SUBJECT_TEACHER),
    ("englishteacher", UserRole.SUBJECT_TEACHER),
]

CLASSES = ["JSS 1A", "JSS 1B", "JSS 2A"]

SUBJECTS = [("Mathematics", "MTH"), ("English Language", "ENG"), ("Basic Science", "BSC")]

ASSESSMENTS = [
    ("First CA", AssessmentType.CONTINUOUS_ASSESSMENT, 40, 0.4),
    ("Exam", AssessmentType.END_OF_TERM_EXAM, 60, 0.6),
]


def create_staff(session):
    users = {}
    for username, role in STAFF:
        user = session.query(User).filter(User.username == username).first()
        if user is None:
            user = User(
                id=uuid4(),
                username=username,
                email=f"{username}@school.example.com",
                full_name=fake.name(),
                password_hash=get_password_hash(DEFAULT_PASSWORD),
                role=role,
                is_active=True
            )
            session.add(user)
            print(f"   Added {role.value}: {username}")
        users[username] = user
    session.commit()
    return users


def create_catalogue(session):
    classes = []
    for name in CLASSES:
        school_class = session.query(SchoolClass).filter(SchoolClass.name == name).first()
        if school_class is None:
            school_class = SchoolClass(id=uuid4(), name=name)
            session.add(school_class)
        classes.append(school_class)

    subjects = []
    for name, code in SUBJECTS:
        subject = session.query(Subject).filter(Subject.code == code).first()
        if subject is None:
            subject = Subject(id=uuid4(), name=name, code=code)
            session.add(subject)
        subjects.append(subject)

    assessments = []
    for name, assessment_type, max_score, weight in ASSESSMENTS:
        assessment = session.query(Assessment).filter(Assessment.name == name).first()
        if assessment is None:
            assessment = Assessment(id=uuid4(), name=name, type=assessment_type,
                                    max_score=max_score, weight=weight)
            session.add(assessment)
        assessments.append(assessment)

    session.commit()
    return classes, subjects, assessments


def create_students(session, classes, per_class=8):
    students = []
    sequence = session.query(Student).count()
    for school_class in classes:
        for _ in range(per_class):
            sequence += 1
            student = Student(
                id=uuid4(),
                student_code=f"STU{sequence:04d}",
                first_name=fake.first_name(),
                last_name=fake.last_name(),
                class_id=school_class.id,
                status=StudentStatus.ACTIVE
            )
            session.add(student)
            students.append(student)
    session.commit()
    return students


def seed_school():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        print("Creating staff accounts...")
        users = create_staff(session)
        principal = users["principal"]

        print("Creating classes, subjects and assessments...")
        classes, subjects, assessments = create_catalogue(session)

        terms = TermService(session)
        year = date.today().year
        term = terms.create_term(
            name="First Term",
            academic_year=f"{year}/{year + 1}",
            start_date=date(year, 9, 8),
            end_date=date(year, 12, 12),
            actor_id=principal.id
        )
        terms.set_current_term(term.id, principal.id, reason="Initial setup")

        print("Enrolling students...")
        students = create_students(session, classes)

        lifecycle = ResultLifecycleService(session)
        teachers = [users["mathsteacher"], users["englishteacher"]]
        submitted = []
        for student in students:
            for subject in subjects:
                teacher = random.choice(teachers)
                for assessment in assessments:
                    score = round(random.uniform(0.35, 1.0) * assessment.max_score, 1)
                    submitted.append(lifecycle.submit(
                        student.id, subject.id, term.id, assessment.id, score, teacher.id
                    ))

        approved, skipped = lifecycle.bulk_approve([r.id for r in submitted], users["examofficer"].id,
                                                   reason="Seeded results")
        tokens = TokenService(session).generate_tokens(term.id, len(students), principal.id)

        print("\n" + "=" * 60)
        print("SEEDING COMPLETED SUCCESSFULLY!")
        print("=" * 60)
        print(f"Term: {term.name} {term.academic_year} ({term.id})")
        print(f"Students: {len(students)}")
        print(f"Results approved: {len(approved)} (skipped {len(skipped)})")
        print(f"Scratch cards issued: {len(tokens)}")
        print(f"Sample card: {tokens[0].code} for {students[0].student_code}")
        print(f"Staff password: {DEFAULT_PASSWORD}")

    except Exception as e:
        session.rollback()
        print(f"Error during seeding: {str(e)}")
        raise
    finally:
        session.close()

if __name__ == "__main__":
    print("School Results Seeding Script")
    print("=" * 60)

    seed_school()
