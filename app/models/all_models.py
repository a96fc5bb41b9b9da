from sqlalchemy import (Column, String, Integer, Float, Date, DateTime, Boolean, Text, ForeignKey,
                        Enum as SQLEnum, JSON, UniqueConstraint, Index, CheckConstraint, Uuid, text)
from sqlalchemy.orm import declarative_base, relationship
from enum import Enum
import uuid

from app.utils.system_utils import local_now

Base = declarative_base()

# Enum Classes
class UserRole(str, Enum):
    PRINCIPAL = "Principal"
    EXAM_OFFICER = "Exam Officer"
    FORM_TEACHER = "Form Teacher"
    SUBJECT_TEACHER = "Subject Teacher"

class StudentStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    GRADUATED = "Graduated"
    TRANSFERRED = "Transferred"

class AssessmentType(str, Enum):
    CONTINUOUS_ASSESSMENT = "Continuous Assessment"
    END_OF_TERM_EXAM = "End of Term Exam"

class ResultStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

class AuditAction(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


# Model Classes
class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(50), unique=True, nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    full_name = Column(String(120))
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=local_now)
    updated_at = Column(DateTime(timezone=True), default=local_now, onupdate=local_now)


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), default=local_now)

    students = relationship("Student", back_populates="class_")


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)
    code = Column(String(10), unique=True)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), default=local_now)


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    type = Column(SQLEnum(AssessmentType), nullable=False)
    max_score = Column(Float, nullable=False, default=100)
    weight = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=local_now)

    __table_args__ = (
        CheckConstraint("max_score > 0", name="ck_assessment_max_score_positive"),
    )


class Term(Base):
    __tablename__ = "terms"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False)
    academic_year = Column(String(9), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_current = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=local_now)
    updated_at = Column(DateTime(timezone=True), default=local_now, onupdate=local_now)

    # At most one current term
    __table_args__ = (
        UniqueConstraint('name', 'academic_year', name='unique_term_name_per_year'),
        Index(
            'ix_terms_single_current', 'is_current', unique=True,
            postgresql_where=text('is_current'),
            sqlite_where=text('is_current = 1'),
        ),
    )


class TermArchive(Base):
    __tablename__ = "term_archives"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    term_id = Column(Uuid, ForeignKey("terms.id"), nullable=False)
    academic_year = Column(String(9), nullable=False)
    results_count = Column(Integer)
    students_count = Column(Integer)
    archived_at = Column(DateTime(timezone=True), default=local_now)


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_code = Column(String(20), unique=True, nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    class_id = Column(Uuid, ForeignKey("classes.id"))
    status = Column(SQLEnum(StudentStatus), default=StudentStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), default=local_now)
    updated_at = Column(DateTime(timezone=True), default=local_now, onupdate=local_now)

    class_ = relationship("SchoolClass", back_populates="students")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Result(Base):
    __tablename__ = "results"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id"), nullable=False)
    subject_id = Column(Uuid, ForeignKey("subjects.id"), nullable=False)
    term_id = Column(Uuid, ForeignKey("terms.id"), nullable=False)
    assessment_id = Column(Uuid, ForeignKey("assessments.id"), nullable=False)
    score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)
    status = Column(SQLEnum(ResultStatus), nullable=False, default=ResultStatus.PENDING)
    remarks = Column(Text)
    submitted_by = Column(Uuid, ForeignKey("users.id"), nullable=False)
    approved_by = Column(Uuid, ForeignKey("users.id"))
    approved_at = Column(DateTime(timezone=True))
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=local_now)
    updated_at = Column(DateTime(timezone=True), default=local_now, onupdate=local_now)

    # One result per student, subject, assessment and term
    __table_args__ = (
        UniqueConstraint('student_id', 'subject_id', 'assessment_id', 'term_id', name='unique_student_assessment_result'),
        CheckConstraint("score >= 0 AND score <= max_score", name="ck_result_score_range"),
        Index('ix_results_term_status', 'term_id', 'status'),
    )
    __mapper_args__ = {"version_id_col": version}

    student = relationship("Student")
    subject = relationship("Subject")
    assessment = relationship("Assessment")


class RedemptionToken(Base):
    __tablename__ = "redemption_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(20), unique=True, nullable=False)
    term_id = Column(Uuid, ForeignKey("terms.id"), nullable=False)
    is_used = Column(Boolean, nullable=False, default=False)
    used_by_student_id = Column(Uuid, ForeignKey("students.id"))
    used_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=local_now)

    __table_args__ = (
        Index('ix_redemption_tokens_term', 'term_id', 'is_used'),
    )


class AuditLogEntry(Base):
    """Append-only record of one governed mutation"""
    __tablename__ = "audit_log_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor_id = Column(Uuid, nullable=False)
    action_type = Column(SQLEnum(AuditAction), nullable=False)
    table_name = Column(String(50), nullable=False)
    record_id = Column(Uuid, nullable=False)
    old_value = Column(JSON)
    new_value = Column(JSON)
    reason = Column(Text)
    created_at = Column(DateTime(timezone=True), default=local_now, nullable=False)

    __table_args__ = (
        Index('ix_audit_log_created', 'created_at'),
        Index('ix_audit_log_record', 'table_name', 'record_id'),
    )
