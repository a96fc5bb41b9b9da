from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, field_serializer

from app.utils.grading import display_round


class StudentRanking(BaseModel):
    student_id: UUID
    student_name: Optional[str] = None
    class_id: Optional[UUID] = None
    class_name: Optional[str] = None
    average_percentage: float
    subject_count: int
    position: int
    letter_grade: str

    @field_serializer('average_percentage')
    def round_average(self, v: float) -> float:
        return display_round(v)


class ClassSummary(BaseModel):
    class_id: UUID
    class_name: Optional[str] = None
    student_count: int
    class_average: float
    top_student_id: UUID

    @field_serializer('class_average')
    def round_average(self, v: float) -> float:
        return display_round(v)


class RankingReport(BaseModel):
    term_id: UUID
    students: List[StudentRanking] = []
    classes: List[ClassSummary] = []
