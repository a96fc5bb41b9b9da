"""Term rankings: per-student averages, competition positions, letter grades and
class summaries.

``compute_rankings`` is a pure function over already-fetched rows so that it can be
exercised without a database; ``build_term_rankings`` feeds it from the store.
"""
from collections import defaultdict
from math import isclose
from statistics import fmean
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from app.crud import academics as academics_crud
from app.crud import results as results_crud
from app.exceptions import InvalidArgument, TermNotFound
from app.models.all_models import ResultStatus
from app.schemas.ranking_schemas import ClassSummary, RankingReport, StudentRanking
from app.utils.grading import letter_grade, percentage_of
from app.utils.store import retry_once_with_session

logger = logging.getLogger(__name__)

# averages closer than this are the same average
TIE_TOLERANCE = 1e-9


def _as_term_uuid(term_id) -> UUID:
    if isinstance(term_id, UUID):
        return term_id
    try:
        return UUID(str(term_id))
    except (TypeError, ValueError):
        raise InvalidArgument(f"Malformed term id: {term_id!r}")


def _student_averages(term_id: UUID, results: Iterable) -> List[Tuple[UUID, float, int]]:
    # student -> subject -> percentages of that subject's assessments
    percentages: Dict[UUID, Dict[UUID, List[float]]] = defaultdict(lambda: defaultdict(list))
    for result in results:
        if result.status != ResultStatus.APPROVED or result.term_id != term_id:
            continue
        if not result.max_score:
            raise InvalidArgument(f"Result {result.id} has a max_score of zero")
        percentages[result.student_id][result.subject_id].append(
            percentage_of(result.score, result.max_score)
        )

    averages = []
    for student_id, subjects in percentages.items():
        subject_percentages = [fmean(values) for values in subjects.values()]
        averages.append((student_id, fmean(subject_percentages), len(subject_percentages)))
    return averages


def _competition_order(averages: List[Tuple[UUID, float, int]]) -> List[Tuple[int, Tuple[UUID, float, int]]]:
    """Pair each entry with its position; tied averages share a position and the
    next distinct average skips past the whole tie group (90, 90, 85 -> 1, 1, 3)."""
    ordered = sorted(averages, key=lambda entry: (-entry[1], entry[0]))

    groups: List[List[Tuple[UUID, float, int]]] = []
    for entry in ordered:
        if groups and isclose(entry[1], groups[-1][0][1], rel_tol=TIE_TOLERANCE, abs_tol=TIE_TOLERANCE):
            groups[-1].append(entry)
        else:
            groups.append([entry])

    positioned = []
    for group in groups:
        position = len(positioned) + 1
        for entry in sorted(group, key=lambda e: e[0]):
            positioned.append((position, entry))
    return positioned


def compute_rankings(term_id, results: Iterable, students: Iterable,
                     class_names: Optional[Mapping[UUID, str]] = None) -> RankingReport:
    """Rank every student holding at least one approved result in the term.

    ``results`` and ``students`` are any objects exposing the Result / Student
    attributes (ORM rows work). Nothing is rounded here.
    """
    term_uuid = _as_term_uuid(term_id)
    class_names = class_names or {}
    students_by_id = {student.id: student for student in students}

    rankings: List[StudentRanking] = []
    for position, (student_id, average, subject_count) in _competition_order(_student_averages(term_uuid, results)):
        student = students_by_id.get(student_id)
        class_id = getattr(student, "class_id", None)
        rankings.append(StudentRanking(
            student_id=student_id,
            student_name=f"{student.first_name} {student.last_name}" if student else None,
            class_id=class_id,
            class_name=class_names.get(class_id) if class_id else None,
            average_percentage=average,
            subject_count=subject_count,
            position=position,
            letter_grade=letter_grade(average),
        ))

    members: Dict[UUID, List[StudentRanking]] = defaultdict(list)
    for ranking in rankings:
        if ranking.class_id is not None:
            members[ranking.class_id].append(ranking)

    summaries = []
    for class_id, class_rankings in members.items():
        # rankings are already in (position, student id) order
        top = class_rankings[0]
        summaries.append(ClassSummary(
            class_id=class_id,
            class_name=class_names.get(class_id),
            student_count=len(class_rankings),
            class_average=fmean(r.average_percentage for r in class_rankings),
            top_student_id=top.student_id,
        ))
    summaries.sort(key=lambda s: (s.class_name is None, s.class_name or "", s.class_id))

    return RankingReport(term_id=term_uuid, students=rankings, classes=summaries)


@retry_once_with_session
def build_term_rankings(db: Session, term_id: UUID, class_id: Optional[UUID] = None) -> RankingReport:
    """Rank a term from one consistent read of its approved results.

    With ``class_id`` only that class's students are ranked, so positions are class
    positions.
    """
    term_uuid = _as_term_uuid(term_id)
    if academics_crud.get_term(db, term_uuid) is None:
        raise TermNotFound()

    rows = results_crud.approved_results_snapshot(db, term_uuid)
    if class_id is not None:
        rows = [row for row in rows if row[1].class_id == class_id]

    results = [result for result, _, _ in rows]
    students = {student.id: student for _, student, _ in rows}.values()
    class_names = {student.class_id: class_name for _, student, class_name in rows if student.class_id}

    report = compute_rankings(term_uuid, results, students, class_names)
    logger.info(f"Ranked {len(report.students)} students in {len(report.classes)} classes for term {term_uuid}")
    return report
