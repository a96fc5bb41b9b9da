from typing import Optional

# Single banding table used by every view that shows a letter grade
GRADE_BANDS = (
    (80.0, "A"),
    (70.0, "B"),
    (60.0, "C"),
    (50.0, "D"),
)
FAILING_GRADE = "F"


def letter_grade(percentage: float) -> str:
    for lower_bound, grade in GRADE_BANDS:
        if percentage >= lower_bound:
            return grade
    return FAILING_GRADE


def percentage_of(score: float, max_score: float) -> float:
    return score / max_score * 100.0


def display_round(value: Optional[float]) -> Optional[float]:
    """Round for presentation only; aggregates keep full precision."""
    if value is None:
        return None
    return round(value, 1)
