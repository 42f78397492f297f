"""
Grade Engine - Pure grading rules.

PURPOSE:
1. Mark -> letter grade + grade point (boundary table, first match wins)
2. Mark -> subject status (Pass / Fail)
3. Credit-weighted SGPA over a set of subject results
4. Overall status (ATKT if any subject failed, else Pass)

No state, no I/O, no dependency on the record store.
Identical inputs always produce identical outputs.
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, NamedTuple, Tuple


class ResultStatus(str, Enum):
    passed = "Pass"
    failed = "Fail"
    atkt = "ATKT"


class GradeBand(NamedTuple):
    min_percentage: float
    grade: str
    grade_point: int


# Evaluated top-down, first match wins
GRADE_TABLE: Tuple[GradeBand, ...] = (
    GradeBand(90, "A+", 10),
    GradeBand(80, "A", 9),
    GradeBand(70, "B+", 8),
    GradeBand(60, "B", 7),
    GradeBand(50, "C+", 6),
    GradeBand(40, "C", 5),
)
FAIL_BAND = GradeBand(0, "F", 0)

PASS_PERCENTAGE = 40.0


def normalize(mark: float, max_marks: float = 100) -> float:
    """Scale a raw mark to a 0-100 percentage."""
    if max_marks <= 0:
        raise ValueError("max_marks must be positive")
    return mark * 100.0 / max_marks


def grade_band(mark: float, max_marks: float = 100) -> GradeBand:
    percentage = normalize(mark, max_marks)
    for band in GRADE_TABLE:
        if percentage >= band.min_percentage:
            return band
    return FAIL_BAND


def grade(mark: float, max_marks: float = 100) -> str:
    """Letter grade for a mark, e.g. grade(89) == "A"."""
    return grade_band(mark, max_marks).grade


def grade_point(mark: float, max_marks: float = 100) -> int:
    return grade_band(mark, max_marks).grade_point


def status(mark: float, max_marks: float = 100) -> ResultStatus:
    """Pass at 40% and above."""
    if normalize(mark, max_marks) >= PASS_PERCENTAGE:
        return ResultStatus.passed
    return ResultStatus.failed


def sgpa(weighted_points: Iterable[Tuple[int, int]]) -> float:
    """
    Credit-weighted SGPA.

    Args:
        weighted_points: (grade_point, credits) pairs, one per subject present

    Returns:
        sum(gp * credits) / sum(credits), rounded half-up to 2 places.
        0.0 when no subjects are present.
    """
    total_points = 0
    total_credits = 0
    for point, credits in weighted_points:
        total_points += point * credits
        total_credits += credits

    if total_credits == 0:
        return 0.0

    value = Decimal(total_points) / Decimal(total_credits)
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def overall_status(statuses: Iterable[ResultStatus]) -> ResultStatus:
    """ATKT if any subject is Fail, else Pass."""
    for subject_status in statuses:
        if subject_status == ResultStatus.failed:
            return ResultStatus.atkt
    return ResultStatus.passed
