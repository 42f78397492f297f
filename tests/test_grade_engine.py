import pytest

from placement_portal.services import grade_engine
from placement_portal.services.grade_engine import ResultStatus


@pytest.mark.parametrize("mark,expected", [
    (100, "A+"), (90, "A+"), (89, "A"), (80, "A"), (79.5, "B+"), (70, "B+"),
    (60, "B"), (50, "C+"), (40, "C"), (39, "F"), (39.99, "F"), (0, "F"),
])
def test_grade_boundaries(mark, expected):
    assert grade_engine.grade(mark) == expected


def test_status_boundary():
    assert grade_engine.status(39) == ResultStatus.failed
    assert grade_engine.status(40) == ResultStatus.passed


def test_grade_points_follow_table():
    assert [grade_engine.grade_point(m) for m in (95, 85, 75, 65, 55, 45, 35)] == [10, 9, 8, 7, 6, 5, 0]


def test_grade_point_is_monotonic():
    marks = [m / 2 for m in range(0, 201)]
    points = [grade_engine.grade_point(m) for m in marks]
    assert all(a <= b for a, b in zip(points, points[1:]))


def test_marks_are_normalized_to_max_marks():
    # 45 / 50 is 90%
    assert grade_engine.grade(45, max_marks=50) == "A+"
    assert grade_engine.status(19, max_marks=50) == ResultStatus.failed
    assert grade_engine.status(20, max_marks=50) == ResultStatus.passed


def test_non_positive_max_marks_rejected():
    with pytest.raises(ValueError):
        grade_engine.grade(10, max_marks=0)


def test_sgpa_is_credit_weighted():
    # 87 -> A (9) over 4 credits, 65 -> B (7) over 3 credits
    pairs = [(grade_engine.grade_point(87), 4), (grade_engine.grade_point(65), 3)]
    assert grade_engine.sgpa(pairs) == round((9 * 4 + 7 * 3) / 7, 2)
    assert grade_engine.sgpa(pairs) == 8.14


def test_sgpa_rounds_half_up():
    # 8.125 exactly
    assert grade_engine.sgpa([(9, 1), (8, 3), (8, 4)]) == 8.13


def test_sgpa_without_subjects_is_zero():
    assert grade_engine.sgpa([]) == 0.0


def test_overall_status():
    fail_one = [ResultStatus.passed] * 5 + [ResultStatus.failed]
    assert grade_engine.overall_status(fail_one) == ResultStatus.atkt
    assert grade_engine.overall_status([ResultStatus.passed] * 6) == ResultStatus.passed
    assert grade_engine.overall_status([]) == ResultStatus.passed
