import pytest
from pydantic import ValidationError

from placement_portal.core.exceptions import PackageParseError
from placement_portal.schemas.schemas import (
    IngestionReport,
    PackageAmount,
    PlacementStatus,
    StudentResult,
    SubjectResult,
)
from placement_portal.services.grade_engine import ResultStatus


@pytest.mark.parametrize("raw,amount", [
    ("12 LPA", 12.0),
    ("12lpa", 12.0),
    ("₹8.5L", 8.5),
    ("8.5 lakhs", 8.5),
    ("₹12,00,000", 12.0),
    ("450000", 4.5),
    ("1.2 Cr", 120.0),
    ("Rs. 6 LPA", 6.0),
    ("7", 7.0),
    ("12 L.P.A.", 12.0),
    ("6.5 LPA (CTC)", 6.5),
    ("1.5 Cr.", 150.0),
])
def test_package_parse(raw, amount):
    package = PackageAmount.parse(raw)
    assert package.amount == pytest.approx(amount)
    assert package.unit == "LPA"


@pytest.mark.parametrize("raw", ["", "competitive", "12 dollars", "LPA", "-5 LPA"])
def test_package_parse_rejects_text(raw):
    with pytest.raises(PackageParseError):
        PackageAmount.parse(raw)
    assert PackageAmount.try_parse(raw) is None


def test_package_parse_error_is_value_error():
    with pytest.raises(ValueError, match="Unparseable package 'tbd'"):
        PackageAmount.parse("tbd")


def test_subject_result_derives_grade_and_status():
    result = SubjectResult(subject_code="CS301", mark=39, credits=4)
    assert result.grade == "F"
    assert result.grade_point == 0
    assert result.status == ResultStatus.failed


def test_subject_result_rejects_mark_above_maximum():
    with pytest.raises(ValidationError):
        SubjectResult(subject_code="CS301", mark=101, max_marks=100)
    with pytest.raises(ValidationError):
        SubjectResult(subject_code="CS301", mark=-1)


def test_records_are_frozen(make_student):
    student = make_student(marks={"CS301": 80})
    with pytest.raises(ValidationError):
        student.name = "Someone Else"
    report = IngestionReport(success=True, processed=1)
    with pytest.raises(ValidationError):
        report.processed = 2


def test_student_status_with_one_failed_subject(make_student):
    student = make_student(marks={
        "CS301": 87, "CS302": 65, "CS303": 78, "CS304": 91, "MA301": 72, "HS301": 20
    })
    assert student.overall_status == ResultStatus.atkt


def test_student_sgpa_is_serialized(make_student):
    student = make_student(marks={"CS301": 87, "CS302": 65})
    # (9 * 4 + 7 * 4) / 8
    assert student.sgpa == 8.0
    dumped = student.model_dump(mode="json")
    assert dumped["sgpa"] == 8.0
    assert dumped["overall_status"] == "Pass"
    assert dumped["results"]["CS301"]["grade"] == "A"


def test_student_without_results():
    student = StudentResult(roll_number="CS1", name="A")
    assert student.sgpa == 0.0
    assert student.overall_status == ResultStatus.passed
    assert student.placement_status == PlacementStatus.not_placed


def test_stored_document_round_trips(make_student):
    student = make_student(
        marks={"CS301": 87},
        placement_status=PlacementStatus.placed,
        package=PackageAmount.parse("6.5 LPA")
    )
    restored = StudentResult.model_validate(student.model_dump(mode="json"))
    assert restored == student
    assert restored.is_placed


def test_legacy_package_string_is_parsed():
    student = StudentResult(roll_number="CS1", name="A", package="₹8.5L")
    assert student.package.amount == 8.5
    unparseable = StudentResult(roll_number="CS2", name="B", package="competitive")
    assert unparseable.package is None
