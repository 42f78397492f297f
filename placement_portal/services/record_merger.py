"""
Record Merger - Row validation, dedupe and merge for batch uploads.

HOW IT WORKS:
1. Rows are processed strictly in file order, one at a time
2. Each row becomes a RowResult (accepted / accepted with warning /
   skipped / rejected)
3. Accepted rows update the working copy of the snapshot, so later rows
   in the same batch see them in the duplicate check
4. RowResults are folded into one IngestionReport at the end

RULES:
- Blank required field or malformed email -> row rejected (error)
- Any invalid subject mark -> whole row rejected, one error per subject
- Duplicate key -> row skipped (warning), stored record is kept as is
- Out-of-range CGPA / attendance / semester -> accepted with a warning
- Unknown enum value -> safe default with a warning

No I/O here. Persistence belongs to the record store.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type

from placement_portal.core.exceptions import PackageParseError
from placement_portal.schemas.schemas import (
    ApprovalRequest,
    BatchType,
    IngestionReport,
    PackageAmount,
    PlacementStatus,
    RequestType,
    StudentResult,
    SubjectDefinition,
    SubjectResult,
    Urgency,
)
from placement_portal.services.schema_validator import (
    APPROVAL_REQUIRED,
    MARKS_REQUIRED,
    ROLL_NUMBER,
    ROSTER_REQUIRED,
    STUDENT_NAME,
)

logger = logging.getLogger(__name__)

LIST_SEPARATOR = ";"
MIN_SEMESTER, MAX_SEMESTER = 1, 8
DATE_FORMATS = ["%Y-%m-%d", "%d-%m-%Y", "%d/%m/%Y", "%Y/%m/%d", "%d-%b-%Y", "%d %b %Y"]


# ============================================================
# PER-ROW RESULT
# ============================================================

class RowOutcome(str, Enum):
    accepted = "accepted"
    accepted_with_warning = "accepted_with_warning"
    skipped = "skipped"
    rejected = "rejected"


@dataclass(frozen=True)
class RowResult:
    row_number: int
    outcome: RowOutcome
    record: Any = None
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @classmethod
    def accepted(cls, row_number: int, record: Any, warnings: Sequence[str] = ()) -> "RowResult":
        outcome = RowOutcome.accepted_with_warning if warnings else RowOutcome.accepted
        return cls(row_number, outcome, record=record, warnings=tuple(warnings))

    @classmethod
    def skipped(cls, row_number: int, warning: str, prior: Sequence[str] = ()) -> "RowResult":
        return cls(row_number, RowOutcome.skipped, warnings=tuple(prior) + (warning,))

    @classmethod
    def rejected(cls, row_number: int, errors: Sequence[str]) -> "RowResult":
        return cls(row_number, RowOutcome.rejected, errors=tuple(errors))

    @property
    def is_accepted(self) -> bool:
        return self.outcome in (RowOutcome.accepted, RowOutcome.accepted_with_warning)


def build_report(results: Iterable[RowResult], fatal_error: Optional[str] = None) -> IngestionReport:
    """Fold row results into the batch report."""
    if fatal_error:
        return IngestionReport(success=False, processed=0, errors=[fatal_error], warnings=[])

    processed = 0
    errors: List[str] = []
    warnings: List[str] = []
    for result in results:
        if result.is_accepted:
            processed += 1
        errors.extend(result.errors)
        warnings.extend(result.warnings)

    return IngestionReport(
        success=not errors,
        processed=processed,
        errors=errors,
        warnings=warnings
    )


@dataclass
class MergeResult:
    """Updated full record set, the records this batch changed, and the report."""
    records: List[Any]
    accepted: List[Any]
    report: IngestionReport
    rows: List[RowResult] = field(default_factory=list)


# ============================================================
# CELL PARSING HELPERS
# ============================================================

class _Row:
    """Cell access by canonical column name."""

    def __init__(self, row_number: int, cells: Sequence[str], header_map: Mapping[str, int]):
        self.number = row_number
        self.cells = cells
        self.header_map = header_map

    def get(self, column: str) -> str:
        index = self.header_map.get(column)
        if index is None or index >= len(self.cells):
            return ""
        return str(self.cells[index]).strip()

    def has(self, column: str) -> bool:
        return column in self.header_map

    def prefix(self, message: str) -> str:
        return f"Row {self.number}: {message}"


def _missing_fields(row: _Row, columns: Iterable[str]) -> List[str]:
    return [
        row.prefix(f"missing required field '{column}'")
        for column in columns if not row.get(column)
    ]


def _email_error(row: _Row, column: str = "Email") -> Optional[str]:
    email = row.get(column)
    if email and "@" not in email:
        return row.prefix(f"invalid email '{email}'")
    return None


def _parse_number(text: str) -> float:
    # No thousands separators: "4,5" is not 45
    value = float(text)
    if value != value or value in (float("inf"), float("-inf")):
        raise ValueError(text)
    return value


def validate_mark(subject: SubjectDefinition, raw: Any) -> Tuple[Optional[float], Optional[str]]:
    """
    Check one subject mark.

    Returns:
        (mark, None) when valid, (None, reason) otherwise
    """
    text = "" if raw is None else str(raw).strip()
    if not text:
        return None, f"missing mark for {subject.code}"
    try:
        mark = _parse_number(text)
    except ValueError:
        return None, f"invalid mark '{text}' for {subject.code} (not a number)"
    if mark < 0 or mark > subject.max_marks:
        return None, (
            f"invalid mark {text} for {subject.code} "
            f"(must be between 0 and {subject.max_marks:g})"
        )
    return mark, None


def _soft_number(
    row: _Row,
    column: str,
    low: float,
    high: float,
    warnings: List[str],
    integer: bool = False
):
    """
    Non-mark numeric field: never rejects the row.

    Unparseable -> None + warning. Out of range -> kept + warning.
    """
    text = row.get(column)
    if not text:
        return None
    try:
        value = _parse_number(text)
        if integer:
            if value != int(value):
                raise ValueError(text)
            value = int(value)
    except ValueError:
        warnings.append(row.prefix(f"{column} '{text}' is not a valid number, left blank"))
        return None
    if value < low or value > high:
        warnings.append(row.prefix(f"{column} {text} is outside [{low:g}, {high:g}]"))
    return value


def _enum_value(row: _Row, column: str, enum_cls: Type[Enum], default: Enum, warnings: List[str]):
    text = row.get(column)
    if not text:
        return default
    wanted = text.lower().replace("_", " ")
    for member in enum_cls:
        if wanted in (member.value.lower(), member.name.replace("_", " ")):
            return member
    warnings.append(row.prefix(f"unknown {column} '{text}', defaulted to '{default.value}'"))
    return default


def _split_list(text: str) -> List[str]:
    return [item.strip() for item in text.split(LIST_SEPARATOR) if item.strip()]


def _parse_date(row: _Row, column: str, warnings: List[str]) -> Optional[date]:
    text = row.get(column)
    if not text:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    warnings.append(row.prefix(f"{column} '{text}' is not a recognised date, left blank"))
    return None


# ============================================================
# SINGLE-RECORD MARK EDIT
# ============================================================

def apply_marks(student: StudentResult, marks: Mapping[str, float],
                subjects: Mapping[str, SubjectDefinition]) -> StudentResult:
    """
    New StudentResult with `marks` applied.

    Grades, statuses, SGPA and overall status are derived from the marks,
    so every one of them is recomputed on the returned record.
    """
    results = dict(student.results)
    for code, mark in marks.items():
        results[code] = SubjectResult.from_definition(subjects[code], mark)
    return student.model_copy(update={"results": results})


def edit_marks(
    student: StudentResult,
    marks: Mapping[str, Any],
    subjects: Mapping[str, SubjectDefinition]
) -> Tuple[Optional[StudentResult], List[str]]:
    """
    Explicitly replace some of one student's marks.

    All-or-nothing: any invalid mark or unknown subject leaves the
    student unchanged.

    Returns:
        (updated student, []) or (None, errors)
    """
    errors: List[str] = []
    parsed: Dict[str, float] = {}
    for code, raw in marks.items():
        subject = subjects.get(code)
        if subject is None:
            errors.append(f"unknown subject '{code}'")
            continue
        mark, reason = validate_mark(subject, raw)
        if reason:
            errors.append(reason)
        else:
            parsed[code] = mark

    if errors:
        return None, errors
    return apply_marks(student, parsed, subjects), []


# ============================================================
# RECORD MERGER
# ============================================================

class RecordMerger:
    """
    Merges one batch into a snapshot.

    Usage:
        merger = RecordMerger(BatchType.roster, header_map, students)
        for row_number, cells in rows:
            merger.process_row(row_number, cells)
        result = merger.result()

    The snapshot passed in is not modified. The caller owns it for the
    duration of the merge; concurrent merges against one collection
    must be serialised by the caller.
    """

    def __init__(
        self,
        batch_type: BatchType,
        header_map: Mapping[str, int],
        snapshot: Iterable[Any],
        subjects: Optional[Iterable[SubjectDefinition]] = None,
        cgpa_scale: float = 10.0
    ):
        self.batch_type = batch_type
        self.header_map = dict(header_map)
        self.subjects: Dict[str, SubjectDefinition] = {s.code: s for s in (subjects or [])}
        self.cgpa_scale = cgpa_scale
        self.row_results: List[RowResult] = []

        if batch_type == BatchType.approval:
            self._requests: List[ApprovalRequest] = list(snapshot)
        else:
            self._students: Dict[str, StudentResult] = {s.roll_number: s for s in snapshot}
        # Keys touched by this batch, in order
        self._touched: Dict[str, Any] = {}

    # -------------------- dispatch --------------------

    def process_row(self, row_number: int, cells: Sequence[str]) -> RowResult:
        row = _Row(row_number, cells, self.header_map)
        if self.batch_type == BatchType.marks:
            result = self._marks_row(row)
        elif self.batch_type == BatchType.roster:
            result = self._roster_row(row)
        else:
            result = self._approval_row(row)

        if result.outcome == RowOutcome.rejected:
            logger.debug("Row %s rejected: %s", row_number, "; ".join(result.errors))
        self.row_results.append(result)
        return result

    def result(self) -> MergeResult:
        if self.batch_type == BatchType.approval:
            records = list(self._requests)
        else:
            records = list(self._students.values())
        return MergeResult(
            records=records,
            accepted=list(self._touched.values()),
            report=build_report(self.row_results),
            rows=list(self.row_results)
        )

    # -------------------- marks --------------------

    def _marks_row(self, row: _Row) -> RowResult:
        errors = _missing_fields(row, MARKS_REQUIRED)
        if errors:
            return RowResult.rejected(row.number, errors)

        roll = row.get(ROLL_NUMBER)
        student = self._students.get(roll)
        if student is None:
            return RowResult.skipped(row.number, row.prefix(f"student not found ({roll})"))

        if roll in self._touched:
            return RowResult.skipped(
                row.number, row.prefix(f"duplicate roll number {roll} in this batch, row skipped")
            )
        if self.subjects and all(code in student.results for code in self.subjects):
            return RowResult.skipped(
                row.number,
                row.prefix(f"duplicate: marks for {roll} are already recorded, row skipped")
            )

        warnings: List[str] = []
        name = row.get(STUDENT_NAME)
        if name.lower() != student.name.strip().lower():
            warnings.append(row.prefix(f"name '{name}' does not match record '{student.name}'"))

        marks: Dict[str, float] = {}
        for code, subject in self.subjects.items():
            mark, reason = validate_mark(subject, row.get(code))
            if reason:
                errors.append(row.prefix(reason))
            else:
                marks[code] = mark

        cgpa = _soft_number(row, "CGPA", 0, self.cgpa_scale, warnings)
        attendance = _soft_number(row, "Attendance", 0, 100, warnings)

        if errors:
            return RowResult.rejected(row.number, errors)

        updated = apply_marks(student, marks, self.subjects)
        changes = {}
        if cgpa is not None:
            changes["cgpa"] = cgpa
        if attendance is not None:
            changes["attendance"] = attendance
        if changes:
            updated = updated.model_copy(update=changes)

        self._students[roll] = updated
        self._touched[roll] = updated
        return RowResult.accepted(row.number, updated, warnings)

    # -------------------- roster --------------------

    def _roster_row(self, row: _Row) -> RowResult:
        errors = _missing_fields(row, ROSTER_REQUIRED)
        email_error = _email_error(row)
        if email_error:
            errors.append(email_error)
        if errors:
            return RowResult.rejected(row.number, errors)

        roll = row.get(ROLL_NUMBER)
        if roll in self._students:
            return RowResult.skipped(
                row.number, row.prefix(f"duplicate roll number {roll}, existing record kept")
            )

        warnings: List[str] = []
        cgpa = _soft_number(row, "CGPA", 0, self.cgpa_scale, warnings)
        semester = _soft_number(row, "Semester", MIN_SEMESTER, MAX_SEMESTER, warnings, integer=True)
        placement_status = _enum_value(
            row, "Placement Status", PlacementStatus, PlacementStatus.not_placed, warnings
        )
        joining_date = _parse_date(row, "Joining Date", warnings)

        package = None
        package_text = row.get("Package")
        if package_text:
            try:
                package = PackageAmount.parse(package_text)
            except PackageParseError:
                errors.append(row.prefix(f"unparseable package '{package_text}'"))

        if errors:
            return RowResult.rejected(row.number, errors)

        student = StudentResult(
            roll_number=roll,
            name=row.get("Name"),
            email=row.get("Email"),
            phone=row.get("Phone"),
            address=row.get("Address"),
            branch=row.get("Branch"),
            semester=semester,
            cgpa=cgpa,
            placement_status=placement_status,
            company=row.get("Company") or None,
            package=package,
            joining_date=joining_date,
            skills=_split_list(row.get("Skills")),
            projects=_split_list(row.get("Projects")),
            internships=_split_list(row.get("Internships")),
            certifications=_split_list(row.get("Certifications"))
        )
        self._students[roll] = student
        self._touched[roll] = student
        return RowResult.accepted(row.number, student, warnings)

    def enroll(self, request: ApprovalRequest, row_number: int = 0) -> RowResult:
        """
        Student record for an approved request, under the roster rules.
        Roster mergers only.

        A roll number that is already on record keeps its record; the
        result is then skipped with a warning.
        """
        roll = request.roll_number
        if roll in self._students:
            warning = (
                f"request {request.request_id}: roll number {roll} "
                "already enrolled, existing record kept"
            )
            result = RowResult.skipped(row_number, warning)
        else:
            student = StudentResult(
                roll_number=roll,
                name=request.student_name,
                email=request.email,
                phone=request.phone,
                semester=request.semester,
                cgpa=request.cgpa
            )
            self._students[roll] = student
            self._touched[roll] = student
            result = RowResult.accepted(row_number, student)
        self.row_results.append(result)
        return result

    # -------------------- approval requests --------------------

    def _is_pending_duplicate(self, key: tuple) -> bool:
        return any(r.is_pending and r.dedupe_key() == key for r in self._requests)

    def _approval_row(self, row: _Row) -> RowResult:
        errors = _missing_fields(row, APPROVAL_REQUIRED)
        email_error = _email_error(row)
        if email_error:
            errors.append(email_error)
        if errors:
            return RowResult.rejected(row.number, errors)

        warnings: List[str] = []
        roll = row.get(ROLL_NUMBER)
        type_text = row.get("Type")
        request_type = _enum_value(row, "Type", RequestType, RequestType.other, warnings)
        # Unknown types all map to Other; keep the text so they stay distinct
        type_detail = None
        if request_type == RequestType.other and type_text.lower() != RequestType.other.value.lower():
            type_detail = type_text

        request = ApprovalRequest(
            request_type=request_type,
            type_detail=type_detail,
            student_name=row.get(STUDENT_NAME),
            roll_number=roll,
            email=row.get("Email"),
            phone=row.get("Phone"),
            cgpa=_soft_number(row, "CGPA", 0, self.cgpa_scale, warnings),
            semester=_soft_number(row, "Semester", MIN_SEMESTER, MAX_SEMESTER, warnings, integer=True),
            description=row.get("Description"),
            documents=_split_list(row.get("Documents")),
            urgency=_enum_value(row, "Urgency", Urgency, Urgency.medium, warnings)
        )

        if self._is_pending_duplicate(request.dedupe_key()):
            label = type_detail or request_type.value
            return RowResult.skipped(
                row.number,
                row.prefix(f"duplicate pending '{label}' request for {roll}, row skipped"),
                prior=warnings
            )

        self._requests.append(request)
        self._touched[request.request_id] = request
        return RowResult.accepted(row.number, request, warnings)


def merge_rows(
    batch_type: BatchType,
    header_map: Mapping[str, int],
    rows: Iterable[Tuple[int, Sequence[str]]],
    snapshot: Iterable[Any],
    subjects: Optional[Iterable[SubjectDefinition]] = None,
    cgpa_scale: float = 10.0
) -> MergeResult:
    """Run every (row_number, cells) pair through a RecordMerger."""
    merger = RecordMerger(batch_type, header_map, snapshot, subjects, cgpa_scale)
    for row_number, cells in rows:
        merger.process_row(row_number, cells)
    return merger.result()
