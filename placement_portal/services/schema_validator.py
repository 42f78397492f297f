"""
Schema Validator - header checks for batch uploads.

A batch whose header row lacks any required column is rejected outright,
before a single row is read. A structurally wrong file (e.g. the roster
template uploaded as marks) is never partially applied.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from placement_portal.core.exceptions import SchemaError
from placement_portal.schemas.schemas import BatchType, SubjectDefinition

logger = logging.getLogger(__name__)


# ============================================================
# HEADER SETS PER BATCH TYPE
# ============================================================

ROLL_NUMBER = "Roll Number"
STUDENT_NAME = "Student Name"

MARKS_REQUIRED = [ROLL_NUMBER, STUDENT_NAME]
MARKS_OPTIONAL = ["CGPA", "Attendance"]

ROSTER_REQUIRED = [
    "Name", ROLL_NUMBER, "Email", "CGPA", "Semester", "Branch", "Phone", "Address"
]
ROSTER_OPTIONAL = [
    "Placement Status", "Company", "Package", "Joining Date",
    "Skills", "Projects", "Internships", "Certifications"
]

APPROVAL_REQUIRED = [
    "Type", STUDENT_NAME, ROLL_NUMBER, "Email", "Phone", "CGPA", "Semester", "Description"
]
APPROVAL_OPTIONAL = ["Documents", "Urgency"]


def required_headers(
    batch_type: BatchType,
    subjects: Optional[Iterable[SubjectDefinition]] = None
) -> List[str]:
    """Required columns for a batch type. Marks add one column per subject code."""
    if batch_type == BatchType.marks:
        return MARKS_REQUIRED + [s.code for s in (subjects or [])]
    if batch_type == BatchType.roster:
        return list(ROSTER_REQUIRED)
    if batch_type == BatchType.approval:
        return list(APPROVAL_REQUIRED)
    raise ValueError(f"Unknown batch type: {batch_type}")


def optional_headers(batch_type: BatchType) -> List[str]:
    return {
        BatchType.marks: MARKS_OPTIONAL,
        BatchType.roster: ROSTER_OPTIONAL,
        BatchType.approval: APPROVAL_OPTIONAL,
    }[batch_type]


def _normalize(header: str) -> str:
    return str(header).replace("\ufeff", "").strip().lower()


def validate_headers(
    header_row: Sequence[str],
    required: Iterable[str],
    optional: Iterable[str] = ()
) -> Dict[str, int]:
    """
    Check a header row against the required set.

    Matching ignores case and surrounding whitespace.

    Args:
        header_row: Column names in file order
        required: Columns that must be present
        optional: Columns mapped when present

    Returns:
        Canonical column name -> column index

    Raises:
        SchemaError: naming every missing required column
    """
    positions: Dict[str, int] = {}
    for index, header in enumerate(header_row):
        # First occurrence wins on repeated headers
        positions.setdefault(_normalize(header), index)

    required = list(required)
    missing = [name for name in required if _normalize(name) not in positions]
    if missing:
        logger.info("Batch rejected, missing columns: %s", missing)
        raise SchemaError(missing)

    mapping = {name: positions[_normalize(name)] for name in required}
    for name in optional:
        if _normalize(name) in positions:
            mapping[name] = positions[_normalize(name)]
    return mapping


def validate_batch_headers(
    header_row: Sequence[str],
    batch_type: BatchType,
    subjects: Optional[Iterable[SubjectDefinition]] = None
) -> Dict[str, int]:
    """validate_headers with the header sets for `batch_type`."""
    return validate_headers(
        header_row,
        required_headers(batch_type, subjects),
        optional_headers(batch_type)
    )
