"""
Subject catalogue - reference data for the marks batch.

Configured once and read-only afterwards. The `subjects` collection
overrides this default when it holds any documents.
"""

from typing import Dict, Iterable, List

from placement_portal.schemas.schemas import SubjectDefinition


DEFAULT_SUBJECTS: List[SubjectDefinition] = [
    SubjectDefinition(code="CS301", name="Data Structures", credits=4, max_marks=100),
    SubjectDefinition(code="CS302", name="Database Management Systems", credits=4, max_marks=100),
    SubjectDefinition(code="CS303", name="Operating Systems", credits=3, max_marks=100),
    SubjectDefinition(code="CS304", name="Computer Networks", credits=3, max_marks=100),
    SubjectDefinition(code="MA301", name="Discrete Mathematics", credits=3, max_marks=100),
    SubjectDefinition(code="HS301", name="Professional Communication", credits=2, max_marks=100),
]


def index_subjects(subjects: Iterable[SubjectDefinition]) -> Dict[str, SubjectDefinition]:
    """
    Build an ordered code -> definition mapping.

    Raises:
        ValueError: if two definitions share a code
    """
    indexed: Dict[str, SubjectDefinition] = {}
    for subject in subjects:
        if subject.code in indexed:
            raise ValueError(f"Duplicate subject code '{subject.code}'")
        indexed[subject.code] = subject
    return indexed
