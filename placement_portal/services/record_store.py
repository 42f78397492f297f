"""
Record Store - read-all / write-batch access to the record collections.

The merger and the aggregator are pure functions over snapshots; this
module is the only place that talks to persistence.

Implementations:
1. MongoRecordStore     - pymongo collections (production)
2. InMemoryRecordStore  - plain dicts (tests, local runs)
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError
from pymongo import ReplaceOne
from pymongo.database import Database

from placement_portal.db.mongodb import COLLECTIONS, get_mongo_db
from placement_portal.schemas.schemas import (
    ApprovalRequest,
    CompanyReference,
    StudentResult,
    SubjectDefinition,
)
from placement_portal.services.subjects import DEFAULT_SUBJECTS

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Opaque record store used by the ingestion and analytics services."""

    @abstractmethod
    def read_students(self) -> List[StudentResult]:
        ...

    @abstractmethod
    def write_students(self, students: Iterable[StudentResult]) -> int:
        """Insert or replace by roll number. Returns number written."""

    @abstractmethod
    def read_approvals(self) -> List[ApprovalRequest]:
        ...

    @abstractmethod
    def write_approvals(self, requests: Iterable[ApprovalRequest]) -> int:
        ...

    @abstractmethod
    def read_companies(self) -> List[CompanyReference]:
        ...

    @abstractmethod
    def read_subjects(self) -> List[SubjectDefinition]:
        ...

    def get_student(self, roll_number: str) -> Optional[StudentResult]:
        for student in self.read_students():
            if student.roll_number == roll_number:
                return student
        return None

    def get_approval(self, request_id: str) -> Optional[ApprovalRequest]:
        for request in self.read_approvals():
            if request.request_id == request_id:
                return request
        return None


# ============================================================
# IN-MEMORY STORE
# ============================================================

class InMemoryRecordStore(RecordStore):
    """Dict-backed store. Insertion order is preserved."""

    def __init__(
        self,
        students: Iterable[StudentResult] = (),
        approvals: Iterable[ApprovalRequest] = (),
        companies: Iterable[CompanyReference] = (),
        subjects: Optional[Iterable[SubjectDefinition]] = None
    ):
        self.students: Dict[str, StudentResult] = {s.roll_number: s for s in students}
        self.approvals: Dict[str, ApprovalRequest] = {a.request_id: a for a in approvals}
        self.companies: List[CompanyReference] = list(companies)
        self.subjects: List[SubjectDefinition] = list(subjects or DEFAULT_SUBJECTS)

    def read_students(self) -> List[StudentResult]:
        return list(self.students.values())

    def write_students(self, students: Iterable[StudentResult]) -> int:
        count = 0
        for student in students:
            self.students[student.roll_number] = student
            count += 1
        return count

    def read_approvals(self) -> List[ApprovalRequest]:
        return list(self.approvals.values())

    def write_approvals(self, requests: Iterable[ApprovalRequest]) -> int:
        count = 0
        for request in requests:
            self.approvals[request.request_id] = request
            count += 1
        return count

    def read_companies(self) -> List[CompanyReference]:
        return list(self.companies)

    def read_subjects(self) -> List[SubjectDefinition]:
        return list(self.subjects)

    def get_student(self, roll_number: str) -> Optional[StudentResult]:
        return self.students.get(roll_number)

    def get_approval(self, request_id: str) -> Optional[ApprovalRequest]:
        return self.approvals.get(request_id)


# ============================================================
# MONGODB STORE
# ============================================================

def _load_all(collection, model, label: str) -> list:
    """Validate every document; malformed ones are logged and left out."""
    records = []
    for doc in collection.find({}, {"_id": 0}):
        try:
            records.append(model.model_validate(doc))
        except ValidationError as e:
            logger.warning("Skipping malformed %s document: %s", label, e.errors()[:1])
    return records


class MongoRecordStore(RecordStore):
    """
    Record store over the portal's MongoDB collections.

    Writes are one bulk_write per batch, upserting by identity key.
    """

    def __init__(self, db: Database = None):
        db = db if db is not None else get_mongo_db()
        self.students = db[COLLECTIONS["students"]]
        self.approvals = db[COLLECTIONS["approvals"]]
        self.companies = db[COLLECTIONS["companies"]]
        self.subjects = db[COLLECTIONS["subjects"]]

    def read_students(self) -> List[StudentResult]:
        return _load_all(self.students, StudentResult, "student")

    def write_students(self, students: Iterable[StudentResult]) -> int:
        operations = [
            ReplaceOne(
                {"roll_number": s.roll_number},
                s.model_dump(mode="json"),
                upsert=True
            )
            for s in students
        ]
        if not operations:
            return 0
        result = self.students.bulk_write(operations, ordered=True)
        logger.info(
            "Students written: %d inserted, %d updated",
            result.upserted_count, result.modified_count
        )
        return len(operations)

    def read_approvals(self) -> List[ApprovalRequest]:
        return _load_all(self.approvals, ApprovalRequest, "approval request")

    def write_approvals(self, requests: Iterable[ApprovalRequest]) -> int:
        operations = [
            ReplaceOne(
                {"request_id": r.request_id},
                r.model_dump(mode="json"),
                upsert=True
            )
            for r in requests
        ]
        if not operations:
            return 0
        self.approvals.bulk_write(operations, ordered=True)
        logger.info("Approval requests written: %d", len(operations))
        return len(operations)

    def read_companies(self) -> List[CompanyReference]:
        return _load_all(self.companies, CompanyReference, "company")

    def read_subjects(self) -> List[SubjectDefinition]:
        subjects = _load_all(self.subjects, SubjectDefinition, "subject")
        return subjects or list(DEFAULT_SUBJECTS)

    def get_student(self, roll_number: str) -> Optional[StudentResult]:
        doc = self.students.find_one({"roll_number": roll_number}, {"_id": 0})
        if doc is None:
            return None
        return StudentResult.model_validate(doc)

    def get_approval(self, request_id: str) -> Optional[ApprovalRequest]:
        doc = self.approvals.find_one({"request_id": request_id}, {"_id": 0})
        if doc is None:
            return None
        return ApprovalRequest.model_validate(doc)
