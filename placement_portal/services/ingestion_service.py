"""
Ingestion Service - batch upload orchestration.

FLOW:
raw CSV text
  -> header check (schema validator)     fatal: whole batch rejected
  -> row-by-row merge (record merger)    errors/warnings collected
  -> accepted records written as one batch to the record store
  -> IngestionReport returned to the caller

One batch at a time per collection: the snapshot read at the start is
assumed to be owned by this call until the write completes.
"""

import asyncio
import csv
import io
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from placement_portal.core.config import Settings, get_settings
from placement_portal.core.exceptions import (
    BatchReadError,
    RecordNotFoundError,
    RequestNotPendingError,
    SchemaError,
)
from placement_portal.schemas.schemas import (
    ApprovalRequest,
    BatchType,
    IngestionReport,
    RequestStatus,
    StudentResult,
    SubjectDefinition,
)
from placement_portal.services.record_merger import (
    MergeResult,
    RecordMerger,
    build_report,
    edit_marks,
    merge_rows,
)
from placement_portal.services.record_store import RecordStore
from placement_portal.services.schema_validator import validate_batch_headers
from placement_portal.services.subjects import index_subjects
from placement_portal.services.template_service import generate_template

logger = logging.getLogger(__name__)

Rows = List[Tuple[int, List[str]]]


def read_batch(text: str) -> Tuple[List[str], Rows]:
    """
    Split CSV text into the header row and numbered data rows.

    Row numbers are spreadsheet line numbers: the header is row 1, the
    first data row is row 2. Fully blank rows are dropped but still counted.

    Raises:
        BatchReadError: text is not valid CSV (e.g. a cell over the csv field limit)
    """
    text = (text or "").lstrip("\ufeff")
    try:
        records = list(csv.reader(io.StringIO(text)))
    except csv.Error as e:
        raise BatchReadError(str(e)) from e
    if not records:
        return [], []

    header = [cell.strip() for cell in records[0]]
    rows = [
        (index + 2, cells)
        for index, cells in enumerate(records[1:])
        if any(cell.strip() for cell in cells)
    ]
    return header, rows


class IngestionService:
    """
    Runs batches against a RecordStore.

    Usage:
        service = IngestionService(store)
        report = service.ingest(csv_text, BatchType.roster)
    """

    def __init__(self, store: RecordStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    @property
    def subjects(self) -> List[SubjectDefinition]:
        return self.store.read_subjects()

    # -------------------- batch ingestion --------------------

    def _start(self, text: str, batch_type: BatchType) -> Tuple[RecordMerger, Rows]:
        """Header check and snapshot read. Raises SchemaError or BatchReadError."""
        subjects = self.subjects
        header, rows = read_batch(text)
        header_map = validate_batch_headers(header, batch_type, subjects)

        if batch_type == BatchType.approval:
            snapshot = self.store.read_approvals()
        else:
            snapshot = self.store.read_students()

        merger = RecordMerger(
            batch_type,
            header_map,
            snapshot,
            subjects=subjects,
            cgpa_scale=self.settings.cgpa_scale
        )
        return merger, rows

    def _finish(self, merger: RecordMerger, batch_type: BatchType) -> IngestionReport:
        result: MergeResult = merger.result()
        if batch_type == BatchType.approval:
            self.store.write_approvals(result.accepted)
        else:
            self.store.write_students(result.accepted)

        report = result.report
        logger.info(
            "%s batch done: %d accepted, %d errors, %d warnings",
            batch_type.value, report.processed, len(report.errors), len(report.warnings)
        )
        return report

    def _rejected(self, error: Exception, batch_type: BatchType) -> IngestionReport:
        logger.info("%s batch rejected: %s", batch_type.value, error)
        return build_report([], fatal_error=str(error))

    def ingest(self, text: str, batch_type: BatchType) -> IngestionReport:
        """
        Validate and merge one batch, then persist accepted records.

        Never raises for bad content: schema and row problems are in the report.
        """
        logger.info("Starting %s batch", batch_type.value)
        try:
            merger, rows = self._start(text, batch_type)
        except (SchemaError, BatchReadError) as e:
            return self._rejected(e, batch_type)

        for row_number, cells in rows:
            merger.process_row(row_number, cells)
        return self._finish(merger, batch_type)

    async def ingest_async(
        self,
        text: str,
        batch_type: BatchType,
        on_progress: Optional[Callable[[int, int], Any]] = None
    ) -> IngestionReport:
        """
        Same as ingest(), yielding to the event loop between rows.

        Args:
            text: CSV text already read from the upload
            batch_type: marks, roster or approval
            on_progress: Called with (rows done, total rows) after each row

        Rows are still processed strictly in order; the pause between rows
        (settings.ingest_row_delay_ms) only exists for progress display.
        """
        logger.info("Starting %s batch", batch_type.value)
        try:
            merger, rows = self._start(text, batch_type)
        except (SchemaError, BatchReadError) as e:
            return self._rejected(e, batch_type)

        delay = self.settings.ingest_row_delay_ms / 1000
        for done, (row_number, cells) in enumerate(rows, start=1):
            merger.process_row(row_number, cells)
            if on_progress is not None:
                on_progress(done, len(rows))
            if delay > 0:
                await asyncio.sleep(delay)
        return self._finish(merger, batch_type)

    # -------------------- single-record edits --------------------

    def get_student(self, roll_number: str) -> StudentResult:
        student = self.store.get_student(roll_number)
        if student is None:
            raise RecordNotFoundError(roll_number)
        return student

    def update_marks(
        self,
        roll_number: str,
        marks: Mapping[str, Any]
    ) -> Tuple[Optional[StudentResult], List[str]]:
        """
        Replace some marks of one student, recomputing grades and status.

        Returns:
            (updated student, []) when applied, (None, errors) when rejected

        Raises:
            RecordNotFoundError: unknown roll number
        """
        student = self.get_student(roll_number)
        subjects: Dict[str, SubjectDefinition] = index_subjects(self.subjects)
        updated, errors = edit_marks(student, marks, subjects)
        if errors:
            logger.info("Mark edit for %s rejected: %s", roll_number, "; ".join(errors))
            return None, errors

        self.store.write_students([updated])
        logger.info("Marks updated for %s (%s)", roll_number, ", ".join(marks))
        return updated, []

    # -------------------- approval requests --------------------

    def list_requests(self, status: Optional[RequestStatus] = None) -> List[ApprovalRequest]:
        """Stored requests in submission order, optionally filtered by status."""
        requests = sorted(self.store.read_approvals(), key=lambda r: r.submitted_at)
        if status is None:
            return requests
        return [r for r in requests if r.status == status]

    def _pending_request(self, request_id: str) -> ApprovalRequest:
        request = self.store.get_approval(request_id)
        if request is None:
            raise RecordNotFoundError(request_id, kind="Request")
        if not request.is_pending:
            raise RequestNotPendingError(request_id, request.status.value)
        return request

    def _resolve(self, request: ApprovalRequest, status: RequestStatus,
                 remarks: Optional[str]) -> ApprovalRequest:
        resolved = request.model_copy(update={
            "status": status,
            "resolved_at": datetime.now(timezone.utc),
            "remarks": remarks,
        })
        self.store.write_approvals([resolved])
        logger.info("Request %s %s (%s)", request.request_id, status.value, request.roll_number)
        return resolved

    def approve_request(self, request_id: str, remarks: Optional[str] = None) -> ApprovalRequest:
        """
        Approve a pending request.

        The first approval for an unknown roll number enrolls the student
        (same duplicate rule as a roster row: an existing record is kept).

        Raises:
            RecordNotFoundError: unknown request id
            RequestNotPendingError: request already approved or rejected
        """
        request = self._pending_request(request_id)

        merger = RecordMerger(
            BatchType.roster, {}, self.store.read_students(),
            cgpa_scale=self.settings.cgpa_scale
        )
        enrolled = merger.enroll(request)
        if enrolled.is_accepted:
            self.store.write_students(merger.result().accepted)
            logger.info("Student %s enrolled from request %s", request.roll_number, request_id)
        else:
            logger.info("%s", enrolled.warnings[0])

        return self._resolve(request, RequestStatus.approved, remarks)

    def reject_request(self, request_id: str, remarks: Optional[str] = None) -> ApprovalRequest:
        """
        Reject a pending request. No student record is touched.

        Raises:
            RecordNotFoundError: unknown request id
            RequestNotPendingError: request already approved or rejected
        """
        request = self._pending_request(request_id)
        return self._resolve(request, RequestStatus.rejected, remarks)

    # -------------------- templates --------------------

    def template(self, batch_type: BatchType) -> str:
        return generate_template(batch_type, self.subjects)


def ingest_text(
    text: str,
    batch_type: BatchType,
    snapshot: Sequence[Any],
    subjects: Sequence[SubjectDefinition] = (),
    cgpa_scale: float = 10.0
) -> MergeResult:
    """
    Store-free ingestion: snapshot in, updated record set + report out.

    Unreadable CSV or a missing required header yields a report with one
    fatal error and the snapshot unchanged.
    """
    try:
        header, rows = read_batch(text)
        header_map = validate_batch_headers(header, batch_type, subjects)
    except (SchemaError, BatchReadError) as e:
        return MergeResult(
            records=list(snapshot),
            accepted=[],
            report=build_report([], fatal_error=str(e))
        )

    return merge_rows(batch_type, header_map, rows, snapshot, subjects, cgpa_scale)
