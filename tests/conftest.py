import csv
import io

import pytest
from fastapi.testclient import TestClient

from placement_portal.api.dependencies import get_record_store
from placement_portal.core.config import Settings
from placement_portal.main import app
from placement_portal.schemas.schemas import CompanyReference, StudentResult, SubjectResult
from placement_portal.services.ingestion_service import IngestionService
from placement_portal.services.record_store import InMemoryRecordStore
from placement_portal.services.subjects import DEFAULT_SUBJECTS, index_subjects


@pytest.fixture
def subjects():
    return list(DEFAULT_SUBJECTS)


@pytest.fixture
def subject_index(subjects):
    return index_subjects(subjects)


@pytest.fixture
def store():
    return InMemoryRecordStore(
        companies=[
            CompanyReference(name="Infosys", tier="Tier 2"),
            CompanyReference(name="TCS", tier="Tier 2"),
        ]
    )


@pytest.fixture
def settings():
    return Settings(ingest_row_delay_ms=0)


@pytest.fixture
def service(store, settings):
    return IngestionService(store, settings)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_record_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_csv():
    """Build CSV text from a header list and row lists."""
    def _make(headers, rows):
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(headers)
        writer.writerows(rows)
        return buffer.getvalue()
    return _make


@pytest.fixture
def make_student(subject_index):
    """StudentResult with marks for the given subject codes."""
    def _make(roll_number="CS2021001", name="Aarav Sharma", marks=None, **fields):
        results = {
            code: SubjectResult.from_definition(subject_index[code], mark)
            for code, mark in (marks or {}).items()
        }
        return StudentResult(roll_number=roll_number, name=name, results=results, **fields)
    return _make
