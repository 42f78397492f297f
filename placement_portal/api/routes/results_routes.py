"""
Results Routes

POST /results/upload/{batch_type} - Upload a marks / roster / approval CSV
GET /results/template/{batch_type} - Download a CSV template with sample rows
GET /results/students/{roll_number} - Get one student's result
PUT /results/students/{roll_number}/marks - Edit one student's marks
"""

from fastapi import APIRouter, HTTPException, Depends, UploadFile, File
from fastapi.responses import Response

from placement_portal.api.dependencies import get_ingestion_service
from placement_portal.core.exceptions import RecordNotFoundError
from placement_portal.services.ingestion_service import IngestionService
from placement_portal.utils.file_upload import read_upload_text
from placement_portal.schemas.schemas import (
    BatchType, IngestionReport, MarksUpdate, StudentResult
)

router = APIRouter(prefix="/results", tags=["Results"])


@router.post("/upload/{batch_type}", response_model=IngestionReport)
async def upload_batch(
    batch_type: BatchType,
    file: UploadFile = File(..., description="Batch file (CSV, first line = headers)"),
    service: IngestionService = Depends(get_ingestion_service)
):
    """
    Upload and ingest one batch.

    Process:
    1. Read CSV text from the upload
    2. Check headers (missing column -> whole batch rejected)
    3. Validate and merge rows in file order
    4. Store accepted records

    Always returns the report, including accepted count, errors and warnings.
    """
    text, _ = await read_upload_text(file)
    return await service.ingest_async(text, batch_type)


@router.get("/template/{batch_type}")
async def download_template(
    batch_type: BatchType,
    service: IngestionService = Depends(get_ingestion_service)
):
    """CSV template with the batch type's headers and sample rows."""
    return Response(
        content=service.template(batch_type),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{batch_type.value}_template.csv"'}
    )


@router.get("/students/{roll_number}", response_model=StudentResult)
async def get_student_result(
    roll_number: str,
    service: IngestionService = Depends(get_ingestion_service)
):
    """Get a student's marks, SGPA and overall status."""
    try:
        return service.get_student(roll_number)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/students/{roll_number}/marks", response_model=StudentResult)
async def update_student_marks(
    roll_number: str,
    data: MarksUpdate,
    service: IngestionService = Depends(get_ingestion_service)
):
    """
    Replace marks for one student.

    All-or-nothing: one invalid mark rejects the whole edit.
    Grades, SGPA and overall status are recomputed.
    """
    try:
        updated, errors = service.update_marks(roll_number, data.marks)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    if errors:
        raise HTTPException(status_code=422, detail=errors)
    return updated
