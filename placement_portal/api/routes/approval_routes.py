"""
Approval Routes

GET /approvals - List approval requests (optionally by status)
PUT /approvals/{request_id}/approve - Approve a pending request
PUT /approvals/{request_id}/reject - Reject a pending request
"""

from fastapi import APIRouter, HTTPException, Depends, Body
from typing import List, Optional

from placement_portal.api.dependencies import get_ingestion_service
from placement_portal.core.exceptions import RecordNotFoundError, RequestNotPendingError
from placement_portal.services.ingestion_service import IngestionService
from placement_portal.schemas.schemas import ApprovalDecision, ApprovalRequest, RequestStatus

router = APIRouter(prefix="/approvals", tags=["Approvals"])


@router.get("", response_model=List[ApprovalRequest])
async def list_requests(
    status: Optional[RequestStatus] = None,
    service: IngestionService = Depends(get_ingestion_service)
):
    """Approval requests in submission order. Use ?status=pending for the review queue."""
    return service.list_requests(status)


@router.put("/{request_id}/approve", response_model=ApprovalRequest)
async def approve_request(
    request_id: str,
    decision: Optional[ApprovalDecision] = Body(None),
    service: IngestionService = Depends(get_ingestion_service)
):
    """
    Approve a pending request.

    If no student with the request's roll number exists yet, one is
    enrolled from the request details.
    """
    remarks = decision.remarks if decision else None
    try:
        return service.approve_request(request_id, remarks)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RequestNotPendingError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/{request_id}/reject", response_model=ApprovalRequest)
async def reject_request(
    request_id: str,
    decision: Optional[ApprovalDecision] = Body(None),
    service: IngestionService = Depends(get_ingestion_service)
):
    remarks = decision.remarks if decision else None
    try:
        return service.reject_request(request_id, remarks)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RequestNotPendingError as e:
        raise HTTPException(status_code=409, detail=str(e))
