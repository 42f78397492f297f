"""
Analytics Routes

GET /analytics/statistics - Full placement statistics (optional ?branch=)
GET /analytics/branches - Branch-wise breakdown
GET /analytics/companies - Company-wise breakdown
"""

from fastapi import APIRouter, Depends
from typing import List, Optional

from placement_portal.api.dependencies import get_analytics_service
from placement_portal.services.analytics_service import AnalyticsService
from placement_portal.schemas.schemas import AggregateStatistics, BranchStats, CompanyStats

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/statistics", response_model=AggregateStatistics)
async def get_statistics(
    branch: Optional[str] = None,
    service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Placement statistics over all students, or one branch with ?branch=.

    Recomputed on every call. Package values are in lakhs per annum.
    """
    return service.get_statistics(branch)


@router.get("/branches", response_model=List[BranchStats])
async def get_branch_stats(service: AnalyticsService = Depends(get_analytics_service)):
    return service.get_branch_stats()


@router.get("/companies", response_model=List[CompanyStats])
async def get_company_stats(service: AnalyticsService = Depends(get_analytics_service)):
    return service.get_company_stats()
