"""
Schemas module - Records, reports and API contracts.

Usage:
    from placement_portal.schemas import StudentResult, IngestionReport
"""

from placement_portal.schemas.schemas import (
    AggregateStatistics,
    ApprovalRequest,
    BatchType,
    CompanyReference,
    IngestionReport,
    PackageAmount,
    PlacementStatus,
    StudentResult,
    SubjectDefinition,
    SubjectResult,
)

__all__ = [
    "AggregateStatistics",
    "ApprovalRequest",
    "BatchType",
    "CompanyReference",
    "IngestionReport",
    "PackageAmount",
    "PlacementStatus",
    "StudentResult",
    "SubjectDefinition",
    "SubjectResult",
]
