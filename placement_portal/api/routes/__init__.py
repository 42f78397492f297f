"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from placement_portal.api.routes.results_routes import router as results_router
from placement_portal.api.routes.analytics_routes import router as analytics_router
from placement_portal.api.routes.approval_routes import router as approval_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(results_router)
api_router.include_router(analytics_router)
api_router.include_router(approval_router)
