"""
API module - FastAPI routers, dependencies and error handlers.

Usage:
    from placement_portal.api.routes import api_router
    app.include_router(api_router, prefix="/api")
"""
