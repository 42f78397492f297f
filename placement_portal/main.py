"""
Campus Placement Portal - Results & Analytics API

FastAPI backend with:
- MongoDB record store (students, approval requests, companies)
- Batch CSV ingestion (marks, roster, approval requests)
- Grade engine (grades, SGPA, Pass / ATKT)
- Placement statistics recomputed on demand

Run: uvicorn placement_portal.main:app --reload
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from placement_portal import __version__
from placement_portal.api.errors import add_error_handlers
from placement_portal.api.routes import api_router
from placement_portal.db.mongodb import check_mongo_connection, init_mongo_indexes
from placement_portal.core.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
# Driver heartbeat logs are noise at INFO
logging.getLogger("pymongo").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Campus Placement Portal",
    description="""
    Results ingestion, grading and placement analytics.

    ## Features
    - **Uploads**: Marks, roster and approval-request CSV batches with a per-batch report
    - **Templates**: Downloadable CSV templates with sample rows
    - **Results**: Grades, SGPA and Pass / ATKT status per student
    - **Analytics**: Placement rate, packages, branch and company breakdowns
    """,
    version=__version__,
    debug=settings.debug,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_error_handlers(app)

# Include API routes
app.include_router(api_router, prefix="/api")


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "Campus Placement Portal", "version": __version__}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "mongodb": "connected" if check_mongo_connection() else "disconnected"
    }
