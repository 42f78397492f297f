"""
MongoDB Connection Utility

MongoDB stores:
- Student records (identity, marks, placement details)
- Approval requests uploaded in batches
- Company reference data (name, tier)
- Subject catalogue overrides

Records are documents keyed by roll number; each student document is
self-contained, so no joins are needed for grading or analytics.
"""
import logging

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from placement_portal.core.config import get_settings

logger = logging.getLogger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(get_settings().mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the portal database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[get_settings().mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    """
    Get a specific collection.
    Collections we use:
    - students: One document per roll number
    - approval_requests: Batch-uploaded requests
    - companies: Company reference data
    - subjects: Subject catalogue (optional override)
    """
    db = get_mongo_db()
    return db[name]


def check_mongo_connection() -> bool:
    """
    Check if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except PyMongoError as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "students": "students",
    "approvals": "approval_requests",
    "companies": "companies",
    "subjects": "subjects"
}


def init_mongo_indexes(db: Database = None):
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    db = db if db is not None else get_mongo_db()

    # Roll number is the student identity key
    db[COLLECTIONS["students"]].create_index("roll_number", unique=True)
    db[COLLECTIONS["students"]].create_index("branch")

    # Duplicate-pending lookup for approval requests
    db[COLLECTIONS["approvals"]].create_index("request_id", unique=True)
    db[COLLECTIONS["approvals"]].create_index([
        ("roll_number", ASCENDING),
        ("request_type", ASCENDING),
        ("status", ASCENDING)
    ])

    db[COLLECTIONS["companies"]].create_index("name")
    db[COLLECTIONS["subjects"]].create_index("code", unique=True)

    logger.info("MongoDB indexes created successfully")
