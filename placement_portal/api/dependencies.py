"""
FastAPI dependencies - record store and services.

Tests override `get_record_store` with an InMemoryRecordStore:
    app.dependency_overrides[get_record_store] = lambda: store
"""

from functools import lru_cache

from fastapi import Depends

from placement_portal.services.analytics_service import AnalyticsService
from placement_portal.services.ingestion_service import IngestionService
from placement_portal.services.record_store import MongoRecordStore, RecordStore


@lru_cache()
def _mongo_store() -> MongoRecordStore:
    return MongoRecordStore()


def get_record_store() -> RecordStore:
    return _mongo_store()


def get_ingestion_service(store: RecordStore = Depends(get_record_store)) -> IngestionService:
    return IngestionService(store)


def get_analytics_service(store: RecordStore = Depends(get_record_store)) -> AnalyticsService:
    return AnalyticsService(store)
