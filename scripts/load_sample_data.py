#!/usr/bin/env python3
"""
Sample Data Loader

Loads the built-in CSV templates into MongoDB, in dependency order:
1. Company reference data (name -> tier)
2. Roster template (creates the students)
3. Marks template (grades the students created in step 2)
4. Approval-request template

Re-running is safe: every second run reports duplicates and changes nothing.

PREREQUISITES:
- MongoDB running (see scripts/check_connections.py)

Run: python scripts/load_sample_data.py
"""
import sys
sys.path.insert(0, '.')

from placement_portal.db.mongodb import COLLECTIONS, get_mongo_db, init_mongo_indexes
from placement_portal.schemas.schemas import BatchType
from placement_portal.services.analytics_service import AnalyticsService
from placement_portal.services.ingestion_service import IngestionService
from placement_portal.services.record_store import MongoRecordStore

SAMPLE_COMPANIES = [
    {"name": "Infosys", "tier": "Tier 2"},
    {"name": "TCS", "tier": "Tier 2"},
    {"name": "Google", "tier": "Tier 1"},
]


def load_companies():
    print("\n[1] Loading company reference data...")
    companies = get_mongo_db()[COLLECTIONS["companies"]]
    for company in SAMPLE_COMPANIES:
        companies.update_one({"name": company["name"]}, {"$set": company}, upsert=True)
    print(f"    ✅ {len(SAMPLE_COMPANIES)} companies upserted")


def load_batches(service: IngestionService):
    for step, batch_type in enumerate([BatchType.roster, BatchType.marks, BatchType.approval], start=2):
        print(f"\n[{step}] Ingesting {batch_type.value} template...")
        report = service.ingest(service.template(batch_type), batch_type)
        print(f"    Accepted: {report.processed}")
        for error in report.errors:
            print(f"    ❌ {error}")
        for warning in report.warnings:
            print(f"    ⚠️  {warning}")


def main():
    print("=" * 50)
    print("PLACEMENT PORTAL - SAMPLE DATA")
    print("=" * 50)

    init_mongo_indexes()
    store = MongoRecordStore()

    load_companies()
    load_batches(IngestionService(store))

    stats = AnalyticsService(store).get_statistics()
    print("\n[5] Statistics")
    print(f"    Students: {stats.total_students}, placed: {stats.placed_students}")
    print(f"    Placement rate: {stats.placement_rate:.1f}%")
    print(f"    Average package: {stats.average_package:.2f} LPA")

    print("\n" + "=" * 50)
    print("Sample data loaded!")
    print("=" * 50)


if __name__ == "__main__":
    main()
