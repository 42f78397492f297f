#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify the MongoDB record store is reachable.
Usage: python scripts/check_connections.py
"""
import sys
sys.path.insert(0, '.')

from placement_portal.db.mongodb import check_mongo_connection, init_mongo_indexes
from placement_portal.core.config import get_settings


def main():
    settings = get_settings()
    print("=" * 50)
    print("PLACEMENT PORTAL - CONNECTION CHECK")
    print("=" * 50)

    print("\n[1] Checking MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if not check_mongo_connection():
        print("    ❌ MongoDB: FAILED")
        sys.exit(1)
    print("    ✅ MongoDB: CONNECTED")

    print("\n[2] Creating indexes...")
    init_mongo_indexes()
    print("    ✅ Indexes ready")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
