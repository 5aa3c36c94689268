"""Seed the reference dimensions the objective validator resolves against.

Creates the date dimension (one row per day), the platform and metric type
dimensions, and the indexes the service queries on. Safe to re-run: rows are
upserted by id.

Usage:
    python scripts/seed_dimensions.py \\
        --mongodb-url mongodb://localhost:27017 \\
        --days 730
"""
import argparse
import asyncio
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import UpdateOne

from okr_service.database import ensure_indexes


PLATFORMS = [
    {"id": "6f1c2b9e-5b7a-4d0e-9a51-0c6a1f3e2d01", "name": "Instagram", "category": "social_media"},
    {"id": "6f1c2b9e-5b7a-4d0e-9a51-0c6a1f3e2d02", "name": "TikTok", "category": "social_media"},
    {"id": "6f1c2b9e-5b7a-4d0e-9a51-0c6a1f3e2d03", "name": "LinkedIn", "category": "social_media"},
    {"id": "6f1c2b9e-5b7a-4d0e-9a51-0c6a1f3e2d04", "name": "Newsletter", "category": "email_marketing"},
    {"id": "6f1c2b9e-5b7a-4d0e-9a51-0c6a1f3e2d05", "name": "Website", "category": "owned_web"},
]

METRIC_TYPES = [
    {"id": "9a7d4c3b-2e1f-4a6b-8c9d-1e2f3a4b5c01", "name": "Engagement Rate", "category": "social_engagement"},
    {"id": "9a7d4c3b-2e1f-4a6b-8c9d-1e2f3a4b5c02", "name": "Followers", "category": "audience_growth"},
    {"id": "9a7d4c3b-2e1f-4a6b-8c9d-1e2f3a4b5c03", "name": "Open Rate", "category": "email_performance"},
    {"id": "9a7d4c3b-2e1f-4a6b-8c9d-1e2f3a4b5c04", "name": "Revenue", "category": "financial_metrics"},
    {"id": "9a7d4c3b-2e1f-4a6b-8c9d-1e2f3a4b5c05", "name": "Sessions", "category": "traffic"},
]


def date_rows(start: date, days: int) -> list[dict]:
    """Build date dimension rows; ids are yyyymmdd integers."""
    rows = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        rows.append({
            "id": int(day.strftime("%Y%m%d")),
            # Motor stores datetimes, not dates
            "date": datetime.combine(day, datetime.min.time()),
            "year": day.year,
            "quarter": (day.month - 1) // 3 + 1,
            "month": day.month,
        })
    return rows


async def upsert_by_id(collection, rows: list[dict]) -> int:
    """Upsert rows keyed by their id field."""
    if not rows:
        return 0
    result = await collection.bulk_write(
        [UpdateOne({"id": row["id"]}, {"$set": row}, upsert=True) for row in rows]
    )
    return result.upserted_count + result.modified_count


async def seed(mongodb_url: str, db_name: str, days: int):
    """Seed dimensions and create indexes."""
    client = AsyncIOMotorClient(mongodb_url)
    db = client[db_name]

    count = await upsert_by_id(db["dim_date"], date_rows(date.today(), days))
    print(f"Upserted {count} rows into dim_date")

    count = await upsert_by_id(db["dim_platform"], PLATFORMS)
    print(f"Upserted {count} rows into dim_platform")

    count = await upsert_by_id(db["dim_metric_type"], METRIC_TYPES)
    print(f"Upserted {count} rows into dim_metric_type")

    count = await ensure_indexes(db)
    print(f"Ensured {count} indexes")

    client.close()


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed OKR reference dimensions")
    parser.add_argument(
        "--mongodb-url",
        default="mongodb://localhost:27017",
        help="MongoDB connection URL",
    )
    parser.add_argument(
        "--db-name",
        default="okr_service",
        help="Database name",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=730,
        help="Number of days (from today) in the date dimension",
    )
    args = parser.parse_args()

    await seed(args.mongodb_url, args.db_name, args.days)


if __name__ == "__main__":
    asyncio.run(main())
