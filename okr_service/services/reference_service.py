"""Reference resolver - loads dimension rows for validation."""
from datetime import datetime
from typing import Iterable, Optional

from okr_service.models.objective import ExistingObjective
from okr_service.models.reference import DateDimension, MetricTypeRef, PlatformRef


class ReferenceService:
    """Resolves date, platform and metric type ids to their attributes."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.objectives = db["objectives"]
        self.dates = db["dim_date"]
        self.platforms = db["dim_platform"]
        self.metric_types = db["dim_metric_type"]

    async def get_dates(self, date_ids: Iterable[int]) -> list[DateDimension]:
        """
        Load date dimension rows by id.

        Stored dates may be datetimes (Motor has no date type); they are
        converted to dates.
        """
        ids = sorted({i for i in date_ids if i and i > 0})
        if not ids:
            return []

        cursor = self.dates.find({"id": {"$in": ids}})
        docs = await cursor.to_list(length=None)

        return [
            DateDimension(
                id=doc["id"],
                date=doc["date"].date() if isinstance(doc["date"], datetime) else doc["date"],
            )
            for doc in docs
        ]

    async def get_platforms(self, platform_ids: Iterable[Optional[str]]) -> list[PlatformRef]:
        ids = sorted({i for i in platform_ids if i})
        if not ids:
            return []

        cursor = self.platforms.find({"id": {"$in": ids}})
        docs = await cursor.to_list(length=None)
        return [
            PlatformRef(id=doc["id"], name=doc.get("name", ""), category=doc["category"])
            for doc in docs
        ]

    async def get_metric_types(self, metric_type_ids: Iterable[Optional[str]]) -> list[MetricTypeRef]:
        ids = sorted({i for i in metric_type_ids if i})
        if not ids:
            return []

        cursor = self.metric_types.find({"id": {"$in": ids}})
        docs = await cursor.to_list(length=None)
        return [
            MetricTypeRef(id=doc["id"], name=doc.get("name", ""), category=doc["category"])
            for doc in docs
        ]

    async def get_active_objectives(
        self,
        tenant_id: str,
        brand_id: str,
        exclude_id: Optional[str] = None,
    ) -> list[ExistingObjective]:
        """
        Load the active objectives of a brand for duplicate checks.

        Args:
            tenant_id: Tenant ID
            brand_id: Brand ID
            exclude_id: Objective to leave out (the one being edited)
        """
        cursor = self.objectives.find(
            {"tenant_id": tenant_id, "brand_id": brand_id, "is_active": True},
            {"title": 1, "is_active": 1},
        )
        docs = await cursor.to_list(length=None)

        return [
            ExistingObjective(id=str(doc["_id"]), title=doc["title"], is_active=doc.get("is_active", True))
            for doc in docs
            if str(doc["_id"]) != exclude_id
        ]
