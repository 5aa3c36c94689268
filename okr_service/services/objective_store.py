"""MongoDB store adapter used by the synchronizer to commit changes."""
import logging
from datetime import datetime

from bson import ObjectId

from okr_service.services.sync import ObjectiveChange, with_status_mirror


logger = logging.getLogger(__name__)


def to_object_ids(ids: list[str]) -> list[ObjectId]:
    """Convert hex ids to ObjectIds, dropping malformed ones."""
    return [ObjectId(i) for i in ids if ObjectId.is_valid(i)]


class MongoObjectiveStore:
    """Durable store for objective changes, scoped by tenant and brand."""

    def __init__(self, collection):
        """Initialize store with the objectives collection."""
        self.collection = collection

    async def commit(self, change: ObjectiveChange) -> dict:
        """
        Write a change to every targeted objective of the change's scope.

        Returns:
            Dictionary with matched_count and modified_count

        Raises:
            Whatever the driver raises; the synchronizer rolls back on it
        """
        update_doc = with_status_mirror(change.updates)
        update_doc["updated_at"] = datetime.utcnow()

        result = await self.collection.update_many(
            {
                "_id": {"$in": to_object_ids(change.objective_ids)},
                "tenant_id": change.tenant_id,
                "brand_id": change.brand_id,
            },
            {"$set": update_doc},
        )

        logger.info(
            "Committed change to %d objective(s) for brand %s",
            result.modified_count,
            change.brand_id,
        )
        return {
            "matched_count": result.matched_count,
            "modified_count": result.modified_count,
        }
