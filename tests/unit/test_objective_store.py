"""Tests for the MongoDB objective store and reference resolver."""
import pytest
from datetime import date, datetime
from bson import ObjectId

from conftest import make_collection, make_db


class TestToObjectIds:
    """Tests for to_object_ids function."""

    def test_drops_malformed_ids(self):
        """Test invalid hex ids are skipped."""
        from okr_service.services.objective_store import to_object_ids

        valid = ObjectId()

        assert to_object_ids([str(valid), "nope", ""]) == [valid]


@pytest.mark.asyncio
class TestMongoObjectiveStore:
    """Tests for MongoObjectiveStore.commit."""

    async def test_commit_scoped_update(self):
        """Test the update is restricted to the change's tenant and brand."""
        from okr_service.services.objective_store import MongoObjectiveStore
        from okr_service.services.sync import ObjectiveChange

        collection = make_collection()
        store = MongoObjectiveStore(collection)
        target = ObjectId()

        result = await store.commit(ObjectiveChange(
            tenant_id="t1",
            brand_id="b1",
            objective_ids=[str(target)],
            updates={"status": "archived"},
        ))

        filter_doc, update_doc = collection.update_many.call_args.args
        assert filter_doc == {"_id": {"$in": [target]}, "tenant_id": "t1", "brand_id": "b1"}
        assert update_doc["$set"]["status"] == "archived"
        assert update_doc["$set"]["is_active"] is False
        assert isinstance(update_doc["$set"]["updated_at"], datetime)
        assert result == {"matched_count": 1, "modified_count": 1}

    async def test_commit_propagates_driver_errors(self):
        """Test driver failures reach the caller."""
        from okr_service.services.objective_store import MongoObjectiveStore
        from okr_service.services.sync import ObjectiveChange

        collection = make_collection()
        collection.update_many.side_effect = ConnectionError("no primary")
        store = MongoObjectiveStore(collection)

        with pytest.raises(ConnectionError):
            await store.commit(ObjectiveChange(
                tenant_id="t1", brand_id="b1", objective_ids=[], updates={"priority": 1},
            ))


@pytest.mark.asyncio
class TestReferenceService:
    """Tests for ReferenceService lookups."""

    async def test_get_dates_converts_datetimes(self):
        """Test stored datetimes come back as dates."""
        from okr_service.services.reference_service import ReferenceService

        dates = make_collection(docs=[{"id": 20260601, "date": datetime(2026, 6, 1)}])
        service = ReferenceService(make_db(dim_date=dates))

        result = await service.get_dates([20260601, 20260601, 0])

        assert result[0].date == date(2026, 6, 1)
        assert dates.find.call_args.args[0] == {"id": {"$in": [20260601]}}

    async def test_no_ids_no_query(self):
        """Test empty lookups don't hit the database."""
        from okr_service.services.reference_service import ReferenceService

        platforms = make_collection()
        service = ReferenceService(make_db(dim_platform=platforms))

        assert await service.get_platforms([None, ""]) == []
        platforms.find.assert_not_called()

    async def test_get_active_objectives_excludes_id(self):
        """Test the edited objective is left out."""
        from okr_service.services.reference_service import ReferenceService

        keep, skip = ObjectId(), ObjectId()
        objectives = make_collection(docs=[
            {"_id": keep, "title": "Grow reach", "is_active": True},
            {"_id": skip, "title": "Reduce churn", "is_active": True},
        ])
        service = ReferenceService(make_db(objectives=objectives))

        result = await service.get_active_objectives("t1", "b1", exclude_id=str(skip))

        assert [o.id for o in result] == [str(keep)]
