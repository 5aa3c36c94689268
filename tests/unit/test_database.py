"""Tests for the database connection manager."""
import pytest
from unittest.mock import MagicMock, patch

from conftest import make_collection, make_db


@pytest.mark.asyncio
class TestEnsureIndexes:
    """Tests for ensure_indexes function."""

    async def test_objective_scope_indexes(self):
        """Test objectives are indexed by tenant and brand first."""
        from okr_service.database import ensure_indexes

        objectives = make_collection()
        db = make_db(objectives=objectives)

        count = await ensure_indexes(db)

        assert count == 5
        keys = [c.args[0] for c in objectives.create_index.call_args_list]
        assert all(k[:2] == [("tenant_id", 1), ("brand_id", 1)] for k in keys)

    async def test_dimension_ids_unique(self):
        """Test every dimension id index is unique."""
        from okr_service.database import ensure_indexes

        dims = {name: make_collection() for name in ("dim_date", "dim_platform", "dim_metric_type")}

        await ensure_indexes(make_db(**dims))

        for collection in dims.values():
            collection.create_index.assert_awaited_once_with([("id", 1)], unique=True)


@pytest.mark.asyncio
class TestDatabase:
    """Tests for Database connection lifecycle."""

    async def test_connect_and_disconnect(self):
        """Test connecting ensures indexes and disconnecting clears the handle."""
        from okr_service.database import Database, get_database
        import okr_service.database as database_module

        db = make_db()
        client = MagicMock()
        client.__getitem__.return_value = db
        manager = Database()

        with patch.object(database_module, "AsyncIOMotorClient", return_value=client), \
                patch.object(database_module, "database", manager):
            await manager.connect()
            assert await get_database() is db

            await manager.disconnect()

            client.close.assert_called_once()
            with pytest.raises(RuntimeError):
                await get_database()
