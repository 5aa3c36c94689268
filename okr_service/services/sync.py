"""Optimistic mutation synchronizer.

Protocol for every mutation:
    1. lock every affected cache key (sorted order)
    2. snapshot each key
    3. apply the change to the cached values
    4. commit the change to the external store
    5a. success: confirm and invalidate the keys
    5b. failure: restore every snapshot, then raise ExternalCommitError

Mutations on the same key are serialised; different keys run concurrently.
Each scope carries a generation that every commit bumps when it starts and
when it ends, so a refill whose fetch overlapped a commit is cached as stale
instead of as fresh.
"""
import asyncio
import logging
import weakref
from contextlib import AsyncExitStack
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from pydantic import BaseModel

from okr_service.models.errors import ExternalCommitError, ExternalCommitFailure
from okr_service.models.objective import ObjectiveStatus
from okr_service.services.cache import CacheEntry, ObjectiveCache, scope_of, scope_prefix


logger = logging.getLogger(__name__)


class ObjectiveChange(BaseModel):
    """A field-level change applied to one or more objectives of a scope."""

    tenant_id: str
    brand_id: str
    objective_ids: list[str]
    updates: dict


class MutationResult(BaseModel):
    """Outcome of a committed mutation."""

    keys: list[str]
    change: ObjectiveChange
    store_result: dict = {}


class CacheAdapter(Protocol):
    """Contract for the cache the synchronizer owns."""
    def read(self, key: str) -> Any: ...
    def write(self, key: str, value: Any, optimistic: bool = False) -> None: ...
    def snapshot(self, key: str) -> Optional[CacheEntry]: ...
    def restore(self, key: str, snapshot: Optional[CacheEntry]) -> None: ...
    def invalidate(self, key: str) -> None: ...
    def keys_for_scope(self, tenant_id: str, brand_id: str) -> list[str]: ...


class StoreAdapter(Protocol):
    """Contract for the durable objective store. Raises on failure."""
    async def commit(self, change: ObjectiveChange) -> dict: ...


def with_status_mirror(updates: dict) -> dict:
    """Keep is_active consistent with status (is_active == not archived)."""
    updates = dict(updates)
    status = updates.get("status")
    if status is not None:
        updates["status"] = ObjectiveStatus(status).value
        updates["is_active"] = updates["status"] != ObjectiveStatus.ARCHIVED.value
    return updates


def apply_change(value: Any, change: ObjectiveChange, now: Optional[datetime] = None) -> Any:
    """Return a copy of a cached objective list with the change merged in."""
    if not isinstance(value, list):
        return value

    targets = set(change.objective_ids)
    updates = with_status_mirror(change.updates)
    updates["updated_at"] = (now or datetime.utcnow()).isoformat()

    return [
        {**item, **updates} if item.get("id") in targets else item
        for item in value
    ]


class OptimisticSynchronizer:
    """Applies mutations to the cache ahead of the store and reconciles."""

    def __init__(self, cache: CacheAdapter, store: Optional[StoreAdapter] = None):
        self.cache = cache
        self.store = store
        # unreferenced locks are dropped, so the map only holds keys in use
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
        self._generations: dict[str, int] = {}
        self._commits_in_flight: dict[str, int] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def _generation(self, scope: str) -> int:
        return self._generations.get(scope, 0)

    def _bump_generation(self, scope: str) -> None:
        self._generations[scope] = self._generation(scope) + 1

    def _store_may_change(self, scope: str, since_generation: int) -> bool:
        """True if a commit of the scope overlapped a read that began at since_generation."""
        return (
            self._generation(scope) != since_generation
            or self._commits_in_flight.get(scope, 0) > 0
        )

    def keys_for_scope(self, tenant_id: str, brand_id: str) -> list[str]:
        return self.cache.keys_for_scope(tenant_id, brand_id)

    async def invalidate_scope(self, tenant_id: str, brand_id: str) -> None:
        """Invalidate every cached query of a scope (after inserts)."""
        self._bump_generation(scope_prefix(tenant_id, brand_id))
        for key in self.keys_for_scope(tenant_id, brand_id):
            async with self._lock_for(key):
                self.cache.invalidate(key)

    async def load(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """
        Read a key, refetching it from the store when missing or stale.

        Runs under the key lock so a refill never interleaves with a
        mutation of the same key. A mutation of the scope that commits while
        the fetch is running may not have seen this key yet; the refill is
        then stored already invalidated so the next read refetches.
        """
        scope = scope_of(key)
        async with self._lock_for(key):
            value = self.cache.read(key)
            if value is None:
                generation = self._generation(scope)
                value = await fetch()
                self.cache.write(key, value)
                if self._store_may_change(scope, generation):
                    self.cache.invalidate(key)
            return value

    async def mutate(
        self,
        keys: Union[str, list[str]],
        change: ObjectiveChange,
        store: Optional[StoreAdapter] = None,
    ) -> MutationResult:
        """
        Apply a change optimistically and commit it to the store.

        Args:
            keys: Cache key(s) whose values the change affects
            change: Change to apply and commit
            store: Store adapter (defaults to the one given at construction)

        Returns:
            MutationResult with the store's result

        Raises:
            ExternalCommitError: If the store commit failed; the cache has
                already been restored when this is raised
        """
        store = store or self.store
        if store is None:
            raise RuntimeError("No store adapter configured")

        keys = sorted(set([keys] if isinstance(keys, str) else keys))
        scope = scope_prefix(change.tenant_id, change.brand_id)

        async with AsyncExitStack() as stack:
            for key in keys:
                await stack.enter_async_context(self._lock_for(key))

            snapshots = {key: self.cache.snapshot(key) for key in keys}

            now = datetime.utcnow()
            for key, snapshot in snapshots.items():
                if snapshot is not None:
                    self.cache.write(key, apply_change(snapshot.value, change, now), optimistic=True)

            self._commits_in_flight[scope] = self._commits_in_flight.get(scope, 0) + 1
            self._bump_generation(scope)
            try:
                store_result = await store.commit(change)
            except Exception as e:
                for key, snapshot in snapshots.items():
                    self.cache.restore(key, snapshot)
                failure = ExternalCommitFailure(cause=str(e), cause_type=type(e).__name__)
                logger.warning(
                    "Rolled back %d cache key(s) after commit failure: %s",
                    len(keys),
                    failure.cause,
                )
                raise ExternalCommitError(failure) from e
            finally:
                self._commits_in_flight[scope] -= 1
                self._bump_generation(scope)

            for key in keys:
                self.cache.invalidate(key)

        return MutationResult(keys=keys, change=change, store_result=store_result or {})


# Global synchronizer instance
synchronizer = OptimisticSynchronizer(ObjectiveCache())


def get_synchronizer() -> OptimisticSynchronizer:
    """Dependency to get the synchronizer instance."""
    return synchronizer
