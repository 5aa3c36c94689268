"""In-process cache of objective list queries.

Entries are keyed by a query signature (tenant, brand and filter set). The
cache is owned by the OptimisticSynchronizer; everything else reads and
writes it through the synchronizer.
"""
import copy
from dataclasses import dataclass
from typing import Any, Optional


KEY_PREFIX = "objectives"


@dataclass
class CacheEntry:
    """A cached query result and its reconciliation state."""

    value: Any
    optimistic: bool = False  # holds an unconfirmed write
    stale: bool = False  # must be refetched before the next read


def scope_prefix(tenant_id: str, brand_id: str) -> str:
    return f"{KEY_PREFIX}:{tenant_id}:{brand_id}:"


def scope_of(key: str) -> str:
    """
    Scope prefix of a cache key.

    Examples:
        >>> scope_of("objectives:t1:b1:status=active")
        'objectives:t1:b1:'
    """
    return key[: key.rindex(":") + 1]


def cache_key(tenant_id: str, brand_id: str, **filters: Optional[str]) -> str:
    """
    Build the query signature for a list of objectives.

    Examples:
        >>> cache_key("t1", "b1", status="active", granularity=None)
        'objectives:t1:b1:status=active'
        >>> cache_key("t1", "b1")
        'objectives:t1:b1:all'
    """
    parts = [f"{name}={value}" for name, value in sorted(filters.items()) if value is not None]
    return scope_prefix(tenant_id, brand_id) + ("&".join(parts) or "all")


class ObjectiveCache:
    """Keyed cache with snapshot/restore support."""

    def __init__(self):
        self._entries: dict[str, CacheEntry] = {}

    def read(self, key: str) -> Any:
        """Return the cached value, or None if missing or invalidated."""
        entry = self._entries.get(key)
        if entry is None or entry.stale:
            return None
        return entry.value

    def write(self, key: str, value: Any, optimistic: bool = False) -> None:
        self._entries[key] = CacheEntry(value=value, optimistic=optimistic)

    def snapshot(self, key: str) -> Optional[CacheEntry]:
        """Deep copy of the entry for key (None if absent)."""
        entry = self._entries.get(key)
        return copy.deepcopy(entry) if entry is not None else None

    def restore(self, key: str, snapshot: Optional[CacheEntry]) -> None:
        """Put back an entry exactly as it was snapshotted."""
        if snapshot is None:
            self._entries.pop(key, None)
        else:
            self._entries[key] = copy.deepcopy(snapshot)

    def invalidate(self, key: str) -> None:
        """Mark an entry as confirmed and due for refetch."""
        entry = self._entries.get(key)
        if entry is not None:
            entry.optimistic = False
            entry.stale = True

    def keys_for_scope(self, tenant_id: str, brand_id: str) -> list[str]:
        prefix = scope_prefix(tenant_id, brand_id)
        return sorted(k for k in self._entries if k.startswith(prefix))

    def clear(self) -> None:
        self._entries.clear()
