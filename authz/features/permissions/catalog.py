"""
Permission and role catalogs.

Thin store-backed lookups that return catalog entries in the order they were
referenced. Stale references (ids with no entry in the store) contribute
nothing; they are logged and skipped rather than failing the request.
"""
from typing import Iterable, List, TypeVar

from authz.features.permissions.schemas import PermissionSchema, RoleSchema
from authz.features.permissions.stores import PermissionStore, RoleStore
from authz.utils import get_logger


log = get_logger(__name__)

T = TypeVar("T", PermissionSchema, RoleSchema)


def _in_reference_order(ids: List[str], found: Iterable[T], kind: str) -> List[T]:
    by_id = {item.id: item for item in found}
    missing = [i for i in ids if i not in by_id]
    if missing:
        log.debug(f"Skipping unknown {kind} ids: {missing}")
    return [by_id[i] for i in ids if i in by_id]


def _unique(ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(ids))


class PermissionCatalog:
    """Lookup of permission definitions."""

    def __init__(self, store: PermissionStore):
        self.store = store

    async def get_many(self, ids: Iterable[str]) -> List[PermissionSchema]:
        ids = _unique(ids)
        if not ids:
            return []
        found = await self.store.find_by_ids(ids)
        return _in_reference_order(ids, found, "permission")

    async def list_all(self, active_only: bool = True) -> List[PermissionSchema]:
        return await self.store.find_all(active_only=active_only)


class RoleCatalog:
    """Lookup of roles with their ordered permissions."""

    def __init__(self, store: RoleStore):
        self.store = store

    async def get_many(self, ids: Iterable[str]) -> List[RoleSchema]:
        ids = _unique(ids)
        if not ids:
            return []
        found = await self.store.find_by_ids(ids)
        return _in_reference_order(ids, found, "role")

    async def list_all(self, active_only: bool = True) -> List[RoleSchema]:
        return await self.store.find_all(active_only=active_only)
