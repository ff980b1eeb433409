"""In-memory implementations of the catalog stores."""

from typing import Dict, Iterable, Optional

from authz.features.permissions.schemas import PermissionSchema, PrincipalSchema, RoleSchema
from authz.features.permissions.stores import PermissionStore, PrincipalStore, RoleStore


class InMemoryPermissionStore(PermissionStore):
    """Keep permissions in a dict.

    Useful for tests or for embedding the engine with a static catalog.
    """

    def __init__(self, permissions: Iterable[PermissionSchema] = ()) -> None:
        self._permissions: Dict[str, PermissionSchema] = {p.id: p for p in permissions}

    def add(self, permission: PermissionSchema) -> PermissionSchema:
        self._permissions[permission.id] = permission
        return permission

    async def find_by_ids(self, ids: Iterable[str]) -> list[PermissionSchema]:
        return [self._permissions[i] for i in ids if i in self._permissions]

    async def find_all(self, active_only: bool = True) -> list[PermissionSchema]:
        return [p for p in self._permissions.values() if p.is_active or not active_only]


class InMemoryRoleStore(RoleStore):
    def __init__(self, roles: Iterable[RoleSchema] = ()) -> None:
        self._roles: Dict[str, RoleSchema] = {r.id: r for r in roles}

    def add(self, role: RoleSchema) -> RoleSchema:
        self._roles[role.id] = role
        return role

    async def find_by_ids(self, ids: Iterable[str]) -> list[RoleSchema]:
        return [self._roles[i] for i in ids if i in self._roles]

    async def find_all(self, active_only: bool = True) -> list[RoleSchema]:
        return [r for r in self._roles.values() if r.is_active or not active_only]


class InMemoryPrincipalStore(PrincipalStore):
    def __init__(self, principals: Iterable[PrincipalSchema] = ()) -> None:
        self._principals: Dict[str, PrincipalSchema] = {p.id: p for p in principals}

    def add(self, principal: PrincipalSchema) -> PrincipalSchema:
        self._principals[principal.id] = principal
        return principal

    async def get(self, principal_id: str) -> Optional[PrincipalSchema]:
        return self._principals.get(principal_id)
