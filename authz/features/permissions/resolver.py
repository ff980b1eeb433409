"""
Resolution of a principal's effective permission set.

The effective set maps each ``resource:action`` key to exactly one permission.
Direct permissions are inserted first, then the permissions of each active
role; a key that is already present is never overwritten, so a direct grant
always wins over a role grant for the same key and earlier roles win over
later ones. Conditions of competing permissions are never merged.
"""
from typing import Dict, Iterable, Iterator, List, Optional

from authz.features.permissions.catalog import PermissionCatalog, RoleCatalog
from authz.features.permissions.matching import matches
from authz.features.permissions.schemas import PermissionSchema, PrincipalSchema, RoleSchema
from authz.utils import get_logger


log = get_logger(__name__)


class EffectivePermissionSet:
    """Ordered, deduplicated permissions available to one principal."""

    def __init__(self, permissions: Optional[Dict[str, PermissionSchema]] = None):
        self._permissions: Dict[str, PermissionSchema] = dict(permissions or {})

    def __iter__(self) -> Iterator[PermissionSchema]:
        return iter(self._permissions.values())

    def __len__(self) -> int:
        return len(self._permissions)

    def __contains__(self, key: str) -> bool:
        return key in self._permissions

    def __eq__(self, other) -> bool:
        if not isinstance(other, EffectivePermissionSet):
            return NotImplemented
        return list(self._permissions.items()) == list(other._permissions.items())

    def __repr__(self) -> str:
        return f"<EffectivePermissionSet(keys={self.keys()})>"

    def keys(self) -> List[str]:
        return list(self._permissions)

    def get(self, key: str) -> Optional[PermissionSchema]:
        return self._permissions.get(key)

    def to_list(self) -> List[PermissionSchema]:
        return list(self._permissions.values())

    def first_match(self, resource: str, action: str) -> Optional[PermissionSchema]:
        """Return the highest-precedence permission covering ``action`` on ``resource``."""
        for permission in self._permissions.values():
            if matches(permission, resource, action):
                return permission
        return None


def build_effective_set(
    direct_permissions: Iterable[PermissionSchema],
    roles: Iterable[RoleSchema],
) -> EffectivePermissionSet:
    """
    Build the effective set from already-loaded catalog entries.

    Pure and deterministic: the same inputs in the same order always give the
    same set.
    """
    permissions: Dict[str, PermissionSchema] = {}

    # 1. Direct permissions
    for permission in direct_permissions:
        if permission.is_active:
            permissions.setdefault(permission.key, permission)

    # 2. Permissions from active roles, never replacing an existing key
    for role in roles:
        if not role.is_active:
            log.debug(f"Skipping inactive role {role.id} ({role.name})")
            continue
        for permission in role.permissions:
            if permission.is_active:
                permissions.setdefault(permission.key, permission)

    return EffectivePermissionSet(permissions)


class PermissionResolver:
    """
    Resolves principals against the permission and role catalogs.

    Holds no cache; every call reads the catalogs afresh.
    """

    def __init__(self, permissions: PermissionCatalog, roles: RoleCatalog):
        self.permissions = permissions
        self.roles = roles

    async def resolve(self, principal: PrincipalSchema) -> EffectivePermissionSet:
        """
        Get the effective permission set of a principal.

        An inactive principal resolves to an empty set without touching the
        catalogs.
        """
        if not principal.is_active:
            log.debug(f"Principal {principal.id} is inactive - no permissions")
            return EffectivePermissionSet()

        direct_permissions = await self.permissions.get_many(principal.direct_permission_ids)
        roles = await self.roles.get_many(principal.role_ids)
        effective = build_effective_set(direct_permissions, roles)

        log.debug(f"Resolved {len(effective)} permissions for principal {principal.id}: {effective.keys()}")
        return effective
