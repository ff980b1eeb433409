"""Lookup interfaces the authorization core reads its catalogs from."""

from typing import Iterable, Optional, Protocol

from authz.features.permissions.schemas import PermissionSchema, PrincipalSchema, RoleSchema


class PermissionStore(Protocol):
    """Read access to permission definitions."""

    async def find_by_ids(self, ids: Iterable[str]) -> list[PermissionSchema]:
        """Return the permissions that exist among ``ids``, in any order."""

    async def find_all(self, active_only: bool = True) -> list[PermissionSchema]:
        """Return every permission, optionally only the active ones."""


class RoleStore(Protocol):
    """Read access to roles, each carrying its ordered permissions."""

    async def find_by_ids(self, ids: Iterable[str]) -> list[RoleSchema]:
        """Return the roles that exist among ``ids``, in any order."""

    async def find_all(self, active_only: bool = True) -> list[RoleSchema]:
        """Return every role, optionally only the active ones."""


class PrincipalStore(Protocol):
    """Read access to principals and their grant references."""

    async def get(self, principal_id: str) -> Optional[PrincipalSchema]:
        """Return the principal or None if it does not exist."""
