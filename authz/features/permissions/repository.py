"""
SQLAlchemy-backed permission and role stores.

Rows that no longer validate (e.g. a resource outside the known vocabulary)
are skipped with a warning. Database errors are raised as StoreUnavailable.
"""
from typing import Iterable, Optional
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from authz.features.permissions.exceptions import StoreUnavailable
from authz.features.permissions.models import Permission, Role
from authz.features.permissions.schemas import PermissionSchema, RoleSchema
from authz.features.permissions.stores import PermissionStore, RoleStore
from authz.utils import get_logger


log = get_logger(__name__)


def to_permission_schema(permission: Permission) -> Optional[PermissionSchema]:
    try:
        return PermissionSchema.model_validate(permission)
    except ValidationError as e:
        log.warning(f"Skipping invalid permission {permission.id} ({permission.name}): {e}")
        return None


def to_role_schema(role: Role) -> Optional[RoleSchema]:
    permissions = [p for p in map(to_permission_schema, role.permissions) if p is not None]
    try:
        return RoleSchema(
            id=role.id,
            name=role.name,
            description=role.description,
            is_active=role.is_active,
            permissions=tuple(permissions),
        )
    except ValidationError as e:
        log.warning(f"Skipping invalid role {role.id} ({role.name}): {e}")
        return None


class SqlPermissionStore(PermissionStore):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_ids(self, ids: Iterable[str]) -> list[PermissionSchema]:
        ids = list(ids)
        if not ids:
            return []
        stmt = select(Permission).where(Permission.id.in_(ids))
        return await self._fetch(stmt)

    async def find_all(self, active_only: bool = True) -> list[PermissionSchema]:
        stmt = select(Permission).order_by(Permission.resource, Permission.action, Permission.name)
        if active_only:
            stmt = stmt.where(Permission.is_active.is_(True))
        return await self._fetch(stmt)

    async def _fetch(self, stmt) -> list[PermissionSchema]:
        try:
            result = await self.db.execute(stmt)
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            log.error(f"Permission lookup failed: {e}")
            raise StoreUnavailable("permission", e) from e
        return [p for p in map(to_permission_schema, rows) if p is not None]


class SqlRoleStore(RoleStore):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_ids(self, ids: Iterable[str]) -> list[RoleSchema]:
        ids = list(ids)
        if not ids:
            return []
        stmt = select(Role).where(Role.id.in_(ids)).options(selectinload(Role.permissions))
        return await self._fetch(stmt)

    async def find_all(self, active_only: bool = True) -> list[RoleSchema]:
        stmt = select(Role).options(selectinload(Role.permissions)).order_by(Role.name)
        if active_only:
            stmt = stmt.where(Role.is_active.is_(True))
        return await self._fetch(stmt)

    async def _fetch(self, stmt) -> list[RoleSchema]:
        try:
            result = await self.db.execute(stmt)
            roles = result.scalars().all()
        except SQLAlchemyError as e:
            log.error(f"Role lookup failed: {e}")
            raise StoreUnavailable("role", e) from e
        return [r for r in map(to_role_schema, roles) if r is not None]
