"""
SQLAlchemy-backed principal store.
"""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from authz.features.permissions.exceptions import StoreUnavailable
from authz.features.permissions.schemas import PrincipalSchema
from authz.features.permissions.stores import PrincipalStore
from authz.features.users.models import User, user_permissions, user_roles
from authz.utils import get_logger


log = get_logger(__name__)


class SqlPrincipalStore(PrincipalStore):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, principal_id: str) -> Optional[PrincipalSchema]:
        """Load a user with its ordered direct permission and role ids."""
        try:
            result = await self.db.execute(select(User).where(User.id == principal_id))
            user = result.scalar_one_or_none()
            if user is None:
                return None

            result = await self.db.execute(
                select(user_permissions.c.permission_id)
                .where(user_permissions.c.user_id == principal_id)
                .order_by(user_permissions.c.position)
            )
            permission_ids = tuple(result.scalars().all())

            result = await self.db.execute(
                select(user_roles.c.role_id)
                .where(user_roles.c.user_id == principal_id)
                .order_by(user_roles.c.position)
            )
            role_ids = tuple(result.scalars().all())
        except SQLAlchemyError as e:
            log.error(f"Principal lookup failed for {principal_id}: {e}")
            raise StoreUnavailable("principal", e) from e

        return PrincipalSchema(
            id=user.id,
            direct_permission_ids=permission_ids,
            role_ids=role_ids,
            is_active=user.is_active,
        )
