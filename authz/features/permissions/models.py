"""
Permission and Role models.

Permissions are resource/action capabilities with optional JSON conditions;
roles are ordered bundles of permissions. Principals reference both (see
authz.features.users.models).
"""
from typing import Any, Dict
from sqlalchemy import String, ForeignKey, Table, Column, JSON, Text, Boolean, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from authz.core.database.base import Base, TimestampMixin, generate_ulid


# ============================================================================
# Association Tables
# ============================================================================

# Role-Permission relationship; position keeps the role's permission order
role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", String(26), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", String(26), ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
    Column("position", Integer, nullable=False, default=0),
)


# ============================================================================
# Core Models
# ============================================================================

class Permission(Base, TimestampMixin):
    """
    Permission model defining an action on a resource.
    
    Examples:
    - resource="products", action="create"
    - resource="orders", action="read", conditions={"ownOnly": true}
    - resource="orders", action="update", conditions={"status": ["pending", "processing"]}
    - resource="payments", action="read", conditions={"custom": {"maxAmount": 500}}
    """
    __tablename__ = "permissions"
    __table_args__ = (Index("ix_permissions_resource_action", "resource", "action"),)
    
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    resource: Mapped[str] = mapped_column(String(50), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    
    # Stored condition document, e.g. {"ownOnly": true, "status": ["pending"]}
    conditions: Mapped[Dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    
    def __repr__(self) -> str:
        return f"<Permission(id={self.id}, name={self.name!r}, resource={self.resource}, action={self.action})>"


class Role(Base, TimestampMixin):
    """
    Role model grouping permissions.
    
    Examples: admin, seller, customer
    """
    __tablename__ = "roles"
    
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    
    # Relationships
    permissions: Mapped[list["Permission"]] = relationship(
        "Permission",
        secondary=role_permissions,
        order_by=role_permissions.c.position,
        lazy="selectin",
        viewonly=True,
    )
    
    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name!r})>"
