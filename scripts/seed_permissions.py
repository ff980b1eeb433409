"""
Seed script to populate default storefront permissions and roles.

Run this script after database initialization to create:
- Default permissions for every storefront resource
- The admin, seller and customer roles
- Initial role-permission assignments, in precedence order

Usage:
    python -m scripts.seed_permissions
"""
import asyncio
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from authz.core.database.engine import get_db, init_db
from authz.features.permissions.constants import Action, OrderStatus, PaymentStatus, Resource
from authz.features.permissions.models import Permission, Role, role_permissions
from authz.utils import get_logger


log = get_logger(__name__)


OWN = {"ownOnly": True}

DEFAULT_PERMISSIONS = [
    # Everything
    ("all:manage", Resource.ALL, Action.MANAGE, "Full access to every resource", None),

    # Products
    ("products:create", Resource.PRODUCTS, Action.CREATE, "Create products", None),
    ("products:read", Resource.PRODUCTS, Action.READ, "View products", None),
    ("products:update:own", Resource.PRODUCTS, Action.UPDATE, "Update own products", OWN),
    ("products:delete:own", Resource.PRODUCTS, Action.DELETE, "Delete own products", OWN),

    # Orders
    ("orders:create", Resource.ORDERS, Action.CREATE, "Place orders", None),
    ("orders:read", Resource.ORDERS, Action.READ, "View all orders", None),
    ("orders:read:own", Resource.ORDERS, Action.READ, "View own orders", OWN),
    (
        "orders:update:own-open", Resource.ORDERS, Action.UPDATE, "Update own orders that are not yet paid",
        {"ownOnly": True, "status": [OrderStatus.PENDING.value, OrderStatus.PROCESSING.value]},
    ),

    # Payments
    ("payments:create:own", Resource.PAYMENTS, Action.CREATE, "Pay for own orders", OWN),
    ("payments:read:own", Resource.PAYMENTS, Action.READ, "View own payments", OWN),
    (
        "payments:update:small", Resource.PAYMENTS, Action.UPDATE, "Settle small pending payments in office hours",
        {
            "status": [PaymentStatus.PENDING.value, PaymentStatus.FAILED.value],
            "custom": {"department": "billing", "maxAmount": 500, "timeRestriction": {"startHour": 9, "endHour": 17}},
        },
    ),

    # Downloads
    ("downloads:read:own", Resource.DOWNLOADS, Action.READ, "Download purchased assets", OWN),

    # Users
    ("users:read:own", Resource.USERS, Action.READ, "View own profile", OWN),
    ("users:update:own", Resource.USERS, Action.UPDATE, "Update own profile", OWN),

    # Notifications
    ("notifications:read:own", Resource.NOTIFICATIONS, Action.READ, "Read own notifications", OWN),

    # Access control catalog
    ("roles:read", Resource.ROLES, Action.READ, "View roles", None),
    ("permissions:read", Resource.PERMISSIONS, Action.READ, "View permissions", None),
]


DEFAULT_ROLES = {
    "admin": {
        "description": "Administrator with full access",
        "permissions": ["all:manage"],
    },
    "seller": {
        "description": "Seller managing their own catalog",
        "permissions": [
            "products:create", "products:read", "products:update:own", "products:delete:own",
            "orders:read:own",
            "users:read:own", "users:update:own",
            "notifications:read:own",
        ],
    },
    "customer": {
        "description": "Customer buying and downloading products",
        "permissions": [
            "products:read",
            "orders:create", "orders:read:own", "orders:update:own-open",
            "payments:create:own", "payments:read:own",
            "downloads:read:own",
            "users:read:own", "users:update:own",
            "notifications:read:own",
        ],
    },
}


async def seed_permissions(db: AsyncSession) -> dict[str, Permission]:
    """
    Create default permissions.

    Returns:
        Dictionary mapping permission names to Permission objects
    """
    log.info("Creating default permissions...")
    permissions_map = {}

    for name, resource, action, description, conditions in DEFAULT_PERMISSIONS:
        stmt = select(Permission).where(Permission.name == name)
        result = await db.execute(stmt)
        existing = result.scalars().first()

        if existing:
            log.debug(f"Permission '{name}' already exists, skipping")
            permissions_map[name] = existing
            continue

        permission = Permission(
            name=name,
            resource=resource.value,
            action=action.value,
            description=description,
            conditions=conditions,
        )
        db.add(permission)
        permissions_map[name] = permission
        log.info(f"Created permission: {name}")

    await db.commit()

    for perm in permissions_map.values():
        await db.refresh(perm)

    log.info(f"Seeded {len(permissions_map)} permissions")
    return permissions_map


async def seed_roles(db: AsyncSession, permissions_map: dict[str, Permission]) -> dict[str, Role]:
    """
    Create default roles and assign permissions in listed order.

    Args:
        db: Database session
        permissions_map: Dictionary of permission name -> Permission object
    """
    log.info("Creating default roles...")
    roles_map = {}

    for role_name, role_config in DEFAULT_ROLES.items():
        stmt = select(Role).where(Role.name == role_name)
        result = await db.execute(stmt)
        existing = result.scalars().first()

        if existing:
            log.debug(f"Role '{role_name}' already exists, skipping")
            roles_map[role_name] = existing
            continue

        role = Role(name=role_name, description=role_config["description"])
        db.add(role)
        await db.flush()

        position = 0
        for perm_name in role_config["permissions"]:
            permission = permissions_map.get(perm_name)
            if permission is None:
                log.warning(f"Permission '{perm_name}' not found for role '{role_name}'")
                continue
            await db.execute(
                insert(role_permissions).values(role_id=role.id, permission_id=permission.id, position=position)
            )
            position += 1

        roles_map[role_name] = role
        log.info(f"Created role '{role_name}' with {position} permissions")

    await db.commit()
    log.info("Default roles created successfully")
    return roles_map


async def main():
    """Main function to seed permissions and roles."""
    log.info("Starting permission seeding...")

    log.info("Initializing database tables...")
    await init_db()

    async for db in get_db():
        try:
            permissions_map = await seed_permissions(db)
            await seed_roles(db, permissions_map)

            log.info("Permission seeding completed successfully!")
            for role_name, role_config in DEFAULT_ROLES.items():
                log.info(f"  - {role_name}: {role_config['description']}")

        except Exception as e:
            log.error(f"Error seeding permissions: {e}", exc_info=True)
            await db.rollback()
            raise

        break  # Only use first session


if __name__ == "__main__":
    asyncio.run(main())
