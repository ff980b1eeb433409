"""SQLAlchemy-backed store tests against an in-memory SQLite database."""

import pytest
import pytest_asyncio
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import StaticPool

from authz.core.database.engine import create_engine, init_db
from authz.features.permissions.catalog import PermissionCatalog, RoleCatalog
from authz.features.permissions.exceptions import StoreUnavailable
from authz.features.permissions.models import Permission, Role, role_permissions
from authz.features.permissions.repository import SqlPermissionStore, SqlRoleStore
from authz.features.permissions.resolver import PermissionResolver
from authz.features.permissions.schemas import DecisionReason, RequestContext
from authz.features.permissions.service import AccessDecisionService
from authz.features.users.models import User, user_permissions, user_roles
from authz.features.users.repository import SqlPrincipalStore
from scripts.seed_permissions import DEFAULT_PERMISSIONS, DEFAULT_ROLES, seed_permissions, seed_roles


@pytest_asyncio.fixture
async def engine():
    engine = create_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessions(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def seeded(sessions):
    """Default catalog plus a customer and a seller."""
    async with sessions() as db:
        permissions = await seed_permissions(db)
        roles = await seed_roles(db, permissions)

        customer = User(email="customer@example.com", name="Customer")
        seller = User(email="seller@example.com", name="Seller", is_active=True)
        db.add_all([customer, seller])
        await db.flush()

        await db.execute(insert(user_roles).values(user_id=customer.id, role_id=roles["customer"].id, position=0))
        await db.execute(insert(user_roles).values(user_id=seller.id, role_id=roles["seller"].id, position=0))
        await db.execute(
            insert(user_permissions).values(
                user_id=seller.id, permission_id=permissions["orders:read"].id, position=0
            )
        )
        await db.commit()

        return {"permissions": permissions, "roles": roles, "customer": customer.id, "seller": seller.id}


def build_service(db) -> AccessDecisionService:
    resolver = PermissionResolver(PermissionCatalog(SqlPermissionStore(db)), RoleCatalog(SqlRoleStore(db)))
    return AccessDecisionService(resolver, principals=SqlPrincipalStore(db))


@pytest.mark.asyncio
async def test_seed_creates_catalog(sessions, seeded):
    async with sessions() as db:
        permissions = await SqlPermissionStore(db).find_all()
        roles = await SqlRoleStore(db).find_all()

    assert len(permissions) == len(DEFAULT_PERMISSIONS)
    assert sorted(r.name for r in roles) == sorted(DEFAULT_ROLES)


@pytest.mark.asyncio
async def test_seed_is_idempotent(sessions, seeded):
    async with sessions() as db:
        permissions = await seed_permissions(db)
        await seed_roles(db, permissions)
        assert len(await SqlPermissionStore(db).find_all()) == len(DEFAULT_PERMISSIONS)
        assert len(await SqlRoleStore(db).find_all()) == len(DEFAULT_ROLES)


@pytest.mark.asyncio
async def test_role_permissions_keep_assignment_order(sessions, seeded):
    async with sessions() as db:
        [customer] = await SqlRoleStore(db).find_by_ids([seeded["roles"]["customer"].id])

    assert [p.name for p in customer.permissions] == DEFAULT_ROLES["customer"]["permissions"]


@pytest.mark.asyncio
async def test_permission_conditions_are_parsed(sessions, seeded):
    async with sessions() as db:
        [permission] = await SqlPermissionStore(db).find_by_ids([seeded["permissions"]["orders:update:own-open"].id])

    assert permission.conditions.to_document() == {"ownOnly": True, "status": ["pending", "processing"]}


@pytest.mark.asyncio
async def test_principal_store_loads_ordered_references(sessions, seeded):
    async with sessions() as db:
        seller = await SqlPrincipalStore(db).get(seeded["seller"])
        missing = await SqlPrincipalStore(db).get("01ARZ3NDEKTSV4RRFFQ69G5FAV")

    assert seller.direct_permission_ids == (seeded["permissions"]["orders:read"].id,)
    assert seller.role_ids == (seeded["roles"]["seller"].id,)
    assert seller.is_active
    assert missing is None


@pytest.mark.asyncio
async def test_customer_decisions(sessions, seeded):
    customer_id = seeded["customer"]
    async with sessions() as db:
        service = build_service(db)

        own_pending = RequestContext(owner_id=customer_id, status="pending")
        own_paid = RequestContext(owner_id=customer_id, status="paid")
        other = RequestContext(owner_id="someone-else")

        assert (await service.authorize_principal_id(customer_id, "orders", "update", own_pending)).allowed
        assert not (await service.authorize_principal_id(customer_id, "orders", "update", own_paid)).allowed
        assert not (await service.authorize_principal_id(customer_id, "orders", "read", other)).allowed
        assert (await service.authorize_principal_id(customer_id, "products", "read")).allowed

        denied = await service.authorize_principal_id(customer_id, "products", "create")
        assert denied.reason is DecisionReason.NO_MATCHING_PERMISSION


@pytest.mark.asyncio
async def test_direct_grant_overrides_role_condition(sessions, seeded):
    # The seller role only reads its own orders; the direct grant reads all of them
    seller_id = seeded["seller"]
    async with sessions() as db:
        service = build_service(db)
        decision = await service.authorize_principal_id(seller_id, "orders", "read", RequestContext(owner_id="x"))

    assert decision.allowed
    assert decision.permission == "orders:read"


@pytest.mark.asyncio
async def test_inactive_role_in_database(sessions, seeded):
    async with sessions() as db:
        role = await db.get(Role, seeded["roles"]["customer"].id)
        role.is_active = False
        await db.commit()

    async with sessions() as db:
        decision = await build_service(db).authorize_principal_id(seeded["customer"], "products", "read")

    assert decision.reason is DecisionReason.NO_MATCHING_PERMISSION


@pytest.mark.asyncio
async def test_invalid_rows_are_skipped(sessions):
    async with sessions() as db:
        good = Permission(name="orders:read", resource="orders", action="read")
        bad = Permission(name="claims:read", resource="claims", action="read")
        role = Role(name="mixed")
        db.add_all([good, bad, role])
        await db.flush()
        await db.execute(insert(role_permissions).values(role_id=role.id, permission_id=bad.id, position=0))
        await db.execute(insert(role_permissions).values(role_id=role.id, permission_id=good.id, position=1))
        await db.commit()

    async with sessions() as db:
        permissions = await SqlPermissionStore(db).find_all()
        [mixed] = await SqlRoleStore(db).find_all()

    assert [p.name for p in permissions] == ["orders:read"]
    assert [p.name for p in mixed.permissions] == ["orders:read"]


@pytest.mark.asyncio
async def test_find_all_filters_inactive(sessions):
    async with sessions() as db:
        db.add_all([
            Permission(name="orders:read", resource="orders", action="read"),
            Permission(name="orders:delete", resource="orders", action="delete", is_active=False),
        ])
        await db.commit()

    async with sessions() as db:
        store = SqlPermissionStore(db)
        assert [p.name for p in await store.find_all()] == ["orders:read"]
        assert len(await store.find_all(active_only=False)) == 2


@pytest.mark.asyncio
async def test_database_errors_raise_store_unavailable():
    # No tables created
    engine = create_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    sessions = async_sessionmaker(engine)
    try:
        async with sessions() as db:
            with pytest.raises(StoreUnavailable):
                await SqlPermissionStore(db).find_by_ids(["x"])
        async with sessions() as db:
            with pytest.raises(StoreUnavailable):
                await SqlRoleStore(db).find_all()
        async with sessions() as db:
            with pytest.raises(StoreUnavailable):
                await SqlPrincipalStore(db).get("x")
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_invalid_role_rows_are_skipped(sessions):
    async with sessions() as db:
        db.add_all([Role(name=""), Role(name="seller")])
        await db.commit()

    async with sessions() as db:
        roles = await SqlRoleStore(db).find_all()

    assert [r.name for r in roles] == ["seller"]
