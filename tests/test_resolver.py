"""Effective permission set resolution tests."""

import pytest

from authz.features.permissions.resolver import EffectivePermissionSet, build_effective_set
from tests.factories import make_permission, make_principal, make_role


ORDERS_READ = make_permission("orders:read", "orders", "read")
ORDERS_READ_OWN = make_permission("orders:read:own", "orders", "read", {"ownOnly": True})
PRODUCTS_CREATE = make_permission("products:create", "products", "create")
PRODUCTS_READ = make_permission("products:read", "products", "read")


def test_direct_permission_wins_over_role_permission():
    role = make_role("customer", ORDERS_READ_OWN, PRODUCTS_READ)
    effective = build_effective_set([ORDERS_READ], [role])

    assert effective.keys() == ["orders:read", "products:read"]
    assert effective.get("orders:read") is ORDERS_READ


def test_earlier_role_wins_over_later_role():
    first = make_role("first", ORDERS_READ_OWN)
    second = make_role("second", ORDERS_READ)

    assert build_effective_set([], [first, second]).get("orders:read") is ORDERS_READ_OWN
    assert build_effective_set([], [second, first]).get("orders:read") is ORDERS_READ


def test_first_direct_permission_wins_within_direct_grants():
    effective = build_effective_set([ORDERS_READ_OWN, ORDERS_READ], [])
    assert effective.get("orders:read") is ORDERS_READ_OWN
    assert len(effective) == 1


def test_inactive_direct_permission_is_skipped():
    inactive = make_permission("orders:read:old", "orders", "read", is_active=False)
    role = make_role("customer", ORDERS_READ_OWN)

    effective = build_effective_set([inactive], [role])

    assert effective.get("orders:read") is ORDERS_READ_OWN


def test_inactive_role_contributes_nothing():
    role = make_role("suspended", ORDERS_READ, PRODUCTS_READ, is_active=False)
    assert len(build_effective_set([], [role])) == 0


def test_inactive_permission_inside_active_role_is_skipped():
    inactive = make_permission("products:create:old", "products", "create", is_active=False)
    role = make_role("seller", inactive, PRODUCTS_READ)

    effective = build_effective_set([], [role])

    assert effective.keys() == ["products:read"]
    assert "products:create" not in effective


def test_effective_set_preserves_insertion_order():
    role = make_role("seller", PRODUCTS_READ, ORDERS_READ)
    effective = build_effective_set([PRODUCTS_CREATE], [role])
    assert [p.name for p in effective] == ["products:create", "products:read", "orders:read"]


def test_first_match_follows_precedence():
    manage = make_permission("orders:manage:own", "orders", "manage", {"ownOnly": True})
    effective = build_effective_set([manage], [make_role("customer", ORDERS_READ)])

    # Different keys, but the direct manage grant comes first and covers read
    assert effective.first_match("orders", "read") is manage
    assert effective.first_match("payments", "read") is None


@pytest.mark.asyncio
async def test_resolve_reads_catalogs(resolver, grant):
    role = make_role("seller", PRODUCTS_READ, ORDERS_READ_OWN)
    principal = grant("u1", permissions=[ORDERS_READ], roles=[role])

    effective = await resolver.resolve(principal)

    assert effective.keys() == ["orders:read", "products:read"]
    assert effective.get("orders:read") is ORDERS_READ


@pytest.mark.asyncio
async def test_resolve_inactive_principal_is_empty(resolver, grant):
    principal = grant("u1", permissions=[ORDERS_READ], is_active=False)
    assert len(await resolver.resolve(principal)) == 0


@pytest.mark.asyncio
async def test_resolve_skips_stale_references(resolver, grant):
    principal = grant("u1", permissions=[PRODUCTS_READ])
    stale = principal.model_copy(
        update={
            "direct_permission_ids": ("perm-deleted",) + principal.direct_permission_ids,
            "role_ids": ("role-deleted",),
        }
    )

    effective = await resolver.resolve(stale)

    assert effective.keys() == ["products:read"]


@pytest.mark.asyncio
async def test_resolve_uses_reference_order_not_store_order(resolver, permission_store):
    # Stores may return rows in any order; direct grants keep assignment order
    permission_store.add(ORDERS_READ)
    permission_store.add(ORDERS_READ_OWN)
    principal = make_principal("u1", permissions=(ORDERS_READ_OWN, ORDERS_READ))

    effective = await resolver.resolve(principal)

    assert effective.get("orders:read") is ORDERS_READ_OWN


@pytest.mark.asyncio
async def test_resolve_is_deterministic(resolver, grant):
    role = make_role("seller", PRODUCTS_READ, ORDERS_READ_OWN)
    principal = grant("u1", permissions=[PRODUCTS_CREATE], roles=[role])

    assert await resolver.resolve(principal) == await resolver.resolve(principal)


def test_empty_set():
    effective = EffectivePermissionSet()
    assert len(effective) == 0
    assert effective.to_list() == []
    assert effective.first_match("orders", "read") is None
