"""
Pytest fixtures for authorization engine tests.
"""
import pytest

from authz.features.permissions.catalog import PermissionCatalog, RoleCatalog
from authz.features.permissions.inmemory import (
    InMemoryPermissionStore,
    InMemoryPrincipalStore,
    InMemoryRoleStore,
)
from authz.features.permissions.resolver import PermissionResolver
from authz.features.permissions.service import AccessDecisionService
from tests.factories import make_principal


@pytest.fixture
def permission_store() -> InMemoryPermissionStore:
    return InMemoryPermissionStore()


@pytest.fixture
def role_store() -> InMemoryRoleStore:
    return InMemoryRoleStore()


@pytest.fixture
def principal_store() -> InMemoryPrincipalStore:
    return InMemoryPrincipalStore()


@pytest.fixture
def resolver(permission_store, role_store) -> PermissionResolver:
    return PermissionResolver(PermissionCatalog(permission_store), RoleCatalog(role_store))


@pytest.fixture
def service(resolver, principal_store) -> AccessDecisionService:
    return AccessDecisionService(resolver, principals=principal_store)


@pytest.fixture
def grant(permission_store, role_store, principal_store):
    """
    Register permissions and roles for a principal in the in-memory stores.

    Usage:
        principal = grant("u1", permissions=[...], roles=[...])
    """
    def _grant(principal_id="u1", permissions=(), roles=(), is_active=True):
        for permission in permissions:
            permission_store.add(permission)
        for role in roles:
            role_store.add(role)
        principal = make_principal(principal_id, tuple(permissions), tuple(roles), is_active)
        principal_store.add(principal)
        return principal

    return _grant
