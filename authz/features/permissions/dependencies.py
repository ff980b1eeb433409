"""
FastAPI dependencies for route protection.

Implements:
- Per-request construction of the access decision service
- Request context extraction for condition evaluation
- require_permission / require_permissions route guards
"""
from typing import Annotated, Awaitable, Callable, List, Optional
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from authz.core import config
from authz.core.database.engine import get_db
from authz.features.permissions.catalog import PermissionCatalog, RoleCatalog
from authz.features.permissions.exceptions import StoreUnavailable
from authz.features.permissions.matching import parse_capability
from authz.features.permissions.repository import SqlPermissionStore, SqlRoleStore
from authz.features.permissions.resolver import PermissionResolver
from authz.features.permissions.schemas import Decision, PrincipalSchema, RequestContext
from authz.features.permissions.service import AccessDecisionService
from authz.features.users.dependencies import get_current_principal
from authz.features.users.repository import SqlPrincipalStore
from authz.utils import get_logger


log = get_logger(__name__)

ContextBuilder = Callable[[Request, PrincipalSchema], Awaitable[RequestContext]]


# ============================================================================
# Service Construction
# ============================================================================

def get_access_service(db: Annotated[AsyncSession, Depends(get_db)]) -> AccessDecisionService:
    """Build an access decision service bound to the request's session."""
    resolver = PermissionResolver(
        PermissionCatalog(SqlPermissionStore(db)),
        RoleCatalog(SqlRoleStore(db)),
    )
    return AccessDecisionService(resolver, principals=SqlPrincipalStore(db))


# ============================================================================
# Request Context
# ============================================================================

async def default_request_context(request: Request, principal: PrincipalSchema) -> RequestContext:
    """
    Build the condition context from the request.

    - resource_id: the ``id`` path parameter
    - status, amount: query parameters
    - department: the ``X-Department`` header

    The owner of the targeted resource is unknown here. ownOnly still
    passes when the path id is the principal itself (e.g. /users/{id});
    routes guarding other owned resources pass a context_builder that looks
    the owner up.
    """
    amount: Optional[float] = None
    raw_amount = request.query_params.get("amount")
    if raw_amount is not None:
        try:
            amount = float(raw_amount)
        except ValueError:
            log.debug(f"Ignoring non-numeric amount {raw_amount!r}")

    return RequestContext(
        resource_id=request.path_params.get("id"),
        status=request.query_params.get("status"),
        amount=amount,
        department=request.headers.get("X-Department"),
    )


# ============================================================================
# Route Guards
# ============================================================================

async def _enforce(decision: Awaitable[Decision], principal: PrincipalSchema) -> Optional[Decision]:
    try:
        result = await decision
    except StoreUnavailable as e:
        if config.AUTHZ_FAIL_OPEN:
            log.warning(f"Permission store unavailable, allowing principal {principal.id}: {e}")
            return None
        log.error(f"Permission store unavailable, denying principal {principal.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authorization temporarily unavailable",
        )

    if not result.allowed:
        log.info(f"Principal {principal.id} denied {result.capability}: {result.reason.value}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Permission denied: {result.capability} ({result.reason.value})",
        )
    return result


def require_permission(resource: str, action: str, context_builder: Optional[ContextBuilder] = None):
    """
    FastAPI dependency to require a specific permission.
    
    Usage:
        @router.patch("/orders/{id}")
        async def update_order(
            principal: PrincipalSchema = Depends(require_permission("orders", "update", order_context))
        ):
            # Principal may update this order
            pass
    
    Args:
        resource: Resource type
        action: Action
        context_builder: Async callable building the RequestContext
            (defaults to default_request_context)
    
    Returns:
        Dependency function that returns the current principal if allowed
    
    Raises:
        HTTPException: 403 if denied, 503 if the store is unavailable (fail-closed)
    """
    build_context = context_builder or default_request_context

    async def permission_dependency(
        request: Request,
        service: Annotated[AccessDecisionService, Depends(get_access_service)],
        principal: Annotated[PrincipalSchema, Depends(get_current_principal)],
    ) -> PrincipalSchema:
        context = await build_context(request, principal)
        await _enforce(service.authorize(principal, resource, action, context), principal)
        return principal
    
    return permission_dependency


def require_permissions(capabilities: List[str], context_builder: Optional[ContextBuilder] = None):
    """
    FastAPI dependency to require ALL of the specified capabilities.
    
    Usage:
        @router.post("/products/import")
        async def import_products(
            principal: PrincipalSchema = Depends(require_permissions(["products:read", "products:create"]))
        ):
            pass
    
    Args:
        capabilities: List of "resource:action" strings
        context_builder: Async callable building the RequestContext
    
    Raises:
        ValueError: at declaration time if a capability is malformed
    """
    for capability in capabilities:
        parse_capability(capability)
    build_context = context_builder or default_request_context

    async def permissions_dependency(
        request: Request,
        service: Annotated[AccessDecisionService, Depends(get_access_service)],
        principal: Annotated[PrincipalSchema, Depends(get_current_principal)],
    ) -> PrincipalSchema:
        context = await build_context(request, principal)
        await _enforce(service.authorize_all(principal, capabilities, context), principal)
        return principal
    
    return permissions_dependency
