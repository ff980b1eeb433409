"""
Authorization decision API routes.

Lets clients ask what the current principal may do. Managing permissions,
roles and assignments belongs to the administrative service.
"""
from typing import Annotated
from fastapi import APIRouter, Depends

from authz.features.permissions.dependencies import get_access_service
from authz.features.permissions.schemas import (
    EffectivePermissionResponse,
    EffectivePermissionsResponse,
    PermissionCheckRequest,
    PermissionCheckResponse,
    PrincipalSchema,
)
from authz.features.permissions.service import AccessDecisionService
from authz.features.users.dependencies import get_current_principal
from authz.utils import get_logger


log = get_logger(__name__)
router = APIRouter()


@router.post("/check", response_model=PermissionCheckResponse)
async def check_permission(
    check: PermissionCheckRequest,
    service: Annotated[AccessDecisionService, Depends(get_access_service)],
    principal: Annotated[PrincipalSchema, Depends(get_current_principal)],
):
    """Check whether the current principal may perform an action on a resource."""
    decision = await service.authorize(principal, check.resource, check.action.lower(), check.context)
    log.debug(f"Check {decision.capability} for principal {principal.id}: allowed={decision.allowed}")
    return PermissionCheckResponse(
        has_permission=decision.allowed,
        reason=decision.reason.value if decision.reason else None,
        permission=decision.permission,
    )


@router.get("/effective", response_model=EffectivePermissionsResponse)
async def get_effective_permissions(
    service: Annotated[AccessDecisionService, Depends(get_access_service)],
    principal: Annotated[PrincipalSchema, Depends(get_current_principal)],
):
    """List the current principal's effective permissions in precedence order."""
    permissions = await service.effective_permissions(principal)
    return EffectivePermissionsResponse(
        principal_id=principal.id,
        permissions=[
            EffectivePermissionResponse(
                key=p.key,
                name=p.name,
                resource=p.resource,
                action=p.action,
                conditions=p.conditions.to_document(),
            )
            for p in permissions
        ],
    )
