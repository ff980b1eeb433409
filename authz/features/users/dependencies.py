"""
FastAPI dependencies for identifying the current principal.

Authentication happens upstream: either a middleware has stored the verified
principal id on ``request.state.principal_id``, or the authenticating gateway
forwards it in the PRINCIPAL_ID_HEADER header.
"""
from typing import Annotated, Optional
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from authz.core import config
from authz.core.database.engine import get_db
from authz.features.permissions.schemas import PrincipalSchema
from authz.features.permissions.stores import PrincipalStore
from authz.features.users.repository import SqlPrincipalStore


def get_principal_store(db: Annotated[AsyncSession, Depends(get_db)]) -> PrincipalStore:
    return SqlPrincipalStore(db)


def get_principal_id(request: Request) -> Optional[str]:
    """Principal id established by upstream authentication, if any."""
    principal_id = getattr(request.state, "principal_id", None)
    if principal_id:
        return principal_id
    return request.headers.get(config.PRINCIPAL_ID_HEADER) or None


async def get_current_principal(
    request: Request,
    principals: Annotated[PrincipalStore, Depends(get_principal_store)],
) -> PrincipalSchema:
    """
    Get the current principal with its grant references.
    
    Inactive principals are returned as-is; the access decision service
    denies them.
    
    Usage:
        @router.get("/me")
        async def get_me(principal: PrincipalSchema = Depends(get_current_principal)):
            return principal
    """
    principal_id = get_principal_id(request)
    if not principal_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    
    principal = await principals.get(principal_id)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown principal",
        )
    
    return principal
