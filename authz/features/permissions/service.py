"""
Access decision service.

Single entry point for authorization checks: resolves the principal's
effective permissions, picks the permission that covers the requested
resource/action and evaluates its conditions.

    service = AccessDecisionService(
        PermissionResolver(PermissionCatalog(permission_store), RoleCatalog(role_store)),
        principals=principal_store,
    )
    decision = await service.authorize(principal, "orders", "update", RequestContext(owner_id=...))
    if not decision.allowed:
        ...

Only the first matching permission (in resolver precedence order) is
consulted. A less restrictive permission further down the effective set is
never used to rescue a failed condition.
"""
from typing import Iterable, List, Optional

from authz.features.permissions.constants import capability_key
from authz.features.permissions.evaluator import ConditionEvaluator
from authz.features.permissions.exceptions import PrincipalNotFound
from authz.features.permissions.matching import parse_capability
from authz.features.permissions.resolver import EffectivePermissionSet, PermissionResolver
from authz.features.permissions.schemas import (
    Decision,
    DecisionReason,
    PermissionSchema,
    PrincipalSchema,
    RequestContext,
    RoleSchema,
)
from authz.features.permissions.stores import PrincipalStore
from authz.utils import get_logger


log = get_logger(__name__)


class AccessDecisionService:
    def __init__(
        self,
        resolver: PermissionResolver,
        evaluator: Optional[ConditionEvaluator] = None,
        principals: Optional[PrincipalStore] = None,
    ):
        self.resolver = resolver
        self.evaluator = evaluator or ConditionEvaluator()
        self.principals = principals

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def authorize(
        self,
        principal: PrincipalSchema,
        resource: str,
        action: str,
        context: Optional[RequestContext] = None,
    ) -> Decision:
        """
        Decide whether ``principal`` may perform ``action`` on ``resource``.

        Returns:
            Decision.allow, or Decision.deny with the reason:
            inactive principal, no matching permission or condition not satisfied

        Raises:
            StoreUnavailable: if a catalog lookup fails
        """
        action = action.lower()
        if not principal.is_active:
            return self._deny(principal, DecisionReason.INACTIVE_PRINCIPAL, capability_key(resource, action))

        effective = await self.resolver.resolve(principal)
        return self.decide(principal, effective, resource, action, context)

    async def authorize_all(
        self,
        principal: PrincipalSchema,
        capabilities: Iterable[str],
        context: Optional[RequestContext] = None,
    ) -> Decision:
        """
        Require every ``resource:action`` capability to be allowed.

        The effective set is resolved once for the whole batch. The first
        denial is returned; an empty batch is allowed.

        Raises:
            ValueError: if a capability is not of the form ``resource:action``
        """
        requested = [parse_capability(c) for c in capabilities]

        if not principal.is_active:
            first = capability_key(*requested[0]) if requested else None
            return self._deny(principal, DecisionReason.INACTIVE_PRINCIPAL, first)

        effective = await self.resolver.resolve(principal)
        decision = Decision.allow()
        for resource, action in requested:
            decision = self.decide(principal, effective, resource, action, context)
            if not decision.allowed:
                return decision
        return decision

    def decide(
        self,
        principal: PrincipalSchema,
        effective: EffectivePermissionSet,
        resource: str,
        action: str,
        context: Optional[RequestContext] = None,
    ) -> Decision:
        """Decide against an already-resolved effective set. No I/O."""
        action = action.lower()
        capability = capability_key(resource, action)
        if not principal.is_active:
            return self._deny(principal, DecisionReason.INACTIVE_PRINCIPAL, capability)

        permission = effective.first_match(resource, action)
        if permission is None:
            return self._deny(principal, DecisionReason.NO_MATCHING_PERMISSION, capability)

        if not self.evaluator.evaluate(permission.conditions, context or RequestContext(), principal.id):
            return self._deny(principal, DecisionReason.CONDITION_NOT_SATISFIED, capability, permission)

        log.debug(f"Principal {principal.id} granted {capability} via permission {permission.name}")
        return Decision.allow(capability, permission.name)

    async def authorize_principal_id(
        self,
        principal_id: str,
        resource: str,
        action: str,
        context: Optional[RequestContext] = None,
    ) -> Decision:
        """
        Look the principal up and authorize it.

        Raises:
            PrincipalNotFound: if the principal does not exist
        """
        principal = await self.get_principal(principal_id)
        return await self.authorize(principal, resource, action, context)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_principal(self, principal_id: str) -> PrincipalSchema:
        if self.principals is None:
            raise RuntimeError("AccessDecisionService was created without a principal store")
        principal = await self.principals.get(principal_id)
        if principal is None:
            raise PrincipalNotFound(principal_id)
        return principal

    async def effective_permissions(self, principal: PrincipalSchema) -> List[PermissionSchema]:
        """Flattened effective permission set, in precedence order."""
        effective = await self.resolver.resolve(principal)
        return effective.to_list()

    async def list_permissions(self, active_only: bool = True) -> List[PermissionSchema]:
        return await self.resolver.permissions.list_all(active_only=active_only)

    async def list_roles(self, active_only: bool = True) -> List[RoleSchema]:
        return await self.resolver.roles.list_all(active_only=active_only)

    @staticmethod
    def _deny(
        principal: PrincipalSchema,
        reason: DecisionReason,
        capability: Optional[str],
        permission: Optional[PermissionSchema] = None,
    ) -> Decision:
        log.debug(f"Principal {principal.id} denied {capability}: {reason.value}")
        return Decision.deny(reason, capability, permission.name if permission else None)
