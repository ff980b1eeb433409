"""
Pydantic schemas for permission resolution.

Immutable snapshots of permissions, roles and principals as loaded from a
store, the per-request context, and the decision returned to callers.
"""
import enum
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from authz.features.permissions.conditions import ConditionSet, parse_conditions
from authz.features.permissions.constants import ACTIONS, RESOURCES, capability_key


# ============================================================================
# Catalog Snapshots
# ============================================================================

class PermissionSchema(BaseModel):
    """
    A single capability: an action on a resource, optionally narrowed by conditions.

    Examples:
    - resource="products", action="create"
    - resource="orders", action="update", conditions={"ownOnly": true}
    - resource="orders", action="manage"  (any action on orders)
    """
    id: str
    name: str = Field(..., min_length=1, max_length=100)
    resource: str
    action: str
    conditions: ConditionSet = Field(default_factory=ConditionSet)
    description: Optional[str] = None
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @field_validator('resource')
    @classmethod
    def resource_known(cls, v: str) -> str:
        if v not in RESOURCES:
            raise ValueError(f"Unknown resource: {v}")
        return v

    @field_validator('action')
    @classmethod
    def action_known(cls, v: str) -> str:
        v = v.lower()
        if v not in ACTIONS:
            raise ValueError(f"Unknown action: {v}")
        return v

    @field_validator('conditions', mode='before')
    @classmethod
    def conditions_from_document(cls, v):
        if isinstance(v, ConditionSet):
            return v
        return parse_conditions(v)

    @property
    def key(self) -> str:
        """Effective-set key, e.g. ``orders:read``."""
        return capability_key(self.resource, self.action)


class RoleSchema(BaseModel):
    """A named bundle of permissions, kept in assignment order."""
    id: str
    name: str = Field(..., min_length=1, max_length=50)
    permissions: tuple[PermissionSchema, ...] = ()
    description: Optional[str] = None
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True, frozen=True)


class PrincipalSchema(BaseModel):
    """The authenticated actor with references to its grants."""
    id: str
    direct_permission_ids: tuple[str, ...] = ()
    role_ids: tuple[str, ...] = ()
    is_active: bool = True

    model_config = ConfigDict(frozen=True)


# ============================================================================
# Request Context
# ============================================================================

class RequestContext(BaseModel):
    """
    Attributes of the targeted resource and the request, used by conditions.

    Every attribute is optional; see the condition evaluator for how each
    absent attribute is treated.
    """
    resource_id: Optional[str] = None
    owner_id: Optional[str] = None
    status: Optional[str] = None
    amount: Optional[float] = None
    department: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(frozen=True)


# ============================================================================
# Decision
# ============================================================================

class DecisionReason(str, enum.Enum):
    INACTIVE_PRINCIPAL = "inactive principal"
    NO_MATCHING_PERMISSION = "no matching permission"
    CONDITION_NOT_SATISFIED = "condition not satisfied"


class Decision(BaseModel):
    """Allow/Deny outcome of an authorization check."""
    allowed: bool
    reason: Optional[DecisionReason] = None
    capability: Optional[str] = None
    permission: Optional[str] = Field(None, description="Name of the permission that was consulted")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def allow(cls, capability: Optional[str] = None, permission: Optional[str] = None) -> "Decision":
        return cls(allowed=True, capability=capability, permission=permission)

    @classmethod
    def deny(
        cls,
        reason: DecisionReason,
        capability: Optional[str] = None,
        permission: Optional[str] = None,
    ) -> "Decision":
        return cls(allowed=False, reason=reason, capability=capability, permission=permission)

    def __bool__(self) -> bool:
        return self.allowed


# ============================================================================
# Check Endpoint Schemas
# ============================================================================

class PermissionCheckRequest(BaseModel):
    """Schema for checking if the current principal has a capability."""
    resource: str = Field(..., description="Resource type")
    action: str = Field(..., description="Action")
    context: Optional[RequestContext] = Field(None, description="Attributes of the targeted resource")


class PermissionCheckResponse(BaseModel):
    """Schema for permission check response."""
    has_permission: bool
    reason: Optional[str] = None
    permission: Optional[str] = None


class EffectivePermissionResponse(BaseModel):
    """One entry of a principal's effective permission set."""
    key: str
    name: str
    resource: str
    action: str
    conditions: Optional[dict] = None


class EffectivePermissionsResponse(BaseModel):
    """Schema for getting all permissions a principal effectively holds."""
    principal_id: str
    permissions: List[EffectivePermissionResponse] = []
