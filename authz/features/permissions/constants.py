"""
Resource and action vocabulary for storefront permissions.
"""
import enum


WILDCARD = "*"

# Action that grants every other action on its resource
MANAGE = "manage"


class Resource(str, enum.Enum):
    USERS = "users"
    PRODUCTS = "products"
    ORDERS = "orders"
    PAYMENTS = "payments"
    DOWNLOADS = "downloads"
    ROLES = "roles"
    PERMISSIONS = "permissions"
    NOTIFICATIONS = "notifications"
    ALL = WILDCARD


class Action(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = MANAGE
    ALL = WILDCARD


RESOURCES: frozenset[str] = frozenset(r.value for r in Resource)
ACTIONS: frozenset[str] = frozenset(a.value for a in Action)


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


def capability_key(resource: str, action: str) -> str:
    """Key used for a resource/action pair, e.g. ``orders:read``."""
    return f"{resource}:{action}"
