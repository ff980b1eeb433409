"""
Matching of permissions against a requested resource/action.
"""
from typing import Tuple

from authz.features.permissions.constants import MANAGE, WILDCARD
from authz.features.permissions.schemas import PermissionSchema


def resource_matches(granted: str, requested: str) -> bool:
    return granted == requested or granted == WILDCARD


def action_matches(granted: str, requested: str) -> bool:
    return granted == requested or granted == MANAGE or granted == WILDCARD


def matches(permission: PermissionSchema, resource: str, action: str) -> bool:
    """
    Check whether a permission covers ``action`` on ``resource``.

    ``manage`` and ``*`` grant any action on the permission's resource, and a
    ``*`` resource covers every resource.
    """
    return resource_matches(permission.resource, resource) and action_matches(permission.action, action)


def parse_capability(capability: str) -> Tuple[str, str]:
    """
    Split a ``resource:action`` string.

    Raises:
        ValueError: if the string is not exactly two non-empty parts
    """
    parts = capability.split(":")
    if len(parts) != 2 or not all(p.strip() for p in parts):
        raise ValueError(f"Invalid capability {capability!r}, expected 'resource:action'")
    resource, action = (p.strip() for p in parts)
    return resource, action.lower()
