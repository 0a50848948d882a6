"""
Organization role constants and helpers.

Roles form a closed set. Every permission decision that depends on a role goes
through the derived groups below instead of comparing raw strings at call
sites.
"""

from typing import Dict, FrozenSet
from enum import Enum


ROLE_ORG_ADMIN = "org_admin"
ROLE_ORG_EDITOR = "org_editor"
ROLE_ORG_VIEWER = "org_viewer"


class OrgRole(str, Enum):
    """Enum for organization roles used in models, schemas and the evaluator."""
    org_admin = ROLE_ORG_ADMIN
    org_editor = ROLE_ORG_EDITOR
    org_viewer = ROLE_ORG_VIEWER


# What each role may do with organization-scoped content
ROLE_PERMISSIONS: Dict[OrgRole, Dict[str, bool]] = {
    OrgRole.org_admin: {
        "can_read": True,
        "can_write": True,
        "can_manage": True,
    },
    OrgRole.org_editor: {
        "can_read": True,
        "can_write": True,
        "can_manage": False,
    },
    OrgRole.org_viewer: {
        "can_read": True,
        "can_write": False,
        "can_manage": False,
    },
}

ALLOWED_ROLES: FrozenSet[str] = frozenset(role.value for role in OrgRole)

# Derived role groups
WRITE_ROLES: FrozenSet[OrgRole] = frozenset(r for r, p in ROLE_PERMISSIONS.items() if p["can_write"])
MANAGE_ROLES: FrozenSet[OrgRole] = frozenset(r for r, p in ROLE_PERMISSIONS.items() if p["can_manage"])


def parse_role(role) -> OrgRole:
    """
    Coerce a string or OrgRole into an OrgRole.

    Raises:
        ValueError: If role is not recognized
    """
    if isinstance(role, OrgRole):
        return role
    try:
        return OrgRole(role)
    except ValueError:
        raise ValueError(f"Invalid role '{role}'. Allowed roles: {sorted(ALLOWED_ROLES)}") from None


def role_allows_write(role) -> bool:
    """Return True if the role may create, update or delete organization content."""
    return role in WRITE_ROLES


def role_allows_manage(role) -> bool:
    """Return True if the role may administer the organization's memberships."""
    return role in MANAGE_ROLES
