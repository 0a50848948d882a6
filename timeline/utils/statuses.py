"""
Organization lifecycle status constants and helpers.

Centralized definitions for organization status values and the allowed
transitions between them.
"""

from typing import Dict, FrozenSet
from enum import Enum

# Canonical status values stored in the database
STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"


class OrganizationStatus(str, Enum):
    """Enum for organization lifecycle status."""
    pending = STATUS_PENDING
    approved = STATUS_APPROVED
    rejected = STATUS_REJECTED


# Approved and rejected are terminal
ALLOWED_TRANSITIONS: Dict[OrganizationStatus, FrozenSet[OrganizationStatus]] = {
    OrganizationStatus.pending: frozenset({OrganizationStatus.approved, OrganizationStatus.rejected}),
    OrganizationStatus.approved: frozenset(),
    OrganizationStatus.rejected: frozenset(),
}


def can_transition(current, target) -> bool:
    """Return True if an organization may move from `current` to `target`."""
    try:
        current = OrganizationStatus(current)
        target = OrganizationStatus(target)
    except ValueError:
        return False
    return target in ALLOWED_TRANSITIONS[current]


def grants_membership(status) -> bool:
    """Memberships only count for authorization while the organization is approved."""
    return status == OrganizationStatus.approved
