"""
Domain-split Pydantic schemas with a single import point.
"""

from .users import UserBase, User
from .organizations import (
    OrganizationBase,
    OrganizationCreate,
    Organization,
    PendingOrganization,
    UserOrganization,
    OrganizationMemberCreate,
    OrganizationMemberUpdate,
    OrganizationMember,
)
from .topics import (
    EventBase,
    EventCreate,
    EventUpdate,
    Event,
    TopicBase,
    TopicCreate,
    TopicUpdate,
    Topic,
    TopicWithEvents,
)
from .audits import AuditLogBase, AuditLogCreate, AuditLog

__all__ = [
    "UserBase",
    "User",
    "OrganizationBase",
    "OrganizationCreate",
    "Organization",
    "PendingOrganization",
    "UserOrganization",
    "OrganizationMemberCreate",
    "OrganizationMemberUpdate",
    "OrganizationMember",
    "EventBase",
    "EventCreate",
    "EventUpdate",
    "Event",
    "TopicBase",
    "TopicCreate",
    "TopicUpdate",
    "Topic",
    "TopicWithEvents",
    "AuditLogBase",
    "AuditLogCreate",
    "AuditLog",
]
