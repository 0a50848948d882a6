"""
Domain-split SQLAlchemy models with a single import point.

Exposes `Base`, `now_utc`, and all ORM classes.
"""

from .base import Base, now_utc  # re-export

# Domain models
from .users import User
from .organizations import Organization, OrganizationMembership
from .topics import Topic, Event
from .audit import AuditLog

__all__ = [
    # base
    "Base",
    "now_utc",
    # users/orgs
    "User",
    "Organization",
    "OrganizationMembership",
    # timeline content
    "Topic",
    "Event",
    # audit
    "AuditLog",
]
