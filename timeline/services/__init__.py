"""Business logic services package with public service helpers."""

from .errors import AccessError, Conflict, InvalidState, NotAuthenticated, NotAuthorized, NotFound
from .organization_service import OrganizationService
from .topic_service import TopicService

__all__ = [
    "AccessError",
    "Conflict",
    "InvalidState",
    "NotAuthenticated",
    "NotAuthorized",
    "NotFound",
    "OrganizationService",
    "TopicService",
]
