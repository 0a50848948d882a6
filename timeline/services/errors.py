"""
Error taxonomy for authorization and administrative operations.

The API layer translates these into HTTP responses; see the exception
handlers registered in `timeline.api.main`.
"""
from typing import Optional


class AccessError(Exception):
    """Base class for errors raised by the service layer."""

    default_detail = "Request failed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotAuthenticated(AccessError):
    """No principal could be resolved for a request that needs one."""

    default_detail = "Authentication required"


class NotAuthorized(AccessError):
    """The principal is authenticated but the policy denied the operation.

    `reason` is kept for logs only and is never returned to the caller.
    """

    default_detail = "Access denied"

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason or "no matching rule"
        super().__init__(self.default_detail)


class InvalidState(AccessError):
    """A lifecycle transition was attempted from a disallowed state."""

    default_detail = "Invalid state transition"


class NotFound(AccessError):
    """The referenced organization, membership, topic or event does not exist."""

    default_detail = "Not found"


class Conflict(AccessError):
    """A uniqueness constraint (slug, membership) would be violated."""

    default_detail = "Already exists"
