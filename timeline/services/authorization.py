"""
Bridge between the pure policy evaluator and the service layer.
"""
import logging

from timeline.api.permissions import Decision, Operation, decide
from timeline.services.errors import NotAuthenticated, NotAuthorized, NotFound

logger = logging.getLogger("timeline.permissions")


def require(principal, snapshot, resource, operation: Operation) -> Decision:
    """Evaluate the policy and raise on deny.

    Guests get NotAuthenticated, signed-in users NotAuthorized. The deny
    reason is logged here and kept on the exception; callers never return it
    to clients.
    """
    decision = decide(principal, snapshot, resource, operation)
    if not decision:
        logger.info(
            "Denied %s on %s for user %s: %s",
            Operation(operation).value,
            type(resource).__name__,
            principal.user_id,
            decision.reason,
        )
        if not principal.is_authenticated:
            raise NotAuthenticated()
        raise NotAuthorized(decision.reason)
    return decision


def missing(principal, what: str) -> Exception:
    """Error for an absent topic or event.

    Non-super-admins get the same error as a policy deny so absence and
    denial can not be told apart.
    """
    if principal.is_superadmin:
        return NotFound(f"{what} not found")
    logger.info("Denied lookup of missing %s for user %s", what, principal.user_id)
    if not principal.is_authenticated:
        return NotAuthenticated()
    return NotAuthorized(f"{what} not found")
