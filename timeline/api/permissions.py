"""
Policy evaluator for topic, event, organization and membership access.

Key helpers:
- decide(principal, snapshot, resource, operation) -> Decision
- can_manage_org(org_id, principal, snapshot)

`decide` is a pure function over an already-fetched MembershipSnapshot. It
never touches the database, so a policy check can not re-enter itself.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Union

from timeline.utils.roles import OrgRole, parse_role, role_allows_manage, role_allows_write
from timeline.utils.statuses import OrganizationStatus, grants_membership


class MalformedAuthorizationRequest(ValueError):
    """Raised when decide() is called with missing or ill-typed inputs."""


class Operation(str, Enum):
    read = "read"
    create = "create"
    update = "update"
    delete = "delete"


WRITE_OPERATIONS: FrozenSet[Operation] = frozenset({Operation.create, Operation.update, Operation.delete})

NO_MATCHING_RULE = "no matching rule"


# ---------------------------------------------------------------------------
# Request-scoped identity
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Principal:
    """The authenticated actor of a request. `user_id` is None for guests."""

    user_id: Optional[uuid.UUID]
    is_superadmin: bool = False

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls(user_id=None, is_superadmin=False)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


@dataclass(frozen=True)
class MembershipEntry:
    organization_id: uuid.UUID
    role: OrgRole
    organization_status: OrganizationStatus = OrganizationStatus.approved


_ROLE_RANK = {OrgRole.org_admin: 3, OrgRole.org_editor: 2, OrgRole.org_viewer: 1}


@dataclass(frozen=True)
class MembershipSnapshot:
    """Immutable set of a user's organization memberships for one request.

    The data layer only loads memberships of approved organizations; entries
    carrying any other status are ignored here as well.
    """

    user_id: Optional[uuid.UUID] = None
    entries: FrozenSet[MembershipEntry] = field(default_factory=frozenset)

    @classmethod
    def empty(cls, user_id: Optional[uuid.UUID] = None) -> "MembershipSnapshot":
        return cls(user_id=user_id, entries=frozenset())

    @classmethod
    def from_pairs(cls, user_id: Optional[uuid.UUID], pairs: Iterable) -> "MembershipSnapshot":
        """Build from (organization_id, role) or (organization_id, role, status) tuples."""
        entries = []
        for pair in pairs:
            org_id, role, *rest = pair
            status = OrganizationStatus(rest[0]) if rest else OrganizationStatus.approved
            entries.append(MembershipEntry(organization_id=org_id, role=parse_role(role), organization_status=status))
        return cls(user_id=user_id, entries=frozenset(entries))

    def role_for(self, organization_id) -> Optional[OrgRole]:
        """Return the effective role in an approved organization, or None."""
        if organization_id is None:
            return None
        key = str(organization_id)
        best: Optional[OrgRole] = None
        for entry in self.entries:
            if str(entry.organization_id) != key or not grants_membership(entry.organization_status):
                continue
            if best is None or _ROLE_RANK[entry.role] > _ROLE_RANK[best]:
                best = entry.role
        return best

    def organization_ids(self) -> FrozenSet[uuid.UUID]:
        return frozenset(
            e.organization_id for e in self.entries if grants_membership(e.organization_status)
        )


# ---------------------------------------------------------------------------
# Resource descriptors
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TopicDescriptor:
    organization_id: Optional[uuid.UUID] = None
    is_public: bool = False
    created_by: Optional[uuid.UUID] = None
    id: Optional[uuid.UUID] = None

    @classmethod
    def from_row(cls, topic) -> "TopicDescriptor":
        return cls(
            organization_id=getattr(topic, "organization_id", None),
            is_public=bool(getattr(topic, "is_public", False)),
            created_by=getattr(topic, "created_by", None),
            id=getattr(topic, "id", None),
        )

    @property
    def is_organization_scoped(self) -> bool:
        return self.organization_id is not None


@dataclass(frozen=True)
class EventDescriptor:
    topic: TopicDescriptor
    id: Optional[uuid.UUID] = None


@dataclass(frozen=True)
class OrganizationDescriptor:
    id: Optional[uuid.UUID]
    status: OrganizationStatus
    created_by: Optional[uuid.UUID] = None

    @classmethod
    def from_row(cls, org) -> "OrganizationDescriptor":
        return cls(id=org.id, status=OrganizationStatus(org.status), created_by=org.created_by)


@dataclass(frozen=True)
class MembershipDescriptor:
    organization_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    id: Optional[uuid.UUID] = None

    @classmethod
    def from_row(cls, membership) -> "MembershipDescriptor":
        return cls(organization_id=membership.organization_id, user_id=membership.user_id, id=membership.id)


Resource = Union[TopicDescriptor, EventDescriptor, OrganizationDescriptor, MembershipDescriptor]


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed

    @classmethod
    def deny(cls, reason: str = NO_MATCHING_RULE) -> "Decision":
        return cls(allowed=False, reason=reason)


ALLOW = Decision(allowed=True)


def _same_user(a, b) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def _validate(principal, snapshot, resource, operation) -> Operation:
    if not isinstance(principal, Principal):
        raise MalformedAuthorizationRequest("principal is required")
    if not isinstance(snapshot, MembershipSnapshot):
        raise MalformedAuthorizationRequest("membership snapshot is required")
    if resource is None:
        raise MalformedAuthorizationRequest("resource is required")
    if not isinstance(resource, (TopicDescriptor, EventDescriptor, OrganizationDescriptor, MembershipDescriptor)):
        raise MalformedAuthorizationRequest(f"unsupported resource type: {type(resource).__name__}")
    if snapshot.user_id is not None and not _same_user(snapshot.user_id, principal.user_id):
        raise MalformedAuthorizationRequest("membership snapshot belongs to a different user")
    try:
        return Operation(operation)
    except ValueError:
        raise MalformedAuthorizationRequest(f"unknown operation: {operation!r}") from None


def _decide_topic(principal: Principal, snapshot: MembershipSnapshot, topic: TopicDescriptor, op: Operation) -> Decision:
    if op is Operation.read:
        if topic.is_public:
            return ALLOW
        if topic.is_organization_scoped:
            if snapshot.role_for(topic.organization_id) is not None:
                return ALLOW
            return Decision.deny("not a member of the topic's organization")
        if _same_user(topic.created_by, principal.user_id):
            return ALLOW
        return Decision.deny("private topic belongs to another user")

    # Writes: organization role is authoritative, is_public is ignored
    if topic.is_organization_scoped:
        role = snapshot.role_for(topic.organization_id)
        if role is None:
            return Decision.deny("not a member of the topic's organization")
        if role_allows_write(role):
            return ALLOW
        return Decision.deny(f"role {role.value} can not modify topics")

    if op is Operation.create:
        # created_by is forced to the principal by the caller
        if principal.is_authenticated:
            return ALLOW
        return Decision.deny("anonymous principals can not create topics")

    if topic.is_public:
        return Decision.deny("legacy public topics are read-only")
    if _same_user(topic.created_by, principal.user_id):
        return ALLOW
    return Decision.deny("private topic belongs to another user")


def _decide_event(principal: Principal, snapshot: MembershipSnapshot, event: EventDescriptor, op: Operation) -> Decision:
    if op in WRITE_OPERATIONS and not principal.is_authenticated:
        return Decision.deny("anonymous principals can not modify events")
    if event.topic is None:
        raise MalformedAuthorizationRequest("event descriptor requires its parent topic")
    return _decide_topic(principal, snapshot, event.topic, op)


def _decide_organization(principal: Principal, snapshot: MembershipSnapshot, org: OrganizationDescriptor, op: Operation) -> Decision:
    if op is Operation.read:
        if org.status == OrganizationStatus.approved and snapshot.role_for(org.id) is not None:
            return ALLOW
        # Creators keep read access to their own organization in every status
        if _same_user(org.created_by, principal.user_id):
            return ALLOW
        return Decision.deny("not a member of the organization")
    if op is Operation.create:
        if principal.is_authenticated:
            return ALLOW
        return Decision.deny("anonymous principals can not register organizations")
    return Decision.deny("organization lifecycle changes require a super-admin")


def _decide_membership(principal: Principal, snapshot: MembershipSnapshot, membership: MembershipDescriptor, op: Operation) -> Decision:
    role = snapshot.role_for(membership.organization_id)
    if op is Operation.read:
        if role is not None:
            return ALLOW
        return Decision.deny("not a member of the organization")
    if role is not None and role_allows_manage(role):
        return ALLOW
    if op is Operation.delete and _same_user(membership.user_id, principal.user_id):
        return ALLOW
    return Decision.deny("organization admin role required")


def decide(principal: Principal, snapshot: MembershipSnapshot, resource: Resource, operation) -> Decision:
    """Return ALLOW or Decision.deny(reason) for the operation on the resource.

    Rules are checked in order and the first match wins; super-admins are
    allowed everything and anything unmatched is denied.

    Raises:
        MalformedAuthorizationRequest: principal, snapshot or resource missing,
            or an operation/resource type outside the closed sets.
    """
    op = _validate(principal, snapshot, resource, operation)

    if principal.is_superadmin:
        return ALLOW

    if isinstance(resource, TopicDescriptor):
        return _decide_topic(principal, snapshot, resource, op)
    if isinstance(resource, EventDescriptor):
        return _decide_event(principal, snapshot, resource, op)
    if isinstance(resource, OrganizationDescriptor):
        return _decide_organization(principal, snapshot, resource, op)
    if isinstance(resource, MembershipDescriptor):
        return _decide_membership(principal, snapshot, resource, op)
    return Decision.deny(NO_MATCHING_RULE)


def can_manage_org(org_id, principal: Principal, snapshot: MembershipSnapshot) -> bool:
    """True for super-admins and org admins of an approved organization."""
    membership = MembershipDescriptor(organization_id=org_id)
    return decide(principal, snapshot, membership, Operation.update).allowed
