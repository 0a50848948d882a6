"""
Organization lifecycle and membership administration.

Every mutation runs in a single transaction: authorize, lock the affected row,
check state, write, audit, commit. Any error rolls the session back.
"""
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timeline.api.permissions import (
    MembershipDescriptor,
    MembershipSnapshot,
    Operation,
    OrganizationDescriptor,
    Principal,
)
from timeline.audit import AuditAction, AuditStatus, log, log_membership, log_organization
from timeline.db import models, schemas
from timeline.db.repositories import organizations as org_repo
from timeline.db.repositories import users as user_repo
from timeline.services.authorization import require
from timeline.services.errors import Conflict, InvalidState, NotAuthenticated, NotAuthorized, NotFound
from timeline.utils.roles import OrgRole, parse_role
from timeline.utils.statuses import OrganizationStatus, can_transition

logger = logging.getLogger("timeline.organizations")


def _member_view(membership: models.OrganizationMembership, user: Optional[models.User]) -> schemas.OrganizationMember:
    return schemas.OrganizationMember(
        id=membership.id,
        organization_id=membership.organization_id,
        user_id=membership.user_id,
        role=membership.role,
        email=getattr(user, "email", None),
        display_name=getattr(user, "display_name", None),
        created_at=membership.created_at,
    )


class OrganizationService:
    """Service class for organization registration, review and membership changes."""

    def __init__(self, db: Session):
        self.db = db

    def _snapshot(self, principal: Principal, snapshot: Optional[MembershipSnapshot]) -> MembershipSnapshot:
        return snapshot if snapshot is not None else MembershipSnapshot.empty(principal.user_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def register_organization(
        self,
        name: str,
        slug: str,
        description: Optional[str],
        principal: Principal,
    ) -> models.Organization:
        """Create a pending organization owned by the principal."""
        if not principal.is_authenticated:
            raise NotAuthenticated()
        data = schemas.OrganizationCreate(name=name, slug=slug, description=description)
        require(
            principal,
            MembershipSnapshot.empty(principal.user_id),
            OrganizationDescriptor(id=None, status=OrganizationStatus.pending, created_by=principal.user_id),
            Operation.create,
        )
        try:
            if org_repo.get_organization_by_slug(self.db, data.slug):
                raise Conflict(f"Organization slug '{data.slug}' is already taken")
            org = org_repo.create_organization(self.db, data, created_by=principal.user_id)
            log_organization(
                self.db,
                actor_user_id=principal.user_id,
                organization_id=org.id,
                action=AuditAction.ORGANIZATION_REGISTER,
                metadata={"name": org.name, "slug": org.slug},
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict(f"Organization slug '{data.slug}' is already taken") from None
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(org)
        logger.info("Organization %s (%s) registered by %s", org.id, org.slug, principal.user_id)
        return org

    def _transition(
        self,
        org_id: uuid.UUID,
        target: OrganizationStatus,
        principal: Principal,
        snapshot: Optional[MembershipSnapshot],
    ) -> models.Organization:
        action = (
            AuditAction.ORGANIZATION_APPROVE
            if target == OrganizationStatus.approved
            else AuditAction.ORGANIZATION_REJECT
        )
        # Lifecycle transitions always start from pending
        try:
            require(
                principal,
                self._snapshot(principal, snapshot),
                OrganizationDescriptor(id=org_id, status=OrganizationStatus.pending),
                Operation.update,
            )
        except NotAuthorized as exc:
            self._record_denied(action, org_id, principal, exc.reason)
            raise
        try:
            org = org_repo.get_organization(self.db, org_id, for_update=True)
            if org is None:
                raise NotFound("Organization not found")
            if not can_transition(org.status, target):
                raise InvalidState(f"Organization is {org.status}, expected pending")
            org_repo.set_organization_status(self.db, org, target)
            if target == OrganizationStatus.approved and org.created_by is not None:
                org_repo.add_membership_if_absent(self.db, org.id, org.created_by, OrgRole.org_admin)
            log_organization(
                self.db,
                actor_user_id=principal.user_id,
                organization_id=org.id,
                action=action,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(org)
        logger.info("Organization %s %s by %s", org.id, org.status, principal.user_id)
        return org

    def _record_denied(self, action: AuditAction, org_id: uuid.UUID, principal: Principal, reason: str) -> None:
        """Commit a failure audit row for a refused lifecycle change."""
        # organization_id stays empty: the id comes from the caller and may not exist
        try:
            log(
                self.db,
                action=action,
                status=AuditStatus.FAILURE,
                target_type="organization",
                target_id=org_id,
                actor_user_id=principal.user_id,
                reason=reason,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def approve_organization(
        self,
        org_id: uuid.UUID,
        principal: Principal,
        snapshot: Optional[MembershipSnapshot] = None,
    ) -> models.Organization:
        """Approve a pending organization and make its creator an org_admin."""
        return self._transition(org_id, OrganizationStatus.approved, principal, snapshot)

    def reject_organization(
        self,
        org_id: uuid.UUID,
        principal: Principal,
        snapshot: Optional[MembershipSnapshot] = None,
    ) -> models.Organization:
        return self._transition(org_id, OrganizationStatus.rejected, principal, snapshot)

    def list_pending_organizations(self, principal: Principal) -> List[schemas.PendingOrganization]:
        """Pending organizations for super-admins; an empty list for everyone else."""
        if not principal.is_superadmin:
            return []
        return [
            schemas.PendingOrganization(
                **schemas.Organization.model_validate(org).model_dump(),
                creator_email=getattr(creator, "email", None),
                creator_name=getattr(creator, "display_name", None),
            )
            for org, creator in org_repo.get_pending_organizations(self.db)
        ]

    def list_my_organizations(self, principal: Principal) -> List[schemas.UserOrganization]:
        if not principal.is_authenticated:
            raise NotAuthenticated()
        result = []
        for org, role in org_repo.get_user_organizations(self.db, principal.user_id):
            effective = role if org.status == OrganizationStatus.approved else None
            result.append(
                schemas.UserOrganization(
                    **schemas.Organization.model_validate(org).model_dump(),
                    role=effective,
                )
            )
        return result

    def get_organization(
        self,
        org_id: uuid.UUID,
        principal: Principal,
        snapshot: Optional[MembershipSnapshot] = None,
    ) -> models.Organization:
        org = org_repo.get_organization(self.db, org_id)
        if org is None:
            raise NotFound("Organization not found")
        require(principal, self._snapshot(principal, snapshot), OrganizationDescriptor.from_row(org), Operation.read)
        return org

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------

    def list_members(
        self,
        org_id: uuid.UUID,
        principal: Principal,
        snapshot: Optional[MembershipSnapshot] = None,
    ) -> List[schemas.OrganizationMember]:
        require(principal, self._snapshot(principal, snapshot), MembershipDescriptor(organization_id=org_id), Operation.read)
        if org_repo.get_organization(self.db, org_id) is None:
            raise NotFound("Organization not found")
        return [_member_view(m, u) for m, u in org_repo.get_organization_members(self.db, org_id)]

    def add_member(
        self,
        org_id: uuid.UUID,
        email: str,
        role,
        principal: Principal,
        snapshot: Optional[MembershipSnapshot] = None,
    ) -> schemas.OrganizationMember:
        """Add a user (created on first reference) to an approved organization."""
        require(principal, self._snapshot(principal, snapshot), MembershipDescriptor(organization_id=org_id), Operation.create)
        role = parse_role(role)
        email = (email or "").strip().lower()
        if not email:
            raise ValueError("email is required")
        try:
            org = org_repo.get_organization(self.db, org_id, for_update=True)
            if org is None:
                raise NotFound("Organization not found")
            if org.status != OrganizationStatus.approved:
                raise InvalidState("Members can only be added to approved organizations")
            user = user_repo.get_user_by_email(self.db, email) or user_repo.create_user(self.db, email)
            if org_repo.get_organization_member(self.db, org_id, user.id) is not None:
                raise Conflict("User is already a member of this organization")
            membership = org_repo.create_membership(self.db, org_id, user.id, role)
            log_membership(
                self.db,
                actor_user_id=principal.user_id,
                organization_id=org_id,
                membership_id=membership.id,
                action=AuditAction.MEMBER_ADD,
                metadata={"user_id": str(user.id), "role": role.value},
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("User is already a member of this organization") from None
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(membership)
        logger.info("User %s added to organization %s as %s", user.id, org_id, role.value)
        return _member_view(membership, user)

    def update_member_role(
        self,
        membership_id: uuid.UUID,
        role,
        principal: Principal,
        snapshot: Optional[MembershipSnapshot] = None,
    ) -> schemas.OrganizationMember:
        try:
            membership = org_repo.get_membership(self.db, membership_id, for_update=True)
            if membership is None:
                raise NotFound("Membership not found")
            require(principal, self._snapshot(principal, snapshot), MembershipDescriptor.from_row(membership), Operation.update)
            new_role = parse_role(role)
            old_role = membership.role
            org_repo.update_membership_role(self.db, membership, new_role)
            log_membership(
                self.db,
                actor_user_id=principal.user_id,
                organization_id=membership.organization_id,
                membership_id=membership.id,
                action=AuditAction.MEMBER_ROLE_CHANGE,
                metadata={"old_role": old_role, "new_role": new_role.value},
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(membership)
        logger.info("Membership %s role changed %s -> %s by %s", membership.id, old_role, new_role.value, principal.user_id)
        user = self.db.get(models.User, membership.user_id)
        return _member_view(membership, user)

    def remove_member(
        self,
        membership_id: uuid.UUID,
        principal: Principal,
        snapshot: Optional[MembershipSnapshot] = None,
    ) -> None:
        """Delete a membership. Allowed to org admins, super-admins and the member themself."""
        try:
            membership = org_repo.get_membership(self.db, membership_id, for_update=True)
            if membership is None:
                raise NotFound("Membership not found")
            require(principal, self._snapshot(principal, snapshot), MembershipDescriptor.from_row(membership), Operation.delete)
            org_id, user_id = membership.organization_id, membership.user_id
            org_repo.delete_membership(self.db, membership)
            log_membership(
                self.db,
                actor_user_id=principal.user_id,
                organization_id=org_id,
                membership_id=membership_id,
                action=AuditAction.MEMBER_REMOVE,
                metadata={"user_id": str(user_id)},
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Membership %s removed by %s", membership_id, principal.user_id)
