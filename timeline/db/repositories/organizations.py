"""
Organization repository functions.

Implements persistence for organizations and memberships. Row-locking reads
(`for_update=True`) are used by lifecycle transitions and role changes.
"""
from __future__ import annotations

import uuid
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from timeline.db import schemas, models
from timeline.utils.roles import OrgRole
from timeline.utils.statuses import OrganizationStatus


def create_organization(db: Session, organization: schemas.OrganizationCreate, created_by: uuid.UUID):
    db_organization = models.Organization(
        name=organization.name,
        slug=organization.slug,
        description=organization.description,
        status=OrganizationStatus.pending.value,
        created_by=created_by,
    )
    db.add(db_organization)
    db.flush()
    return db_organization


def get_organization(db: Session, organization_id: uuid.UUID, *, for_update: bool = False):
    q = db.query(models.Organization).filter(models.Organization.id == organization_id)
    if for_update:
        q = q.with_for_update()
    return q.first()


def get_organization_by_slug(db: Session, slug: str):
    return db.query(models.Organization).filter(models.Organization.slug == slug).first()


def set_organization_status(db: Session, organization: models.Organization, status: OrganizationStatus):
    organization.status = OrganizationStatus(status).value
    db.flush()
    return organization


def get_pending_organizations(db: Session) -> List[Tuple[models.Organization, Optional[models.User]]]:
    """Pending organizations, newest first, each with its creator (if any)."""
    return (
        db.query(models.Organization, models.User)
        .outerjoin(models.User, models.User.id == models.Organization.created_by)
        .filter(models.Organization.status == OrganizationStatus.pending.value)
        .order_by(models.Organization.created_at.desc())
        .all()
    )


def get_user_organizations(db: Session, user_id: uuid.UUID) -> List[Tuple[models.Organization, Optional[str]]]:
    """Organizations the user belongs to or created, with the membership role (None if not a member)."""
    member_rows = (
        db.query(models.Organization, models.OrganizationMembership.role)
        .join(models.OrganizationMembership, models.OrganizationMembership.organization_id == models.Organization.id)
        .filter(models.OrganizationMembership.user_id == user_id)
        .all()
    )
    seen = {org.id for org, _role in member_rows}
    created = (
        db.query(models.Organization)
        .filter(models.Organization.created_by == user_id)
        .all()
    )
    rows = list(member_rows)
    rows.extend((org, None) for org in created if org.id not in seen)
    rows.sort(key=lambda row: row[0].name.lower())
    return rows


def get_approved_memberships(db: Session, user_id: uuid.UUID) -> List[Tuple[uuid.UUID, str, str]]:
    """(organization_id, role, status) rows for the user's approved organizations only."""
    return (
        db.query(
            models.OrganizationMembership.organization_id,
            models.OrganizationMembership.role,
            models.Organization.status,
        )
        .join(models.Organization, models.Organization.id == models.OrganizationMembership.organization_id)
        .filter(
            models.OrganizationMembership.user_id == user_id,
            models.Organization.status == OrganizationStatus.approved.value,
        )
        .all()
    )


def get_membership(db: Session, membership_id: uuid.UUID, *, for_update: bool = False):
    q = db.query(models.OrganizationMembership).filter(models.OrganizationMembership.id == membership_id)
    if for_update:
        q = q.with_for_update()
    return q.first()


def get_organization_member(db: Session, organization_id: uuid.UUID, user_id: uuid.UUID):
    return (
        db.query(models.OrganizationMembership)
        .filter(
            models.OrganizationMembership.organization_id == organization_id,
            models.OrganizationMembership.user_id == user_id,
        )
        .first()
    )


def get_organization_members(db: Session, organization_id: uuid.UUID, skip: int = 0, limit: int = 100):
    return (
        db.query(models.OrganizationMembership, models.User)
        .join(models.User, models.User.id == models.OrganizationMembership.user_id)
        .filter(models.OrganizationMembership.organization_id == organization_id)
        .order_by(models.OrganizationMembership.created_at)
        .offset(skip)
        .limit(limit)
        .all()
    )


def create_membership(db: Session, organization_id: uuid.UUID, user_id: uuid.UUID, role: OrgRole):
    db_member = models.OrganizationMembership(
        organization_id=organization_id,
        user_id=user_id,
        role=OrgRole(role).value,
    )
    db.add(db_member)
    db.flush()
    return db_member


def add_membership_if_absent(db: Session, organization_id: uuid.UUID, user_id: uuid.UUID, role: OrgRole):
    """Insert-if-absent. Returns (membership, created)."""
    existing = get_organization_member(db, organization_id, user_id)
    if existing is not None:
        return existing, False
    return create_membership(db, organization_id, user_id, role), True


def update_membership_role(db: Session, membership: models.OrganizationMembership, role: OrgRole):
    membership.role = OrgRole(role).value
    db.flush()
    return membership


def delete_membership(db: Session, membership: models.OrganizationMembership) -> None:
    db.delete(membership)
    db.flush()
