"""
Organizations API endpoints.

Registration, super-admin review of pending organizations and membership
administration. Authorization happens in OrganizationService.
"""
from typing import List
import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from timeline.api.deps import RequestContext, get_request_context
from timeline.db import schemas
from timeline.db.database import get_db
from timeline.services.organization_service import OrganizationService


router = APIRouter(prefix="/organizations", tags=["organizations"])
memberships_router = APIRouter(prefix="/memberships", tags=["memberships"])


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=schemas.Organization)
def register_organization(
    payload: schemas.OrganizationCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return OrganizationService(db).register_organization(
        payload.name, payload.slug, payload.description, ctx.principal
    )


@router.get("/", response_model=List[schemas.UserOrganization])
def list_my_organizations(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return OrganizationService(db).list_my_organizations(ctx.principal)


@router.get("/pending", response_model=List[schemas.PendingOrganization])
def list_pending_organizations(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return OrganizationService(db).list_pending_organizations(ctx.principal)


@router.get("/{org_id}", response_model=schemas.Organization)
def get_organization(
    org_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return OrganizationService(db).get_organization(org_id, ctx.principal, ctx.snapshot)


@router.post("/{org_id}/approve", response_model=schemas.Organization)
def approve_organization(
    org_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return OrganizationService(db).approve_organization(org_id, ctx.principal, ctx.snapshot)


@router.post("/{org_id}/reject", response_model=schemas.Organization)
def reject_organization(
    org_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return OrganizationService(db).reject_organization(org_id, ctx.principal, ctx.snapshot)


@router.get("/{org_id}/members", response_model=List[schemas.OrganizationMember])
def list_members(
    org_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return OrganizationService(db).list_members(org_id, ctx.principal, ctx.snapshot)


@router.post("/{org_id}/members", status_code=status.HTTP_201_CREATED, response_model=schemas.OrganizationMember)
def add_member(
    org_id: uuid.UUID,
    payload: schemas.OrganizationMemberCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return OrganizationService(db).add_member(org_id, payload.email, payload.role, ctx.principal, ctx.snapshot)


@memberships_router.patch("/{membership_id}", response_model=schemas.OrganizationMember)
def update_member_role(
    membership_id: uuid.UUID,
    payload: schemas.OrganizationMemberUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return OrganizationService(db).update_member_role(membership_id, payload.role, ctx.principal, ctx.snapshot)


@memberships_router.delete("/{membership_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    membership_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    OrganizationService(db).remove_member(membership_id, ctx.principal, ctx.snapshot)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
