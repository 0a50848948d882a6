"""
Audit log API endpoints.

Organization admins can read their organization's audit trail; super-admins
can read everything.
"""
from typing import Optional, List
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from timeline.api.deps import RequestContext, get_request_context
from timeline.api.permissions import can_manage_org
from timeline.audit import AuditAction
from timeline.db import schemas
from timeline.db.database import get_db
from timeline.db.repositories import audits as audit_repo
from timeline.services.errors import NotAuthorized

router = APIRouter(prefix="/audits", tags=["audits"])


def _to_schema(log) -> schemas.AuditLog:
    # The ORM attribute is metadata_json; `metadata` is reserved on declarative models
    return schemas.AuditLog(
        id=log.id,
        organization_id=log.organization_id,
        actor_user_id=log.actor_user_id,
        action_type=log.action_type,
        status=log.status,
        target_type=log.target_type,
        target_id=log.target_id,
        reason=log.reason,
        metadata=log.metadata_json,
        created_at=log.created_at,
    )


@router.get("/", response_model=List[schemas.AuditLog])
def list_audit_logs(
    organization_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    action_type: Optional[AuditAction] = None,
    target_type: Optional[str] = Query(default=None, pattern="^(organization|membership|topic|event)$"),
    target_id: Optional[uuid.UUID] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    if organization_id:
        if not can_manage_org(organization_id, ctx.principal, ctx.snapshot):
            raise NotAuthorized("organization admin role required for audit logs")
    elif not ctx.principal.is_superadmin:
        raise NotAuthorized("organization_id is required for non-superadmins")

    logs = audit_repo.get_audit_logs(
        db,
        organization_id=organization_id,
        actor_user_id=user_id,
        action=action_type,
        target_type=target_type,
        target_id=target_id,
        skip=skip,
        limit=limit,
    )
    return [_to_schema(log) for log in logs]
