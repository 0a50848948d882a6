"""
Audit log repository functions.

Rows are only ever inserted; the trail is read newest first.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from timeline.db import models, schemas


def create_audit_log(db: Session, audit_log: schemas.AuditLogCreate, actor_user_id: uuid.UUID, organization_id: Optional[uuid.UUID] = None):
    db_audit_log = models.AuditLog(
        organization_id=organization_id,
        actor_user_id=actor_user_id,
        action_type=audit_log.action_type,
        status=audit_log.status,
        target_type=audit_log.target_type,
        target_id=audit_log.target_id,
        reason=audit_log.reason,
        metadata_json=audit_log.metadata or {},
    )
    db.add(db_audit_log)
    db.flush()
    return db_audit_log


def get_audit_logs(
    db: Session,
    organization_id: Optional[uuid.UUID] = None,
    actor_user_id: Optional[uuid.UUID] = None,
    action: Optional[str] = None,
    target_type: Optional[str] = None,
    target_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 100,
):
    """List audit rows for an organization, an actor or a single target."""
    query = db.query(models.AuditLog)
    if organization_id:
        query = query.filter(models.AuditLog.organization_id == organization_id)
    if actor_user_id:
        query = query.filter(models.AuditLog.actor_user_id == actor_user_id)
    if action:
        # AuditAction is a str-Enum, so members and plain strings both work
        query = query.filter(models.AuditLog.action_type == getattr(action, "value", action))
    if target_type:
        query = query.filter(models.AuditLog.target_type == target_type)
    if target_id:
        query = query.filter(models.AuditLog.target_id == target_id)
    return query.order_by(models.AuditLog.created_at.desc()).offset(skip).limit(limit).all()
