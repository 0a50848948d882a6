"""
Audit logging helpers and enums.

Every administrative mutation and every topic or event write records one
normalized row in `audit_logs`, inside the caller's transaction.
"""
from __future__ import annotations
import uuid
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.orm import Session

from timeline.db import schemas
from timeline.db.repositories import audits as audit_repo


class AuditAction(str, Enum):
    # Organization lifecycle
    ORGANIZATION_REGISTER = "organization_register"
    ORGANIZATION_APPROVE = "organization_approve"
    ORGANIZATION_REJECT = "organization_reject"
    # Membership
    MEMBER_ADD = "member_add"
    MEMBER_REMOVE = "member_remove"
    MEMBER_ROLE_CHANGE = "member_role_change"
    # Topic
    TOPIC_CREATE = "topic_create"
    TOPIC_UPDATE = "topic_update"
    TOPIC_DELETE = "topic_delete"
    # Event
    EVENT_CREATE = "event_create"
    EVENT_UPDATE = "event_update"
    EVENT_DELETE = "event_delete"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[uuid.UUID] = None,
    actor_user_id: uuid.UUID,
    organization_id: Optional[uuid.UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
    reason: Optional[str] = None,
):
    """Add an audit row to the current session. The caller commits."""
    # Persist plain string values, not Enum reprs
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    audit_log = schemas.AuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        reason=reason,
        metadata=metadata or {},
    )
    return audit_repo.create_audit_log(
        db,
        audit_log=audit_log,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
    )


def log_organization(db: Session, *, actor_user_id: uuid.UUID, organization_id: uuid.UUID, action: AuditAction, metadata: Optional[Dict[str, Any]] = None):
    return log(
        db,
        action=action,
        target_type="organization",
        target_id=organization_id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata=metadata,
    )


def log_membership(db: Session, *, actor_user_id: uuid.UUID, organization_id: uuid.UUID, membership_id: uuid.UUID, action: AuditAction, metadata: Optional[Dict[str, Any]] = None):
    return log(
        db,
        action=action,
        target_type="membership",
        target_id=membership_id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata=metadata,
    )


def log_topic(db: Session, *, actor_user_id: uuid.UUID, organization_id: Optional[uuid.UUID], topic_id: uuid.UUID, action: AuditAction, name: Optional[str] = None):
    return log(
        db,
        action=action,
        target_type="topic",
        target_id=topic_id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"name": name} if name else None,
    )


def log_event(db: Session, *, actor_user_id: uuid.UUID, organization_id: Optional[uuid.UUID], event_id: uuid.UUID, action: AuditAction, topic_id: Optional[uuid.UUID] = None):
    return log(
        db,
        action=action,
        target_type="event",
        target_id=event_id,
        actor_user_id=actor_user_id,
        organization_id=organization_id,
        metadata={"topic_id": str(topic_id)} if topic_id else None,
    )


__all__ = ["AuditAction", "AuditStatus", "log", "log_organization", "log_membership", "log_topic", "log_event"]
