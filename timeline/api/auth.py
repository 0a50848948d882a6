"""
Authentication helpers and identity resolution.

Parses proxy headers, normalizes emails, upserts users (with super-admin
elevation via the ADMIN_EMAILS environment variable) and builds the
request-scoped Principal and MembershipSnapshot.
"""
import logging
import os
from typing import Optional, Tuple
from sqlalchemy.orm import Session

from timeline.api.permissions import MembershipSnapshot, Principal
from timeline.db import models
from timeline.db.repositories import organizations as org_repo
from timeline.db.repositories import users as user_repo

logger = logging.getLogger("timeline.auth")


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    cleaned = email.strip().lower()
    return cleaned or None


def _normalize_list_env(var_name: str) -> set:
    raw = os.getenv(var_name, "")
    values = set()
    for entry in raw.split(","):
        cleaned = entry.strip().strip('"').strip("'")
        if cleaned:
            values.add(cleaned.lower())
    return values


def _admin_emails() -> set:
    return _normalize_list_env("ADMIN_EMAILS")


def resolve_identity_from_headers(
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    user = x_auth_request_user or x_forwarded_user
    email = _normalize_email(x_auth_request_email or x_forwarded_email)
    return user, email


def get_or_create_user(db: Session, email: str, display_name: Optional[str] = None) -> models.User:
    email = _normalize_email(email)
    if not email:
        raise ValueError("email is required")
    admins = _admin_emails()
    user = user_repo.get_user_by_email(db, email)
    if not user:
        user = user_repo.create_user(db, email, display_name, is_superadmin=email in admins)
        db.commit()
        db.refresh(user)
        logger.info("Created user %s (superadmin=%s)", email, user.is_superadmin)
        return user

    # Existing users might predate a new ADMIN_EMAILS value; promote them when necessary.
    if email in admins and not user.is_superadmin:
        user.is_superadmin = True
        db.commit()
        db.refresh(user)
        logger.info("Promoted %s to superadmin from ADMIN_EMAILS", email)
    return user


def resolve_principal(user: Optional[models.User]) -> Principal:
    if user is None:
        return Principal.anonymous()
    return Principal(user_id=user.id, is_superadmin=bool(user.is_superadmin))


def fetch_membership_snapshot(db: Session, user_id) -> MembershipSnapshot:
    """Load the user's memberships in approved organizations, once per request."""
    if user_id is None:
        return MembershipSnapshot.empty()
    rows = org_repo.get_approved_memberships(db, user_id)
    return MembershipSnapshot.from_pairs(user_id, [(org_id, role, status) for org_id, role, status in rows])
