"""
API dependency helpers.

Resolves the request context (user, principal, membership snapshot) exactly
once per request so the evaluator never has to reach back into the database.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from timeline.api.auth import (
    fetch_membership_snapshot,
    get_or_create_user,
    resolve_identity_from_headers,
    resolve_principal,
)
from timeline.api.permissions import MembershipSnapshot, Principal
from timeline.db import models
from timeline.db.database import get_db
from timeline.services.errors import NotAuthenticated


@dataclass(frozen=True)
class RequestContext:
    user: Optional[models.User]
    principal: Principal
    snapshot: MembershipSnapshot


def _build_context(db: Session, name: Optional[str], email: Optional[str]) -> RequestContext:
    if not email:
        return RequestContext(user=None, principal=Principal.anonymous(), snapshot=MembershipSnapshot.empty())
    user = get_or_create_user(db, email=email, display_name=name)
    principal = resolve_principal(user)
    return RequestContext(user=user, principal=principal, snapshot=fetch_membership_snapshot(db, user.id))


def get_optional_request_context(
    db: Session = Depends(get_db),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> RequestContext:
    """Context for routes that guests may call; anonymous callers get an empty snapshot."""
    name, email = resolve_identity_from_headers(
        x_auth_request_user=x_auth_request_user,
        x_auth_request_email=x_auth_request_email,
        x_forwarded_user=x_forwarded_user,
        x_forwarded_email=x_forwarded_email,
    )
    return _build_context(db, name, email)


def get_request_context(
    ctx: RequestContext = Depends(get_optional_request_context),
) -> RequestContext:
    if not ctx.principal.is_authenticated:
        raise NotAuthenticated()
    return ctx
