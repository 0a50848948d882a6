"""
User repository functions.
"""
from __future__ import annotations

from typing import Optional
from sqlalchemy.orm import Session

from timeline.db import models


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def create_user(db: Session, email: str, display_name: Optional[str] = None, is_superadmin: bool = False):
    user = models.User(
        email=email,
        display_name=display_name or email.split("@")[0],
        is_superadmin=is_superadmin,
    )
    db.add(user)
    db.flush()
    return user
