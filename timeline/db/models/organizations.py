import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, CheckConstraint, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class Organization(Base):
    __tablename__ = 'organizations'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default='pending')  # 'pending'|'approved'|'rejected'
    created_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('idx_organizations_status', 'status'),
        CheckConstraint("status in ('pending','approved','rejected')", name='ck_organizations_status'),
    )


class OrganizationMembership(Base):
    __tablename__ = 'organization_memberships'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False)
    role = Column(String, nullable=False, default='org_viewer')  # 'org_admin'|'org_editor'|'org_viewer'
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        UniqueConstraint('user_id', 'organization_id', name='uq_org_memberships_user_org'),
        Index('idx_org_memberships_user_id', 'user_id'),
        CheckConstraint("role in ('org_admin','org_editor','org_viewer')", name='ck_org_memberships_role'),
    )
