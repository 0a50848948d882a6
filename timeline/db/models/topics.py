import uuid
from sqlalchemy import Column, String, Text, Integer, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Topic(Base):
    __tablename__ = 'topics'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    # NULL organization_id marks a legacy/private topic governed by is_public/created_by
    organization_id = Column(UUID(as_uuid=True), ForeignKey('organizations.id', ondelete='CASCADE'), nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)
    created_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    default_display_mode = Column(String, nullable=False, default='years')  # 'years'|'days'
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    events = relationship("Event", back_populates="topic", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_topics_organization_id', 'organization_id'),
        Index('idx_topics_is_public', 'is_public'),
    )


class Event(Base):
    __tablename__ = 'events'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    topic_id = Column(UUID(as_uuid=True), ForeignKey('topics.id', ondelete='CASCADE'), nullable=False)
    title = Column(String, nullable=False)
    date = Column(String, nullable=True)
    year = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    short_description = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    details_url = Column(Text, nullable=True)
    tags = Column(JSONB, nullable=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    last_modified_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    topic = relationship("Topic", back_populates="events")

    __table_args__ = (
        Index('idx_events_topic_id', 'topic_id'),
    )
