"""
Topic and event access through the policy evaluator.

Each method fetches the row, builds a descriptor from it and asks the
evaluator before reading or writing. List queries apply the equivalent
visibility filter in SQL.
"""
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from timeline.api.permissions import (
    EventDescriptor,
    MembershipSnapshot,
    Operation,
    Principal,
    TopicDescriptor,
)
from timeline.audit import AuditAction, log_event, log_topic
from timeline.db import models, schemas
from timeline.db.repositories import organizations as org_repo
from timeline.db.repositories import topics as topic_repo
from timeline.services.authorization import missing, require
from timeline.services.errors import NotAuthenticated, NotFound

logger = logging.getLogger("timeline.topics")


class TopicService:
    """Service class for topic and event CRUD."""

    def __init__(self, db: Session):
        self.db = db

    def _load_topic(self, topic_id: uuid.UUID, principal: Principal) -> models.Topic:
        topic = topic_repo.get_topic(self.db, topic_id)
        if topic is None:
            raise missing(principal, "Topic")
        return topic

    def _load_event(self, event_id: uuid.UUID, principal: Principal) -> models.Event:
        event = topic_repo.get_event(self.db, event_id)
        if event is None:
            raise missing(principal, "Event")
        return event

    @staticmethod
    def _event_descriptor(event: models.Event) -> EventDescriptor:
        return EventDescriptor(topic=TopicDescriptor.from_row(event.topic), id=event.id)

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Topics
    # ------------------------------------------------------------------

    def list_topics(
        self,
        principal: Principal,
        snapshot: MembershipSnapshot,
        organization_id: Optional[uuid.UUID] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[models.Topic]:
        return topic_repo.get_topics(
            self.db, principal, snapshot, organization_id=organization_id, skip=skip, limit=limit
        )

    def get_topic(self, topic_id: uuid.UUID, principal: Principal, snapshot: MembershipSnapshot) -> models.Topic:
        topic = self._load_topic(topic_id, principal)
        require(principal, snapshot, TopicDescriptor.from_row(topic), Operation.read)
        return topic

    def create_topic(self, data: schemas.TopicCreate, principal: Principal, snapshot: MembershipSnapshot) -> models.Topic:
        """Create a topic (and any initial events) owned by the principal."""
        if not principal.is_authenticated:
            raise NotAuthenticated()
        descriptor = TopicDescriptor(
            organization_id=data.organization_id,
            is_public=data.is_public,
            created_by=principal.user_id,
        )
        require(principal, snapshot, descriptor, Operation.create)
        if data.organization_id is not None and org_repo.get_organization(self.db, data.organization_id) is None:
            raise NotFound("Organization not found")
        try:
            topic = topic_repo.create_topic(self.db, data, created_by=principal.user_id)
            log_topic(
                self.db,
                actor_user_id=principal.user_id,
                organization_id=topic.organization_id,
                topic_id=topic.id,
                action=AuditAction.TOPIC_CREATE,
                name=topic.name,
            )
        except Exception:
            self.db.rollback()
            raise
        self._commit()
        self.db.refresh(topic)
        logger.info("Topic %s created by %s", topic.id, principal.user_id)
        return topic

    def update_topic(
        self,
        topic_id: uuid.UUID,
        data: schemas.TopicUpdate,
        principal: Principal,
        snapshot: MembershipSnapshot,
    ) -> models.Topic:
        topic = self._load_topic(topic_id, principal)
        current = TopicDescriptor.from_row(topic)
        require(principal, snapshot, current, Operation.update)

        changes = data.model_dump(exclude_unset=True)
        to_legacy = False
        if "organization_id" in changes and changes["organization_id"] != topic.organization_id:
            to_legacy = changes["organization_id"] is None
            # Moving a topic needs create rights at the destination as well.
            # A topic leaving its organization becomes the mover's own.
            target = TopicDescriptor(
                organization_id=changes["organization_id"],
                is_public=changes.get("is_public", topic.is_public),
                created_by=principal.user_id if to_legacy else topic.created_by,
                id=topic.id,
            )
            require(principal, snapshot, target, Operation.create)
            if target.organization_id is not None and org_repo.get_organization(self.db, target.organization_id) is None:
                raise NotFound("Organization not found")
        try:
            topic_repo.update_topic(self.db, topic, data)
            if to_legacy:
                topic.created_by = principal.user_id
                self.db.flush()
            log_topic(
                self.db,
                actor_user_id=principal.user_id,
                organization_id=topic.organization_id,
                topic_id=topic.id,
                action=AuditAction.TOPIC_UPDATE,
                name=topic.name,
            )
        except Exception:
            self.db.rollback()
            raise
        self._commit()
        self.db.refresh(topic)
        return topic

    def delete_topic(self, topic_id: uuid.UUID, principal: Principal, snapshot: MembershipSnapshot) -> None:
        """Delete a topic together with its events."""
        topic = self._load_topic(topic_id, principal)
        require(principal, snapshot, TopicDescriptor.from_row(topic), Operation.delete)
        org_id, name = topic.organization_id, topic.name
        try:
            topic_repo.delete_topic(self.db, topic)
            log_topic(
                self.db,
                actor_user_id=principal.user_id,
                organization_id=org_id,
                topic_id=topic_id,
                action=AuditAction.TOPIC_DELETE,
                name=name,
            )
        except Exception:
            self.db.rollback()
            raise
        self._commit()
        logger.info("Topic %s deleted by %s", topic_id, principal.user_id)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def list_events(self, topic_id: uuid.UUID, principal: Principal, snapshot: MembershipSnapshot) -> List[models.Event]:
        topic = self._load_topic(topic_id, principal)
        require(principal, snapshot, EventDescriptor(topic=TopicDescriptor.from_row(topic)), Operation.read)
        return topic_repo.get_events(self.db, topic.id)

    def get_event(self, event_id: uuid.UUID, principal: Principal, snapshot: MembershipSnapshot) -> models.Event:
        event = self._load_event(event_id, principal)
        require(principal, snapshot, self._event_descriptor(event), Operation.read)
        return event

    def create_event(
        self,
        topic_id: uuid.UUID,
        data: schemas.EventCreate,
        principal: Principal,
        snapshot: MembershipSnapshot,
    ) -> models.Event:
        topic = self._load_topic(topic_id, principal)
        require(principal, snapshot, EventDescriptor(topic=TopicDescriptor.from_row(topic)), Operation.create)
        try:
            event = topic_repo.create_event(self.db, topic.id, data, created_by=principal.user_id)
            log_event(
                self.db,
                actor_user_id=principal.user_id,
                organization_id=topic.organization_id,
                event_id=event.id,
                action=AuditAction.EVENT_CREATE,
                topic_id=topic.id,
            )
        except Exception:
            self.db.rollback()
            raise
        self._commit()
        self.db.refresh(event)
        return event

    def update_event(
        self,
        event_id: uuid.UUID,
        data: schemas.EventUpdate,
        principal: Principal,
        snapshot: MembershipSnapshot,
    ) -> models.Event:
        event = self._load_event(event_id, principal)
        require(principal, snapshot, self._event_descriptor(event), Operation.update)
        try:
            topic_repo.update_event(self.db, event, data, modified_by=principal.user_id)
            log_event(
                self.db,
                actor_user_id=principal.user_id,
                organization_id=event.topic.organization_id,
                event_id=event.id,
                action=AuditAction.EVENT_UPDATE,
                topic_id=event.topic_id,
            )
        except Exception:
            self.db.rollback()
            raise
        self._commit()
        self.db.refresh(event)
        return event

    def delete_event(self, event_id: uuid.UUID, principal: Principal, snapshot: MembershipSnapshot) -> None:
        event = self._load_event(event_id, principal)
        require(principal, snapshot, self._event_descriptor(event), Operation.delete)
        org_id, topic_id = event.topic.organization_id, event.topic_id
        try:
            topic_repo.delete_event(self.db, event)
            log_event(
                self.db,
                actor_user_id=principal.user_id,
                organization_id=org_id,
                event_id=event_id,
                action=AuditAction.EVENT_DELETE,
                topic_id=topic_id,
            )
        except Exception:
            self.db.rollback()
            raise
        self._commit()
