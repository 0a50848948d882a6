"""
Topic and event repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from timeline.db import models, schemas
from timeline.db.scope_utils import apply_topic_visibility_filter


def get_topic(db: Session, topic_id: uuid.UUID):
    return db.query(models.Topic).filter(models.Topic.id == topic_id).first()


def get_topics(
    db: Session,
    principal,
    snapshot,
    organization_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = apply_topic_visibility_filter(db.query(models.Topic), principal, snapshot)
    if organization_id is not None:
        query = query.filter(models.Topic.organization_id == organization_id)
    return query.order_by(models.Topic.name).offset(skip).limit(limit).all()


def create_topic(db: Session, topic: schemas.TopicCreate, created_by: uuid.UUID):
    data = topic.model_dump(exclude={'events'})
    db_topic = models.Topic(**data, created_by=created_by)
    db.add(db_topic)
    db.flush()
    for event in topic.events:
        create_event(db, db_topic.id, event, created_by)
    return db_topic


def update_topic(db: Session, db_topic: models.Topic, topic: schemas.TopicUpdate):
    for key, value in topic.model_dump(exclude_unset=True).items():
        # Only organization_id may be cleared; null elsewhere means "leave as is"
        if value is None and key != "organization_id":
            continue
        setattr(db_topic, key, value)
    db.flush()
    return db_topic


def delete_topic(db: Session, db_topic: models.Topic) -> None:
    db.delete(db_topic)
    db.flush()


def get_event(db: Session, event_id: uuid.UUID):
    return db.query(models.Event).filter(models.Event.id == event_id).first()


def get_events(db: Session, topic_id: uuid.UUID):
    return (
        db.query(models.Event)
        .filter(models.Event.topic_id == topic_id)
        .order_by(models.Event.year, models.Event.date, models.Event.created_at)
        .all()
    )


def create_event(db: Session, topic_id: uuid.UUID, event: schemas.EventCreate, created_by: uuid.UUID):
    db_event = models.Event(
        **event.model_dump(),
        topic_id=topic_id,
        created_by=created_by,
        last_modified_by=created_by,
    )
    db.add(db_event)
    db.flush()
    return db_event


def update_event(db: Session, db_event: models.Event, event: schemas.EventUpdate, modified_by: uuid.UUID):
    for key, value in event.model_dump(exclude_unset=True).items():
        if key == "title" and value is None:
            continue
        setattr(db_event, key, value)
    db_event.last_modified_by = modified_by
    db.flush()
    return db_event


def delete_event(db: Session, db_event: models.Event) -> None:
    db.delete(db_event)
    db.flush()
