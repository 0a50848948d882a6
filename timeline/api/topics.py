"""
Topics and events API endpoints.

Reads are open to guests (public topics only); writes require an
authenticated caller. Every decision is made by TopicService.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from timeline.api.deps import RequestContext, get_optional_request_context, get_request_context
from timeline.db import schemas
from timeline.db.database import get_db
from timeline.services.topic_service import TopicService


router = APIRouter(prefix="/topics", tags=["topics"])
events_router = APIRouter(prefix="/events", tags=["events"])


@router.get("/", response_model=List[schemas.Topic])
def list_topics(
    organization_id: Optional[uuid.UUID] = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_optional_request_context),
):
    return TopicService(db).list_topics(
        ctx.principal, ctx.snapshot, organization_id=organization_id, skip=skip, limit=limit
    )


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=schemas.TopicWithEvents)
def create_topic(
    payload: schemas.TopicCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return TopicService(db).create_topic(payload, ctx.principal, ctx.snapshot)


@router.get("/{topic_id}", response_model=schemas.TopicWithEvents)
def get_topic(
    topic_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_optional_request_context),
):
    return TopicService(db).get_topic(topic_id, ctx.principal, ctx.snapshot)


@router.patch("/{topic_id}", response_model=schemas.Topic)
def update_topic(
    topic_id: uuid.UUID,
    payload: schemas.TopicUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return TopicService(db).update_topic(topic_id, payload, ctx.principal, ctx.snapshot)


@router.delete("/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_topic(
    topic_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    TopicService(db).delete_topic(topic_id, ctx.principal, ctx.snapshot)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{topic_id}/events", response_model=List[schemas.Event])
def list_events(
    topic_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_optional_request_context),
):
    return TopicService(db).list_events(topic_id, ctx.principal, ctx.snapshot)


@router.post("/{topic_id}/events", status_code=status.HTTP_201_CREATED, response_model=schemas.Event)
def create_event(
    topic_id: uuid.UUID,
    payload: schemas.EventCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return TopicService(db).create_event(topic_id, payload, ctx.principal, ctx.snapshot)


@events_router.get("/{event_id}", response_model=schemas.Event)
def get_event(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_optional_request_context),
):
    return TopicService(db).get_event(event_id, ctx.principal, ctx.snapshot)


@events_router.patch("/{event_id}", response_model=schemas.Event)
def update_event(
    event_id: uuid.UUID,
    payload: schemas.EventUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return TopicService(db).update_event(event_id, payload, ctx.principal, ctx.snapshot)


@events_router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    TopicService(db).delete_event(event_id, ctx.principal, ctx.snapshot)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
