import uuid
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


DisplayMode = Literal["years", "days"]


class EventBase(BaseModel):
    title: str = Field(min_length=1)
    date: Optional[str] = None
    year: Optional[int] = None
    description: Optional[str] = None
    short_description: Optional[str] = None
    image_url: Optional[str] = None
    details_url: Optional[str] = None
    tags: Optional[List[str]] = None


class EventCreate(EventBase):
    pass


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    date: Optional[str] = None
    year: Optional[int] = None
    description: Optional[str] = None
    short_description: Optional[str] = None
    image_url: Optional[str] = None
    details_url: Optional[str] = None
    tags: Optional[List[str]] = None


class Event(EventBase):
    id: uuid.UUID
    topic_id: uuid.UUID
    created_by: Optional[uuid.UUID] = None
    last_modified_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class TopicBase(BaseModel):
    name: str = Field(min_length=1)
    organization_id: Optional[uuid.UUID] = None
    is_public: bool = False
    default_display_mode: DisplayMode = "years"


class TopicCreate(TopicBase):
    events: List[EventCreate] = Field(default_factory=list)


class TopicUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    organization_id: Optional[uuid.UUID] = None
    is_public: Optional[bool] = None
    default_display_mode: Optional[DisplayMode] = None


class Topic(TopicBase):
    id: uuid.UUID
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class TopicWithEvents(Topic):
    events: List[Event] = Field(default_factory=list)
