import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from timeline.utils.roles import OrgRole
from timeline.utils.statuses import OrganizationStatus


class OrganizationBase(BaseModel):
    name: str = Field(min_length=1)
    slug: str = Field(min_length=1, pattern=r"^[a-z0-9][a-z0-9-]*$")
    description: str | None = None


class OrganizationCreate(OrganizationBase):
    pass


class Organization(OrganizationBase):
    id: uuid.UUID
    status: OrganizationStatus
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PendingOrganization(Organization):
    creator_email: str | None = None
    creator_name: str | None = None


class UserOrganization(Organization):
    """An organization as seen by one user: role is None until approval."""
    role: OrgRole | None = None


class OrganizationMemberCreate(BaseModel):
    email: str = Field(min_length=3)
    role: OrgRole = OrgRole.org_viewer


class OrganizationMemberUpdate(BaseModel):
    role: OrgRole


class OrganizationMember(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    user_id: uuid.UUID
    role: OrgRole
    email: str | None = None
    display_name: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
