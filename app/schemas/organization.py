from datetime import datetime

from pydantic import BaseModel, Field


class OrganizationCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: str = "company"


class OrganizationResponse(BaseModel):
    id: str
    name: str
    type: str
    created_at: datetime
    updated_at: datetime
