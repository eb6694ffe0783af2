"""
Incubation Centre Schemas
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class IncubationCentreCreate(BaseModel):
    """Request body for POST /admin/incubation-centres."""

    name: str = Field(..., min_length=1, max_length=200)
    admin_email: EmailStr


class IncubationCentreResponse(BaseModel):
    """Centre as shown to admins."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    admin_email: str
    created_at: datetime


class IncubationCentreOption(BaseModel):
    """Centre as offered on the public application form (no reviewer address)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class IncubationCentreListResponse(BaseModel):
    centres: list[IncubationCentreOption]
