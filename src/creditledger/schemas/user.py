"""Pydantic schemas for User model."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class UserProfile(BaseModel):
    """Schema for returning a user profile."""

    id: UUID
    phone_number: str
    credits: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
