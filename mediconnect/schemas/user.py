from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID
from mediconnect.models.user import UserRole


class UserBase(BaseModel):
    """Base directory entry schema."""
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    role: UserRole = Field(..., description="doctor, patient or secretary")
    phone_number: str | None = Field(None, max_length=20, description="Contact phone number")


class UserCreate(UserBase):
    """Schema for creating a directory entry."""
    pass


class UserResponse(UserBase):
    """Schema for directory entry response."""
    id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
