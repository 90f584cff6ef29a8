from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field
from datetime import datetime, date, time
from uuid import UUID
from mediconnect.config import settings
from mediconnect.models.availability import AppointmentType, ExceptionKind, Weekday


class RuleBase(BaseModel):
    """Base weekly availability rule schema."""
    weekday: Weekday = Field(..., description="Day of the week (monday..sunday)")
    start_time: time = Field(..., description="Window start (HH:MM:SS)")
    end_time: time = Field(..., description="Window end (HH:MM:SS), after start_time")
    slot_minutes: int = Field(settings.default_slot_minutes, gt=0, description="Slot length in minutes")
    appointment_type: AppointmentType = AppointmentType.IN_PERSON
    active: bool = True


class RuleCreate(RuleBase):
    """Schema for creating a weekly rule."""
    pass


class RuleUpdate(BaseModel):
    """Schema for partially updating a weekly rule."""
    weekday: Weekday | None = None
    start_time: time | None = None
    end_time: time | None = None
    slot_minutes: int | None = Field(None, gt=0)
    appointment_type: AppointmentType | None = None
    active: bool | None = None


class WeekScheduleCreate(BaseModel):
    """Schema for creating the same window on several weekdays at once."""
    weekdays: list[Weekday] = Field(..., min_length=1)
    start_time: time
    end_time: time
    slot_minutes: int = Field(settings.default_slot_minutes, gt=0)
    appointment_type: AppointmentType = AppointmentType.IN_PERSON


class RuleResponse(RuleBase):
    """Schema for weekly rule response."""
    id: UUID
    doctor_id: UUID
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ScheduleWindow(BaseModel):
    """One active window in a weekly summary."""
    start: time
    end: time
    type: AppointmentType
    slot_minutes: int


class BlockedExceptionCreate(BaseModel):
    """Blocks a whole date. Window fields are rejected."""
    kind: Literal["blocked"]
    date: date
    reason: str | None = None

    class Config:
        extra = "forbid"


class CustomHoursExceptionCreate(BaseModel):
    """Replaces a date's weekly rules with a single window."""
    kind: Literal["custom_hours"]
    date: date
    start_time: time
    end_time: time
    slot_minutes: int = Field(settings.default_slot_minutes, gt=0)
    appointment_type: AppointmentType = AppointmentType.IN_PERSON
    reason: str | None = None


ExceptionCreate = Annotated[
    Union[BlockedExceptionCreate, CustomHoursExceptionCreate],
    Field(discriminator="kind"),
]


class BlockRangeCreate(BaseModel):
    """Schema for blocking every date in a range (vacations, leave)."""
    start_date: date
    end_date: date
    reason: str | None = None


class ExceptionResponse(BaseModel):
    """Schema for availability exception response."""
    id: UUID
    doctor_id: UUID
    date: date
    kind: ExceptionKind
    start_time: time | None = None
    end_time: time | None = None
    slot_minutes: int | None = None
    appointment_type: AppointmentType | None = None
    reason: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class DeletedCount(BaseModel):
    """Schema for bulk delete response."""
    deleted_count: int
