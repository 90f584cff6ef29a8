from pydantic import BaseModel, Field
from datetime import datetime, date
from uuid import UUID
from mediconnect.models.appointment import AppointmentStatus
from mediconnect.models.availability import AppointmentType


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment."""
    patient_id: UUID = Field(..., description="Patient ID")
    doctor_id: UUID = Field(..., description="Doctor ID")
    scheduled_at: datetime = Field(..., description="Slot start (ISO-8601)")
    appointment_type: AppointmentType = AppointmentType.IN_PERSON
    duration_minutes: int | None = Field(
        None, gt=0, description="Defaults to the slot length of the matching rule"
    )
    chief_complaint: str | None = None
    patient_notes: str | None = None
    insurance_provider: str | None = Field(None, max_length=100)


class AppointmentUpdate(BaseModel):
    """Schema for updating an appointment's free-text fields (never its status)."""
    chief_complaint: str | None = None
    patient_notes: str | None = None
    notes: str | None = None
    insurance_provider: str | None = Field(None, max_length=100)


class AppointmentTransition(BaseModel):
    """Schema for a lifecycle transition request."""
    target_status: AppointmentStatus
    cancellation_reason: str | None = Field(None, description="Stored when cancelling")
    notes: str | None = Field(None, description="Stored when completing")


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""
    id: UUID
    order_number: str
    patient_id: UUID
    doctor_id: UUID
    scheduled_at: datetime
    duration_minutes: int
    appointment_type: AppointmentType
    status: AppointmentStatus
    chief_complaint: str | None = None
    patient_notes: str | None = None
    notes: str | None = None
    insurance_provider: str | None = None
    checked_in_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SlotQuery(BaseModel):
    """Schema for a slot query."""
    doctor_id: UUID
    start_date: date
    end_date: date
    appointment_type: AppointmentType | None = None


class AvailableSlot(BaseModel):
    """Schema for a resolved slot."""
    datetime: datetime
    available: bool
    appointment_type: AppointmentType
    duration_minutes: int

    class Config:
        from_attributes = True


class AvailableSlotsResponse(BaseModel):
    """Schema for slot query response."""
    slots: list[AvailableSlot]
