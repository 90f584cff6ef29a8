"""Appointment routes - Booking, lifecycle transitions and queries."""

from datetime import datetime

from fastapi import APIRouter, HTTPException, Query
from uuid import UUID

from mediconnect.api.deps import DBSession
from mediconnect.models.appointment import AppointmentStatus
from mediconnect.schemas.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentTransition,
    AppointmentUpdate,
)
from mediconnect.services.appointment_service import AppointmentService
from mediconnect.services.lifecycle import LifecycleController

router = APIRouter()


@router.get("/", response_model=list[AppointmentResponse])
async def list_appointments(
    db: DBSession,
    doctor_id: UUID | None = None,
    patient_id: UUID | None = None,
    status: AppointmentStatus | None = None,
    scheduled_from: datetime | None = None,
    scheduled_to: datetime | None = None,
    ascending: bool = False,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """List appointments with optional filters."""
    service = AppointmentService(db)
    return await service.list_appointments(
        doctor_id=doctor_id,
        patient_id=patient_id,
        status=status,
        scheduled_from=scheduled_from,
        scheduled_to=scheduled_to,
        ascending=ascending,
        limit=limit,
        offset=offset,
    )


@router.post("/", response_model=AppointmentResponse, status_code=201)
async def create_appointment(appointment_data: AppointmentCreate, db: DBSession):
    """Book a free slot. Responds 409 when the slot is taken."""
    controller = LifecycleController(db)
    return await controller.book(appointment_data)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(appointment_id: UUID, db: DBSession):
    """Get an appointment by ID."""
    service = AppointmentService(db)
    appointment = await service.get_appointment_by_id(appointment_id)

    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")

    return appointment


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: UUID,
    appointment_data: AppointmentUpdate,
    db: DBSession,
):
    """Update complaint, notes or insurance. Status changes use /transition."""
    service = AppointmentService(db)
    appointment = await service.get_appointment(appointment_id)
    return await service.update_appointment(appointment, appointment_data)


@router.post("/{appointment_id}/transition", response_model=AppointmentResponse)
async def transition_appointment(
    appointment_id: UUID,
    transition: AppointmentTransition,
    db: DBSession,
):
    """Apply a lifecycle transition. Responds 409 when it is not allowed."""
    controller = LifecycleController(db)
    return await controller.transition(
        appointment_id,
        transition.target_status,
        cancellation_reason=transition.cancellation_reason,
        notes=transition.notes,
    )


@router.delete("/{appointment_id}", status_code=204)
async def delete_appointment(appointment_id: UUID, db: DBSession):
    """Hard delete (administrative override, bypasses the lifecycle)."""
    service = AppointmentService(db)
    appointment = await service.get_appointment(appointment_id)
    await service.delete_appointment(appointment)
