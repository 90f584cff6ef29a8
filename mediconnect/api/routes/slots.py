"""Slot routes - Resolved availability for booking."""

from datetime import date

from fastapi import APIRouter
from uuid import UUID

from mediconnect.api.deps import DBSession
from mediconnect.models.availability import AppointmentType
from mediconnect.schemas.appointment import AvailableSlotsResponse, SlotQuery
from mediconnect.services.slot_resolver import SlotResolver

router = APIRouter()


@router.post("/slots", response_model=AvailableSlotsResponse)
async def query_slots(query: SlotQuery, db: DBSession):
    """Resolve a doctor's slots for a date range."""
    resolver = SlotResolver(db)
    slots = await resolver.resolve_slots(
        query.doctor_id,
        query.start_date,
        query.end_date,
        query.appointment_type,
    )
    return AvailableSlotsResponse(slots=slots)


@router.get("/doctors/{doctor_id}/slots", response_model=AvailableSlotsResponse)
async def get_doctor_slots(
    doctor_id: UUID,
    start_date: date,
    end_date: date,
    db: DBSession,
    appointment_type: AppointmentType | None = None,
):
    """Resolve a doctor's slots for a date range (query-string form)."""
    resolver = SlotResolver(db)
    slots = await resolver.resolve_slots(doctor_id, start_date, end_date, appointment_type)
    return AvailableSlotsResponse(slots=slots)
