"""Availability routes - Weekly rule endpoints scoped to a doctor."""

from fastapi import APIRouter
from uuid import UUID

from mediconnect.api.deps import DBSession
from mediconnect.models.availability import Weekday
from mediconnect.schemas.availability import (
    RuleCreate,
    RuleResponse,
    RuleUpdate,
    ScheduleWindow,
    WeekScheduleCreate,
)
from mediconnect.services.availability_service import AvailabilityService

router = APIRouter()


@router.get("/{doctor_id}/availability", response_model=list[RuleResponse])
async def list_rules(
    doctor_id: UUID,
    db: DBSession,
    active: bool | None = None,
    weekday: Weekday | None = None,
):
    """List a doctor's weekly rules."""
    service = AvailabilityService(db)
    return await service.list_rules(doctor_id, active=active, weekday=weekday)


@router.post("/{doctor_id}/availability", response_model=RuleResponse, status_code=201)
async def create_rule(doctor_id: UUID, rule_data: RuleCreate, db: DBSession):
    """Create a weekly rule."""
    service = AvailabilityService(db)
    return await service.create_rule(doctor_id, rule_data)


@router.post("/{doctor_id}/availability/week", response_model=list[RuleResponse], status_code=201)
async def create_week_schedule(doctor_id: UUID, schedule: WeekScheduleCreate, db: DBSession):
    """Create the same window on several weekdays."""
    service = AvailabilityService(db)
    return await service.create_week_schedule(doctor_id, schedule)


@router.get("/{doctor_id}/availability/summary", response_model=dict[Weekday, list[ScheduleWindow]])
async def schedule_summary(doctor_id: UUID, db: DBSession):
    """Active windows grouped by weekday."""
    service = AvailabilityService(db)
    return await service.schedule_summary(doctor_id)


@router.get("/{doctor_id}/availability/{rule_id}", response_model=RuleResponse)
async def get_rule(doctor_id: UUID, rule_id: UUID, db: DBSession):
    """Get a weekly rule by ID."""
    service = AvailabilityService(db)
    return await service.get_rule(doctor_id, rule_id)


@router.patch("/{doctor_id}/availability/{rule_id}", response_model=RuleResponse)
async def update_rule(doctor_id: UUID, rule_id: UUID, rule_data: RuleUpdate, db: DBSession):
    """Update a weekly rule."""
    service = AvailabilityService(db)
    return await service.update_rule(doctor_id, rule_id, rule_data)


@router.post("/{doctor_id}/availability/{rule_id}/activate", response_model=RuleResponse)
async def activate_rule(doctor_id: UUID, rule_id: UUID, db: DBSession):
    """Activate a weekly rule."""
    service = AvailabilityService(db)
    return await service.set_active(doctor_id, rule_id, True)


@router.post("/{doctor_id}/availability/{rule_id}/deactivate", response_model=RuleResponse)
async def deactivate_rule(doctor_id: UUID, rule_id: UUID, db: DBSession):
    """Soft-deactivate a weekly rule."""
    service = AvailabilityService(db)
    return await service.set_active(doctor_id, rule_id, False)


@router.delete("/{doctor_id}/availability/{rule_id}", status_code=204)
async def delete_rule(doctor_id: UUID, rule_id: UUID, db: DBSession):
    """Delete a weekly rule (administrative)."""
    service = AvailabilityService(db)
    await service.delete_rule(doctor_id, rule_id)
