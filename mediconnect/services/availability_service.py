"""Availability service - Weekly rule store for doctors."""

import logging
from datetime import time
from uuid import UUID

import logfire
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mediconnect.exceptions import NotFound, ValidationError
from mediconnect.models.availability import AvailabilityRule, Weekday
from mediconnect.schemas.availability import (
    RuleCreate,
    RuleUpdate,
    ScheduleWindow,
    WeekScheduleCreate,
)
from mediconnect.services.user_service import UserService

logger = logging.getLogger(__name__)


def validate_window(start_time: time, end_time: time, slot_minutes: int) -> None:
    """Reject a window that ends before it starts or has a non-positive slot length."""
    if start_time >= end_time:
        raise ValidationError(
            f"end_time {end_time.isoformat()} must be after start_time {start_time.isoformat()}"
        )
    if slot_minutes <= 0:
        raise ValidationError("slot_minutes must be a positive number of minutes")


class AvailabilityService:
    """Service class for weekly availability rules.

    Overlapping active rules on the same weekday are allowed (split shifts,
    one window per appointment type) and are stored as separate rows.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_rule(self, doctor_id: UUID, rule_data: RuleCreate) -> AvailabilityRule:
        """Create a weekly rule for a doctor."""
        validate_window(rule_data.start_time, rule_data.end_time, rule_data.slot_minutes)
        await UserService(self.db).require_doctor(doctor_id)

        rule = AvailabilityRule(
            doctor_id=doctor_id,
            weekday=rule_data.weekday.value,
            start_time=rule_data.start_time,
            end_time=rule_data.end_time,
            slot_minutes=rule_data.slot_minutes,
            appointment_type=rule_data.appointment_type.value,
            active=rule_data.active,
        )
        self.db.add(rule)
        await self.db.flush()
        await self.db.refresh(rule)
        logfire.info("rule_created", doctor_id=str(doctor_id), weekday=rule.weekday)
        return rule

    async def create_week_schedule(
        self, doctor_id: UUID, schedule: WeekScheduleCreate
    ) -> list[AvailabilityRule]:
        """Create the same window on each of the given weekdays."""
        validate_window(schedule.start_time, schedule.end_time, schedule.slot_minutes)
        await UserService(self.db).require_doctor(doctor_id)

        rules = [
            AvailabilityRule(
                doctor_id=doctor_id,
                weekday=weekday.value,
                start_time=schedule.start_time,
                end_time=schedule.end_time,
                slot_minutes=schedule.slot_minutes,
                appointment_type=schedule.appointment_type.value,
                active=True,
            )
            # A weekday listed twice still yields one rule
            for weekday in dict.fromkeys(schedule.weekdays)
        ]
        self.db.add_all(rules)
        await self.db.flush()
        for rule in rules:
            await self.db.refresh(rule)
        logger.info("Created %d weekly rules for doctor %s", len(rules), doctor_id)
        return rules

    async def get_rule(self, doctor_id: UUID, rule_id: UUID) -> AvailabilityRule:
        """Get one of a doctor's rules by ID."""
        rule = await self.db.get(AvailabilityRule, rule_id)
        if rule is None or rule.doctor_id != doctor_id:
            raise NotFound(f"Availability rule {rule_id} not found")
        return rule

    async def list_rules(
        self,
        doctor_id: UUID,
        active: bool | None = None,
        weekday: Weekday | None = None,
    ) -> list[AvailabilityRule]:
        """List a doctor's rules."""
        query = select(AvailabilityRule).where(AvailabilityRule.doctor_id == doctor_id)

        if active is not None:
            query = query.where(AvailabilityRule.active == active)
        if weekday:
            query = query.where(AvailabilityRule.weekday == weekday.value)

        query = query.order_by(AvailabilityRule.weekday, AvailabilityRule.start_time)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_rule(
        self, doctor_id: UUID, rule_id: UUID, rule_data: RuleUpdate
    ) -> AvailabilityRule:
        """Update a rule; the resulting window is validated before writing."""
        rule = await self.get_rule(doctor_id, rule_id)
        update_data = rule_data.model_dump(exclude_unset=True, exclude_none=True)

        validate_window(
            update_data.get("start_time", rule.start_time),
            update_data.get("end_time", rule.end_time),
            update_data.get("slot_minutes", rule.slot_minutes),
        )

        for field, value in update_data.items():
            setattr(rule, field, getattr(value, "value", value))
        await self.db.flush()
        await self.db.refresh(rule)
        return rule

    async def set_active(self, doctor_id: UUID, rule_id: UUID, active: bool) -> AvailabilityRule:
        """Activate or soft-deactivate a rule."""
        rule = await self.get_rule(doctor_id, rule_id)
        rule.active = active
        await self.db.flush()
        await self.db.refresh(rule)
        logfire.info("rule_active_changed", rule_id=str(rule_id), active=active)
        return rule

    async def delete_rule(self, doctor_id: UUID, rule_id: UUID) -> None:
        """Physically delete a rule (administrative)."""
        rule = await self.get_rule(doctor_id, rule_id)
        await self.db.delete(rule)
        await self.db.flush()

    async def schedule_summary(self, doctor_id: UUID) -> dict[Weekday, list[ScheduleWindow]]:
        """Active windows grouped by weekday, every weekday present."""
        await UserService(self.db).require_doctor(doctor_id)
        summary: dict[Weekday, list[ScheduleWindow]] = {weekday: [] for weekday in Weekday}

        for rule in await self.list_rules(doctor_id, active=True):
            summary[Weekday(rule.weekday)].append(
                ScheduleWindow(
                    start=rule.start_time,
                    end=rule.end_time,
                    type=rule.appointment_type,
                    slot_minutes=rule.slot_minutes,
                )
            )

        for windows in summary.values():
            windows.sort(key=lambda w: w.start)
        return summary
