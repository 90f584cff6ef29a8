"""Slot resolver - Turns weekly rules and exceptions into bookable slots.

For every date in the requested range the resolver picks the windows that
apply (a ``blocked`` exception yields none, a ``custom_hours`` exception
replaces the weekly rules, otherwise every active rule for the weekday),
steps through each window by its slot length, and flags a candidate as
unavailable when a non-cancelled appointment overlaps it. Rules are resolved
independently, so two overlapping rules produce two slots at the same instant.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from uuid import UUID

import logfire
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mediconnect.config import settings
from mediconnect.exceptions import ValidationError
from mediconnect.models.appointment import Appointment, AppointmentStatus
from mediconnect.models.availability import (
    AppointmentType,
    AvailabilityException,
    AvailabilityRule,
    ExceptionKind,
    Weekday,
)
from mediconnect.services.user_service import UserService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Window:
    """A time-of-day window that generates candidates on one date."""
    start_time: time
    end_time: time
    slot_minutes: int
    appointment_type: AppointmentType


@dataclass(frozen=True)
class Slot:
    """A derived, unpersisted candidate start time."""
    datetime: datetime
    available: bool
    appointment_type: AppointmentType
    duration_minutes: int

    @property
    def ends_at(self) -> datetime:
        return self.datetime + timedelta(minutes=self.duration_minutes)


def to_clinic_time(value: datetime) -> datetime:
    """Naive clinic wall-clock time; aware values are converted first."""
    if value.tzinfo is None:
        return value
    return value.astimezone(settings.clinic_tz).replace(tzinfo=None)


def clinic_now() -> datetime:
    return datetime.now(settings.clinic_tz).replace(tzinfo=None)


def generate_candidates(day: date, window: Window) -> list[datetime]:
    """Start times from window start, stepping slot_minutes, while a full slot fits."""
    step = timedelta(minutes=window.slot_minutes)
    current = datetime.combine(day, window.start_time)
    end = datetime.combine(day, window.end_time)

    candidates = []
    while current + step <= end:
        candidates.append(current)
        current += step
    return candidates


def windows_for_day(
    day: date,
    rules: list[AvailabilityRule],
    exception: AvailabilityException | None,
    appointment_type: AppointmentType | None = None,
) -> list[Window]:
    """Windows that apply to one date, exception first."""
    if exception is not None:
        if exception.kind == ExceptionKind.BLOCKED.value:
            return []
        windows = [
            Window(
                start_time=exception.start_time,
                end_time=exception.end_time,
                slot_minutes=exception.slot_minutes,
                appointment_type=AppointmentType(
                    exception.appointment_type or AppointmentType.IN_PERSON.value
                ),
            )
        ]
    else:
        weekday = Weekday.from_date(day).value
        windows = [
            Window(
                start_time=rule.start_time,
                end_time=rule.end_time,
                slot_minutes=rule.slot_minutes,
                appointment_type=AppointmentType(rule.appointment_type),
            )
            for rule in rules
            if rule.active and rule.weekday == weekday
        ]

    if appointment_type is not None:
        windows = [w for w in windows if w.appointment_type == appointment_type]
    return windows


def mark_availability(
    candidates: list[tuple[datetime, Window]],
    booked: list[tuple[datetime, datetime]],
) -> list[Slot]:
    """Build slots, unavailable where a booked [start, end) interval overlaps."""
    slots = []
    for start, window in candidates:
        end = start + timedelta(minutes=window.slot_minutes)
        taken = any(b_start < end and b_end > start for b_start, b_end in booked)
        slots.append(
            Slot(
                datetime=start,
                available=not taken,
                appointment_type=window.appointment_type,
                duration_minutes=window.slot_minutes,
            )
        )
    # sort is stable: same-instant slots keep rule order
    slots.sort(key=lambda s: s.datetime)
    return slots


class SlotResolver:
    """Resolves a doctor's slots over a date range. Pure read."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve_slots(
        self,
        doctor_id: UUID,
        start_date: date,
        end_date: date,
        appointment_type: AppointmentType | None = None,
    ) -> list[Slot]:
        """Ordered slots for every date in [start_date, end_date]."""
        if start_date > end_date:
            raise ValidationError("start_date must not be after end_date")
        span = (end_date - start_date).days + 1
        if span > settings.max_slot_query_days:
            raise ValidationError(
                f"Slot queries are limited to {settings.max_slot_query_days} days"
            )
        await UserService(self.db).require_doctor(doctor_id)

        rules = await self._active_rules(doctor_id)
        exceptions = await self._exceptions(doctor_id, start_date, end_date)

        candidates: list[tuple[datetime, Window]] = []
        for offset in range(span):
            day = start_date + timedelta(days=offset)
            for window in windows_for_day(day, rules, exceptions.get(day), appointment_type):
                candidates.extend((start, window) for start in generate_candidates(day, window))

        booked = await self._booked_intervals(
            doctor_id,
            datetime.combine(start_date, time.min),
            datetime.combine(end_date + timedelta(days=1), time.min),
        )
        slots = mark_availability(candidates, booked)

        logfire.info(
            "slot_query",
            doctor_id=str(doctor_id),
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            appointment_type=appointment_type.value if appointment_type else None,
            total=len(slots),
            available=sum(1 for s in slots if s.available),
        )
        return slots

    async def find_slot(
        self,
        doctor_id: UUID,
        scheduled_at: datetime,
        appointment_type: AppointmentType,
    ) -> Slot | None:
        """The slot starting exactly at scheduled_at, preferring an available one."""
        day = scheduled_at.date()
        matches = [
            slot
            for slot in await self.resolve_slots(doctor_id, day, day, appointment_type)
            if slot.datetime == scheduled_at
        ]
        if not matches:
            return None
        return next((slot for slot in matches if slot.available), matches[0])

    async def _active_rules(self, doctor_id: UUID) -> list[AvailabilityRule]:
        result = await self.db.execute(
            select(AvailabilityRule)
            .where(
                AvailabilityRule.doctor_id == doctor_id,
                AvailabilityRule.active.is_(True),
            )
            .order_by(AvailabilityRule.start_time, AvailabilityRule.created_at)
        )
        return list(result.scalars().all())

    async def _exceptions(
        self, doctor_id: UUID, start_date: date, end_date: date
    ) -> dict[date, AvailabilityException]:
        result = await self.db.execute(
            select(AvailabilityException).where(
                AvailabilityException.doctor_id == doctor_id,
                AvailabilityException.date >= start_date,
                AvailabilityException.date <= end_date,
            )
        )
        return {exception.date: exception for exception in result.scalars().all()}

    async def _booked_intervals(
        self, doctor_id: UUID, window_start: datetime, window_end: datetime
    ) -> list[tuple[datetime, datetime]]:
        result = await self.db.execute(
            select(Appointment.scheduled_at, Appointment.ends_at).where(
                Appointment.doctor_id == doctor_id,
                Appointment.status != AppointmentStatus.CANCELLED.value,
                Appointment.scheduled_at < window_end,
                Appointment.ends_at > window_start,
            )
        )
        return [(row.scheduled_at, row.ends_at) for row in result.all()]
