"""Lifecycle controller - Booking and legal appointment status transitions.

    requested -> confirmed -> checked_in -> in_progress -> completed
    requested/confirmed -> cancelled
    confirmed/checked_in -> no_show

completed, cancelled and no_show are terminal.
"""

import logging
import uuid
from datetime import datetime, timedelta
from uuid import UUID

import logfire
from sqlalchemy.ext.asyncio import AsyncSession

from mediconnect.exceptions import InvalidTransition, SlotUnavailable
from mediconnect.models.appointment import Appointment, AppointmentStatus
from mediconnect.schemas.appointment import AppointmentCreate
from mediconnect.services.appointment_service import AppointmentService, new_order_number
from mediconnect.services.slot_resolver import SlotResolver, clinic_now, to_clinic_time
from mediconnect.services.user_service import UserService

logger = logging.getLogger(__name__)


TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.REQUESTED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.CHECKED_IN, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.CHECKED_IN: frozenset(
        {AppointmentStatus.IN_PROGRESS, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.IN_PROGRESS: frozenset({AppointmentStatus.COMPLETED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in TRANSITIONS[current]


class LifecycleController:
    """Creates appointments and applies status transitions."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = AppointmentService(db)

    async def book(self, appointment_data: AppointmentCreate) -> Appointment:
        """Create a ``requested`` appointment on a free slot.

        The resolver lookup only confirms the timestamp is a generated slot
        and supplies the default duration; the conditional insert decides.
        """
        users = UserService(self.db)
        await users.require_patient(appointment_data.patient_id)
        await users.require_doctor(appointment_data.doctor_id)

        scheduled_at = to_clinic_time(appointment_data.scheduled_at)
        slot = await SlotResolver(self.db).find_slot(
            appointment_data.doctor_id,
            scheduled_at,
            appointment_data.appointment_type,
        )
        if slot is None:
            self._conflict(appointment_data, "not_a_slot")
            raise SlotUnavailable(
                f"{scheduled_at.isoformat()} is not a bookable "
                f"{appointment_data.appointment_type.value} slot for this doctor"
            )
        if not slot.available:
            self._conflict(appointment_data, "taken")
            raise SlotUnavailable(f"{scheduled_at.isoformat()} is already booked")

        duration = appointment_data.duration_minutes or slot.duration_minutes
        now = datetime.utcnow()
        values = {
            "id": uuid.uuid4(),
            "order_number": new_order_number(),
            "patient_id": appointment_data.patient_id,
            "doctor_id": appointment_data.doctor_id,
            "scheduled_at": scheduled_at,
            "duration_minutes": duration,
            "ends_at": scheduled_at + timedelta(minutes=duration),
            "appointment_type": appointment_data.appointment_type.value,
            "status": AppointmentStatus.REQUESTED.value,
            "created_at": now,
            "updated_at": now,
        }
        for field in ("chief_complaint", "patient_notes", "insurance_provider"):
            value = getattr(appointment_data, field)
            if value is not None:
                values[field] = value

        appointment = await self.store.insert_if_free(values)
        if appointment is None:
            self._conflict(appointment_data, "lost_race")
            raise SlotUnavailable(
                f"{scheduled_at.isoformat()} was booked by someone else, please pick another slot"
            )

        logfire.info(
            "appointment_booked",
            appointment_id=str(appointment.id),
            doctor_id=str(appointment.doctor_id),
            scheduled_at=appointment.scheduled_at.isoformat(),
        )
        return appointment

    async def transition(
        self,
        appointment_id: UUID,
        target_status: AppointmentStatus,
        cancellation_reason: str | None = None,
        notes: str | None = None,
    ) -> Appointment:
        """Move an appointment to target_status or raise InvalidTransition."""
        appointment = await self.store.get_appointment(appointment_id, for_update=True)
        current = AppointmentStatus(appointment.status)

        if not can_transition(current, target_status):
            logfire.warn(
                "transition_rejected",
                appointment_id=str(appointment_id),
                current=current.value,
                target=target_status.value,
            )
            raise InvalidTransition(
                f"Cannot move appointment from {current.value} to {target_status.value}"
            )

        now = clinic_now()
        values = {"status": target_status.value, "updated_at": datetime.utcnow()}
        if target_status == AppointmentStatus.CANCELLED:
            values["cancelled_at"] = now
            values["cancellation_reason"] = cancellation_reason
        elif target_status == AppointmentStatus.CHECKED_IN:
            values["checked_in_at"] = now
        elif target_status == AppointmentStatus.COMPLETED:
            values["completed_at"] = now
            if notes is not None:
                values["notes"] = notes

        # Compare-and-set on the status read above; SQLite ignores FOR UPDATE
        if not await self.store.set_status_if(appointment_id, current, values):
            latest = await self.store.get_appointment(appointment_id, for_update=True)
            logfire.warn(
                "transition_rejected",
                appointment_id=str(appointment_id),
                current=latest.status,
                target=target_status.value,
            )
            raise InvalidTransition(
                f"Appointment moved from {current.value} to {latest.status} "
                f"before it could become {target_status.value}"
            )

        await self.db.refresh(appointment)
        logfire.info(
            "appointment_transition",
            appointment_id=str(appointment_id),
            previous=current.value,
            status=target_status.value,
        )
        return appointment

    async def confirm(self, appointment_id: UUID) -> Appointment:
        return await self.transition(appointment_id, AppointmentStatus.CONFIRMED)

    async def check_in(self, appointment_id: UUID) -> Appointment:
        return await self.transition(appointment_id, AppointmentStatus.CHECKED_IN)

    async def start(self, appointment_id: UUID) -> Appointment:
        return await self.transition(appointment_id, AppointmentStatus.IN_PROGRESS)

    async def complete(self, appointment_id: UUID, notes: str | None = None) -> Appointment:
        return await self.transition(appointment_id, AppointmentStatus.COMPLETED, notes=notes)

    async def cancel(self, appointment_id: UUID, reason: str | None = None) -> Appointment:
        return await self.transition(
            appointment_id, AppointmentStatus.CANCELLED, cancellation_reason=reason
        )

    async def mark_no_show(self, appointment_id: UUID) -> Appointment:
        return await self.transition(appointment_id, AppointmentStatus.NO_SHOW)

    def _conflict(self, appointment_data: AppointmentCreate, cause: str) -> None:
        logger.info(
            "Booking rejected (%s) for doctor %s at %s",
            cause,
            appointment_data.doctor_id,
            appointment_data.scheduled_at,
        )
        logfire.info(
            "booking_conflict",
            doctor_id=str(appointment_data.doctor_id),
            scheduled_at=appointment_data.scheduled_at.isoformat(),
            cause=cause,
        )
