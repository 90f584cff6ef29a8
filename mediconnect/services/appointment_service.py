"""Appointment service - Persistence for appointments."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import func, insert, literal, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from mediconnect.exceptions import NotFound
from mediconnect.models.appointment import Appointment, AppointmentStatus
from mediconnect.schemas.appointment import AppointmentUpdate


def new_order_number() -> str:
    """Short human-readable booking reference."""
    return "APT-" + uuid.uuid4().hex[:10].upper()


class AppointmentService:
    """Service class for appointment storage.

    Status changes do not happen here; they go through the lifecycle
    controller.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_appointment_by_id(self, appointment_id: UUID) -> Appointment | None:
        """Get an appointment by ID."""
        return await self.db.get(Appointment, appointment_id)

    async def get_appointment(self, appointment_id: UUID, for_update: bool = False) -> Appointment:
        """Get an appointment by ID or raise NotFound."""
        query = select(Appointment).where(Appointment.id == appointment_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        appointment = result.scalar_one_or_none()
        if appointment is None:
            raise NotFound(f"Appointment {appointment_id} not found")
        return appointment

    async def list_appointments(
        self,
        doctor_id: UUID | None = None,
        patient_id: UUID | None = None,
        status: AppointmentStatus | None = None,
        scheduled_from: datetime | None = None,
        scheduled_to: datetime | None = None,
        ascending: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Appointment]:
        """List appointments, newest first unless ascending."""
        query = select(Appointment)

        if doctor_id:
            query = query.where(Appointment.doctor_id == doctor_id)
        if patient_id:
            query = query.where(Appointment.patient_id == patient_id)
        if status:
            query = query.where(Appointment.status == status.value)
        if scheduled_from:
            query = query.where(Appointment.scheduled_at >= scheduled_from)
        if scheduled_to:
            query = query.where(Appointment.scheduled_at < scheduled_to)

        order = Appointment.scheduled_at.asc() if ascending else Appointment.scheduled_at.desc()
        query = query.order_by(order).limit(limit).offset(offset)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def insert_if_free(self, values: dict[str, Any]) -> Appointment | None:
        """Insert an appointment only if no non-cancelled one overlaps it.

        The overlap check and the insert are one INSERT ... SELECT ... WHERE
        NOT EXISTS statement. Returns None when the interval is taken.
        """
        await self._lock_doctor(values["doctor_id"])

        overlapping = (
            select(Appointment.id)
            .where(
                Appointment.doctor_id == values["doctor_id"],
                Appointment.status != AppointmentStatus.CANCELLED.value,
                Appointment.scheduled_at < values["ends_at"],
                Appointment.ends_at > values["scheduled_at"],
            )
            .correlate(None)
        )
        columns = Appointment.__table__.c
        names = list(values)
        source = select(
            *[literal(values[name], columns[name].type) for name in names]
        ).where(~overlapping.exists())
        stmt = insert(Appointment.__table__).from_select(names, source, include_defaults=False)

        try:
            result = await self.db.execute(stmt)
        except IntegrityError:
            # uq_active_doctor_slot: same start instant committed concurrently
            return None
        if result.rowcount != 1:
            return None
        return await self.get_appointment(values["id"])

    async def set_status_if(
        self,
        appointment_id: UUID,
        expected: AppointmentStatus,
        values: dict[str, Any],
    ) -> bool:
        """Write values only while the row still has the expected status.

        Returns False when another writer changed the status first.
        """
        stmt = (
            update(Appointment)
            .where(
                Appointment.id == appointment_id,
                Appointment.status == expected.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def update_appointment(
        self, appointment: Appointment, appointment_data: AppointmentUpdate
    ) -> Appointment:
        """Update an appointment's free-text fields."""
        update_data = appointment_data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(appointment, field, value)
        await self.db.flush()
        await self.db.refresh(appointment)
        return appointment

    async def delete_appointment(self, appointment: Appointment) -> None:
        """Administrative hard delete, outside the lifecycle."""
        await self.db.delete(appointment)
        await self.db.flush()

    async def _lock_doctor(self, doctor_id: UUID) -> None:
        # SQLite serializes writers itself; PostgreSQL needs a per-doctor lock
        # so concurrent NOT EXISTS checks cannot both pass.
        if self.db.get_bind().dialect.name == "postgresql":
            await self.db.execute(
                select(func.pg_advisory_xact_lock(func.hashtext(str(doctor_id))))
            )
