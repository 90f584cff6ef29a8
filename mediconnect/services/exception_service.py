"""Exception service - Date-specific overrides of a doctor's weekly rules."""

import logging
from datetime import date, timedelta
from uuid import UUID

import logfire
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mediconnect.exceptions import NotFound, ValidationError
from mediconnect.models.availability import AvailabilityException, ExceptionKind
from mediconnect.schemas.availability import (
    BlockRangeCreate,
    BlockedExceptionCreate,
    CustomHoursExceptionCreate,
)
from mediconnect.services.availability_service import validate_window
from mediconnect.services.user_service import UserService

logger = logging.getLogger(__name__)


def _dates(start_date: date, end_date: date) -> list[date]:
    if start_date > end_date:
        raise ValidationError("start_date must not be after end_date")
    return [start_date + timedelta(days=n) for n in range((end_date - start_date).days + 1)]


class ExceptionService:
    """Service class for availability exceptions (one per doctor and date)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_exception(
        self,
        doctor_id: UUID,
        exception_data: BlockedExceptionCreate | CustomHoursExceptionCreate,
    ) -> AvailabilityException:
        """Create a blocked or custom_hours exception."""
        if isinstance(exception_data, CustomHoursExceptionCreate):
            validate_window(
                exception_data.start_time,
                exception_data.end_time,
                exception_data.slot_minutes,
            )
            exception = AvailabilityException(
                doctor_id=doctor_id,
                date=exception_data.date,
                kind=ExceptionKind.CUSTOM_HOURS.value,
                start_time=exception_data.start_time,
                end_time=exception_data.end_time,
                slot_minutes=exception_data.slot_minutes,
                appointment_type=exception_data.appointment_type.value,
                reason=exception_data.reason,
            )
        else:
            exception = AvailabilityException(
                doctor_id=doctor_id,
                date=exception_data.date,
                kind=ExceptionKind.BLOCKED.value,
                reason=exception_data.reason,
            )

        await UserService(self.db).require_doctor(doctor_id)
        await self._ensure_free_dates(doctor_id, [exception_data.date])

        self.db.add(exception)
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise ValidationError(
                f"An exception already exists for {exception_data.date.isoformat()}"
            ) from e
        await self.db.refresh(exception)
        logfire.info(
            "exception_created",
            doctor_id=str(doctor_id),
            date=exception.date.isoformat(),
            kind=exception.kind,
        )
        return exception

    async def block_range(
        self, doctor_id: UUID, block: BlockRangeCreate
    ) -> list[AvailabilityException]:
        """Block every date in [start_date, end_date]; nothing is written on conflict."""
        days = _dates(block.start_date, block.end_date)
        await UserService(self.db).require_doctor(doctor_id)
        await self._ensure_free_dates(doctor_id, days)

        exceptions = [
            AvailabilityException(
                doctor_id=doctor_id,
                date=day,
                kind=ExceptionKind.BLOCKED.value,
                reason=block.reason,
            )
            for day in days
        ]
        self.db.add_all(exceptions)
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise ValidationError("An exception already exists inside the range") from e
        logger.info("Blocked %d day(s) for doctor %s", len(exceptions), doctor_id)
        return exceptions

    async def get_exception(self, doctor_id: UUID, exception_id: UUID) -> AvailabilityException:
        """Get one of a doctor's exceptions by ID."""
        exception = await self.db.get(AvailabilityException, exception_id)
        if exception is None or exception.doctor_id != doctor_id:
            raise NotFound(f"Availability exception {exception_id} not found")
        return exception

    async def list_exceptions(
        self,
        doctor_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        kind: ExceptionKind | None = None,
    ) -> list[AvailabilityException]:
        """List a doctor's exceptions, optionally within a date range."""
        query = select(AvailabilityException).where(AvailabilityException.doctor_id == doctor_id)

        if start_date:
            query = query.where(AvailabilityException.date >= start_date)
        if end_date:
            query = query.where(AvailabilityException.date <= end_date)
        if kind:
            query = query.where(AvailabilityException.kind == kind.value)

        result = await self.db.execute(query.order_by(AvailabilityException.date))
        return list(result.scalars().all())

    async def delete_exception(self, doctor_id: UUID, exception_id: UUID) -> None:
        """Delete an exception."""
        exception = await self.get_exception(doctor_id, exception_id)
        await self.db.delete(exception)
        await self.db.flush()

    async def delete_range(self, doctor_id: UUID, start_date: date, end_date: date) -> int:
        """Delete every exception in [start_date, end_date]; returns how many."""
        _dates(start_date, end_date)
        exceptions = await self.list_exceptions(doctor_id, start_date, end_date)
        for exception in exceptions:
            await self.db.delete(exception)
        await self.db.flush()
        logger.info("Deleted %d exception(s) for doctor %s", len(exceptions), doctor_id)
        return len(exceptions)

    async def _ensure_free_dates(self, doctor_id: UUID, days: list[date]) -> None:
        result = await self.db.execute(
            select(AvailabilityException.date).where(
                AvailabilityException.doctor_id == doctor_id,
                AvailabilityException.date.in_(days),
            )
        )
        taken = sorted(result.scalars().all())
        if taken:
            listed = ", ".join(day.isoformat() for day in taken)
            raise ValidationError(f"An exception already exists for {listed}")
