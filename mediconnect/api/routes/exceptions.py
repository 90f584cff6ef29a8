"""Exception routes - Date-specific availability overrides scoped to a doctor."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Body
from uuid import UUID

from mediconnect.api.deps import DBSession
from mediconnect.models.availability import ExceptionKind
from mediconnect.schemas.availability import (
    BlockRangeCreate,
    DeletedCount,
    ExceptionCreate,
    ExceptionResponse,
)
from mediconnect.services.exception_service import ExceptionService

router = APIRouter()


@router.get("/{doctor_id}/exceptions", response_model=list[ExceptionResponse])
async def list_exceptions(
    doctor_id: UUID,
    db: DBSession,
    start_date: date | None = None,
    end_date: date | None = None,
    kind: ExceptionKind | None = None,
):
    """List a doctor's exceptions."""
    service = ExceptionService(db)
    return await service.list_exceptions(doctor_id, start_date, end_date, kind)


@router.post("/{doctor_id}/exceptions", response_model=ExceptionResponse, status_code=201)
async def create_exception(
    doctor_id: UUID,
    exception_data: Annotated[ExceptionCreate, Body(discriminator="kind")],
    db: DBSession,
):
    """Block a date or replace its hours."""
    service = ExceptionService(db)
    return await service.create_exception(doctor_id, exception_data)


@router.post(
    "/{doctor_id}/exceptions/block-range",
    response_model=list[ExceptionResponse],
    status_code=201,
)
async def block_range(doctor_id: UUID, block: BlockRangeCreate, db: DBSession):
    """Block every date in a range (vacations, leave)."""
    service = ExceptionService(db)
    return await service.block_range(doctor_id, block)


@router.delete("/{doctor_id}/exceptions", response_model=DeletedCount)
async def delete_range(doctor_id: UUID, start_date: date, end_date: date, db: DBSession):
    """Delete every exception in a date range."""
    service = ExceptionService(db)
    deleted = await service.delete_range(doctor_id, start_date, end_date)
    return DeletedCount(deleted_count=deleted)


@router.get("/{doctor_id}/exceptions/{exception_id}", response_model=ExceptionResponse)
async def get_exception(doctor_id: UUID, exception_id: UUID, db: DBSession):
    """Get an exception by ID."""
    service = ExceptionService(db)
    return await service.get_exception(doctor_id, exception_id)


@router.delete("/{doctor_id}/exceptions/{exception_id}", status_code=204)
async def delete_exception(doctor_id: UUID, exception_id: UUID, db: DBSession):
    """Delete an exception."""
    service = ExceptionService(db)
    await service.delete_exception(doctor_id, exception_id)
