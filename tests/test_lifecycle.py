"""Tests for booking and appointment status transitions."""

import asyncio
import uuid
from datetime import datetime, time, timedelta, timezone

import pytest
from sqlalchemy import func, select

from mediconnect.exceptions import InvalidTransition, NotFound, SlotUnavailable
from mediconnect.models.appointment import Appointment, AppointmentStatus
from mediconnect.models.availability import AppointmentType
from mediconnect.schemas.appointment import AppointmentCreate
from mediconnect.services.appointment_service import AppointmentService
from mediconnect.services.lifecycle import TRANSITIONS, LifecycleController, can_transition
from mediconnect.services.slot_resolver import SlotResolver

from tests.helpers import MONDAY

TEN_AM = datetime.combine(MONDAY, time(10, 0))

ALLOWED = {
    (AppointmentStatus.REQUESTED, AppointmentStatus.CONFIRMED),
    (AppointmentStatus.REQUESTED, AppointmentStatus.CANCELLED),
    (AppointmentStatus.CONFIRMED, AppointmentStatus.CHECKED_IN),
    (AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED),
    (AppointmentStatus.CONFIRMED, AppointmentStatus.NO_SHOW),
    (AppointmentStatus.CHECKED_IN, AppointmentStatus.IN_PROGRESS),
    (AppointmentStatus.CHECKED_IN, AppointmentStatus.NO_SHOW),
    (AppointmentStatus.IN_PROGRESS, AppointmentStatus.COMPLETED),
}
FORBIDDEN = [
    (current, target)
    for current in AppointmentStatus
    for target in AppointmentStatus
    if (current, target) not in ALLOWED
]


def _request(doctor, patient, scheduled_at=TEN_AM, **kwargs) -> AppointmentCreate:
    return AppointmentCreate(
        patient_id=patient.id,
        doctor_id=doctor.id,
        scheduled_at=scheduled_at,
        **kwargs,
    )


async def _slot_at(db, doctor, when):
    slots = await SlotResolver(db).resolve_slots(doctor.id, when.date(), when.date())
    return next(s for s in slots if s.datetime == when)


async def _force_status(db, appointment, status):
    # test setup only: jump straight to a state
    appointment.status = status.value
    await db.flush()
    await db.refresh(appointment)


class TestTransitionTable:
    def test_table_matches_lifecycle(self):
        table = {(c, t) for c, targets in TRANSITIONS.items() for t in targets}
        assert table == ALLOWED

    def test_terminal_states(self):
        for status in (
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        ):
            assert TRANSITIONS[status] == frozenset()

    def test_can_transition(self):
        assert can_transition(AppointmentStatus.REQUESTED, AppointmentStatus.CONFIRMED)
        assert not can_transition(AppointmentStatus.CHECKED_IN, AppointmentStatus.REQUESTED)


@pytest.mark.asyncio
async def test_booking_creates_requested_appointment(db, doctor, patient, monday_rule):
    appointment = await LifecycleController(db).book(
        _request(doctor, patient, chief_complaint="Chest pain")
    )

    assert appointment.status == AppointmentStatus.REQUESTED.value
    assert appointment.duration_minutes == 30
    assert appointment.ends_at == TEN_AM + timedelta(minutes=30)
    assert appointment.chief_complaint == "Chest pain"
    assert appointment.order_number.startswith("APT-")


@pytest.mark.asyncio
async def test_booked_slot_is_no_longer_available(db, doctor, patient, monday_rule):
    assert (await _slot_at(db, doctor, TEN_AM)).available

    await LifecycleController(db).book(_request(doctor, patient))

    assert not (await _slot_at(db, doctor, TEN_AM)).available


@pytest.mark.asyncio
async def test_second_booking_on_same_slot_fails(db, doctor, patient, monday_rule):
    controller = LifecycleController(db)
    await controller.book(_request(doctor, patient))

    with pytest.raises(SlotUnavailable):
        await controller.book(_request(doctor, patient))


@pytest.mark.asyncio
async def test_longer_duration_blocks_following_slot(db, doctor, patient, monday_rule):
    controller = LifecycleController(db)
    await controller.book(_request(doctor, patient, duration_minutes=60))

    assert not (await _slot_at(db, doctor, TEN_AM + timedelta(minutes=30))).available
    with pytest.raises(SlotUnavailable):
        await controller.book(_request(doctor, patient, scheduled_at=TEN_AM + timedelta(minutes=30)))


@pytest.mark.asyncio
async def test_booking_off_grid_or_wrong_type_fails(db, doctor, patient, monday_rule):
    controller = LifecycleController(db)

    with pytest.raises(SlotUnavailable):
        await controller.book(_request(doctor, patient, scheduled_at=TEN_AM + timedelta(minutes=10)))
    with pytest.raises(SlotUnavailable):
        await controller.book(_request(doctor, patient, appointment_type=AppointmentType.TELEHEALTH))


@pytest.mark.asyncio
async def test_aware_timestamp_is_converted_to_clinic_time(db, doctor, patient, monday_rule):
    # 13:00 UTC is 10:00 in America/Sao_Paulo
    aware = datetime.combine(MONDAY, time(13, 0), tzinfo=timezone.utc)

    appointment = await LifecycleController(db).book(_request(doctor, patient, scheduled_at=aware))

    assert appointment.scheduled_at == TEN_AM


@pytest.mark.asyncio
async def test_booking_requires_known_patient_and_doctor(db, doctor, patient, monday_rule):
    controller = LifecycleController(db)

    with pytest.raises(NotFound):
        await controller.book(
            AppointmentCreate(patient_id=uuid.uuid4(), doctor_id=doctor.id, scheduled_at=TEN_AM)
        )
    with pytest.raises(NotFound):
        await controller.book(
            AppointmentCreate(patient_id=patient.id, doctor_id=uuid.uuid4(), scheduled_at=TEN_AM)
        )


@pytest.mark.asyncio
async def test_cancelling_frees_the_slot(db, doctor, patient, monday_rule):
    controller = LifecycleController(db)
    appointment = await controller.book(_request(doctor, patient))

    cancelled = await controller.transition(
        appointment.id,
        AppointmentStatus.CANCELLED,
        cancellation_reason="patient request",
    )

    assert cancelled.status == AppointmentStatus.CANCELLED.value
    assert cancelled.cancellation_reason == "patient request"
    assert cancelled.cancelled_at is not None
    assert (await _slot_at(db, doctor, TEN_AM)).available

    rebooked = await controller.book(_request(doctor, patient))
    assert rebooked.id != appointment.id


@pytest.mark.asyncio
async def test_full_happy_path_sets_timestamps(db, doctor, patient, monday_rule):
    controller = LifecycleController(db)
    appointment = await controller.book(_request(doctor, patient))

    await controller.confirm(appointment.id)
    checked_in = await controller.check_in(appointment.id)
    assert checked_in.checked_in_at is not None

    started = await controller.start(appointment.id)
    assert started.status == AppointmentStatus.IN_PROGRESS.value

    completed = await controller.complete(appointment.id, notes="Follow up in 6 months")
    assert completed.status == AppointmentStatus.COMPLETED.value
    assert completed.completed_at is not None
    assert completed.notes == "Follow up in 6 months"
    assert completed.cancelled_at is None


@pytest.mark.asyncio
async def test_no_show_keeps_slot_occupied(db, doctor, patient, monday_rule):
    controller = LifecycleController(db)
    appointment = await controller.book(_request(doctor, patient))
    await controller.confirm(appointment.id)

    await controller.mark_no_show(appointment.id)

    assert not (await _slot_at(db, doctor, TEN_AM)).available


@pytest.mark.asyncio
async def test_checked_in_cannot_go_back_to_requested(db, doctor, patient, monday_rule):
    controller = LifecycleController(db)
    appointment = await controller.book(_request(doctor, patient))
    await controller.confirm(appointment.id)
    await controller.check_in(appointment.id)

    with pytest.raises(InvalidTransition):
        await controller.transition(appointment.id, AppointmentStatus.REQUESTED)

    await db.refresh(appointment)
    assert appointment.status == AppointmentStatus.CHECKED_IN.value


@pytest.mark.asyncio
@pytest.mark.parametrize("current, target", FORBIDDEN)
async def test_unlisted_transitions_are_rejected_without_mutation(
    db, doctor, patient, monday_rule, current, target
):
    controller = LifecycleController(db)
    appointment = await controller.book(_request(doctor, patient))
    await _force_status(db, appointment, current)
    before = (appointment.updated_at, appointment.cancelled_at, appointment.checked_in_at)

    with pytest.raises(InvalidTransition):
        await controller.transition(appointment.id, target, cancellation_reason="nope")

    await db.refresh(appointment)
    assert appointment.status == current.value
    assert appointment.cancellation_reason is None
    assert (appointment.updated_at, appointment.cancelled_at, appointment.checked_in_at) == before


@pytest.mark.asyncio
async def test_transition_unknown_appointment(db):
    with pytest.raises(NotFound):
        await LifecycleController(db).confirm(uuid.uuid4())


@pytest.mark.asyncio
async def test_concurrent_bookings_yield_one_appointment(session_factory, doctor, patient, monday_rule):
    request = _request(doctor, patient)

    async def attempt():
        async with session_factory() as session:
            appointment = await LifecycleController(session).book(request)
            await session.commit()
            return appointment

    results = await asyncio.gather(attempt(), attempt(), return_exceptions=True)

    booked = [r for r in results if isinstance(r, Appointment)]
    failed = [r for r in results if isinstance(r, SlotUnavailable)]
    assert len(booked) == 1
    assert len(failed) == 1

    async with session_factory() as session:
        count = await session.scalar(
            select(func.count()).select_from(Appointment).where(
                Appointment.doctor_id == doctor.id,
                Appointment.status == AppointmentStatus.REQUESTED.value,
            )
        )
    assert count == 1


async def _confirmed_appointment(session_factory, doctor, patient):
    async with session_factory() as session:
        controller = LifecycleController(session)
        appointment = await controller.book(_request(doctor, patient))
        await controller.confirm(appointment.id)
        await session.commit()
        return appointment.id


@pytest.mark.asyncio
async def test_status_write_requires_the_status_that_was_read(
    session_factory, doctor, patient, monday_rule
):
    appointment_id = await _confirmed_appointment(session_factory, doctor, patient)
    async with session_factory() as session:
        await LifecycleController(session).cancel(appointment_id, reason="patient request")
        await session.commit()

    async with session_factory() as session:
        store = AppointmentService(session)
        # a writer that still believes the appointment is confirmed
        applied = await store.set_status_if(
            appointment_id,
            AppointmentStatus.CONFIRMED,
            {"status": AppointmentStatus.CHECKED_IN.value},
        )
        appointment = await store.get_appointment(appointment_id)

    assert applied is False
    assert appointment.status == AppointmentStatus.CANCELLED.value
    assert appointment.checked_in_at is None


@pytest.mark.asyncio
async def test_concurrent_transitions_apply_only_one(session_factory, doctor, patient, monday_rule):
    appointment_id = await _confirmed_appointment(session_factory, doctor, patient)

    async def attempt(target, **kwargs):
        async with session_factory() as session:
            appointment = await LifecycleController(session).transition(
                appointment_id, target, **kwargs
            )
            await session.commit()
            return appointment.status

    results = await asyncio.gather(
        attempt(AppointmentStatus.CANCELLED, cancellation_reason="patient request"),
        attempt(AppointmentStatus.CHECKED_IN),
        return_exceptions=True,
    )

    applied = [r for r in results if isinstance(r, str)]
    rejected = [r for r in results if isinstance(r, InvalidTransition)]
    assert len(applied) == 1
    assert len(rejected) == 1

    async with session_factory() as session:
        final = await AppointmentService(session).get_appointment(appointment_id)
    assert final.status == applied[0]
    if final.status == AppointmentStatus.CANCELLED.value:
        assert final.cancellation_reason == "patient request"
        assert final.checked_in_at is None
    else:
        assert final.status == AppointmentStatus.CHECKED_IN.value
        assert final.cancelled_at is None
        assert final.cancellation_reason is None
