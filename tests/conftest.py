"""Shared fixtures for scheduling tests."""

import os

# Settings are read at import time; point them at a throwaway database first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOGFIRE_TOKEN"] = ""

from datetime import time

import logfire
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from mediconnect.database import Base
from mediconnect.models import appointment, availability, user  # noqa: F401
from mediconnect.models.availability import AppointmentType, Weekday
from mediconnect.models.user import UserRole
from mediconnect.schemas.availability import RuleCreate
from mediconnect.schemas.user import UserCreate
from mediconnect.services.availability_service import AvailabilityService
from mediconnect.services.user_service import UserService

logfire.configure(send_to_logfire=False, console=False)


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite so separate sessions get separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'scheduling.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def doctor(db):
    doctor = await UserService(db).create_user(
        UserCreate(name="Dra. Ana Cardoso", role=UserRole.DOCTOR)
    )
    await db.commit()
    return doctor


@pytest_asyncio.fixture
async def patient(db):
    patient = await UserService(db).create_user(
        UserCreate(name="João da Silva", role=UserRole.PATIENT)
    )
    await db.commit()
    return patient


@pytest_asyncio.fixture
async def monday_rule(db, doctor):
    """Monday 09:00-12:00, 30 minute in-person slots."""
    rule = await AvailabilityService(db).create_rule(
        doctor.id,
        RuleCreate(
            weekday=Weekday.MONDAY,
            start_time=time(9, 0),
            end_time=time(12, 0),
            slot_minutes=30,
            appointment_type=AppointmentType.IN_PERSON,
        ),
    )
    await db.commit()
    return rule
