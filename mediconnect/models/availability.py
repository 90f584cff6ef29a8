import uuid
from datetime import datetime, date as date_type, time
from enum import Enum
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from mediconnect.database import Base


class Weekday(str, Enum):
    """Weekday enum, in ``date.weekday()`` order."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, day: date_type) -> "Weekday":
        return list(cls)[day.weekday()]


class AppointmentType(str, Enum):
    """Appointment type enum."""
    IN_PERSON = "in_person"
    TELEHEALTH = "telehealth"


class ExceptionKind(str, Enum):
    """Availability exception kind enum."""
    BLOCKED = "blocked"
    CUSTOM_HOURS = "custom_hours"


class AvailabilityRule(Base):
    """Recurring weekly availability window for one doctor."""

    __tablename__ = "availability_rules"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    weekday: Mapped[str] = mapped_column(String(10), nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    slot_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    appointment_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AppointmentType.IN_PERSON.value,
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_rule_window"),
        CheckConstraint("slot_minutes > 0", name="ck_rule_slot_minutes"),
    )

    def __repr__(self) -> str:
        return f"<AvailabilityRule {self.weekday} {self.start_time}-{self.end_time}>"


class AvailabilityException(Base):
    """Date-specific override of a doctor's weekly rules.

    ``blocked`` rows carry no window; ``custom_hours`` rows carry the window,
    slot length and type that replace the weekly rules for that date.
    """

    __tablename__ = "availability_exceptions"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    slot_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    appointment_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
    )

    # At most one exception per doctor and date
    __table_args__ = (
        UniqueConstraint("doctor_id", "date", name="uq_exception_doctor_date"),
    )

    def __repr__(self) -> str:
        return f"<AvailabilityException {self.kind} {self.date}>"
