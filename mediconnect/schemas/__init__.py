from mediconnect.schemas.user import UserCreate, UserResponse
from mediconnect.schemas.availability import (
    RuleCreate,
    RuleUpdate,
    RuleResponse,
    WeekScheduleCreate,
    ScheduleWindow,
    BlockedExceptionCreate,
    CustomHoursExceptionCreate,
    ExceptionCreate,
    BlockRangeCreate,
    ExceptionResponse,
    DeletedCount,
)
from mediconnect.schemas.appointment import (
    AppointmentCreate,
    AppointmentUpdate,
    AppointmentTransition,
    AppointmentResponse,
    SlotQuery,
    AvailableSlot,
    AvailableSlotsResponse,
)

__all__ = [
    "UserCreate",
    "UserResponse",
    "RuleCreate",
    "RuleUpdate",
    "RuleResponse",
    "WeekScheduleCreate",
    "ScheduleWindow",
    "BlockedExceptionCreate",
    "CustomHoursExceptionCreate",
    "ExceptionCreate",
    "BlockRangeCreate",
    "ExceptionResponse",
    "DeletedCount",
    "AppointmentCreate",
    "AppointmentUpdate",
    "AppointmentTransition",
    "AppointmentResponse",
    "SlotQuery",
    "AvailableSlot",
    "AvailableSlotsResponse",
]
